"""Logging setup for the flowcov CLI."""

from __future__ import annotations

import logging
import sys
from datetime import UTC, datetime
from typing import TextIO

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "crit": logging.CRITICAL,
    "critical": logging.CRITICAL,
}


class BracketLevelFormatter(logging.Formatter):
    """Formatter with bracketed lowercase level tags and UTC timestamps."""

    _TAGS = {
        logging.DEBUG: "[debug]",
        logging.INFO: "[info]",
        logging.WARNING: "[warn]",
        logging.ERROR: "[error]",
        logging.CRITICAL: "[crit]",
    }

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:  # noqa: N802
        return datetime.fromtimestamp(record.created, tz=UTC).strftime("%Y-%m-%dT%H:%M:%SZ")

    def format(self, record: logging.LogRecord) -> str:
        record.level_tag = self._TAGS.get(record.levelno, f"[lvl{record.levelno}]")
        return super().format(record)


def parse_level(level: str) -> int:
    """Map a level name to a logging constant, defaulting to INFO."""
    return _LEVELS.get(level.strip().lower(), logging.INFO)


def init_logging(level: str = "info", *, stream: TextIO | None = None) -> None:
    """Route flowcov logs to stderr so stdout stays free for JSON output."""
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(BracketLevelFormatter(fmt="%(asctime)s %(level_tag)s %(name)s: %(message)s"))

    logger = logging.getLogger("flowcov")
    logger.setLevel(parse_level(level))
    for existing in list(logger.handlers):
        logger.removeHandler(existing)
    logger.addHandler(handler)
    logger.propagate = False
