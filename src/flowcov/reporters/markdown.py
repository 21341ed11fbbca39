"""Render coverage deltas as a Markdown table and evaluate the threshold."""

from __future__ import annotations

import logging
import math
import re
import sys
from typing import TYPE_CHECKING

from flowcov.models.coverage import CoverageReport, ReportRow

if TYPE_CHECKING:
    from collections.abc import Mapping

    from flowcov.models.coverage import DeltaEntry

logger = logging.getLogger(__name__)

TABLE_HEADER = "| File | Delta | Total |"
TABLE_SEPARATOR = "| --- | --- | --- |"

_MISSING_TOTAL = "n/a"
_NAN_LABEL = "NaN"

_NUMBER = r"[+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|Infinity)"
_LEADING_NUMBER_RE = re.compile(rf"\s*({_NUMBER})")
_WHOLE_NUMBER_RE = re.compile(rf"\s*({_NUMBER})\s*")


class ThresholdParseError(ValueError):
    """The threshold does not start with a number; checking is disabled instead of failing."""


def parse_threshold(threshold: str | float | None) -> float:
    """Parse the leading number of a threshold, ignoring any trailing text.

    ``"2"``, ``"2%"`` and ``"2 points"`` all parse to 2. This value only
    decides whether threshold checking is on; see :func:`threshold_bound`.

    Raises:
        ThresholdParseError: If the value is None or does not start with a number.
    """
    if threshold is None:
        raise ThresholdParseError("No threshold given")
    match = _LEADING_NUMBER_RE.match(str(threshold))
    if match is None:
        raise ThresholdParseError(f"Threshold {threshold!r} is not a number")
    return float(match.group(1))


def threshold_bound(threshold: str | float) -> float:
    """Largest tolerated drop: the absolute value of the whole threshold.

    Trailing text makes the whole value NaN, and any drop then fails,
    since no rounded delta compares greater than NaN.
    """
    text = str(threshold)
    if not text.strip():
        return 0.0
    match = _WHOLE_NUMBER_RE.fullmatch(text)
    if match is None:
        return math.nan
    return abs(float(match.group(1)))


def round_half_up(value: float) -> int:
    """Round to the nearest integer, ties toward positive infinity.

    Compares the fractional part directly, so 0.49999999999999994 rounds to 0
    where ``floor(value + 0.5)`` would give 1.
    """
    lower = math.floor(value)
    return lower + 1 if value - lower >= 0.5 else lower


def round_delta(delta: float) -> int:
    """Round half up after an epsilon nudge, so 2.5 -> 3 and -2.5 -> -2."""
    return round_half_up(delta + sys.float_info.epsilon)


def round_total(total: float) -> int:
    """Round half up."""
    return round_half_up(total)


def format_delta(rounded: int) -> str:
    """Prefix with ``+`` unless negative; zero renders as ``+0``."""
    text = str(rounded)
    return text if text.startswith("-") else f"+{text}"


def _format_raw_total(total: float | str | None) -> str:
    if total is None:
        return _MISSING_TOTAL
    if isinstance(total, str):
        return total
    if float(total).is_integer():
        return str(int(total))
    return repr(float(total))


def _is_label(entry: DeltaEntry) -> bool:
    return isinstance(entry, str) or math.isnan(entry)


def render(
    deltas: Mapping[str, DeltaEntry],
    head_totals: Mapping[str, float | str | None],
    threshold: str | float | None,
) -> CoverageReport:
    """Render the delta table and decide whether the change set passes.

    Rows follow the iteration order of ``deltas``. Status labels (and NaN
    deltas) are inserted next to the head total exactly as the tool printed
    it, and never take part in the threshold check. A threshold that does not
    start with a number disables checking, so the report always passes.

    Args:
        deltas: Filename -> numeric delta or status label.
        head_totals: Filename -> head-revision coverage, either the printed
            percentage text or the parsed percent.
        threshold: Maximum tolerated drop, as text.

    Returns:
        The rendered table, its rows, and the verdict.
    """
    bound: float | None
    try:
        parse_threshold(threshold)
    except ThresholdParseError as exc:
        logger.debug("Threshold checking disabled: %s", exc)
        bound = None
    else:
        bound = threshold_bound(threshold)
        if math.isnan(bound):
            logger.warning("Threshold %r has trailing text; any drop will fail", threshold)

    passes_threshold = True
    rows: list[ReportRow] = []

    for filename, entry in deltas.items():
        head_total = head_totals.get(filename)

        if _is_label(entry):
            label = _NAN_LABEL if not isinstance(entry, str) else entry
            rows.append(ReportRow(filename, label, _format_raw_total(head_total)))
            continue

        rounded = round_delta(float(entry))
        if passes_threshold and bound is not None and rounded < 0:
            passes_threshold = rounded > -bound
            if not passes_threshold:
                logger.info("%s dropped %d%%, past threshold %s", filename, rounded, threshold)

        total_text = _MISSING_TOTAL if head_total is None else str(round_total(float(head_total)))
        rows.append(ReportRow(filename, f"{format_delta(rounded)}%", total_text))

    table = "\n".join([TABLE_HEADER, TABLE_SEPARATOR, *(row.to_markdown() for row in rows)])
    return CoverageReport(table=table, passes_threshold=passes_threshold, rows=rows)
