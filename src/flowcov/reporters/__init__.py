"""Reporters for rendering and publishing coverage results."""

from __future__ import annotations

from flowcov.reporters.github_comment import COMMENT_HEADER, CommentPublisher, find_existing
from flowcov.reporters.markdown import ThresholdParseError, parse_threshold, render
from flowcov.reporters.terminal import reporter

__all__ = [
    "COMMENT_HEADER",
    "CommentPublisher",
    "ThresholdParseError",
    "find_existing",
    "parse_threshold",
    "render",
    "reporter",
]
