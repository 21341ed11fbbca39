"""Change-set and coverage report models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator

DeltaEntry = float | str
"""Numeric delta (NaN when a sample is unparseable) or a status label."""


class Revision(str, Enum):
    """Revision a coverage sample was measured at."""

    BASE = "base"
    HEAD = "head"


@dataclass(frozen=True)
class FileChange:
    """A file touched by a pull request."""

    filename: str
    """Path relative to the repository root."""

    status: str
    """GitHub change status (added, modified, removed, renamed, ...)."""


@dataclass(frozen=True)
class CoverageSample:
    """Coverage measured for one file at one revision."""

    filename: str
    """Path relative to the repository root."""

    revision: Revision
    """Revision the sample was taken at."""

    percent: float | None
    """Coverage percentage (0-100), or None when the tool output was unparseable."""

    raw: str | None = None
    """Percentage text exactly as the tool printed it, e.g. ``"83.30"``."""

    @property
    def total(self) -> float | str | None:
        """Value shown in the Total column: the printed text when known."""
        return self.raw if self.raw is not None else self.percent


@dataclass
class ChangeSet:
    """Pattern-filtered pull request files, partitioned by status."""

    files: list[FileChange] = field(default_factory=list)
    """Matching files in the order GitHub returned them."""

    modified: list[str] = field(default_factory=list)
    """Files with status ``modified``."""

    added: list[str] = field(default_factory=list)
    """Files with status ``added``."""

    others: list[tuple[str, str]] = field(default_factory=list)
    """Every other file, with its status preserved verbatim."""

    @property
    def is_empty(self) -> bool:
        """Return True when no file matched the pattern."""
        return not self.files

    def labelled(self) -> Iterator[tuple[str, str]]:
        """Yield ``(filename, status)`` for every non-modified file, in PR order."""
        for change in self.files:
            if change.status != "modified":
                yield change.filename, change.status


@dataclass(frozen=True)
class ReportRow:
    """A single rendered row of the coverage table."""

    filename: str
    delta_text: str
    total_text: str

    def to_markdown(self) -> str:
        """Render the row as a Markdown table line."""
        return f"| {self.filename} | {self.delta_text} | {self.total_text}%"


@dataclass
class CoverageReport:
    """Rendered coverage table and threshold verdict."""

    table: str
    """Markdown table, header and separator included."""

    passes_threshold: bool
    """False when at least one file dropped past the threshold."""

    rows: list[ReportRow] = field(default_factory=list)
    """Rows in table order."""
