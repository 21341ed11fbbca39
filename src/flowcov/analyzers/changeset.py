"""Partition pull request files into modified, added, and other buckets."""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from flowcov.models.coverage import ChangeSet, FileChange

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = logging.getLogger(__name__)

STATUS_MODIFIED = "modified"
STATUS_ADDED = "added"


def compile_pattern(pattern: str | re.Pattern[str]) -> re.Pattern[str]:
    """Compile a filename filter (case-insensitive, multiline)."""
    if isinstance(pattern, re.Pattern):
        return pattern
    return re.compile(pattern, re.IGNORECASE | re.MULTILINE)


def filter_files(
    files: Iterable[FileChange], pattern: str | re.Pattern[str]
) -> list[FileChange]:
    """Keep the files whose name matches ``pattern`` anywhere."""
    regex = compile_pattern(pattern)
    return [change for change in files if regex.search(change.filename)]


def classify(files: Iterable[FileChange], pattern: str | re.Pattern[str]) -> ChangeSet:
    """Filter ``files`` by ``pattern`` and bucket them by status.

    ``modified`` and ``added`` must match exactly; every other status lands in
    ``others`` with the status kept verbatim for the report.
    """
    matched = filter_files(files, pattern)
    change_set = ChangeSet(files=matched)

    for change in matched:
        if change.status == STATUS_MODIFIED:
            change_set.modified.append(change.filename)
        elif change.status == STATUS_ADDED:
            change_set.added.append(change.filename)
        else:
            change_set.others.append((change.filename, change.status))

    logger.info(
        "Change set: %d modified, %d added, %d other",
        len(change_set.modified),
        len(change_set.added),
        len(change_set.others),
    )
    return change_set
