"""Data models for flowcov."""

from flowcov.models.coverage import (
    ChangeSet,
    CoverageReport,
    CoverageSample,
    DeltaEntry,
    FileChange,
    ReportRow,
    Revision,
)

__all__ = [
    "ChangeSet",
    "CoverageReport",
    "CoverageSample",
    "DeltaEntry",
    "FileChange",
    "ReportRow",
    "Revision",
]
