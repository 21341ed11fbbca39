"""Change-set classification and coverage delta computation."""

from flowcov.analyzers.changeset import classify, compile_pattern, filter_files
from flowcov.analyzers.delta import MissingSampleError, compute_deltas

__all__ = [
    "MissingSampleError",
    "classify",
    "compile_pattern",
    "compute_deltas",
    "filter_files",
]
