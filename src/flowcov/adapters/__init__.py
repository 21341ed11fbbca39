"""Coverage source adapters."""

from flowcov.adapters.base import CoverageSource, collect_coverage, collect_samples
from flowcov.adapters.flow import FlowCoverageAdapter, UnparseableCoverageError

__all__ = [
    "CoverageSource",
    "FlowCoverageAdapter",
    "UnparseableCoverageError",
    "collect_coverage",
    "collect_samples",
]
