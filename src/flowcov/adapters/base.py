"""Base class for coverage sources and the concurrent sampling helper."""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from flowcov.models.coverage import CoverageSample, Revision

logger = logging.getLogger(__name__)


class CoverageSource(ABC):
    """Yields a coverage percentage for one file at one revision."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Short identifier used in log messages."""

    @abstractmethod
    async def measure(self, filename: str, revision: Revision) -> CoverageSample:
        """Measure coverage of ``filename`` at ``revision``.

        Unparseable tool output is reported as ``percent=None`` rather than
        raised, so one bad file does not block the rest of the report.
        """


async def collect_samples(
    source: CoverageSource,
    revision: Revision,
    filenames: Sequence[str],
    *,
    max_concurrency: int = 0,
) -> dict[str, CoverageSample]:
    """Measure every file at ``revision`` and join the results.

    Args:
        source: Coverage source to query.
        revision: Revision to measure.
        filenames: Files to measure; duplicates are measured once.
        max_concurrency: Upper bound on in-flight measurements. ``0`` or less
            means one task per file with no bound.

    Returns:
        Mapping of filename to its sample, in ``filenames`` order.
    """
    unique = list(dict.fromkeys(filenames))
    if not unique:
        return {}

    semaphore = asyncio.Semaphore(max_concurrency) if max_concurrency > 0 else None

    async def _measure(filename: str) -> CoverageSample:
        if semaphore is None:
            return await source.measure(filename, revision)
        async with semaphore:
            return await source.measure(filename, revision)

    logger.info(
        "Measuring %d file(s) at %s with %s", len(unique), revision.value, source.name
    )
    samples = await asyncio.gather(*(_measure(filename) for filename in unique))
    return {sample.filename: sample for sample in samples}


async def collect_coverage(
    source: CoverageSource,
    revision: Revision,
    filenames: Sequence[str],
    *,
    max_concurrency: int = 0,
) -> dict[str, float | None]:
    """Like :func:`collect_samples`, keeping only the percentages (None when unparseable)."""
    samples = await collect_samples(
        source, revision, filenames, max_concurrency=max_concurrency
    )
    return {filename: sample.percent for filename, sample in samples.items()}
