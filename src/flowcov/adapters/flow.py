"""Flow type-coverage adapter.

Runs ``<package manager> flow coverage <file>`` inside a checkout of the base
or head revision and extracts the percentage from output such as::

    Covered: 83.33% (10 of 12 expressions)
"""

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import TYPE_CHECKING

from flowcov.adapters.base import CoverageSource
from flowcov.models.coverage import CoverageSample, Revision
from flowcov.utils.subprocess_runner import run_subprocess

if TYPE_CHECKING:
    from collections.abc import Mapping

logger = logging.getLogger(__name__)

_VALUE_START = ": "
_VALUE_END = "%"


class UnparseableCoverageError(ValueError):
    """Raised when coverage tool output does not contain a percentage."""


def extract_coverage_text(stdout: str) -> str:
    """Return the percentage text between the first ``": "`` and the first ``"%"``.

    The text is returned as printed (``"83.30"`` stays ``"83.30"``) once it
    has been checked to be a finite number.

    Raises:
        UnparseableCoverageError: If either delimiter is missing or the text
            between them is not a finite number.
    """
    begin = stdout.find(_VALUE_START)
    end = stdout.find(_VALUE_END)
    if begin < 0 or end < 0 or end < begin + len(_VALUE_START):
        raise UnparseableCoverageError(f"No coverage percentage in output: {stdout[:80]!r}")

    raw = stdout[begin + len(_VALUE_START) : end].strip()
    try:
        value = float(raw)
    except ValueError as exc:
        raise UnparseableCoverageError(f"Coverage value {raw!r} is not a number") from exc
    if not math.isfinite(value):
        raise UnparseableCoverageError(f"Coverage value {raw!r} is not finite")
    return raw


def clip_filename(filename: str, path: str) -> str:
    """Strip the ``path`` subdirectory prefix from a repository-relative filename."""
    if not path:
        return filename
    prefix = path.rstrip("/")
    if filename.startswith(prefix + "/"):
        return filename[len(prefix) + 1 :]
    return filename.removeprefix(prefix)


class FlowCoverageAdapter(CoverageSource):
    """Coverage source backed by the ``flow coverage`` command."""

    def __init__(
        self,
        checkout_dirs: Mapping[Revision, Path],
        *,
        path: str = "",
        package_manager: str = "yarn",
        timeout: float = 120.0,
    ) -> None:
        """Initialize the adapter.

        Args:
            checkout_dirs: Directory holding each revision's checkout.
            path: Subdirectory (relative to each checkout) the Flow project lives in.
            package_manager: Runner used to invoke flow (``yarn``, ``npx``, ...).
            timeout: Seconds allowed per invocation.
        """
        self._checkout_dirs = dict(checkout_dirs)
        self._path = path
        self._package_manager = package_manager
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "flow"

    def working_directory(self, revision: Revision) -> Path:
        """Directory flow is invoked from for ``revision``."""
        base_dir = self._checkout_dirs[revision]
        return base_dir / self._path if self._path else base_dir

    def build_command(self, filename: str) -> list[str]:
        """Build the coverage command for a repository-relative filename."""
        return [self._package_manager, "flow", "coverage", clip_filename(filename, self._path)]

    async def measure(self, filename: str, revision: Revision) -> CoverageSample:
        result = await run_subprocess(
            self.build_command(filename),
            cwd=self.working_directory(revision),
            timeout=self._timeout,
        )
        if not result.success:
            logger.warning(
                "flow coverage exited %d for %s at %s: %s",
                result.returncode,
                filename,
                revision.value,
                result.stderr.strip()[:200],
            )

        try:
            raw: str | None = extract_coverage_text(result.stdout)
        except UnparseableCoverageError as exc:
            logger.warning("Unparseable coverage for %s at %s: %s", filename, revision.value, exc)
            raw = None

        return CoverageSample(
            filename=filename,
            revision=revision,
            percent=float(raw) if raw is not None else None,
            raw=raw,
        )
