"""Async subprocess execution for coverage tool invocations.

Each changed file gets its own coverage process, so this runner is built to be
fanned out under ``asyncio.gather``: it never raises on a non-zero exit or a
timeout, only when the command cannot be started at all.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)


@dataclass
class SubprocessResult:
    """Result of subprocess execution."""

    returncode: int
    """Exit code of the process (-1 when killed on timeout)."""

    stdout: str
    """Standard output captured from the process."""

    stderr: str
    """Standard error captured from the process."""

    timed_out: bool = False
    """True if the process was killed because it exceeded the timeout."""

    duration_ms: float = 0.0
    """Wall-clock duration in milliseconds."""

    @property
    def success(self) -> bool:
        """True when the process exited 0 within the timeout."""
        return self.returncode == 0 and not self.timed_out


class SubprocessError(Exception):
    """Raised when a subprocess cannot be started."""

    def __init__(self, message: str, command: Sequence[str]) -> None:
        """Initialize with error message and the offending command.

        Args:
            message: Error description.
            command: The command that failed to start.
        """
        super().__init__(message)
        self.command = list(command)


async def run_subprocess(
    command: Sequence[str],
    *,
    cwd: Path | None = None,
    timeout: float = 120.0,
) -> SubprocessResult:
    """Execute a command and capture its output.

    Args:
        command: Command and arguments (e.g. ``['yarn', 'flow', 'coverage', 'a.js']``).
        cwd: Working directory. Defaults to the current directory.
        timeout: Seconds to wait before killing the process.

    Returns:
        SubprocessResult with exit code and decoded output.

    Raises:
        ValueError: If the command is empty, the timeout is not positive, or
            the working directory does not exist.
        SubprocessError: If the executable cannot be found or spawned.
    """
    if not command:
        raise ValueError("Command cannot be empty")

    if timeout <= 0:
        raise ValueError(f"Timeout must be positive, got {timeout}")

    work_dir = cwd.resolve() if cwd else Path.cwd()
    if not work_dir.is_dir():
        raise ValueError(f"Working directory does not exist: {work_dir}")

    logger.debug("Running %s (cwd=%s, timeout=%s)", " ".join(command), work_dir, timeout)

    start_time = time.perf_counter()
    try:
        process = await asyncio.create_subprocess_exec(
            *command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=work_dir,
        )
    except FileNotFoundError as exc:
        raise SubprocessError(f"Command not found: {command[0]}", command) from exc
    except OSError as exc:
        raise SubprocessError(f"Could not start {command[0]}: {exc}", command) from exc

    timed_out = False
    try:
        stdout_bytes, stderr_bytes = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except TimeoutError:
        logger.warning("%s timed out after %s seconds", " ".join(command), timeout)
        timed_out = True
        try:
            process.kill()
            await process.wait()
        except ProcessLookupError:
            pass  # already exited
        stdout_bytes = b""
        stderr_bytes = b"Process timed out and was killed"

    duration_ms = (time.perf_counter() - start_time) * 1000
    returncode = -1 if timed_out else (process.returncode or 0)

    result = SubprocessResult(
        returncode=returncode,
        stdout=stdout_bytes.decode("utf-8", errors="replace"),
        stderr=stderr_bytes.decode("utf-8", errors="replace"),
        timed_out=timed_out,
        duration_ms=duration_ms,
    )
    logger.debug("Finished %s: returncode=%d in %.2fms", command[0], returncode, duration_ms)
    return result
