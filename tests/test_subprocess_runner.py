"""Tests for the async subprocess runner."""

from __future__ import annotations

from pathlib import Path

import pytest

from flowcov.utils.subprocess_runner import SubprocessError, SubprocessResult, run_subprocess

# ── Basic Execution Tests ────────────────────────────────────────────


async def test_run_subprocess_success() -> None:
    """Test successful subprocess execution."""
    result = await run_subprocess(["echo", "Covered: 50.00%"])

    assert result.success
    assert result.returncode == 0
    assert "Covered: 50.00%" in result.stdout
    assert result.timed_out is False
    assert result.duration_ms > 0


async def test_run_subprocess_with_working_directory(tmp_path: Path) -> None:
    """Test subprocess respects working directory."""
    (tmp_path / "a.js").write_text("// @flow\n")

    result = await run_subprocess(["ls"], cwd=tmp_path)

    assert result.success
    assert "a.js" in result.stdout


async def test_run_subprocess_nonzero_exit_code_does_not_raise() -> None:
    """Test non-zero exit codes are reported, not raised."""
    result = await run_subprocess(["python3", "-c", "import sys; sys.exit(3)"])

    assert not result.success
    assert result.returncode == 3


async def test_run_subprocess_captures_stderr() -> None:
    """Test subprocess captures stderr separately."""
    result = await run_subprocess(["python3", "-c", "import sys; sys.stderr.write('boom')"])

    assert result.returncode == 0
    assert "boom" in result.stderr
    assert result.stdout == ""


# ── Error Handling Tests ──────────────────────────────────────────────


async def test_run_subprocess_command_not_found() -> None:
    """Test missing executables raise SubprocessError."""
    with pytest.raises(SubprocessError, match="Command not found") as exc_info:
        await run_subprocess(["nonexistent_command_xyz123", "flow"])

    assert exc_info.value.command == ["nonexistent_command_xyz123", "flow"]


async def test_run_subprocess_empty_command() -> None:
    """Test subprocess rejects empty command."""
    with pytest.raises(ValueError, match="Command cannot be empty"):
        await run_subprocess([])


async def test_run_subprocess_invalid_timeout() -> None:
    """Test subprocess rejects invalid timeout."""
    with pytest.raises(ValueError, match="Timeout must be positive"):
        await run_subprocess(["echo", "test"], timeout=0)


async def test_run_subprocess_invalid_working_directory() -> None:
    """Test subprocess rejects non-existent working directory."""
    with pytest.raises(ValueError, match="Working directory does not exist"):
        await run_subprocess(["echo", "test"], cwd=Path("/nonexistent/path/xyz"))


# ── Timeout Tests ─────────────────────────────────────────────────────


async def test_run_subprocess_timeout() -> None:
    """Test a slow process is killed and reported as timed out."""
    result = await run_subprocess(["python3", "-c", "import time; time.sleep(10)"], timeout=0.1)

    assert not result.success
    assert result.timed_out is True
    assert result.returncode == -1
    assert "timed out" in result.stderr.lower()


def test_success_requires_clean_exit() -> None:
    assert SubprocessResult(returncode=0, stdout="", stderr="").success
    assert not SubprocessResult(returncode=0, stdout="", stderr="", timed_out=True).success
    assert not SubprocessResult(returncode=1, stdout="", stderr="").success
