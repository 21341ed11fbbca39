"""Configuration parsing from ``.flowcov.yml`` and GitHub Actions inputs."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any

import yaml

from flowcov.utils.ci_context import split_repository

logger = logging.getLogger(__name__)

CONFIG_FILE = ".flowcov.yml"
DEFAULT_PATTERN = r"\.jsx?$"

_ENV_VAR_RE = re.compile(r"\$\{(\w+)\}")


class ConfigError(Exception):
    """Invalid or incomplete configuration."""


def _action_input(name: str, default: str = "") -> str:
    """Read a GitHub Actions input (``INPUT_<NAME>``) from the environment."""
    return os.environ.get(f"INPUT_{name.upper()}", default)


def _resolve_env_vars(value: str) -> str:
    """Replace ``${VAR_NAME}`` placeholders with environment variable values."""

    def _replace(match: re.Match[str]) -> str:
        var = match.group(1)
        resolved = os.environ.get(var)
        if resolved is None:
            logger.warning("Environment variable %s is not set (referenced in config)", var)
            return ""
        return resolved

    return _ENV_VAR_RE.sub(_replace, value)


def _resolve_dict(data: dict[str, Any]) -> dict[str, Any]:
    """Recursively resolve environment variables in a dictionary."""
    result: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, str):
            result[key] = _resolve_env_vars(value)
        elif isinstance(value, dict):
            result[key] = _resolve_dict(value)
        else:
            result[key] = value
    return result


def _text(value: Any, default: str) -> str:
    """Stringify a YAML scalar, treating an empty value as missing."""
    return default if value is None else str(value)


def _section(raw: dict[str, Any], name: str) -> dict[str, Any]:
    value = raw.get(name, {})
    return value if isinstance(value, dict) else {}


@dataclass
class ReportConfig:
    """Which files to report on and when to fail."""

    pattern: str = DEFAULT_PATTERN
    """Filename filter regex (case-insensitive)."""

    threshold: str = ""
    """Largest tolerated per-file drop in percentage points. Non-numeric disables checking."""


@dataclass
class CoverageConfig:
    """How to invoke the Flow coverage tool."""

    path: str = ""
    """Subdirectory of each checkout that holds the Flow project."""

    package_manager: str = "yarn"
    """Command used to run flow (``yarn``, ``npx``, ``pnpm``)."""

    head_dir: str = "head"
    """Checkout of the pull request head, relative to the project root."""

    base_dir: str = "base"
    """Checkout of the pull request base, relative to the project root."""

    max_concurrency: int = 0
    """Maximum concurrent flow processes (0 = one per file)."""

    timeout: float = 120.0
    """Seconds allowed per flow invocation."""


@dataclass
class GitHubConfig:
    """GitHub connection settings."""

    token: str = ""
    """API token (supports ${ENV_VAR} expansion)."""

    repository: str = ""
    """``owner/repo``; empty means ``GITHUB_REPOSITORY``."""

    pr_number: int = 0
    """Pull request number; 0 means read it from the event payload."""

    api_url: str = "https://api.github.com"
    """API root URL."""


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "info"
    """debug, info, warn, error, or crit."""


@dataclass
class FlowcovConfig:
    """Complete flowcov configuration."""

    root: str
    """Project root directory."""

    report: ReportConfig = field(default_factory=ReportConfig)
    coverage: CoverageConfig = field(default_factory=CoverageConfig)
    github: GitHubConfig = field(default_factory=GitHubConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    raw: dict[str, Any] = field(default_factory=dict)
    """Raw parsed YAML for debugging."""

    def checkout_dir(self, name: str) -> Path:
        """Resolve a checkout directory against the project root."""
        path = Path(name)
        return path if path.is_absolute() else Path(self.root) / path


def load_config(root: str | Path) -> FlowcovConfig:
    """Load ``.flowcov.yml`` from ``root``.

    Values missing from the file fall back to the GitHub Actions inputs
    (``INPUT_PATTERN``, ``INPUT_THRESHOLD``, ...) and then to defaults.
    """
    root_path = Path(root).resolve()
    config_file = root_path / CONFIG_FILE

    raw: dict[str, Any] = {}
    if config_file.is_file():
        parsed = yaml.safe_load(config_file.read_text(encoding="utf-8"))
        if isinstance(parsed, dict):
            raw = _resolve_dict(parsed)
        elif parsed is not None:
            raise ConfigError(f"{config_file} must contain a mapping")

    report_raw = _section(raw, "report")
    report = ReportConfig(
        pattern=str(report_raw.get("pattern", _action_input("pattern") or DEFAULT_PATTERN)),
        threshold=_text(report_raw.get("threshold"), _action_input("threshold")),
    )

    coverage_raw = _section(raw, "coverage")
    try:
        coverage = CoverageConfig(
            path=str(coverage_raw.get("path", _action_input("path"))),
            package_manager=str(
                coverage_raw.get("package_manager", _action_input("package-manager") or "yarn")
            ),
            head_dir=str(coverage_raw.get("head_dir", "head")),
            base_dir=str(coverage_raw.get("base_dir", "base")),
            max_concurrency=int(coverage_raw.get("max_concurrency", 0)),
            timeout=float(coverage_raw.get("timeout", 120.0)),
        )
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid coverage section in {config_file}: {exc}") from exc

    github_raw = _section(raw, "github")
    try:
        github = GitHubConfig(
            token=str(
                github_raw.get("token")
                or _action_input("github-token")
                or os.environ.get("GITHUB_TOKEN", "")
            ),
            repository=str(github_raw.get("repository", "")),
            pr_number=int(github_raw.get("pr_number", 0)),
            api_url=str(
                github_raw.get("api_url", os.environ.get("GITHUB_API_URL", "https://api.github.com"))
            ),
        )
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid github section in {config_file}: {exc}") from exc

    logging_raw = _section(raw, "logging")
    logging_config = LoggingConfig(level=str(logging_raw.get("level", "info")))

    return FlowcovConfig(
        root=str(root_path),
        report=report,
        coverage=coverage,
        github=github,
        logging=logging_config,
        raw=raw,
    )


def apply_overrides(config: FlowcovConfig, **overrides: Any) -> FlowcovConfig:
    """Return a copy of ``config`` with non-None overrides applied.

    Keys are matched against the fields of each section, e.g. ``threshold``
    updates ``report.threshold`` and ``pr_number`` updates ``github.pr_number``.
    """
    sections = {"report": config.report, "coverage": config.coverage, "github": config.github}
    updated: dict[str, Any] = {}

    for key, value in overrides.items():
        if value is None:
            continue
        for name, section in sections.items():
            if key in {f.name for f in fields(section)}:
                sections[name] = replace(section, **{key: value})
                updated[name] = sections[name]
                break
        else:
            raise ConfigError(f"Unknown configuration override: {key}")

    return replace(config, **updated)


def validate_config(config: FlowcovConfig) -> list[str]:
    """Return a list of human-readable configuration errors.

    The threshold is not validated here. A non-numeric threshold
    turns checking off.
    """
    errors: list[str] = []

    try:
        re.compile(config.report.pattern)
    except re.error as exc:
        errors.append(f"report.pattern is not a valid regex: {exc}")

    if not config.coverage.package_manager.strip():
        errors.append("coverage.package_manager must not be empty")
    if config.coverage.max_concurrency < 0:
        errors.append("coverage.max_concurrency must be >= 0")
    if config.coverage.timeout <= 0:
        errors.append("coverage.timeout must be positive")

    if config.github.repository and split_repository(config.github.repository) is None:
        errors.append(f"github.repository must be 'owner/repo', got {config.github.repository!r}")
    if config.github.pr_number < 0:
        errors.append("github.pr_number must be >= 0")

    return errors
