"""flowcov CLI: top-level command group."""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import asdict
from typing import Any

import click
import yaml
from rich.markup import escape

from flowcov import __version__
from flowcov.config import (
    ConfigError,
    FlowcovConfig,
    apply_overrides,
    load_config,
    validate_config,
)
from flowcov.logging_config import init_logging
from flowcov.pipeline import FlowCoverageResult, run_flow_coverage
from flowcov.reporters.terminal import console, reporter
from flowcov.utils.ci_context import detect_ci_context, get_pr_info_from_env
from flowcov.utils.git import GitHubAPI

logger = logging.getLogger(__name__)

# Masking thresholds
_MIN_MASKED_VALUE_LENGTH = 8

_SENSITIVE_KEYS = {"token"}

_root_option = click.option(
    "--root",
    default=".",
    type=click.Path(exists=True, file_okay=False, resolve_path=True),
    help="Project root holding .flowcov.yml and the head/base checkouts.",
)


def _config_to_dict(config: FlowcovConfig) -> dict[str, Any]:
    """Convert FlowcovConfig to a dictionary for display."""
    result = asdict(config)
    result.pop("raw", None)
    return result


def _mask_sensitive_values(config_dict: dict[str, Any]) -> dict[str, Any]:
    """Mask tokens in a nested configuration dict (returns a copy)."""
    masked: dict[str, Any] = {}
    for key, value in config_dict.items():
        if isinstance(value, dict):
            masked[key] = _mask_sensitive_values(value)
        elif key in _SENSITIVE_KEYS and isinstance(value, str) and value:
            if len(value) > _MIN_MASKED_VALUE_LENGTH:
                masked[key] = f"{value[:4]}...{value[-4:]}"
            else:
                masked[key] = "***"
        else:
            masked[key] = value
    return masked


def _fail(ctx: click.Context, message: str, *, as_json: bool) -> None:
    """Report ``message`` as the run's failure and exit non-zero."""
    if as_json:
        click.echo(json.dumps({"error": message}, indent=2))
    else:
        reporter.print_error(escape(message))
    if detect_ci_context().is_github_actions:
        click.echo(f"::error::{message}", err=True)
    ctx.exit(1)


def _display_result(result: FlowCoverageResult, pattern: str) -> None:
    if result.report is None:
        reporter.print_info(f"No changed files match {escape(repr(pattern))}; nothing to report.")
        return

    reporter.print_coverage_report(result.report)

    if result.published:
        reporter.print_success(
            f"Coverage comment {result.published.action}: {result.published.comment_url}"
        )
    if result.publish_error:
        reporter.print_warning(
            f"Could not publish coverage comment: {escape(result.publish_error)}"
        )


@click.group()
@click.version_option(version=__version__, prog_name="flowcov")
def cli() -> None:
    """flowcov: Flow type-coverage deltas for pull requests."""


@cli.group("config")
def config_group() -> None:
    """Inspect `.flowcov.yml` configuration."""


@config_group.command("show")
@_root_option
@click.option("--json-output", "as_json", is_flag=True, help="Output as JSON instead of YAML.")
def config_show(root: str, *, as_json: bool) -> None:
    """Display the resolved configuration with the token masked."""
    try:
        config = load_config(root)
    except ConfigError as e:
        reporter.print_error(f"Failed to load configuration: {escape(str(e))}")
        raise click.Abort from e

    config_dict = _mask_sensitive_values(_config_to_dict(config))

    if as_json:
        click.echo(json.dumps(config_dict, indent=2))
    else:
        console.print("[bold cyan]Configuration:[/bold cyan]")
        click.echo(yaml.safe_dump(config_dict, sort_keys=False, default_flow_style=False))


@config_group.command("validate")
@_root_option
def config_validate(root: str) -> None:
    """Validate `.flowcov.yml`."""
    try:
        config = load_config(root)
    except ConfigError as e:
        reporter.print_error(f"Failed to load configuration: {escape(str(e))}")
        raise click.Abort from e

    errors = validate_config(config)
    if not errors:
        reporter.print_success("Configuration is valid!")
        return

    reporter.print_error(f"Found {len(errors)} configuration error(s):")
    for idx, error in enumerate(errors, start=1):
        console.print(f"  {idx}. [red]{escape(error)}[/red]")
    raise click.Abort


@cli.command()
@_root_option
@click.option("--pattern", default=None, help="Filename filter regex (case-insensitive).")
@click.option("--threshold", default=None, help="Largest tolerated per-file drop, in points.")
@click.option(
    "--path", "path", default=None, help="Subdirectory of each checkout holding the Flow project."
)
@click.option("--package-manager", default=None, help="Command used to run flow (yarn, npx).")
@click.option("--head-dir", default=None, help="Checkout of the PR head (relative to --root).")
@click.option("--base-dir", default=None, help="Checkout of the PR base (relative to --root).")
@click.option("--repo", "repository", default=None, help="Repository as owner/repo.")
@click.option("--pr-number", type=int, default=None, help="Pull request number.")
@click.option("--github-token", "token", default=None, help="GitHub token (default: GITHUB_TOKEN).")
@click.option(
    "--max-concurrency", type=int, default=None, help="Concurrent flow processes (0 = unbounded)."
)
@click.option("--dry-run", is_flag=True, help="Render the report without commenting on the PR.")
@click.option("--json-output", "as_json", is_flag=True, help="Output the result as JSON.")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def run(
    ctx: click.Context,
    root: str,
    *,
    dry_run: bool,
    as_json: bool,
    verbose: bool,
    **overrides: Any,
) -> None:
    """Measure Flow coverage deltas for the current pull request.

    Exits with status 1 when a changed file drops past the threshold.

    Example:
      flowcov run --threshold 2 --pattern '\\.jsx?$'
    """
    try:
        config = apply_overrides(load_config(root), **overrides)
        init_logging("debug" if verbose else config.logging.level)

        errors = validate_config(config)
        if errors:
            raise ConfigError("; ".join(errors))

        pr_info = get_pr_info_from_env(config.github.repository, config.github.pr_number)
        if pr_info is None:
            raise ConfigError(
                "Could not determine the pull request. Pass --repo and --pr-number "
                "or run on a pull_request event."
            )

        api = GitHubAPI(token=config.github.token or None, base_url=config.github.api_url)
        result = asyncio.run(run_flow_coverage(config, pr_info, api=api, publish=not dry_run))
    except Exception as e:
        logger.debug("flowcov run failed", exc_info=True)
        _fail(ctx, str(e) or type(e).__name__, as_json=as_json)
        return

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
    else:
        _display_result(result, config.report.pattern)

    if result.failure_message:
        if not as_json:
            reporter.print_error(escape(result.failure_message))
        if detect_ci_context().is_github_actions:
            click.echo(f"::error::{result.failure_message}", err=True)
        ctx.exit(1)
