"""Flow coverage pipeline: PR files -> coverage samples -> deltas -> report -> comment."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import asdict, dataclass, field
from typing import TYPE_CHECKING, Any

from flowcov.adapters.base import collect_coverage, collect_samples
from flowcov.adapters.flow import FlowCoverageAdapter
from flowcov.analyzers.changeset import classify
from flowcov.analyzers.delta import compute_deltas
from flowcov.models.coverage import ChangeSet, Revision
from flowcov.reporters.github_comment import CommentPublisher, PublishResult
from flowcov.reporters.markdown import render
from flowcov.utils.git import GitHubAPIError

if TYPE_CHECKING:
    from flowcov.adapters.base import CoverageSource
    from flowcov.config import FlowcovConfig
    from flowcov.models.coverage import CoverageReport, DeltaEntry
    from flowcov.utils.git import GitHubAPI, GitHubPRInfo

logger = logging.getLogger(__name__)


@dataclass
class FlowCoverageResult:
    """Everything one pipeline run produced."""

    threshold: str
    """Threshold the report was evaluated against, as configured."""

    change_set: ChangeSet = field(default_factory=ChangeSet)
    """Files that matched the pattern."""

    deltas: dict[str, DeltaEntry] = field(default_factory=dict)
    """Filename -> numeric delta or status label."""

    report: CoverageReport | None = None
    """Rendered report; None when the run was skipped."""

    published: PublishResult | None = None
    """Comment publish outcome; None when publishing was skipped or failed."""

    publish_error: str | None = None
    """Error message if publishing the comment failed."""

    @property
    def skipped(self) -> bool:
        """True when no changed file matched the pattern."""
        return self.report is None

    @property
    def passed(self) -> bool:
        """True unless a file dropped past the threshold."""
        return self.report is None or self.report.passes_threshold

    @property
    def failure_message(self) -> str | None:
        """Message to fail the run with, or None when it passes."""
        if self.passed:
            return None
        return f"A file does not pass the flow threshold of {self.threshold}"

    def to_dict(self) -> dict[str, Any]:
        """Serialize for ``--json-output``."""
        return {
            "skipped": self.skipped,
            "passed": self.passed,
            "threshold": self.threshold,
            "modified": self.change_set.modified,
            "added": self.change_set.added,
            "others": [list(item) for item in self.change_set.others],
            "table": self.report.table if self.report else None,
            "rows": [asdict(row) for row in self.report.rows] if self.report else [],
            "comment": asdict(self.published) if self.published else None,
            "publish_error": self.publish_error,
            "failure_message": self.failure_message,
        }


def build_flow_adapter(config: FlowcovConfig) -> FlowCoverageAdapter:
    """Create the Flow adapter described by ``config``."""
    return FlowCoverageAdapter(
        {
            Revision.HEAD: config.checkout_dir(config.coverage.head_dir),
            Revision.BASE: config.checkout_dir(config.coverage.base_dir),
        },
        path=config.coverage.path,
        package_manager=config.coverage.package_manager,
        timeout=config.coverage.timeout,
    )


async def run_flow_coverage(
    config: FlowcovConfig,
    pr_info: GitHubPRInfo,
    *,
    api: GitHubAPI,
    source: CoverageSource | None = None,
    publish: bool = True,
) -> FlowCoverageResult:
    """Measure, compare, render, and publish coverage for one pull request.

    Raises:
        GitHubAPIError: If the PR file list cannot be fetched.
        MissingSampleError: If a modified file has no sample at a revision.
        SubprocessError: If the coverage command cannot be started.
    """
    threshold = config.report.threshold
    files = api.list_pull_request_files(pr_info)
    change_set = classify(files, config.report.pattern)

    if change_set.is_empty:
        logger.info("No changed files match %r; nothing to report", config.report.pattern)
        return FlowCoverageResult(threshold=threshold, change_set=change_set)

    source = source or build_flow_adapter(config)
    max_concurrency = config.coverage.max_concurrency

    head_samples, base = await asyncio.gather(
        collect_samples(
            source,
            Revision.HEAD,
            [*change_set.modified, *change_set.added],
            max_concurrency=max_concurrency,
        ),
        collect_coverage(source, Revision.BASE, change_set.modified, max_concurrency=max_concurrency),
    )

    head = {filename: sample.percent for filename, sample in head_samples.items()}
    head_totals = {filename: sample.total for filename, sample in head_samples.items()}

    deltas = compute_deltas(base, head, change_set.modified, change_set.labelled())
    report = render(deltas, head_totals, threshold)
    result = FlowCoverageResult(
        threshold=threshold, change_set=change_set, deltas=deltas, report=report
    )

    if publish:
        try:
            result.published = CommentPublisher(api).publish(pr_info, report.table)
        except GitHubAPIError as exc:
            logger.error("Failed to publish coverage comment: %s", exc)
            result.publish_error = str(exc)

    return result
