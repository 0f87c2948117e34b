"""End-to-end run: collect, enrich, aggregate and write reports."""

from __future__ import annotations

import logging
import time
from contextlib import AsyncExitStack
from dataclasses import dataclass, field
from pathlib import Path

from . import metrics
from .analysis_config import AnalysisConfig
from .collector import DataCollector
from .github_client import GitHubClient
from .models import MetricsReport, MetricsSummary
from .repo import parse_repo_ref
from .report import create_metrics_report, file_extension, render_report

logger = logging.getLogger(__name__)

REPORT_BASENAME = "pr-metrics-report"


@dataclass
class WorkflowOptions:
    repository: str
    reviewer: str
    start_date: str
    end_date: str
    report_format: str = "both"
    output_dir: str = "./reports"
    github_token: str | None = None

    def to_config(self) -> AnalysisConfig:
        repo = parse_repo_ref(self.repository)
        return AnalysisConfig(
            repo_owner=repo.owner,
            repo_name=repo.name,
            reviewer=self.reviewer,
            days=None,
            start_date=self.start_date,
            end_date=self.end_date,
            output_format=self.report_format,
            output_dir=self.output_dir,
        )


@dataclass
class WorkflowResult:
    summary: MetricsSummary
    artifacts: list[Path] = field(default_factory=list)
    execution_time: float = 0.0
    report: MetricsReport | None = None


def report_formats(output_format: str) -> list[str]:
    if output_format == "both":
        return ["json", "markdown"]
    return [output_format]


def write_reports(report: MetricsReport, output_format: str, output_dir: Path | str) -> list[Path]:
    """Render the report in each requested format. Returns written paths."""
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    artifacts = []
    for fmt in report_formats(output_format):
        path = output_dir / f"{REPORT_BASENAME}{file_extension(fmt)}"
        path.write_text(render_report(report, fmt), encoding="utf-8")
        logger.info(f"Wrote {fmt} report to {path}")
        artifacts.append(path)
    return artifacts


async def run_workflow(options: WorkflowOptions, client: GitHubClient | None = None) -> WorkflowResult:
    """Run the full analysis.

    A caller-supplied client must already be inside its async context.
    Raises ConfigurationError for invalid options and ValueError for a
    malformed repository reference.
    """
    started = time.monotonic()
    config = options.to_config().check()
    repo = parse_repo_ref(options.repository)
    period = config.resolve_period()

    logger.info(f"Repository: {repo.full_name}, reviewer: {config.reviewer}")
    logger.info(f"Period: {period.start.date()} to {period.end.date()}")

    async with AsyncExitStack() as stack:
        if client is None:
            client = await stack.enter_async_context(GitHubClient(token=options.github_token))

        collector = DataCollector(client)
        prs = await collector.fetch_pull_requests(repo, period)
        if not prs:
            logger.warning("No pull requests found in the specified time period")
            return WorkflowResult(summary=MetricsSummary(), execution_time=time.monotonic() - started)

        prs, comments = await collector.collect_comments(prs, config.reviewer, repo)

    summary = metrics.summarize(prs, comments)
    detailed = metrics.detail(prs, comments, repo)
    report = create_metrics_report(repo.full_name, period, config.reviewer, summary, detailed)
    artifacts = write_reports(report, config.output_format, config.output_dir)

    logger.info(f"Analysis complete: {summary.total_prs} PRs, {summary.total_comments} comments")
    return WorkflowResult(
        summary=summary,
        artifacts=artifacts,
        execution_time=time.monotonic() - started,
        report=report,
    )
