"""Report rendering: JSON, Markdown and a rich terminal summary.

Besides the raw numbers the Markdown report opens with a headline that
answers the question the numbers are collected for: "Are people acting
on the reviewer's comments, or ignoring them?"
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from rich.table import Table

from .metrics import percentage
from .models import DateRange, DetailedMetrics, MetricsReport, MetricsSummary


@dataclass
class ReportSection:
    """A section of the report with headline and details."""

    headline: str
    summary: str
    details: list[str] | None = None


def format_pct(value: float | None) -> str:
    """Format percentage with one decimal."""
    if value is None:
        return "N/A"
    return f"{value:.1f}%"


def format_number(value: float | None) -> str:
    if value is None:
        return "N/A"
    return f"{value:.2f}"


def format_date(value: datetime) -> str:
    """Long form date, e.g. ``January 5, 2024``."""
    return f"{value:%B} {value.day}, {value.year}"


def file_extension(fmt: str) -> str:
    if fmt == "json":
        return ".json"
    if fmt == "markdown":
        return ".md"
    return ".txt"


def create_metrics_report(
    repository: str,
    period: DateRange,
    reviewer: str,
    summary: MetricsSummary,
    detailed: DetailedMetrics,
    generated_at: datetime | None = None,
) -> MetricsReport:
    return MetricsReport(
        repository=repository,
        period=period,
        reviewer=reviewer,
        summary=summary,
        detailed=detailed,
        generated_at=generated_at or datetime.now(UTC),
    )


def rates(summary: MetricsSummary) -> dict[str, float]:
    """Per-comment rates, all relative to the total comment count."""
    total = summary.total_comments
    return {
        "positive": percentage(summary.positive_reactions, total),
        "negative": percentage(summary.negative_reactions, total),
        "reply": percentage(summary.replied_comments, total),
        "resolution": percentage(summary.resolved_comments, total),
    }


def report_to_dict(report: MetricsReport) -> dict[str, Any]:
    """Machine-readable report structure."""
    summary = report.summary
    rate = rates(summary)
    detailed = report.detailed.model_dump(mode="json")

    return {
        "metadata": {
            "repository": report.repository,
            "period": {
                "start": report.period.start.isoformat(),
                "end": report.period.end.isoformat(),
            },
            "reviewer": report.reviewer,
            "generatedAt": report.generated_at.isoformat(),
        },
        "summary": {
            "pullRequests": {"total": summary.total_prs},
            "comments": {
                "total": summary.total_comments,
                "averagePerPR": summary.average_comments_per_pr,
            },
            "reactions": {
                "positive": summary.positive_reactions,
                "negative": summary.negative_reactions,
                "positivePercentage": rate["positive"],
                "negativePercentage": rate["negative"],
            },
            "engagement": {
                "repliedComments": summary.replied_comments,
                "resolvedComments": summary.resolved_comments,
                "replyRate": rate["reply"],
                "resolutionRate": rate["resolution"],
            },
        },
        "detailed": detailed,
        "pullRequests": detailed["pr_details"],
    }


def render_json(report: MetricsReport) -> str:
    return json.dumps(report_to_dict(report), indent=2)


def engagement_section(report: MetricsReport) -> ReportSection:
    """Do comments get acted on?"""
    summary = report.summary
    if summary.total_comments == 0:
        return ReportSection(
            headline="No Reviewer Comments",
            summary=f"{report.reviewer} left no comments on {summary.total_prs} PRs in this period.",
        )

    rate = rates(summary)
    resolution = rate["resolution"]

    if resolution >= 50:
        headline = f"Comments are acted on: {format_pct(resolution)} resolved"
    elif resolution >= 20:
        headline = f"Mixed signals: {format_pct(resolution)} of comments resolved"
    else:
        headline = f"Comments are mostly ignored: only {format_pct(resolution)} resolved"

    summary_text = (
        f"{report.reviewer} left {summary.total_comments:,} comments on {summary.total_prs:,} PRs. "
        f"{summary.replied_comments:,} drew a reply and {summary.resolved_comments:,} were resolved."
    )

    details = []
    if summary.negative_reactions > summary.positive_reactions:
        details.append("Negative reactions outnumber positive ones")
    if rate["reply"] < 10:
        details.append("Few comments start a conversation")

    return ReportSection(headline=headline, summary=summary_text, details=details or None)


def _cell(text: str) -> str:
    return text.replace("|", r"\|")


def _pr_rows(report: MetricsReport) -> list[str]:
    return [
        f"| [#{pr.number}]({pr.url}) | {_cell(pr.title)} | {pr.reviewer_comments} | "
        f"{pr.resolved_reviewer_comments} | {pr.positive_reactions} | {pr.negative_reactions} | "
        f"{pr.total_comments} |"
        for pr in report.detailed.pr_details
    ]


def render_markdown(report: MetricsReport) -> str:
    summary = report.summary
    detailed = report.detailed
    rate = rates(summary)
    section = engagement_section(report)

    lines = [
        "# GitHub PR Metrics Report",
        "",
        "## Repository Analysis",
        f"- **Repository**: {report.repository}",
        f"- **Analysis Period**: {format_date(report.period.start)} to {format_date(report.period.end)}",
        f"- **Reviewer**: {report.reviewer}",
        f"- **Generated**: {format_date(report.generated_at)}",
        "",
        f"## {section.headline}",
        "",
        section.summary,
    ]
    if section.details:
        lines.append("")
        lines.extend(f"- {detail}" for detail in section.details)

    lines += [
        "",
        "## Summary Metrics",
        "",
        "| Metric | Value |",
        "|--------|-------|",
        f"| Total Pull Requests | {summary.total_prs} |",
        f"| Total Reviewer Comments | {summary.total_comments} |",
        f"| Average Comments per PR | {format_number(summary.average_comments_per_pr)} |",
        f"| Positive Reactions | {summary.positive_reactions} |",
        f"| Negative Reactions | {summary.negative_reactions} |",
        f"| Comments with Replies | {summary.replied_comments} |",
        f"| Resolved Comments | {summary.resolved_comments} |",
        "",
        "## Engagement Analysis",
        "",
        "### Reaction Distribution",
        f"- **Positive Reactions**: {summary.positive_reactions} ({format_pct(rate['positive'])})",
        f"- **Negative Reactions**: {summary.negative_reactions} ({format_pct(rate['negative'])})",
        "",
        "### Response Rate",
        f"- **Comments with Replies**: {summary.replied_comments} ({format_pct(rate['reply'])})",
        f"- **Resolution Rate**: {summary.resolved_comments} ({format_pct(rate['resolution'])})",
        "",
        "## Pull Request Details",
        "",
        "| PR | Title | Reviewer Comments | Resolved | Positive | Negative | Total Comments |",
        "|----|-------|-------------------|----------|----------|----------|----------------|",
        *_pr_rows(report),
        "",
        "## Detailed Breakdown",
        "",
        "### Pull Request Analysis",
    ]
    lines.extend(
        f"- **{state.capitalize()}**: {count} PRs"
        for state, count in detailed.pr_breakdown.by_state.items()
    )

    by_resolution = detailed.comment_breakdown.by_resolution
    lines += [
        "",
        "### Comment Analysis",
        f"- **Resolved**: {by_resolution.get('resolved', 0)} comments",
        f"- **Unresolved**: {by_resolution.get('unresolved', 0)} comments",
    ]

    by_category = {k: v for k, v in detailed.comment_breakdown.by_category.items() if v}
    if by_category:
        lines += ["", "### Comment Categories"]
        lines.extend(f"- **{category.capitalize()}**: {count}" for category, count in by_category.items())

    by_reaction = detailed.reaction_breakdown.by_type
    if by_reaction:
        lines += ["", "### Reactions by Type"]
        lines.extend(f"- **{kind}**: {count}" for kind, count in sorted(by_reaction.items()))

    lines += ["", "---", "*Report generated by prmetrics*", ""]
    return "\n".join(lines)


def render_report(report: MetricsReport, fmt: str) -> str:
    if fmt == "json":
        return render_json(report)
    if fmt == "markdown":
        return render_markdown(report)
    raise ValueError(f"Unsupported format: {fmt}")


def summary_table(report: MetricsReport) -> Table:
    """Terminal summary of a report."""
    summary = report.summary
    rate = rates(summary)

    table = Table(title=f"PR Metrics: {report.repository}", expand=True)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")

    table.add_row(
        "Reviewer", report.reviewer,
        "Period", f"{report.period.start.date()} to {report.period.end.date()}",
    )
    table.add_row(
        "Pull Requests", str(summary.total_prs),
        "Comments", str(summary.total_comments),
    )
    table.add_row(
        "Avg per PR", format_number(summary.average_comments_per_pr),
        "Resolved", f"{summary.resolved_comments} ({format_pct(rate['resolution'])})",
    )
    table.add_row(
        "Positive", f"{summary.positive_reactions} ({format_pct(rate['positive'])})",
        "Negative", f"{summary.negative_reactions} ({format_pct(rate['negative'])})",
    )
    table.add_row(
        "Replied", f"{summary.replied_comments} ({format_pct(rate['reply'])})",
        "", "",
    )
    return table
