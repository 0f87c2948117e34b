"""GitHub Actions entry point.

Inputs arrive as ``INPUT_<NAME>`` environment variables; outputs and the
job summary are written to the files Actions points ``GITHUB_OUTPUT`` and
``GITHUB_STEP_SUMMARY`` at. Run as ``python -m prmetrics.action``.
"""

import logging
import os
import sys
import traceback
from datetime import UTC, datetime, timedelta

import trio

from .github_client import RedactingFilter, register_secret
from .workflow import WorkflowOptions, WorkflowResult, run_workflow

logger = logging.getLogger(__name__)

DEFAULT_DAYS = 7
DEFAULT_OUTPUT_PATH = "./pr-metrics-reports"


def get_input(name: str, required: bool = False) -> str:
    value = os.environ.get(f"INPUT_{name.replace(' ', '_').upper()}", "").strip()
    if required and not value:
        raise ValueError(f"Input required and not supplied: {name}")
    return value


def set_secret(value: str) -> None:
    """Mask a value in the workflow log."""
    register_secret(value)
    print(f"::add-mask::{value}")


def set_output(name: str, value: object) -> None:
    output_file = os.environ.get("GITHUB_OUTPUT")
    if output_file:
        with open(output_file, "a") as f:
            f.write(f"{name}={value}\n")
    else:
        print(f"::set-output name={name}::{value}")


def write_summary(markdown: str) -> None:
    summary_file = os.environ.get("GITHUB_STEP_SUMMARY")
    if not summary_file:
        return
    with open(summary_file, "a") as f:
        f.write(markdown)


def set_failed(message: str) -> None:
    print(f"::error::{message}")
    sys.exit(1)


def resolve_dates(days_input: str, start_input: str, end_input: str, today: datetime | None = None) -> tuple[str, str]:
    """Explicit ``days`` wins; with no inputs at all the last week is used."""
    if days_input or (not start_input and not end_input):
        try:
            days = int(days_input) if days_input else DEFAULT_DAYS
        except ValueError:
            days = 0
        if days <= 0:
            raise ValueError("Days must be a positive number")

        today = today or datetime.now(UTC)
        start = today - timedelta(days=days)
        logger.info(f"Analyzing last {days} days: {start.date()} to {today.date()}")
        return start.date().isoformat(), today.date().isoformat()

    if start_input and end_input:
        return start_input, end_input

    raise ValueError('Either provide "days" or both "start-date" and "end-date"')


def build_summary(options: WorkflowOptions, result: WorkflowResult) -> str:
    summary = result.summary
    artifacts = "\n".join(
        f"- **{'JSON' if path.suffix == '.json' else 'MARKDOWN'}:** `{path}`" for path in result.artifacts
    )
    return f"""
## PR Metrics Analysis Results

### Summary
- **Repository:** {options.repository}
- **Reviewer:** {options.reviewer}
- **Analysis Period:** {options.start_date} to {options.end_date}
- **Execution Time:** {result.execution_time:.2f}s

### Metrics
- **Total PRs:** {summary.total_prs}
- **Total Comments:** {summary.total_comments}
- **Average Comments per PR:** {summary.average_comments_per_pr:.2f}
- **Positive Reactions:** {summary.positive_reactions}
- **Negative Reactions:** {summary.negative_reactions}
- **Resolved Comments:** {summary.resolved_comments}
- **Replied Comments:** {summary.replied_comments}

### Generated Artifacts
{artifacts}
"""


def read_options() -> WorkflowOptions:
    token = get_input("github-token", required=True)
    set_secret(token)

    start_date, end_date = resolve_dates(get_input("days"), get_input("start-date"), get_input("end-date"))

    return WorkflowOptions(
        repository=get_input("repository") or os.environ.get("GITHUB_REPOSITORY", ""),
        reviewer=get_input("reviewer-username", required=True),
        start_date=start_date,
        end_date=end_date,
        report_format=get_input("report-format") or "both",
        output_dir=get_input("output-path") or DEFAULT_OUTPUT_PATH,
        github_token=token,
    )


def run() -> None:
    try:
        options = read_options()
        logger.info("Starting GitHub PR Metrics Analysis...")
        result = trio.run(run_workflow, options)

        for path in result.artifacts:
            kind = "json" if path.suffix == ".json" else "markdown"
            set_output(f"report-{kind}-path", path)

        set_output("total-prs", result.summary.total_prs)
        set_output("total-comments", result.summary.total_comments)
        set_output("average-comments-per-pr", result.summary.average_comments_per_pr)

        write_summary(build_summary(options, result))
    except Exception as e:
        logger.debug(traceback.format_exc())
        set_failed(f"Analysis failed: {e}")


def main() -> None:
    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RedactingFilter())
    logging.basicConfig(level=logging.INFO, format="%(message)s", handlers=[handler])
    run()


if __name__ == "__main__":
    main()
