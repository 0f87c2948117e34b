"""Generate a starter prmetrics.yaml.

Fills in the repository from the git remote when one is detected; the
reviewer and analysis window start from the defaults.
"""

from __future__ import annotations

from pathlib import Path

from ..analysis_config import DEFAULT_DAYS, DEFAULT_REVIEWER, AnalysisConfig
from ..repo import detect_repo_from_git

HEADER = """# prmetrics.yaml - configuration for PR review-comment metrics
# Generated by: prmetrics init
#
# analysis.days is a rolling window ending now. Replace it with
# start_date / end_date (YYYY-MM-DD) to analyse a fixed period.

"""


def generate_config(reviewer: str | None = None, days: int | None = None) -> AnalysisConfig:
    repo = detect_repo_from_git()
    return AnalysisConfig(
        repo_owner=repo.owner if repo else None,
        repo_name=repo.name if repo else None,
        reviewer=reviewer or DEFAULT_REVIEWER,
        days=days or DEFAULT_DAYS,
        output_format="both",
    )


def init_config(
    root: Path | None = None,
    output: Path | None = None,
    reviewer: str | None = None,
    days: int | None = None,
) -> str:
    """Write prmetrics.yaml and return its content.

    Args:
        root: Repository root (defaults to cwd)
        output: Output file path (defaults to prmetrics.yaml in root)
        reviewer: Reviewer login to analyse
        days: Rolling window length
    """
    if root is None:
        root = Path.cwd()
    if output is None:
        output = root / "prmetrics.yaml"

    config = generate_config(reviewer, days)
    if config.repo_owner:
        print(f"Detected repository {config.repo_owner}/{config.repo_name}")
    else:
        print("No GitHub remote found; add a repo section or set REPO_OWNER/REPO_NAME.")

    content = HEADER + config.to_yaml()

    print(f"Writing config to {output}")
    with open(output, "w") as f:
        f.write(content)

    return content
