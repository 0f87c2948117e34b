"""Main CLI entry point for prmetrics."""

import argparse
import logging
import sys
from pathlib import Path

import httpx
from rich.console import Console

from ..analysis_config import OUTPUT_FORMATS, AnalysisConfig
from ..github_client import RedactingFilter
from ..repo import RepoInfo, get_cache_dir, get_repo, parse_repo_ref
from .init_config import init_config

console = Console()


def setup_logging(log_file: Path) -> None:
    """Setup file logging for debugging."""
    log_file.parent.mkdir(parents=True, exist_ok=True)

    handler = logging.FileHandler(log_file, mode="a")
    handler.addFilter(RedactingFilter())
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s | %(levelname)s | %(message)s",
        handlers=[handler],
    )


def log_file_for(args: argparse.Namespace) -> Path:
    """Per-repo log file, or a shared one when no repo can be determined."""
    try:
        repo = parse_repo_ref(args.repo) if getattr(args, "repo", None) else get_repo()
    except ValueError:
        return get_cache_dir() / "prmetrics.log"
    return repo.log_file


def add_window_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--repo",
        "-r",
        type=str,
        default=None,
        help="Repository in format owner/repo (default: detected from env, prmetrics.yaml or git)",
    )
    parser.add_argument(
        "--reviewer",
        "-u",
        type=str,
        default=None,
        help="Reviewer login to analyze (default: from prmetrics.yaml)",
    )
    parser.add_argument(
        "--days",
        "-d",
        type=int,
        default=None,
        help="Analyze the last N days",
    )
    parser.add_argument("--start", "-s", type=str, default=None, help="Start date (YYYY-MM-DD)")
    parser.add_argument("--end", "-e", type=str, default=None, help="End date (YYYY-MM-DD)")


def build_config(args: argparse.Namespace) -> tuple[AnalysisConfig, RepoInfo]:
    """prmetrics.yaml, then environment, then command-line flags."""
    config = AnalysisConfig.load().apply_env()

    if args.reviewer:
        config.reviewer = args.reviewer
    if args.start or args.end:
        config.start_date, config.end_date, config.days = args.start, args.end, None
    elif args.days is not None:
        config.start_date, config.end_date, config.days = None, None, args.days
    if getattr(args, "format", None):
        config.output_format = args.format
    if getattr(args, "output_dir", None):
        config.output_dir = str(args.output_dir)

    repo = parse_repo_ref(args.repo) if args.repo else get_repo()
    config.repo_owner, config.repo_name = repo.owner, repo.name
    return config.check(), repo


async def collect_command(args: argparse.Namespace) -> None:
    from ..collector import DataCollector
    from ..github_client import GitHubClient
    from ..storage import save_collected_data

    config, repo = build_config(args)
    period = config.resolve_period()
    output = args.output or repo.snapshot_file

    console.print(
        f"[cyan]{repo.full_name}[/] | {config.reviewer} | "
        f"{period.start.date()} to {period.end.date()}"
    )

    async with GitHubClient() as client:
        collector = DataCollector(client)
        prs = await collector.fetch_pull_requests(repo, period)
        console.print(f"Found {len(prs)} pull requests")
        if not prs:
            console.print("[yellow]No pull requests found in the specified time period.[/]")
            return

        prs, comments = await collector.collect_comments(prs, config.reviewer, repo)

    console.print(f"Found {len(comments)} comments from {config.reviewer}")
    if collector.stats.failed_prs:
        console.print(f"[yellow]{len(collector.stats.failed_prs)} PRs could not be fetched (see log)[/]")

    save_collected_data(output, prs, comments, repo.full_name, config.reviewer, period)
    console.print(f"[green]Data saved to: {output}[/]")


def analyze_command(args: argparse.Namespace) -> None:
    from .. import metrics
    from ..report import create_metrics_report, summary_table
    from ..storage import load_collected_data, validate_data_file
    from ..workflow import write_reports

    input_path = args.input or get_repo().snapshot_file
    if not Path(input_path).exists():
        console.print(f"[red]Input file not found: {input_path}[/]")
        console.print("Run 'prmetrics collect' first to gather data")
        sys.exit(1)

    problems = validate_data_file(input_path)
    if problems:
        console.print("[red]Invalid data file:[/]")
        for problem in problems:
            console.print(f"  - {problem}")
        sys.exit(1)

    # Snapshot comments are already enriched; replies from other authors
    # are only attached at collection time.
    data = load_collected_data(input_path)
    meta = data.metadata
    console.print(f"Loaded {meta.total_prs} PRs, {meta.total_comments} comments")

    summary = metrics.summarize(data.pull_requests, data.comments)
    detailed = metrics.detail(data.pull_requests, data.comments, meta.repository)
    report = create_metrics_report(meta.repository, meta.period, meta.reviewer, summary, detailed)

    output_dir = args.output_dir or Path(input_path).parent
    for path in write_reports(report, args.format, output_dir):
        console.print(f"[green]Report saved to: {path}[/]")
    console.print(summary_table(report))


async def run_command(args: argparse.Namespace) -> None:
    from ..report import summary_table
    from ..workflow import WorkflowOptions, run_workflow

    config, repo = build_config(args)
    period = config.resolve_period()

    options = WorkflowOptions(
        repository=repo.full_name,
        reviewer=config.reviewer,
        start_date=period.start.isoformat(),
        end_date=period.end.isoformat(),
        report_format=config.output_format,
        output_dir=config.output_dir,
    )
    result = await run_workflow(options)

    if result.report is None:
        console.print("[yellow]No pull requests found in the specified time period.[/]")
        return
    for path in result.artifacts:
        console.print(f"[green]Report saved to: {path}[/]")
    console.print(summary_table(result.report))
    console.print(f"Completed in {result.execution_time:.2f}s")


def main():
    """Main CLI entry point for prmetrics."""
    parser = argparse.ArgumentParser(
        prog="prmetrics",
        description="Review-comment engagement metrics for GitHub pull requests",
        epilog="Run 'prmetrics <command> --help' for more information on a command.",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # init command - generate config
    init_parser = subparsers.add_parser(
        "init",
        help="Generate prmetrics.yaml",
        description="Write a starter prmetrics.yaml with the repository detected from git.",
    )
    init_parser.add_argument(
        "--root",
        type=Path,
        default=Path.cwd(),
        help="Repository root directory (default: current directory)",
    )
    init_parser.add_argument(
        "--output",
        "-o",
        type=Path,
        default=None,
        help="Output file path (default: prmetrics.yaml in root)",
    )
    init_parser.add_argument("--reviewer", "-u", type=str, default=None, help="Reviewer login")
    init_parser.add_argument("--days", "-d", type=int, default=None, help="Rolling window in days")

    # collect command - pull PR data from GitHub
    collect_parser = subparsers.add_parser(
        "collect",
        help="Collect PR and reviewer comment data from GitHub",
        description="Fetch PRs and the reviewer's enriched comments and save a JSON snapshot.",
    )
    add_window_arguments(collect_parser)
    collect_parser.add_argument(
        "--output",
        "-o",
        type=Path,
        default=None,
        help="Snapshot path (default: ~/.cache/prmetrics/{owner}/{repo}/pr-data.json)",
    )

    # analyze command - metrics from a snapshot
    analyze_parser = subparsers.add_parser(
        "analyze",
        help="Compute metrics from a collected snapshot",
        description="Load a snapshot written by 'collect' and render reports.",
    )
    analyze_parser.add_argument(
        "--input",
        "-i",
        type=Path,
        default=None,
        help="Snapshot path (default: the detected repo's snapshot)",
    )
    analyze_parser.add_argument(
        "--format",
        "-f",
        choices=OUTPUT_FORMATS,
        default="json",
        help="Report format (default: json)",
    )
    analyze_parser.add_argument(
        "--output-dir",
        type=Path,
        default=None,
        help="Report directory (default: next to the snapshot)",
    )

    # run command - collect and analyze in one go
    run_parser = subparsers.add_parser(
        "run",
        help="Collect, analyze and write reports in one step",
        description="Run the full pipeline against GitHub and write reports.",
    )
    add_window_arguments(run_parser)
    run_parser.add_argument("--format", "-f", choices=OUTPUT_FORMATS, default=None, help="Report format")
    run_parser.add_argument("--output-dir", type=Path, default=None, help="Report directory")

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "init":
        init_config(args.root, args.output, args.reviewer, args.days)
        return

    try:
        setup_logging(log_file_for(args))

        if args.command == "collect":
            # Import here to avoid slow startup
            import trio

            trio.run(collect_command, args)

        elif args.command == "analyze":
            analyze_command(args)

        elif args.command == "run":
            import trio

            trio.run(run_command, args)

    except (ValueError, OSError, RuntimeError, httpx.HTTPError) as e:
        console.print(f"[red]Error: {e}[/]")
        sys.exit(1)


if __name__ == "__main__":
    main()
