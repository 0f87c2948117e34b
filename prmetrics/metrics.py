"""Summary and detailed metrics over enriched reviewer comments.

All results are plain counts, averages and percentages. Arithmetic edge
cases (division by zero, negative inputs, NaN, infinity) collapse to 0 so
no caller ever sees a non-finite number.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from decimal import ROUND_HALF_UP, Decimal

from .enrichment.categories import category_counts
from .enrichment.reactions import classify, count_reactions
from .models import (
    Comment,
    CommentBreakdown,
    DetailedMetrics,
    MetricsSummary,
    PositiveNegative,
    PRBreakdown,
    PRDetail,
    PRState,
    PullRequest,
    ReactionBreakdown,
)
from .repo import RepoInfo, parse_repo_ref


def round_half_up(value: float, places: int) -> float:
    """Round like a human would (2.25 -> 2.3), not banker's rounding."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def finite_or_zero(value: float) -> float:
    if value is None or math.isnan(value) or math.isinf(value):
        return 0
    return value


def handle_edge_cases(value: float, places: int = 2) -> float:
    """Collapse NaN/infinity to 0 and round."""
    value = finite_or_zero(value)
    return round_half_up(value, places) if value else 0


def percentage(numerator: float, denominator: float) -> float:
    """``numerator / denominator * 100`` to one decimal place.

    Zero denominators and negative operands are data errors and yield 0.
    """
    if denominator == 0:
        return 0
    if numerator < 0 or denominator < 0:
        return 0
    return handle_edge_cases(numerator / denominator * 100, places=1)


def average(values: Iterable[float]) -> float:
    """Mean of values, counting NaN entries as 0. Empty input yields 0."""
    data = list(values)
    if not data:
        return 0
    total = sum(0 if math.isnan(value) else value for value in data)
    return handle_edge_cases(total / len(data))


def average_comments_per_pr(total_comments: int, total_prs: int) -> float:
    if total_prs == 0:
        return 0
    return handle_edge_cases(total_comments / total_prs)


def _require(name: str, items: Sequence | None) -> Sequence:
    if items is None:
        raise TypeError(f"{name} must be a list, got None")
    return items


def summarize(prs: Sequence[PullRequest], comments: Sequence[Comment]) -> MetricsSummary:
    """Top-line metrics for the analysed period."""
    _require("prs", prs)
    _require("comments", comments)

    if not prs:
        return MetricsSummary()

    total_prs = len(prs)
    total_comments = len(comments)
    reactions = count_reactions(r for comment in comments for r in comment.reactions)

    return MetricsSummary(
        total_prs=total_prs,
        total_comments=total_comments,
        average_comments_per_pr=average_comments_per_pr(total_comments, total_prs),
        positive_reactions=reactions.positive,
        negative_reactions=reactions.negative,
        replied_comments=sum(1 for comment in comments if comment.replies),
        resolved_comments=sum(1 for comment in comments if comment.is_resolved),
    )


def prs_by_state(prs: Iterable[PullRequest]) -> dict[str, int]:
    breakdown = {state.value: 0 for state in PRState}
    for pr in prs:
        breakdown[pr.state.value] += 1
    return breakdown


def prs_by_author(prs: Iterable[PullRequest]) -> dict[str, int]:
    breakdown: dict[str, int] = {}
    for pr in prs:
        breakdown[pr.author.login] = breakdown.get(pr.author.login, 0) + 1
    return breakdown


def comments_by_type(comments: Iterable[Comment]) -> dict[str, int]:
    """Independent boolean facets; one comment can count in several."""
    breakdown = {"with_reactions": 0, "with_replies": 0, "resolved": 0, "unresolved": 0}
    for comment in comments:
        if comment.reactions:
            breakdown["with_reactions"] += 1
        if comment.replies:
            breakdown["with_replies"] += 1
        if comment.is_resolved:
            breakdown["resolved"] += 1
        else:
            breakdown["unresolved"] += 1
    return breakdown


def comments_by_resolution(comments: Iterable[Comment]) -> dict[str, int]:
    breakdown = {"resolved": 0, "unresolved": 0}
    for comment in comments:
        breakdown["resolved" if comment.is_resolved else "unresolved"] += 1
    return breakdown


def reactions_by_type(comments: Iterable[Comment]) -> dict[str, int]:
    breakdown: dict[str, int] = {}
    for comment in comments:
        for reaction in comment.reactions:
            kind = classify(reaction.kind).value
            breakdown[kind] = breakdown.get(kind, 0) + 1
    return breakdown


def pr_detail(pr: PullRequest, repo: RepoInfo) -> PRDetail:
    """Per-PR row. Attached comments are the reviewer's comments only."""
    comments = pr.comments
    reactions = count_reactions(r for comment in comments for r in comment.reactions)
    return PRDetail(
        number=pr.number,
        title=pr.title,
        url=repo.pr_url(pr.number),
        total_comments=len(comments),
        reviewer_comments=len(comments),
        resolved_reviewer_comments=sum(1 for comment in comments if comment.is_resolved),
        positive_reactions=reactions.positive,
        negative_reactions=reactions.negative,
    )


def detail(
    prs: Sequence[PullRequest],
    comments: Sequence[Comment],
    repo: RepoInfo | str,
) -> DetailedMetrics:
    """Multi-dimensional breakdown plus per-PR rows."""
    _require("prs", prs)
    _require("comments", comments)
    if isinstance(repo, str):
        repo = parse_repo_ref(repo)

    reactions = count_reactions(r for comment in comments for r in comment.reactions)

    return DetailedMetrics(
        pr_breakdown=PRBreakdown(by_state=prs_by_state(prs), by_author=prs_by_author(prs)),
        comment_breakdown=CommentBreakdown(
            by_type=comments_by_type(comments),
            by_resolution=comments_by_resolution(comments),
            by_category=category_counts(comments),
        ),
        reaction_breakdown=ReactionBreakdown(
            by_type=reactions_by_type(comments),
            positive_vs_negative=PositiveNegative(
                positive=reactions.positive,
                negative=reactions.negative,
            ),
        ),
        pr_details=[pr_detail(pr, repo) for pr in prs],
    )
