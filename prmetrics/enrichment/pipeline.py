"""Comment enrichment pipeline.

Turns raw collected comments into enriched records in one pass over the
batch: reactions are normalized first (resolution depends on classified
reactions), the reply map is built once, then each comment gets its
replies and resolution status.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from ..models import Comment, PullRequest
from .reactions import normalize
from .replies import build_reply_map
from .resolution import detect_resolved

logger = logging.getLogger(__name__)


@dataclass
class EnrichmentWarning:
    """A comment that could not be enriched and was passed through as-is."""

    comment_id: int | None
    message: str


@dataclass
class EnrichmentResult:
    comments: list[Comment] = field(default_factory=list)
    warnings: list[EnrichmentWarning] = field(default_factory=list)


def _require_comments(comments: Sequence[Comment] | None) -> list[Comment]:
    if comments is None:
        raise TypeError("enrich() requires a list of comments, got None")
    items = list(comments)
    for index, comment in enumerate(items):
        if not isinstance(comment, Comment):
            raise TypeError(
                f"enrich() expects Comment instances, got {type(comment).__name__} at index {index}"
            )
    return items


def _warn(result: EnrichmentResult, comment: Comment, exc: Exception) -> None:
    comment_id = getattr(comment, "id", None)
    message = f"{type(exc).__name__}: {exc}"
    result.warnings.append(EnrichmentWarning(comment_id=comment_id, message=message))
    logger.warning(f"Comment {comment_id} left unenriched: {message}")


def enrich_with_warnings(comments: Sequence[Comment]) -> EnrichmentResult:
    """Enrich a batch of comments, collecting per-comment failures."""
    items = _require_comments(comments)
    result = EnrichmentResult()
    if not items:
        return result

    failed: set[int] = set()

    # 1. Normalize reaction markers
    normalized: list[Comment] = []
    for index, comment in enumerate(items):
        try:
            reactions = [normalize(reaction) for reaction in comment.reactions]
            normalized.append(comment.model_copy(update={"reactions": reactions}))
        except (TypeError, ValueError, AttributeError) as e:
            _warn(result, comment, e)
            failed.add(index)
            normalized.append(comment)

    # 2. Reply map, built once for the whole batch
    reply_map = build_reply_map(normalized)

    # 3. Replies and resolution per comment
    for index, comment in enumerate(normalized):
        if index in failed:
            result.comments.append(items[index])
            continue
        try:
            replies = reply_map.get(comment.id, [])
            is_resolved = detect_resolved(comment)
            result.comments.append(
                comment.model_copy(update={"replies": list(replies), "is_resolved": is_resolved})
            )
        except (TypeError, ValueError, AttributeError) as e:
            _warn(result, items[index], e)
            result.comments.append(items[index])

    return result


def enrich(comments: Sequence[Comment]) -> list[Comment]:
    """Enrich a batch of comments. Failed comments are returned unmodified."""
    return enrich_with_warnings(comments).comments


def attach_comments(prs: Iterable[PullRequest], comments: Iterable[Comment]) -> list[PullRequest]:
    """Return new PRs whose ``comments`` are the given comments for that PR."""
    if prs is None or comments is None:
        raise TypeError("attach_comments() requires pull requests and comments, got None")

    by_pr: dict[int, list[Comment]] = {}
    for comment in comments:
        if comment.pr_number is not None:
            by_pr.setdefault(comment.pr_number, []).append(comment)

    return [pr.model_copy(update={"comments": by_pr.get(pr.number, [])}) for pr in prs]
