"""Reply graph construction.

Only inline review comments carry ``in_reply_to_id``. Issue (PR-level)
comments have no thread information in the API, so they never show up as
replied to.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC

from ..models import Comment


def _reply_order(comment: Comment) -> tuple:
    created_at = comment.created_at
    # Naive timestamps are read as UTC so a mixed batch still sorts
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=UTC)
    return (created_at, comment.id)


def build_reply_map(comments: Iterable[Comment]) -> dict[int, list[Comment]]:
    """Group replies under their parent comment id in a single pass.

    Every comment in the batch gets a bucket (empty when it has no
    children). Replies whose parent is outside the batch are still keyed by
    the parent id. Buckets are ordered by creation time, then id.
    """
    if comments is None:
        raise TypeError("build_reply_map() requires a collection of comments, got None")

    reply_map: dict[int, list[Comment]] = {}
    for comment in comments:
        reply_map.setdefault(comment.id, [])
        if comment.in_reply_to_id is not None:
            reply_map.setdefault(comment.in_reply_to_id, []).append(comment)

    for replies in reply_map.values():
        if len(replies) > 1:
            replies.sort(key=_reply_order)

    return reply_map
