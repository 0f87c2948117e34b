"""Resolution heuristic for review comments.

The REST API has no "resolved" flag for these comments, so resolution is
inferred from editorial markers, edits mentioning a fix, or social proof in
the form of approving reactions. No ground truth backs this; thresholds are
kept stable so reported metrics stay comparable between runs.
"""

from __future__ import annotations

from ..models import Comment
from .reactions import is_positive

RESOLVED_MARKERS = ("[resolved]", "✅")
RESOLUTION_KEYWORDS = ("resolved", "fixed", "done", "completed", "addressed")
MIN_POSITIVE_REACTIONS = 2


def has_resolution_marker(body: str) -> bool:
    body_lower = body.lower()
    return any(marker in body_lower for marker in RESOLVED_MARKERS)


def was_edited(comment: Comment) -> bool:
    return comment.updated_at > comment.created_at


def detect_resolved(comment: Comment) -> bool:
    """Decide whether a comment's feedback was acted upon.

    First match wins:
    1. explicit marker in the body
    2. edited after creation and body mentions a resolution keyword
    3. at least two positive (classified) reactions
    """
    if has_resolution_marker(comment.body):
        return True

    body_lower = comment.body.lower()
    if was_edited(comment) and any(keyword in body_lower for keyword in RESOLUTION_KEYWORDS):
        return True

    positive = sum(1 for reaction in comment.reactions if is_positive(reaction.kind))
    return positive >= MIN_POSITIVE_REACTIONS
