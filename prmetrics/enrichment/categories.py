"""Keyword categories and sentiment for reviewer comment text.

Cheap, obvious signals only. Categories are checked in a fixed order and
the first keyword family that matches wins.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum

from ..models import Comment


class CommentCategory(Enum):
    SUGGESTION = "suggestion"
    ISSUE = "issue"
    QUESTION = "question"
    PRAISE = "praise"
    UNKNOWN = "unknown"


_CATEGORY_KEYWORDS: list[tuple[CommentCategory, tuple[str, ...]]] = [
    (CommentCategory.SUGGESTION, ("suggest", "recommend", "consider", "should")),
    (CommentCategory.ISSUE, ("issue", "problem", "error", "bug", "fix")),
    (CommentCategory.QUESTION, ("?", "why", "how", "what")),
    (CommentCategory.PRAISE, ("good", "great", "excellent", "nice")),
]

_POSITIVE_WORDS = ("good", "great", "excellent", "nice", "perfect", "awesome", "thanks", "helpful")
_NEGATIVE_WORDS = ("bad", "wrong", "error", "issue", "problem", "fix", "broken", "incorrect")


def classify_comment(body: str) -> CommentCategory:
    text = body.lower() if body else ""
    for category, keywords in _CATEGORY_KEYWORDS:
        if any(keyword in text for keyword in keywords):
            return category
    return CommentCategory.UNKNOWN


def sentiment_score(body: str) -> int:
    """+1 for each positive word present, -1 for each negative word."""
    text = body.lower() if body else ""
    score = sum(1 for word in _POSITIVE_WORDS if word in text)
    score -= sum(1 for word in _NEGATIVE_WORDS if word in text)
    return score


def category_counts(comments: Iterable[Comment]) -> dict[str, int]:
    counts = {category.value: 0 for category in CommentCategory}
    for comment in comments:
        counts[classify_comment(comment.body).value] += 1
    return counts


def sentiment_counts(comments: Iterable[Comment]) -> dict[str, int]:
    counts = {"positive": 0, "negative": 0, "neutral": 0}
    for comment in comments:
        score = sentiment_score(comment.body)
        if score > 0:
            counts["positive"] += 1
        elif score < 0:
            counts["negative"] += 1
        else:
            counts["neutral"] += 1
    return counts
