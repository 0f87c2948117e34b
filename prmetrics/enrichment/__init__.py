"""Enrichment of collected review comments.

This package provides:
- Reaction classification (positive / negative / neutral)
- Resolution detection from markers, edits and reactions
- Reply graph construction from ``in_reply_to_id`` links
- The pipeline composing the three in one pass
- Keyword categories and sentiment for comment text
"""

from .categories import CommentCategory, category_counts, classify_comment, sentiment_counts, sentiment_score
from .pipeline import EnrichmentResult, EnrichmentWarning, attach_comments, enrich, enrich_with_warnings
from .reactions import ReactionCounts, classify, count_reactions, is_negative, is_positive, normalize
from .replies import build_reply_map
from .resolution import detect_resolved

__all__ = [
    # Pipeline
    "enrich",
    "enrich_with_warnings",
    "attach_comments",
    "EnrichmentResult",
    "EnrichmentWarning",
    # Reactions
    "classify",
    "normalize",
    "is_positive",
    "is_negative",
    "count_reactions",
    "ReactionCounts",
    # Replies and resolution
    "build_reply_map",
    "detect_resolved",
    # Categories
    "CommentCategory",
    "classify_comment",
    "category_counts",
    "sentiment_score",
    "sentiment_counts",
]
