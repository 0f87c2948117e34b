"""Reaction extractor."""

from ..models import Reaction
from .prs import parse_datetime_required
from .users import extract_user


def extract_reaction(reaction_data: dict) -> Reaction:
    """Extract a reaction, keeping the raw content marker.

    Markers are classified later by the enrichment pipeline so unknown
    markers are counted rather than rejected here.
    """
    return Reaction(
        kind=str(reaction_data.get("content") or "").strip(),
        user=extract_user(reaction_data.get("user") or {}),
        created_at=parse_datetime_required(reaction_data["created_at"]),
    )


def reaction_total(comment_data: dict) -> int:
    """Reaction count from the summary block embedded in comment payloads."""
    summary = comment_data.get("reactions") or {}
    if not isinstance(summary, dict):
        return 0
    try:
        return int(summary.get("total_count") or 0)
    except (TypeError, ValueError):
        return 0
