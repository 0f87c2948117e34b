"""Reaction classification.

GitHub reports reactions as short content markers ("+1", "heart", ...).
These are mapped onto ``ReactionKind`` and grouped into positive, negative
and neutral buckets for the engagement metrics.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from ..models import Reaction, ReactionKind

_MARKERS: dict[str, ReactionKind] = {
    "+1": ReactionKind.THUMBS_UP,
    "-1": ReactionKind.THUMBS_DOWN,
    "laugh": ReactionKind.LAUGH,
    "hooray": ReactionKind.HOORAY,
    "confused": ReactionKind.CONFUSED,
    "heart": ReactionKind.HEART,
    "rocket": ReactionKind.ROCKET,
    "eyes": ReactionKind.EYES,
}

POSITIVE_KINDS = frozenset({
    ReactionKind.THUMBS_UP,
    ReactionKind.HEART,
    ReactionKind.HOORAY,
    ReactionKind.ROCKET,
})
NEGATIVE_KINDS = frozenset({ReactionKind.THUMBS_DOWN, ReactionKind.CONFUSED})


def classify(marker: ReactionKind | str) -> ReactionKind:
    """Map a raw reaction marker to its kind.

    Already-classified kinds pass through unchanged. Anything outside the
    known marker set becomes ``ReactionKind.UNKNOWN``.
    """
    if isinstance(marker, ReactionKind):
        return marker
    return _MARKERS.get(marker, ReactionKind.UNKNOWN)


def is_positive(kind: ReactionKind | str) -> bool:
    return kind in POSITIVE_KINDS


def is_negative(kind: ReactionKind | str) -> bool:
    return kind in NEGATIVE_KINDS


def normalize(reaction: Reaction) -> Reaction:
    """Return the reaction with its marker classified."""
    kind = classify(reaction.kind)
    if kind is reaction.kind:
        return reaction
    return reaction.model_copy(update={"kind": kind})


@dataclass
class ReactionCounts:
    """Reaction tallies. Neutral includes unknown markers."""

    positive: int = 0
    negative: int = 0
    neutral: int = 0
    unknown: int = 0

    @property
    def total(self) -> int:
        return self.positive + self.negative + self.neutral


def count_reactions(reactions: Iterable[Reaction]) -> ReactionCounts:
    counts = ReactionCounts()
    for reaction in reactions:
        kind = classify(reaction.kind)
        if is_positive(kind):
            counts.positive += 1
        elif is_negative(kind):
            counts.negative += 1
        else:
            counts.neutral += 1
            if kind is ReactionKind.UNKNOWN:
                counts.unknown += 1
    return counts
