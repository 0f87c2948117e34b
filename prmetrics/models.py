"""Pydantic models for review-comment data, metrics and snapshots."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field


class UserKind(Enum):
    HUMAN = "User"
    BOT = "Bot"


class ReactionKind(Enum):
    THUMBS_UP = "thumbs_up"
    THUMBS_DOWN = "thumbs_down"
    LAUGH = "laugh"
    HOORAY = "hooray"
    CONFUSED = "confused"
    HEART = "heart"
    ROCKET = "rocket"
    EYES = "eyes"
    UNKNOWN = "unknown"


class PRState(Enum):
    OPEN = "open"
    CLOSED = "closed"
    MERGED = "merged"


class User(BaseModel):
    """Comment, reaction or PR author."""

    model_config = ConfigDict(frozen=True)

    login: str
    kind: UserKind = UserKind.HUMAN
    id: int = 0

    @property
    def is_bot(self) -> bool:
        return self.kind is UserKind.BOT


class Reaction(BaseModel):
    """Emoji reaction on a comment.

    ``kind`` holds the raw API marker (e.g. ``"+1"``) until the enrichment
    pipeline normalizes it into a ``ReactionKind``.
    """

    kind: Annotated[ReactionKind | str, Field(union_mode="left_to_right")]
    user: User
    created_at: datetime


class Comment(BaseModel):
    """Review (inline) or issue (PR-level) comment."""

    id: int
    body: str = ""
    author: User
    created_at: datetime
    updated_at: datetime
    position: int | None = None
    path: str | None = None
    is_resolved: bool = False
    reactions: list[Reaction] = Field(default_factory=list)
    replies: list[Comment] = Field(default_factory=list)
    in_reply_to_id: int | None = None
    pr_number: int | None = None

    @property
    def is_review_comment(self) -> bool:
        """Inline comments are anchored to a file path."""
        return self.path is not None


class PullRequest(BaseModel):
    """Pull request with its (enriched) reviewer comments."""

    id: int
    number: int
    title: str
    state: PRState
    created_at: datetime
    updated_at: datetime
    merged_at: datetime | None = None
    author: User
    comments: list[Comment] = Field(default_factory=list)


class DateRange(BaseModel):
    start: datetime
    end: datetime

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment <= self.end


class MetricsSummary(BaseModel):
    """Top-line counts, recomputed from scratch on every run."""

    total_prs: int = 0
    total_comments: int = 0
    average_comments_per_pr: float = 0.0
    positive_reactions: int = 0
    negative_reactions: int = 0
    replied_comments: int = 0
    resolved_comments: int = 0


class PRBreakdown(BaseModel):
    by_state: dict[str, int] = Field(default_factory=dict)
    by_author: dict[str, int] = Field(default_factory=dict)


class CommentBreakdown(BaseModel):
    by_type: dict[str, int] = Field(default_factory=dict)
    by_resolution: dict[str, int] = Field(default_factory=dict)
    by_category: dict[str, int] = Field(default_factory=dict)


class PositiveNegative(BaseModel):
    positive: int = 0
    negative: int = 0


class ReactionBreakdown(BaseModel):
    by_type: dict[str, int] = Field(default_factory=dict)
    positive_vs_negative: PositiveNegative = Field(default_factory=PositiveNegative)


class PRDetail(BaseModel):
    """Per-PR row of the detailed report."""

    number: int
    title: str
    url: str
    total_comments: int = 0
    reviewer_comments: int = 0
    resolved_reviewer_comments: int = 0
    positive_reactions: int = 0
    negative_reactions: int = 0


class DetailedMetrics(BaseModel):
    pr_breakdown: PRBreakdown = Field(default_factory=PRBreakdown)
    comment_breakdown: CommentBreakdown = Field(default_factory=CommentBreakdown)
    reaction_breakdown: ReactionBreakdown = Field(default_factory=ReactionBreakdown)
    pr_details: list[PRDetail] = Field(default_factory=list)


class MetricsReport(BaseModel):
    repository: str
    period: DateRange
    reviewer: str
    summary: MetricsSummary
    detailed: DetailedMetrics
    generated_at: datetime


class SnapshotMetadata(BaseModel):
    """Header of a collected-data snapshot file."""

    model_config = ConfigDict(populate_by_name=True)

    repository: str
    reviewer: str
    period: DateRange
    collected_at: datetime = Field(alias="collectedAt")
    total_prs: int = Field(alias="totalPRs")
    total_comments: int = Field(alias="totalComments")


class CollectedData(BaseModel):
    """Snapshot of collected PRs and reviewer comments."""

    model_config = ConfigDict(populate_by_name=True)

    metadata: SnapshotMetadata
    pull_requests: list[PullRequest] = Field(alias="pullRequests", default_factory=list)
    comments: list[Comment] = Field(default_factory=list)
