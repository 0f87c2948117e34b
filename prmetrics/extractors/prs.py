"""Pull request data extractor."""

from datetime import datetime

from ..models import PRState, PullRequest
from .users import extract_user


def parse_datetime(dt_str: str | None) -> datetime | None:
    """Parse ISO datetime string, returns None if input is empty."""
    if not dt_str:
        return None
    return datetime.fromisoformat(dt_str.replace("Z", "+00:00"))


def parse_datetime_required(dt_str: str) -> datetime:
    """Parse ISO datetime string, raises if input is empty."""
    if not dt_str:
        raise ValueError("datetime string is required")
    return datetime.fromisoformat(dt_str.replace("Z", "+00:00"))


def derive_state(state: str | None, merged_at: datetime | None) -> PRState:
    """Merged is not an API state: it is a closed PR with a merge timestamp."""
    state = (state or "open").lower()
    if state == "closed" and merged_at is not None:
        return PRState.MERGED
    if state == "merged":
        return PRState.MERGED
    if state == "closed":
        return PRState.CLOSED
    return PRState.OPEN


def extract_pr(pr_data: dict) -> PullRequest:
    """Extract PR data from GitHub API response."""
    merged_at = parse_datetime(pr_data.get("merged_at"))

    return PullRequest(
        id=int(pr_data["id"]),
        number=int(pr_data["number"]),
        title=(pr_data.get("title") or "").strip(),
        state=derive_state(pr_data.get("state"), merged_at),
        created_at=parse_datetime_required(pr_data["created_at"]),
        updated_at=parse_datetime_required(pr_data["updated_at"]),
        merged_at=merged_at,
        author=extract_user(pr_data.get("user") or {}),
        comments=[],
    )
