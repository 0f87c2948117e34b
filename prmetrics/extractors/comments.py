"""Comment data extractor (review comments and PR-level issue comments)."""

from ..models import Comment
from .prs import parse_datetime_required
from .reactions import extract_reaction
from .users import extract_user


def _optional_int(value) -> int | None:
    if value is None or value == "":
        return None
    return int(value)


def extract_comment(
    comment_data: dict,
    pr_number: int | None = None,
    reactions_data: list[dict] | None = None,
) -> Comment:
    """Extract a comment from GitHub API response.

    Review comments carry ``path``/``position``/``in_reply_to_id``; issue
    comments carry none of them. ``updated_at`` is clamped so it never
    precedes ``created_at``.
    """
    created_at = parse_datetime_required(comment_data["created_at"])
    updated_at = parse_datetime_required(comment_data.get("updated_at") or comment_data["created_at"])
    if updated_at < created_at:
        updated_at = created_at

    path = comment_data.get("path")

    return Comment(
        id=int(comment_data["id"]),
        body=comment_data.get("body") or "",
        author=extract_user(comment_data.get("user") or {}),
        created_at=created_at,
        updated_at=updated_at,
        position=_optional_int(comment_data.get("position")),
        path=path.strip() if path is not None else None,
        is_resolved=False,
        reactions=[extract_reaction(r) for r in reactions_data or []],
        replies=[],
        in_reply_to_id=_optional_int(comment_data.get("in_reply_to_id")),
        pr_number=pr_number,
    )
