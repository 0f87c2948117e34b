"""User extractor."""

from ..models import User, UserKind


def is_bot(user: dict) -> bool:
    """Check if user is a bot/GitHub App.

    GitHub marks apps with ``type: Bot``; some payloads only carry the
    ``[bot]`` login suffix.
    """
    login = (user.get("login") or "").strip()
    return user.get("type") == "Bot" or login.endswith("[bot]")


def extract_user(user_data: dict) -> User:
    """Extract user data from GitHub API response."""
    return User(
        login=(user_data.get("login") or "unknown").strip(),
        kind=UserKind.BOT if is_bot(user_data) else UserKind.HUMAN,
        id=int(user_data.get("id") or 0),
    )
