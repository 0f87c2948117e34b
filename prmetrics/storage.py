"""JSON snapshot of collected PRs and reviewer comments.

The snapshot lets ``collect`` and ``analyze`` run separately: collection is
the slow, rate-limited part, analysis can be repeated offline.
"""

import json
import logging
import os
from collections.abc import Sequence
from datetime import UTC, datetime
from pathlib import Path

from pydantic import ValidationError

from .models import CollectedData, Comment, DateRange, PullRequest, SnapshotMetadata

logger = logging.getLogger(__name__)

REQUIRED_SECTIONS = ("metadata", "pullRequests", "comments")
REQUIRED_METADATA = ("repository", "reviewer", "period", "collectedAt", "totalPRs", "totalComments")


class SnapshotError(ValueError):
    """Snapshot file exists but cannot be parsed."""


def save_collected_data(
    path: Path | str,
    prs: Sequence[PullRequest],
    comments: Sequence[Comment],
    repository: str,
    reviewer: str,
    period: DateRange,
) -> CollectedData:
    """Write a snapshot atomically (temp file, then rename)."""
    path = Path(path)
    data = CollectedData(
        metadata=SnapshotMetadata(
            repository=repository,
            reviewer=reviewer,
            period=period,
            collected_at=datetime.now(UTC),
            total_prs=len(prs),
            total_comments=len(comments),
        ),
        pull_requests=list(prs),
        comments=list(comments),
    )

    path.parent.mkdir(parents=True, exist_ok=True)
    temp_file = path.with_name(f"{path.name}.tmp")
    with open(temp_file, "w") as f:
        json.dump(data.model_dump(mode="json", by_alias=True), f, indent=2)
    os.replace(temp_file, path)

    logger.info(f"Saved {len(prs)} PRs and {len(comments)} comments to {path}")
    return data


def load_collected_data(path: Path | str) -> CollectedData:
    """Load a snapshot written by ``save_collected_data``.

    Raises FileNotFoundError if the file is missing and SnapshotError if it
    is not a valid snapshot.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")

    try:
        with open(path) as f:
            raw = json.load(f)
        return CollectedData.model_validate(raw)
    except json.JSONDecodeError as e:
        raise SnapshotError(f"Invalid JSON in {path}: {e}") from e
    except ValidationError as e:
        raise SnapshotError(f"Invalid snapshot {path}: {e}") from e


def validate_data_file(path: Path | str) -> list[str]:
    """Structural problems with a snapshot file. Empty means valid."""
    path = Path(path)
    if not path.exists():
        return ["File does not exist"]

    try:
        with open(path) as f:
            data = json.load(f)
    except json.JSONDecodeError:
        return ["Invalid JSON format"]

    if not isinstance(data, dict):
        return ["Snapshot must be a JSON object"]

    errors = [f"Missing {section} section" for section in REQUIRED_SECTIONS if section not in data]

    metadata = data.get("metadata")
    if isinstance(metadata, dict):
        errors.extend(f"Missing metadata field: {name}" for name in REQUIRED_METADATA if name not in metadata)

    for section in ("pullRequests", "comments"):
        if section in data and not isinstance(data[section], list):
            errors.append(f"{section} must be an array")

    return errors
