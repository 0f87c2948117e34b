"""Collects pull requests and reviewer comments from GitHub.

Uses trio for concurrent API requests: a fixed pool of workers pulls PR
numbers off a memory channel, and each worker fetches that PR's comments
and their reactions concurrently.
"""

import logging
import traceback
from collections.abc import Sequence
from dataclasses import dataclass, field

import trio
from pydantic import ValidationError

from .config import CONCURRENT_PRS, CONCURRENT_REACTION_REQUESTS
from .enrichment.pipeline import attach_comments, enrich_with_warnings
from .extractors.comments import extract_comment
from .extractors.prs import extract_pr
from .extractors.reactions import reaction_total
from .github_client import GitHubClient
from .models import Comment, DateRange, PullRequest
from .repo import RepoInfo

logger = logging.getLogger(__name__)


@dataclass
class CollectionStats:
    """Counters for a collection run."""

    total_prs: int = 0
    processed_prs: int = 0
    failed_prs: list[int] = field(default_factory=list)
    total_comments: int = 0
    reviewer_comments: int = 0
    enrichment_warnings: int = 0


def is_reviewer(comment: Comment, reviewer: str) -> bool:
    return comment.author.login.lower() == reviewer.strip().lower()


def _comment_id(comment_data: dict) -> int | None:
    try:
        return int(comment_data["id"])
    except (KeyError, TypeError, ValueError):
        return None


class DataCollector:
    """Fetches PRs and comments, enriches them and keeps the reviewer's."""

    def __init__(self, client: GitHubClient):
        self.client = client
        self.stats = CollectionStats()

    async def fetch_pull_requests(self, repo: RepoInfo, window: DateRange) -> list[PullRequest]:
        """PRs created inside the window (inclusive), newest first."""
        prs: list[PullRequest] = []
        async for pr_data in self.client.get_pull_requests(repo, since=window.start):
            pr = extract_pr(pr_data)
            if window.contains(pr.created_at):
                prs.append(pr)

        self.stats.total_prs = len(prs)
        logger.info(f"Found {len(prs)} PRs in {repo.full_name} between {window.start} and {window.end}")
        return prs

    async def _fetch_reactions(
        self,
        repo: RepoInfo,
        comment_id: int,
        review_comment: bool,
        limiter: trio.CapacityLimiter,
        reactions: dict[int, list[dict]],
    ) -> None:
        async with limiter:
            reactions[comment_id] = await self.client.get_comment_reactions(
                repo, comment_id, review_comment=review_comment
            )

    async def fetch_comments(self, repo: RepoInfo, pr_number: int) -> list[Comment]:
        """Review and issue comments of one PR, with their reactions.

        Reactions are only requested for comments whose embedded summary
        reports any.
        """
        review_data: list[dict] = []
        issue_data: list[dict] = []

        async def fetch_review_comments():
            review_data.extend(await self.client.get_review_comments(repo, pr_number))

        async def fetch_issue_comments():
            issue_data.extend(await self.client.get_issue_comments(repo, pr_number))

        async with trio.open_nursery() as nursery:
            nursery.start_soon(fetch_review_comments)
            nursery.start_soon(fetch_issue_comments)

        reactions: dict[int, list[dict]] = {}
        limiter = trio.CapacityLimiter(CONCURRENT_REACTION_REQUESTS)
        async with trio.open_nursery() as nursery:
            for data, review in ((review_data, True), (issue_data, False)):
                for comment_data in data:
                    comment_id = _comment_id(comment_data)
                    if comment_id is not None and reaction_total(comment_data) > 0:
                        nursery.start_soon(
                            self._fetch_reactions, repo, comment_id, review, limiter, reactions
                        )

        return self._extract_all(review_data + issue_data, pr_number, reactions)

    def _extract_all(
        self,
        records: list[dict],
        pr_number: int,
        reactions: dict[int, list[dict]],
    ) -> list[Comment]:
        """Parse raw comments, skipping malformed records."""
        comments = []
        for comment_data in records:
            comment_id = _comment_id(comment_data)
            try:
                comments.append(extract_comment(comment_data, pr_number, reactions.get(comment_id)))
            except (KeyError, TypeError, ValueError, ValidationError) as e:
                self.stats.enrichment_warnings += 1
                logger.warning(f"PR #{pr_number}: skipping malformed comment {comment_id}: {type(e).__name__}: {e}")
        return comments

    async def _collect_pr(
        self,
        repo: RepoInfo,
        pr: PullRequest,
        reviewer: str,
        collected: dict[int, list[Comment]],
    ) -> None:
        try:
            comments = await self.fetch_comments(repo, pr.number)
        except Exception as e:
            self.stats.failed_prs.append(pr.number)
            logger.error(f"PR #{pr.number} failed: {type(e).__name__}: {e}")
            logger.debug(traceback.format_exc())
            return

        # Enrich the whole batch so human replies attach to reviewer comments
        result = enrich_with_warnings(comments)
        mine = [comment for comment in result.comments if is_reviewer(comment, reviewer)]

        collected[pr.number] = mine
        self.stats.processed_prs += 1
        self.stats.total_comments += len(comments)
        self.stats.reviewer_comments += len(mine)
        self.stats.enrichment_warnings += len(result.warnings)
        logger.debug(f"PR #{pr.number}: {len(mine)}/{len(comments)} comments by {reviewer}")

    async def _pr_worker(
        self,
        repo: RepoInfo,
        reviewer: str,
        receive_channel: trio.MemoryReceiveChannel,
        collected: dict[int, list[Comment]],
    ) -> None:
        async with receive_channel:
            async for pr in receive_channel:
                await self._collect_pr(repo, pr, reviewer, collected)

    async def collect_comments(
        self,
        prs: Sequence[PullRequest],
        reviewer: str,
        repo: RepoInfo,
    ) -> tuple[list[PullRequest], list[Comment]]:
        """Enriched reviewer comments for each PR, attached to new PR values.

        PRs whose comments could not be fetched are logged and left out.
        """
        if prs is None:
            raise TypeError("collect_comments() requires a list of pull requests, got None")

        collected: dict[int, list[Comment]] = {}
        send_channel, receive_channel = trio.open_memory_channel(len(prs) or 1)

        async with trio.open_nursery() as nursery:
            async with receive_channel:
                for _ in range(CONCURRENT_PRS):
                    nursery.start_soon(
                        self._pr_worker, repo, reviewer, receive_channel.clone(), collected
                    )
            async with send_channel:
                for pr in prs:
                    await send_channel.send(pr)

        kept = [pr for pr in prs if pr.number in collected]
        comments = [comment for pr in kept for comment in collected[pr.number]]
        logger.info(
            f"Collected {len(comments)} comments by {reviewer} across {len(kept)} PRs "
            f"({len(self.stats.failed_prs)} failed)"
        )
        return attach_comments(kept, comments), comments

    async def collect(
        self,
        repo: RepoInfo,
        reviewer: str,
        window: DateRange,
    ) -> tuple[list[PullRequest], list[Comment]]:
        """Fetch PRs in the window and their enriched reviewer comments."""
        prs = await self.fetch_pull_requests(repo, window)
        if not prs:
            return [], []
        return await self.collect_comments(prs, reviewer, repo)
