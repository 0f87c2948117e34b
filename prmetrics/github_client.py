"""GitHub REST transport for PR and review-comment collection.

Wraps httpx.AsyncClient under trio. Every response refreshes a RateLimitInfo
snapshot; requests pause ahead of time when the budget runs low and retry
after 403/429 throttling, 5xx answers and dropped connections. Credentials
the client touches are registered for redaction so they never reach logs.
"""

import logging
import re
import time
from collections.abc import AsyncGenerator
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import httpx
import jwt
import trio

from .config import (
    GITHUB_APP_ID,
    GITHUB_APP_INSTALLATION_ID,
    GITHUB_APP_PRIVATE_KEY_PATH,
    GITHUB_TOKEN,
    MAX_PAGES,
    PER_PAGE,
)
from .repo import RepoInfo

logger = logging.getLogger(__name__)

API_HEADERS = {
    "Accept": "application/vnd.github+json",
    "X-GitHub-Api-Version": "2022-11-28",
}
RATE_LIMIT_FLOOR = 10  # pause before a request once fewer calls than this remain
MAX_RATE_LIMIT_WAIT = 3600.0  # seconds; a longer wait aborts the run instead

_PEM_BLOCK = re.compile(r"-----BEGIN[^-]*-----[\s\S]*?-----END[^-]*-----")
_JWT = re.compile(r"eyJ[A-Za-z0-9_=-]+\.[A-Za-z0-9_=-]+\.?[A-Za-z0-9_.+/=-]*")
_secrets: set[str] = set()


def register_secret(secret: str | None) -> None:
    """Mark a credential for redaction in log output."""
    if secret:
        _secrets.add(secret)


def redact(message: str) -> str:
    """Strip registered secrets, PEM blocks and JWTs from a message."""
    for secret in _secrets:
        message = message.replace(secret, "[REDACTED_TOKEN]")
    message = _PEM_BLOCK.sub("[REDACTED_PRIVATE_KEY]", message)
    return _JWT.sub("[REDACTED_JWT]", message)


class RedactingFilter(logging.Filter):
    """Logging filter that redacts credentials from formatted records."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = redact(message)
        if redacted != message:
            record.msg = redacted
            record.args = ()
        return True


logger.addFilter(RedactingFilter())


class RateLimitError(RuntimeError):
    """The API budget resets too far in the future to wait for."""


@dataclass
class RateLimitInfo:
    limit: int = 5000
    remaining: int = 5000
    reset: int = 0  # epoch seconds

    @property
    def reset_at(self) -> datetime:
        return datetime.fromtimestamp(self.reset, UTC)

    def seconds_until_reset(self, now: float | None = None) -> float:
        return self.reset - (time.time() if now is None else now)

    @classmethod
    def from_headers(cls, headers: httpx.Headers, previous: "RateLimitInfo") -> "RateLimitInfo":
        return cls(
            limit=int(headers.get("X-RateLimit-Limit", previous.limit)),
            remaining=int(headers.get("X-RateLimit-Remaining", previous.remaining)),
            reset=int(headers.get("X-RateLimit-Reset", previous.reset)),
        )


class GitHubAppAuth:
    """Installation-token auth for a GitHub App, refreshed before expiry."""

    def __init__(self, app_id: str, private_key_path: str, installation_id: str):
        self.app_id = app_id
        self.installation_id = installation_id

        with open(private_key_path) as f:
            self.private_key = f.read()
        register_secret(self.private_key)

        self._token: str | None = None
        self._expires_at: datetime | None = None
        self._lock: trio.Lock | None = None  # created lazily inside trio

    def app_jwt(self) -> str:
        now = int(time.time())
        # Backdated for clock drift; GitHub caps lifetime at 10 minutes
        payload = {"iat": now - 60, "exp": now + 600, "iss": self.app_id}
        return jwt.encode(payload, self.private_key, algorithm="RS256")

    async def _exchange(self) -> tuple[str, datetime]:
        async with httpx.AsyncClient(timeout=30.0) as client:
            response = await client.post(
                f"{GitHubClient.BASE_URL}/app/installations/{self.installation_id}/access_tokens",
                headers={"Authorization": f"Bearer {self.app_jwt()}", **API_HEADERS},
            )
            response.raise_for_status()

        data = response.json()
        register_secret(data["token"])
        return data["token"], datetime.fromisoformat(data["expires_at"].replace("Z", "+00:00"))

    def _fresh(self) -> bool:
        if self._token is None or self._expires_at is None:
            return False
        return self._expires_at - datetime.now(UTC) > timedelta(minutes=5)

    async def get_token(self) -> str:
        if self._fresh():
            return self._token
        if self._lock is None:
            self._lock = trio.Lock()

        async with self._lock:
            if not self._fresh():
                self._token, self._expires_at = await self._exchange()
                logger.info(f"Refreshed installation token, expires {self._expires_at:%H:%M} UTC")
        return self._token


class GitHubClient:
    """Async GitHub REST client used by the collector.

    Authenticates with an explicit PAT or GitHubAppAuth, falling back to
    GITHUB_APP_* (preferred) and then GITHUB_TOKEN from the environment.
    Use as an async context manager.
    """

    BASE_URL = "https://api.github.com"

    def __init__(self, token: str | None = None, app_auth: GitHubAppAuth | None = None):
        if token is None and app_auth is None:
            if GITHUB_APP_ID and GITHUB_APP_PRIVATE_KEY_PATH and GITHUB_APP_INSTALLATION_ID:
                app_auth = GitHubAppAuth(GITHUB_APP_ID, GITHUB_APP_PRIVATE_KEY_PATH, GITHUB_APP_INSTALLATION_ID)
            elif GITHUB_TOKEN:
                token = GITHUB_TOKEN
            else:
                raise ValueError(
                    "GitHub auth required. Set GITHUB_TOKEN or "
                    "GITHUB_APP_ID + GITHUB_APP_PRIVATE_KEY_PATH + GITHUB_APP_INSTALLATION_ID"
                )

        register_secret(token)
        self.pat_token = token
        self.app_auth = app_auth
        self.client: httpx.AsyncClient | None = None
        self.rate_limit = RateLimitInfo()
        self._request_count = 0

    async def __aenter__(self):
        self.client = httpx.AsyncClient(
            base_url=self.BASE_URL,
            headers={**API_HEADERS, "User-Agent": "prmetrics"},
            timeout=30.0,
            http2=True,
        )
        return self

    async def __aexit__(self, *args):
        if self.client:
            await self.client.aclose()

    @property
    def auth_type(self) -> str:
        return "app" if self.app_auth else "pat"

    @property
    def request_count(self) -> int:
        return self._request_count

    async def _authorization(self) -> str:
        token = await self.app_auth.get_token() if self.app_auth else self.pat_token
        return f"Bearer {token}"

    async def _sleep_until_reset(self, reason: str) -> None:
        wait = max(self.rate_limit.seconds_until_reset(), 0) + 1
        if wait > MAX_RATE_LIMIT_WAIT:
            raise RateLimitError(f"Rate limit resets at {self.rate_limit.reset_at:%H:%M} UTC, not waiting {wait:.0f}s")
        logger.warning(f"{reason}. Waiting {wait:.0f}s for reset...")
        await trio.sleep(wait)

    async def _throttle(self) -> None:
        """Pause before a request when the remaining budget is nearly spent."""
        if self.rate_limit.remaining < RATE_LIMIT_FLOOR and self.rate_limit.seconds_until_reset() > 0:
            await self._sleep_until_reset(f"Only {self.rate_limit.remaining} requests left")

    async def _backoff_throttled(self, response: httpx.Response) -> bool:
        """Wait out a 403/429 throttle. Returns True if the request should be retried."""
        if response.status_code not in (403, 429):
            return False

        retry_after = response.headers.get("Retry-After")
        if retry_after is not None:
            logger.warning(f"Secondary rate limit, retrying in {retry_after}s")
            await trio.sleep(int(retry_after))
            return True

        if response.status_code == 403 and self.rate_limit.remaining == 0:
            await self._sleep_until_reset("Primary rate limit exhausted")
            return True

        if response.status_code == 429:
            await trio.sleep(60)
            return True
        return False

    async def _request(
        self,
        method: str,
        path: str,
        params: dict | None = None,
        max_retries: int = 3,
    ) -> httpx.Response:
        if not self.client:
            raise RuntimeError("Client not initialized. Use async context manager.")

        headers = {"Authorization": await self._authorization()}
        for attempt in range(max_retries):
            await self._throttle()
            try:
                response = await self.client.request(method, path, params=params, headers=headers)
            except (httpx.ConnectError, httpx.ReadError, httpx.TimeoutException) as e:
                logger.warning(f"{type(e).__name__} on {path}, retrying in {2**attempt}s")
                await trio.sleep(2**attempt)
                continue

            self._request_count += 1
            self.rate_limit = RateLimitInfo.from_headers(response.headers, self.rate_limit)

            if await self._backoff_throttled(response):
                continue
            if response.status_code >= 500:
                logger.warning(f"Server error {response.status_code} on {path}, retrying in {2**attempt}s")
                await trio.sleep(2**attempt)
                continue

            response.raise_for_status()
            return response

        raise RuntimeError(f"Max retries exceeded for {path}")

    async def get(self, path: str, params: dict | None = None) -> Any:
        response = await self._request("GET", path, params=params)
        return response.json()

    async def paginate(
        self,
        path: str,
        params: dict | None = None,
        max_pages: int | None = MAX_PAGES,
    ) -> AsyncGenerator[Any]:
        """Yield items page by page until a short page or the page cap."""
        query = dict(params or {}, per_page=PER_PAGE)
        page = 0
        while max_pages is None or page < max_pages:
            page += 1
            items = (await self._request("GET", path, params={**query, "page": page})).json()
            for item in items:
                yield item
            if len(items) < PER_PAGE:
                return
        logger.warning(f"Stopped paginating {path} after {page} pages")

    async def paginate_all(self, path: str, params: dict | None = None) -> list[dict]:
        return [item async for item in self.paginate(path, params)]

    async def get_authenticated_login(self) -> str | None:
        """Login behind the credentials; installation tokens have none."""
        if self.app_auth:
            return None
        user = await self.get("/user")
        logger.info(f"Authenticated as {user['login']}")
        return user["login"]

    async def get_pull_requests(self, repo: RepoInfo, since: datetime | None = None) -> AsyncGenerator[dict]:
        """PRs newest-created first; stops at the first one created before ``since``."""
        params = {"state": "all", "sort": "created", "direction": "desc"}
        async for pr in self.paginate(f"{repo.api_path}/pulls", params):
            if since and datetime.fromisoformat(pr["created_at"].replace("Z", "+00:00")) < since:
                return
            yield pr

    async def get_review_comments(self, repo: RepoInfo, pr_number: int) -> list[dict]:
        """Inline diff comments; these carry ``in_reply_to_id`` threading."""
        return await self.paginate_all(f"{repo.api_path}/pulls/{pr_number}/comments")

    async def get_issue_comments(self, repo: RepoInfo, pr_number: int) -> list[dict]:
        """Conversation-tab comments; never threaded."""
        return await self.paginate_all(f"{repo.api_path}/issues/{pr_number}/comments")

    async def get_comment_reactions(self, repo: RepoInfo, comment_id: int, review_comment: bool = True) -> list[dict]:
        """Reactions on one comment. A missing or forbidden comment yields no reactions."""
        kind = "pulls" if review_comment else "issues"
        try:
            return await self.paginate_all(f"{repo.api_path}/{kind}/comments/{comment_id}/reactions")
        except httpx.HTTPStatusError as e:
            if e.response.status_code not in (403, 404, 410):
                raise
            logger.warning(f"No reactions for comment {comment_id}: HTTP {e.response.status_code}")
            return []

    async def get_rate_limit(self) -> RateLimitInfo:
        """Query /rate_limit (does not count against the core budget)."""
        core = (await self.get("/rate_limit"))["resources"]["core"]
        self.rate_limit = RateLimitInfo(limit=core["limit"], remaining=core["remaining"], reset=core["reset"])
        return self.rate_limit
