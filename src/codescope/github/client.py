"""GitHub REST client.

Lists a repository's files from the recursive git tree of its default
branch and fetches individual file contents. JSON responses are memoized
per URL for ``cache_ttl`` seconds, and every response updates the tracked
rate-limit budget from the ``x-ratelimit-*`` headers.
"""

import base64
import binascii
import logging
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any, Protocol
from urllib.parse import quote

import httpx

from codescope import __version__
from codescope.analyzers.source_parser import is_binary, is_code
from codescope.config import DEFAULT_IGNORE_DIRS, GitHubConfig
from codescope.models.analysis import FileRecord
from codescope.utils.numbers import round_half_up

logger = logging.getLogger(__name__)

# Below this many remaining requests, anonymous clients skip commit history
COMMIT_BUDGET_FLOOR = 20


class GitHubError(Exception):
    """Raised when a GitHub API request fails."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class RateLimitExceededError(GitHubError):
    """Raised when the API rejects a request because the budget is exhausted."""


class RepositoryNotFoundError(GitHubError):
    """Raised when the repository (or branch) does not exist or is private."""


@dataclass
class RateLimit:
    """API request budget as last reported by GitHub.

    Attributes:
        remaining: Requests left in the current window
        limit: Window size (60 anonymous, 5000 with a token)
        reset: Unix time the window resets
    """

    remaining: int = 60
    limit: int = 60
    reset: int = 0


class RepositoryClient(Protocol):
    """What the analysis pipeline needs from a repository host."""

    async def list_files(self, owner: str, repo: str) -> list[FileRecord]: ...

    async def get_file_content(self, owner: str, repo: str, path: str) -> str | None: ...

    def get_rate_limit_status(self) -> RateLimit: ...


class GitHubClient:
    """Async GitHub REST client built on httpx.

    Args:
        config: API settings (token, base URL, timeout, cache TTL)
        ignore_dirs: Directory names excluded from listings
        transport: Optional httpx transport, mainly for tests
        clock: Monotonic time source for the response cache
    """

    def __init__(
        self,
        config: GitHubConfig | None = None,
        ignore_dirs: Iterable[str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config or GitHubConfig()
        self.ignore_dirs = frozenset(ignore_dirs if ignore_dirs is not None else DEFAULT_IGNORE_DIRS)
        self._clock = clock
        self._cache: dict[str, tuple[float, Any]] = {}
        self._rate_limit = RateLimit()

        headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": f"codescope/{__version__}",
        }
        if self.config.token:
            headers["Authorization"] = f"Bearer {self.config.token}"

        self._http = httpx.AsyncClient(
            headers=headers,
            timeout=self.config.timeout,
            follow_redirects=True,
            transport=transport,
        )

    @property
    def has_token(self) -> bool:
        return bool(self.config.token)

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "GitHubClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # =========================================================================
    # Transport
    # =========================================================================

    def _url(self, path: str) -> str:
        return f"{self.config.api_base}{path}"

    def _update_rate_limit(self, headers: httpx.Headers) -> None:
        for header, attr in (
            ("x-ratelimit-remaining", "remaining"),
            ("x-ratelimit-limit", "limit"),
            ("x-ratelimit-reset", "reset"),
        ):
            value = headers.get(header)
            if value is None:
                continue
            try:
                setattr(self._rate_limit, attr, int(value))
            except ValueError:
                logger.debug(f"Ignoring malformed {header} header: {value!r}")

    def _error_for(self, response: httpx.Response) -> GitHubError:
        try:
            body = response.json()
            detail = body.get("message") if isinstance(body, dict) else None
        except ValueError:
            detail = None
        status = response.status_code
        message = detail or f"GitHub API error {status}"

        if status == 404:
            return RepositoryNotFoundError(message, status)
        if status == 429 or (status == 403 and response.headers.get("x-ratelimit-remaining") == "0"):
            return RateLimitExceededError(message, status)
        return GitHubError(message, status)

    async def _get_json(self, url: str, use_cache: bool = True) -> Any:
        """GET a URL and decode the JSON body, consulting the TTL cache.

        Raises:
            GitHubError: On transport failure or non-2xx status
        """
        now = self._clock()
        if use_cache:
            cached = self._cache.get(url)
            if cached is not None and now - cached[0] < self.config.cache_ttl:
                return cached[1]

        try:
            response = await self._http.get(url)
        except httpx.HTTPError as e:
            raise GitHubError(f"Request to {url} failed: {e}") from e

        self._update_rate_limit(response.headers)
        if response.is_error:
            raise self._error_for(response)

        try:
            data = response.json()
        except ValueError as e:
            raise GitHubError(f"Invalid JSON from {url}", response.status_code) from e

        self._prune_cache(now)
        self._cache[url] = (now, data)
        return data

    def _prune_cache(self, now: float) -> None:
        expired = [key for key, (stored, _) in self._cache.items() if now - stored >= self.config.cache_ttl]
        for key in expired:
            del self._cache[key]

    # =========================================================================
    # RepositoryClient
    # =========================================================================

    async def list_files(self, owner: str, repo: str) -> list[FileRecord]:
        """List every non-binary blob outside ignored directories.

        Raises:
            RepositoryNotFoundError: Unknown or private repository
            RateLimitExceededError: Request budget exhausted
            GitHubError: Any other API failure or a malformed tree
        """
        repo_data = await self._get_json(self._url(f"/repos/{owner}/{repo}"))
        branch = (repo_data.get("default_branch") if isinstance(repo_data, dict) else None) or "main"
        logger.debug(f"Loading file tree for {owner}/{repo} ({branch})")

        tree = await self._get_json(
            self._url(f"/repos/{owner}/{repo}/git/trees/{quote(branch, safe='')}?recursive=1")
        )
        items = tree.get("tree") if isinstance(tree, dict) else None
        if not isinstance(items, list):
            raise GitHubError("Invalid tree response")
        if tree.get("truncated"):
            logger.warning(f"Tree listing for {owner}/{repo} was truncated by GitHub; some files are missing")

        files: list[FileRecord] = []
        for item in items:
            if not isinstance(item, dict) or item.get("type") != "blob":
                continue
            path = item.get("path")
            if not path:
                continue
            parts = path.split("/")
            if any(part in self.ignore_dirs for part in parts[:-1]):
                continue
            name = parts[-1]
            if is_binary(name):
                continue
            files.append(FileRecord.from_path(path, size=item.get("size") or 0, is_code=is_code(name)))

        logger.info(f"Found {len(files)} files in {owner}/{repo}")
        return files

    async def get_file_content(self, owner: str, repo: str, path: str) -> str | None:
        """Fetch and decode one file; None on any failure."""
        url = self._url(f"/repos/{owner}/{repo}/contents/{quote(path)}")
        try:
            data = await self._get_json(url)
        except GitHubError as e:
            logger.debug(f"Could not fetch {path}: {e.message}")
            return None

        content = data.get("content") if isinstance(data, dict) else None
        if not content:
            return None
        try:
            return base64.b64decode(content).decode("utf-8", errors="replace")
        except (binascii.Error, ValueError):
            logger.debug(f"Could not decode {path}")
            return None

    def get_rate_limit_status(self) -> RateLimit:
        status = self._rate_limit
        return RateLimit(remaining=status.remaining, limit=status.limit, reset=status.reset)

    async def refresh_rate_limit(self) -> RateLimit:
        """Ask the API for the current core budget; keeps the last known one on failure."""
        try:
            data = await self._get_json(self._url("/rate_limit"), use_cache=False)
        except GitHubError as e:
            logger.debug(f"Rate limit query failed: {e.message}")
            return self.get_rate_limit_status()

        core = data.get("resources", {}).get("core") if isinstance(data, dict) else None
        if isinstance(core, dict):
            self._rate_limit = RateLimit(
                remaining=int(core.get("remaining", self._rate_limit.remaining)),
                limit=int(core.get("limit", self._rate_limit.limit)),
                reset=int(core.get("reset", self._rate_limit.reset)),
            )
        return self.get_rate_limit_status()

    # =========================================================================
    # Commit history
    # =========================================================================

    async def get_commits(
        self, owner: str, repo: str, path: str | None = None, limit: int = 30
    ) -> list[dict[str, Any]]:
        """Recent commits, optionally for one path.

        Returns an empty list without calling the API when an anonymous
        client is low on budget, and on any failure.
        """
        if self._rate_limit.remaining < COMMIT_BUDGET_FLOOR and not self.has_token:
            logger.debug("Skipping commit history: anonymous rate limit nearly exhausted")
            return []

        url = self._url(f"/repos/{owner}/{repo}/commits?per_page={limit}")
        if path:
            url += f"&path={quote(path)}"
        try:
            data = await self._get_json(url)
        except GitHubError as e:
            logger.debug(f"Commit history unavailable for {owner}/{repo}: {e.message}")
            return []
        return data if isinstance(data, list) else []

    async def get_contributors(self, owner: str, repo: str, path: str) -> list[dict[str, Any]]:
        """Commit authors of ``path`` with their share of its last 50 commits."""
        commits = await self.get_commits(owner, repo, path, limit=50)
        authors: dict[str, int] = {}
        for entry in commits:
            try:
                name = entry["commit"]["author"]["name"]
            except (KeyError, TypeError):
                continue
            authors[name] = authors.get(name, 0) + 1

        contributors = [
            {
                "name": name,
                "commits": count,
                "percent": int(round_half_up(count / len(commits) * 100)),
            }
            for name, count in authors.items()
        ]
        contributors.sort(key=lambda c: c["commits"], reverse=True)
        return contributors
