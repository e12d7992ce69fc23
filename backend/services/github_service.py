"""GitHub Data Service.

Fetches the raw inputs of an analysis from the GitHub REST API (v3):
profile, repository list, per-repository languages, README and commit
count. The contribution calendar comes from the GraphQL client.

Implements the fetcher protocol consumed by the analyzer.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
from typing import Any, Optional

import httpx

from app.config import Settings, get_settings
from app.exceptions import (
    GitHubAPIError,
    GitHubRateLimitError,
    GitHubUserNotFoundError,
)
from app.logging_config import get_logger
from app.metrics import GITHUB_API_CALLS, GITHUB_API_DURATION
from services.github_graphql import GitHubGraphQLClient
from services.http_retry import RATE_LIMIT_STATUSES, SERVER_ERROR_STATUSES, backoff_delay
from services.models import ContributionCalendar, Profile, RawRepository, ReadmeInfo

logger = get_logger(__name__)

REPOS_PER_PAGE = 100
README_PREVIEW_CHARS = 1000


class GitHubService:
    """Service for fetching GitHub profile and repository data.

    Every request retries with exponential backoff on rate limits and
    server errors. A missing user raises GitHubUserNotFoundError; a
    missing README is reported as "no README", not an error.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        graphql: GitHubGraphQLClient | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self._graphql = graphql or GitHubGraphQLClient(settings=self.settings)
        self._headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if self.settings.github_token:
            self._headers["Authorization"] = (
                f"Bearer {self.settings.github_token.get_secret_value()}"
            )

    # --- Fetcher protocol ---

    async def fetch_user_profile(self, username: str) -> Profile:
        """Fetch user profile from GitHub REST API."""
        url = f"{self.settings.github_api_base}/users/{username}"
        try:
            data = await self._api_request(url, endpoint="user")
        except GitHubUserNotFoundError:
            raise GitHubUserNotFoundError(username) from None
        return self._to_profile(data)

    async def fetch_user_repositories(self, username: str) -> list[RawRepository]:
        """Fetch all public repositories (paginated), most recently updated first.

        Forks are included and flagged; filtering is the analyzer's job.
        """
        url = f"{self.settings.github_api_base}/users/{username}/repos"
        repos: list[RawRepository] = []

        for page in range(1, self.settings.github_max_repo_pages + 1):
            params = {
                "per_page": REPOS_PER_PAGE,
                "page": page,
                "sort": "updated",
                "direction": "desc",
            }
            batch = await self._api_request(url, params=params, endpoint="repos")
            if not isinstance(batch, list) or not batch:
                break
            repos.extend(self._to_repository(r) for r in batch)
            if len(batch) < REPOS_PER_PAGE:
                break

        logger.info("github_repositories_fetched", repo_count=len(repos))
        return repos

    async def fetch_repo_languages(self, owner: str, repo: str) -> dict[str, int]:
        """Language byte counts, e.g. ``{"Python": 23000, "Shell": 800}``."""
        url = f"{self.settings.github_api_base}/repos/{owner}/{repo}/languages"
        data = await self._api_request(url, endpoint="languages")
        if not isinstance(data, dict):
            return {}
        return {lang: int(count) for lang, count in data.items()}

    async def fetch_repo_readme(self, owner: str, repo: str) -> ReadmeInfo:
        """README presence, decoded length and a short preview."""
        url = f"{self.settings.github_api_base}/repos/{owner}/{repo}/readme"
        try:
            data = await self._api_request(url, endpoint="readme")
        except GitHubUserNotFoundError:
            return ReadmeInfo()

        try:
            content = base64.b64decode(data.get("content", "")).decode("utf-8", errors="replace")
        except (binascii.Error, ValueError):
            logger.warning("readme_decode_failed", repo=repo)
            return ReadmeInfo(has_readme=True)

        return ReadmeInfo(
            has_readme=True,
            readme_length=len(content),
            readme_content=content[:README_PREVIEW_CHARS],
        )

    async def fetch_repo_commit_count(self, owner: str, repo: str) -> int:
        """Commit count on the default branch.

        Requests one commit per page and reads the page number of the
        ``last`` link, so the count costs a single call.
        """
        url = f"{self.settings.github_api_base}/repos/{owner}/{repo}/commits"
        try:
            response = await self._request(url, params={"per_page": 1}, endpoint="commits")
        except GitHubAPIError as exc:
            # 409: repository is empty
            if exc.status_code == 409:
                return 0
            raise

        last = response.links.get("last", {}).get("url")
        if last:
            page = httpx.URL(last).params.get("page")
            if page and page.isdigit():
                return int(page)

        commits = response.json()
        return len(commits) if isinstance(commits, list) else 0

    async def fetch_contribution_calendar(self, username: str) -> ContributionCalendar | None:
        """Contribution calendar via GraphQL; None when unavailable."""
        return await self._graphql.fetch_contribution_calendar(username)

    # --- Transformers ---

    @staticmethod
    def _to_profile(data: dict[str, Any]) -> Profile:
        return Profile(
            login=data.get("login", ""),
            name=data.get("name"),
            bio=data.get("bio"),
            location=data.get("location"),
            company=data.get("company"),
            blog=data.get("blog"),
            avatar_url=data.get("avatar_url"),
            followers=data.get("followers", 0),
            following=data.get("following", 0),
            public_repos=data.get("public_repos", 0),
            created_at=data.get("created_at"),
        )

    @staticmethod
    def _to_repository(data: dict[str, Any]) -> RawRepository:
        created_at = data.get("created_at")
        return RawRepository(
            name=data.get("name", ""),
            description=data.get("description"),
            url=data.get("html_url"),
            stars=data.get("stargazers_count", 0),
            forks=data.get("forks_count", 0),
            watchers=data.get("watchers_count", 0),
            language=data.get("language"),
            topics=data.get("topics") or [],
            created_at=created_at,
            updated_at=data.get("updated_at") or created_at,
            # Never-pushed repositories report null
            pushed_at=data.get("pushed_at") or created_at,
            size=data.get("size", 0),
            has_license=data.get("license") is not None,
            is_archived=data.get("archived", False),
            is_fork=data.get("fork", False),
        )

    # --- HTTP ---

    async def _api_request(
        self,
        url: str,
        params: Optional[dict[str, Any]] = None,
        endpoint: str = "rest",
    ) -> Any:
        response = await self._request(url, params=params, endpoint=endpoint)
        return response.json()

    async def _request(
        self,
        url: str,
        params: Optional[dict[str, Any]] = None,
        endpoint: str = "rest",
    ) -> httpx.Response:
        """Make an authenticated request to GitHub API with retry logic.

        Implements exponential backoff for:
        - 429 Too Many Requests
        - 403 Forbidden (rate limit)
        - 502/503/504 Server errors

        Non-retryable errors (404, 401, other 4xx) are raised immediately.
        """
        max_retries = self.settings.github_max_retries
        last_exception: Exception | None = None

        for attempt in range(max_retries + 1):
            async with httpx.AsyncClient(timeout=self.settings.github_timeout_seconds) as client:
                with GITHUB_API_DURATION.labels(endpoint=endpoint).time():
                    try:
                        response = await client.get(
                            url, headers=self._headers, params=params
                        )
                    except httpx.RequestError as exc:
                        GITHUB_API_CALLS.labels(endpoint=endpoint, status="error").inc()
                        last_exception = exc
                        if attempt < max_retries:
                            wait = backoff_delay(attempt)
                            logger.warning(
                                "github_api_connection_retry",
                                attempt=attempt + 1,
                                wait_seconds=wait,
                                endpoint=endpoint,
                            )
                            await asyncio.sleep(wait)
                            continue
                        raise GitHubAPIError(
                            "GitHub API connection failed after retries"
                        ) from exc

            status = response.status_code
            GITHUB_API_CALLS.labels(endpoint=endpoint, status=str(status)).inc()

            # Non-retryable errors
            if status == 404:
                raise GitHubUserNotFoundError()
            if status == 401:
                raise GitHubAPIError("GitHub token invalid or expired", status_code=401)

            # Retryable: rate limit
            if status in RATE_LIMIT_STATUSES:
                retry_after = response.headers.get("Retry-After")
                rate_remaining = response.headers.get("X-RateLimit-Remaining")

                if attempt < max_retries:
                    if retry_after:
                        wait = min(int(retry_after), 60)
                    elif rate_remaining == "0":
                        wait = backoff_delay(attempt, base=5.0)
                    else:
                        wait = backoff_delay(attempt)

                    logger.warning(
                        "github_rate_limit_retry",
                        attempt=attempt + 1,
                        wait_seconds=wait,
                        status=status,
                        endpoint=endpoint,
                    )
                    await asyncio.sleep(wait)
                    continue

                raise GitHubRateLimitError(
                    retry_after=int(retry_after) if retry_after else None
                )

            # Retryable: server errors
            if status in SERVER_ERROR_STATUSES:
                if attempt < max_retries:
                    wait = backoff_delay(attempt)
                    logger.warning(
                        "github_server_error_retry",
                        attempt=attempt + 1,
                        wait_seconds=wait,
                        status=status,
                        endpoint=endpoint,
                    )
                    await asyncio.sleep(wait)
                    continue

                raise GitHubAPIError(
                    f"GitHub API server error {status} after retries",
                    status_code=status,
                )

            # Other client errors
            if status >= 400:
                raise GitHubAPIError(
                    f"GitHub API returned status {status}",
                    status_code=status,
                )

            return response

        raise GitHubAPIError("GitHub API request failed") from last_exception
