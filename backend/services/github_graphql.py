"""GitHub GraphQL API Client.

Fetches the daily contribution calendar, which the REST API does not
expose. The calendar is optional input: any failure here is logged and
reported as "no calendar", never raised, so the analysis can fall back
to repository push dates.

Rate limits, server errors and connection failures are retried with
exponential backoff.
"""

from __future__ import annotations

import asyncio
from typing import Any

import httpx

from app.config import Settings, get_settings
from app.exceptions import DevIntelError, GitHubAPIError, GitHubRateLimitError, GitHubUserNotFoundError
from app.logging_config import get_logger
from app.metrics import GITHUB_API_CALLS, GITHUB_API_DURATION
from services.http_retry import (
    RATE_LIMIT_STATUSES,
    SERVER_ERROR_STATUSES,
    RetryableError,
    backoff_delay,
)
from services.models import CalendarDay, ContributionCalendar

logger = get_logger(__name__)

CONTRIBUTION_CALENDAR_QUERY = """
query ContributionCalendar($login: String!) {
  user(login: $login) {
    contributionsCollection {
      contributionCalendar {
        totalContributions
        weeks {
          contributionDays {
            contributionCount
            date
          }
        }
      }
    }
  }
}
"""


class GitHubGraphQLClient:
    """Client for GitHub GraphQL API (v4).

    Requires a valid GitHub token (PAT or OAuth) for authentication.
    GraphQL API has no unauthenticated access.
    """

    def __init__(self, token: str | None = None, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()
        self._token = token
        if not self._token and self.settings.github_token:
            self._token = self.settings.github_token.get_secret_value()

        self._headers = {
            "Accept": "application/json",
        }
        if self._token:
            self._headers["Authorization"] = f"Bearer {self._token}"

    @property
    def has_token(self) -> bool:
        """Check if a valid token is configured."""
        return bool(self._token)

    async def fetch_contribution_calendar(self, username: str) -> ContributionCalendar | None:
        """Fetch the trailing-year contribution calendar.

        Returns None without a token, for unknown users and on any API
        failure.
        """
        if not self.has_token:
            logger.info("graphql_skipped_no_token")
            return None

        try:
            data = await self._execute(CONTRIBUTION_CALENDAR_QUERY, {"login": username})
        except DevIntelError as exc:
            logger.warning("contribution_calendar_fetch_failed", error=exc.message)
            return None

        user = data.get("user")
        if not user:
            return None

        calendar = (user.get("contributionsCollection") or {}).get("contributionCalendar") or {}
        return self._transform_calendar(calendar)

    @staticmethod
    def _transform_calendar(calendar: dict[str, Any]) -> ContributionCalendar:
        """Flatten calendar weeks into a chronological list of days."""
        days = [
            CalendarDay(date=day["date"], count=day.get("contributionCount", 0))
            for week in calendar.get("weeks", [])
            for day in week.get("contributionDays", [])
            if day.get("date")
        ]
        days.sort(key=lambda d: d.date)
        return ContributionCalendar(
            total_contributions=calendar.get("totalContributions", 0),
            days=days,
        )

    async def _execute(self, query: str, variables: dict[str, Any]) -> dict[str, Any]:
        """Run one query, retrying connection failures, rate limits and 5xx."""
        payload = {"query": query, "variables": variables}
        max_retries = self.settings.github_max_retries

        for attempt in range(max_retries + 1):
            try:
                return await self._post(payload)
            except RetryableError as exc:
                if attempt >= max_retries:
                    raise exc.error from exc.__cause__
                wait = backoff_delay(attempt, base=2.0)
                logger.warning(
                    "graphql_retry",
                    attempt=attempt + 1,
                    wait_seconds=wait,
                    reason=exc.error.code,
                )
                await asyncio.sleep(wait)

        raise GitHubAPIError("GitHub GraphQL request failed")

    async def _post(self, payload: dict[str, Any]) -> dict[str, Any]:
        async with httpx.AsyncClient(timeout=self.settings.github_timeout_seconds) as client:
            with GITHUB_API_DURATION.labels(endpoint="graphql").time():
                try:
                    response = await client.post(
                        self.settings.github_graphql_url,
                        headers=self._headers,
                        json=payload,
                    )
                except httpx.RequestError as exc:
                    GITHUB_API_CALLS.labels(endpoint="graphql", status="error").inc()
                    raise RetryableError(
                        GitHubAPIError("GitHub GraphQL API connection failed")
                    ) from exc

        status = response.status_code
        GITHUB_API_CALLS.labels(endpoint="graphql", status=str(status)).inc()

        if status == 401:
            raise GitHubAPIError("GitHub token invalid or expired", status_code=401)
        if status in RATE_LIMIT_STATUSES:
            raise RetryableError(GitHubRateLimitError())
        if status in SERVER_ERROR_STATUSES:
            raise RetryableError(
                GitHubAPIError(f"GitHub GraphQL API returned status {status}", status_code=status)
            )
        if status >= 400:
            raise GitHubAPIError(f"GitHub GraphQL API returned status {status}", status_code=status)

        body = response.json()
        errors = body.get("errors") or []
        error_types = {e.get("type") for e in errors}
        if "NOT_FOUND" in error_types:
            raise GitHubUserNotFoundError()
        if "RATE_LIMITED" in error_types:
            raise RetryableError(GitHubRateLimitError())

        data = body.get("data")
        if errors:
            messages = "; ".join(e.get("message", "") for e in errors)
            if not data:
                raise GitHubAPIError(f"GraphQL errors: {messages}")
            # Partial data is still usable
            logger.warning("graphql_partial_errors", errors=messages)
        return data or {}
