"""Analysis orchestrator.

Sequences one analysis run:

fetch profile -> fetch repositories -> per-repository enrichment (batched)
-> contribution summary -> skills -> scores and labels -> yearly breakdown
-> sanitizer.

Only this module does I/O; every derivation step is a pure function of
the fetched snapshot and the injected clock.
"""

from __future__ import annotations

import asyncio
import re
import time
from collections.abc import Callable, Sequence
from datetime import datetime
from typing import Protocol

from app.config import Settings, get_settings
from app.exceptions import ValidationError
from app.logging_config import analysis_context, get_logger
from app.metrics import ACTIVITY_PATTERNS_ASSIGNED, ANALYSIS_DURATION, REPOSITORIES_DEGRADED
from services import scoring
from services.contributions import build_contribution_summary
from services.date_utils import ensure_utc, utc_now
from services.models import (
    AnalysisResult,
    ContributionCalendar,
    DegradedRepository,
    Metrics,
    Profile,
    RawRepository,
    ReadmeInfo,
    RepositoryResult,
)
from services.repo_classifier import analyze_repository
from services.skills import infer_skills, language_statistics
from services.validator import validate_result
from services.yearly import yearly_breakdown

logger = get_logger(__name__)

USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9]([a-zA-Z0-9-]*[a-zA-Z0-9])?$")
MAX_USERNAME_LENGTH = 39


class GitHubFetcher(Protocol):
    """Source of the raw inputs of an analysis."""

    async def fetch_user_profile(self, username: str) -> Profile: ...

    async def fetch_user_repositories(self, username: str) -> list[RawRepository]: ...

    async def fetch_repo_languages(self, owner: str, repo: str) -> dict[str, int]: ...

    async def fetch_repo_readme(self, owner: str, repo: str) -> ReadmeInfo: ...

    async def fetch_repo_commit_count(self, owner: str, repo: str) -> int: ...

    async def fetch_contribution_calendar(self, username: str) -> ContributionCalendar | None: ...


def validate_username(username: str) -> str:
    """Strip and check a GitHub login; raise ValidationError if malformed."""
    candidate = (username or "").strip()
    if not candidate:
        raise ValidationError("GitHub username is required")
    if len(candidate) > MAX_USERNAME_LENGTH or not USERNAME_PATTERN.match(candidate):
        raise ValidationError(
            "Invalid GitHub username",
            details={"username": candidate},
        )
    return candidate


class GitHubAnalyzer:
    """Runs the full analysis for one user against a fetcher."""

    def __init__(
        self,
        fetcher: GitHubFetcher,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.fetcher = fetcher
        self.settings = settings or get_settings()
        self.clock = clock

    async def analyze(self, username: str, *, reference_year: int | None = None) -> AnalysisResult:
        """Analyze a GitHub user.

        Profile and repository-list failures propagate. A failure while
        enriching one repository yields a DegradedRepository for it; a
        calendar failure falls back to repository push dates.
        """
        username = validate_username(username)
        with analysis_context():
            return await self._run(username, reference_year)

    async def _run(self, username: str, reference_year: int | None) -> AnalysisResult:
        started = time.perf_counter()
        now = ensure_utc(self.clock())

        profile = await self.fetcher.fetch_user_profile(username)
        fetched = await self.fetcher.fetch_user_repositories(username)
        repositories = [r for r in fetched if not r.is_fork][: self.settings.max_repositories]

        logger.info(
            "analysis_started",
            repo_count=len(repositories),
            forks_skipped=sum(1 for r in fetched if r.is_fork),
        )

        analyzed = await self._analyze_repositories(username, repositories, now)
        calendar = await self._fetch_calendar(username)

        contributions = build_contribution_summary(analyzed, calendar, now)
        skills = infer_skills(analyzed, now)

        consistency = scoring.consistency_score(contributions, analyzed)
        impact = scoring.impact_score(analyzed)
        quality = scoring.quality_score(analyzed)
        pattern = scoring.activity_pattern(contributions)
        ACTIVITY_PATTERNS_ASSIGNED.labels(pattern=pattern.value).inc()

        metrics = Metrics(
            dev_score=scoring.dev_score(consistency, impact, quality),
            consistency_score=consistency,
            impact_score=impact,
            quality_score=quality,
            primary_tech_identity=scoring.primary_tech_identity(skills),
            activity_pattern=pattern,
            project_focus=scoring.project_focus(analyzed),
            documentation_habits=scoring.documentation_habits(analyzed),
            skills=skills,
            language_stats=language_statistics(analyzed),
        )

        result = AnalysisResult(
            username=username,
            profile=profile,
            repositories=analyzed,
            contributions=contributions,
            metrics=metrics,
            yearly_breakdown=yearly_breakdown(
                analyzed,
                contributions,
                now,
                reference_year=(
                    reference_year
                    if reference_year is not None
                    else self.settings.reference_year
                ),
                window=self.settings.year_window,
            ),
            analyzed_at=now,
        )

        report = validate_result(result)
        if not report.valid:
            logger.warning("analysis_result_sanitized", errors=report.errors)
            result = AnalysisResult.model_validate(report.sanitized)

        duration = time.perf_counter() - started
        ANALYSIS_DURATION.observe(duration)
        logger.info(
            "analysis_complete",
            duration=f"{duration:.2f}s",
            dev_score=result.metrics.dev_score,
            degraded=sum(1 for r in analyzed if r.status == "degraded"),
            contribution_source=contributions.source.value,
        )
        return result

    async def _analyze_repositories(
        self,
        owner: str,
        repositories: Sequence[RawRepository],
        now: datetime,
    ) -> list[RepositoryResult]:
        """Enrich repositories in fixed-size batches, preserving input order."""
        batch_size = self.settings.repo_batch_size
        results: list[RepositoryResult] = []

        for offset in range(0, len(repositories), batch_size):
            if offset:
                await asyncio.sleep(self.settings.repo_batch_delay_seconds)
            batch = repositories[offset : offset + batch_size]
            results.extend(
                await asyncio.gather(*(self._analyze_one(owner, repo, now) for repo in batch))
            )

        return results

    async def _analyze_one(self, owner: str, raw: RawRepository, now: datetime) -> RepositoryResult:
        """Enrich and classify one repository; any failure degrades it.

        The three sub-fetches share a TaskGroup, so the first failure
        cancels the others before the next batch starts.
        """
        try:
            async with asyncio.TaskGroup() as tg:
                languages = tg.create_task(self.fetcher.fetch_repo_languages(owner, raw.name))
                readme = tg.create_task(self.fetcher.fetch_repo_readme(owner, raw.name))
                commit_count = tg.create_task(
                    self.fetcher.fetch_repo_commit_count(owner, raw.name)
                )
            enriched = RawRepository.model_validate(
                {**raw.model_dump(), "languages": languages.result()}
            )
            return analyze_repository(enriched, readme.result(), commit_count.result(), now)
        except Exception as error:
            exc = error.exceptions[0] if isinstance(error, ExceptionGroup) else error
            REPOSITORIES_DEGRADED.inc()
            logger.warning("repository_analysis_failed", repo=raw.name, error=str(exc))
            return DegradedRepository(**raw.model_dump(), error=str(exc))

    async def _fetch_calendar(self, username: str) -> ContributionCalendar | None:
        try:
            return await self.fetcher.fetch_contribution_calendar(username)
        except Exception as exc:
            logger.warning("contribution_calendar_fetch_failed", error=str(exc))
            return None


async def analyze_github_user(
    username: str,
    fetcher: GitHubFetcher | None = None,
    *,
    now: datetime | None = None,
    reference_year: int | None = None,
) -> AnalysisResult:
    """Analyze ``username`` with the REST/GraphQL fetcher unless one is given.

    ``now`` pins the clock for the whole run.
    """
    if fetcher is None:
        from services.github_service import GitHubService

        fetcher = GitHubService()

    clock = (lambda: now) if now is not None else utc_now
    analyzer = GitHubAnalyzer(fetcher, clock=clock)
    return await analyzer.analyze(username, reference_year=reference_year)
