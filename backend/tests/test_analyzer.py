"""Tests for the analysis orchestrator."""

import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock, patch

import pytest

from app.exceptions import GitHubRateLimitError, GitHubUserNotFoundError, ValidationError
from services.analyzer import GitHubAnalyzer, analyze_github_user, validate_username
from services.models import (
    ActivityPattern,
    AnalyzedRepository,
    ContributionSource,
    DegradedRepository,
    DocumentationHabits,
    ReadmeInfo,
)
from tests.factories import FIXED_NOW, FakeFetcher, make_calendar, make_raw_repo


def _analyzer(fetcher, settings):
    return GitHubAnalyzer(fetcher, settings=settings, clock=lambda: FIXED_NOW)


class SlowCommitCountFetcher(FakeFetcher):
    """Commit counts take a while; records whether each call finished or was cancelled."""

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self.commit_calls_finished = 0
        self.commit_calls_cancelled = 0

    async def fetch_repo_commit_count(self, owner: str, repo: str) -> int:
        try:
            await asyncio.sleep(0.05)
        except asyncio.CancelledError:
            self.commit_calls_cancelled += 1
            raise
        self.commit_calls_finished += 1
        return 20


class TestValidateUsername:
    """Tests for username validation."""

    def test_strips_whitespace(self):
        assert validate_username("  octocat ") == "octocat"

    @pytest.mark.parametrize("username", ["", "   ", "-bad", "bad-", "a b", "x" * 40])
    def test_rejects_invalid(self, username):
        with pytest.raises(ValidationError):
            validate_username(username)


class TestGitHubAnalyzer:
    """Test suite for GitHubAnalyzer.analyze."""

    @pytest.mark.asyncio
    async def test_full_analysis(self, test_settings):
        repos = [
            make_raw_repo("api", language="Python", stars=12, has_license=True),
            make_raw_repo("web", language="TypeScript", pushed_days_ago=1),
        ]
        fetcher = FakeFetcher(
            repositories=repos,
            languages={"api": {"Python": 30_000}, "web": {"TypeScript": 8_000, "CSS": 500}},
            commit_counts={"api": 120, "web": 15},
        )

        result = await _analyzer(fetcher, test_settings).analyze("octocat")

        assert result.username == "octocat"
        assert result.analyzed_at == FIXED_NOW
        assert [r.name for r in result.repositories] == ["api", "web"]
        assert all(isinstance(r, AnalyzedRepository) for r in result.repositories)
        assert result.repositories[0].languages == {"Python": 30_000}
        assert result.contributions.source == ContributionSource.REPOSITORIES
        assert result.contributions.total_commits == 135
        assert result.metrics.primary_tech_identity == "Full-Stack Developer"
        assert [s.name for s in result.metrics.skills] == ["Python", "TypeScript", "CSS"]
        assert 0 <= result.metrics.dev_score <= 100
        assert [b.year for b in result.yearly_breakdown] == [2022, 2023, 2024, 2025]

    @pytest.mark.asyncio
    async def test_forks_dropped_and_capped(self, test_settings):
        test_settings.max_repositories = 3
        repos = [make_raw_repo("fork", is_fork=True)] + [
            make_raw_repo(f"r{i}") for i in range(5)
        ]
        fetcher = FakeFetcher(repositories=repos)

        result = await _analyzer(fetcher, test_settings).analyze("octocat")

        assert [r.name for r in result.repositories] == ["r0", "r1", "r2"]
        assert "fork" not in fetcher.enriched

    @pytest.mark.asyncio
    async def test_order_preserved_across_batches(self, test_settings):
        test_settings.repo_batch_size = 2
        names = [f"r{i}" for i in range(7)]
        fetcher = FakeFetcher(repositories=[make_raw_repo(n) for n in names])

        with patch("services.analyzer.asyncio.sleep", new=AsyncMock()) as sleep:
            result = await _analyzer(fetcher, test_settings).analyze("octocat")

        assert [r.name for r in result.repositories] == names
        # 4 batches, a pause between each pair
        assert sleep.await_count == 3

    @pytest.mark.asyncio
    async def test_repository_failure_degrades(self, test_settings):
        repos = [make_raw_repo("good"), make_raw_repo("bad", stars=7), make_raw_repo("fine")]
        fetcher = FakeFetcher(repositories=repos, failing_repos={"bad"})

        result = await _analyzer(fetcher, test_settings).analyze("octocat")

        statuses = [r.status for r in result.repositories]
        assert statuses == ["analyzed", "degraded", "analyzed"]
        degraded = result.repositories[1]
        assert isinstance(degraded, DegradedRepository)
        assert degraded.stars == 7
        assert degraded.commit_count == 0
        assert degraded.has_readme is False
        assert degraded.health_score is None
        assert degraded.maturity_stage is None
        assert "languages unavailable" in degraded.error

    @pytest.mark.asyncio
    async def test_failed_repository_cancels_sibling_fetches(self, test_settings):
        """A failing sub-fetch cancels the others instead of leaving them running."""
        fetcher = SlowCommitCountFetcher(
            repositories=[make_raw_repo("bad")],
            failing_repos={"bad"},
        )

        result = await _analyzer(fetcher, test_settings).analyze("octocat")

        assert result.repositories[0].status == "degraded"
        assert result.repositories[0].error == "languages unavailable for bad"
        assert fetcher.commit_calls_cancelled == 1

        await asyncio.sleep(0.1)
        assert fetcher.commit_calls_finished == 0

    @pytest.mark.asyncio
    async def test_calendar_used_when_active(self, test_settings):
        today = FIXED_NOW.date()
        calendar = make_calendar({today - timedelta(days=i): 3 for i in range(10)})
        fetcher = FakeFetcher(repositories=[make_raw_repo("a")], calendar=calendar)

        result = await _analyzer(fetcher, test_settings).analyze("octocat")

        assert result.contributions.source == ContributionSource.CALENDAR
        assert result.contributions.current_streak == 10
        assert result.contributions.total_commits == 30

    @pytest.mark.asyncio
    async def test_calendar_failure_falls_back(self, test_settings):
        fetcher = FakeFetcher(
            repositories=[make_raw_repo("a")],
            calendar_error=RuntimeError("graphql down"),
        )

        result = await _analyzer(fetcher, test_settings).analyze("octocat")

        assert result.contributions.source == ContributionSource.REPOSITORIES
        assert result.contributions.calendar is None

    @pytest.mark.asyncio
    async def test_no_repositories(self, test_settings):
        result = await _analyzer(FakeFetcher(), test_settings).analyze("octocat")

        assert result.repositories == []
        assert result.metrics.consistency_score == 0
        assert result.metrics.impact_score == 0
        assert result.metrics.quality_score == 0
        assert result.metrics.dev_score == 0
        assert result.metrics.activity_pattern == ActivityPattern.SPORADIC
        assert result.metrics.primary_tech_identity == "General Developer"
        assert result.metrics.skills == []
        assert result.metrics.documentation_habits == DocumentationHabits.POOR

    @pytest.mark.asyncio
    async def test_profile_failure_propagates(self, test_settings):
        fetcher = FakeFetcher()
        fetcher.fetch_user_profile = AsyncMock(side_effect=GitHubUserNotFoundError("ghost"))

        with pytest.raises(GitHubUserNotFoundError):
            await _analyzer(fetcher, test_settings).analyze("ghost")

    @pytest.mark.asyncio
    async def test_repository_list_failure_propagates(self, test_settings):
        fetcher = FakeFetcher()
        fetcher.fetch_user_repositories = AsyncMock(side_effect=GitHubRateLimitError(60))

        with pytest.raises(GitHubRateLimitError):
            await _analyzer(fetcher, test_settings).analyze("octocat")

    @pytest.mark.asyncio
    async def test_empty_username_rejected_before_fetch(self, test_settings):
        fetcher = FakeFetcher()
        fetcher.fetch_user_profile = AsyncMock()

        with pytest.raises(ValidationError):
            await _analyzer(fetcher, test_settings).analyze("")
        fetcher.fetch_user_profile.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_repeat_runs_identical(self, test_settings):
        repos = [make_raw_repo("a"), make_raw_repo("b", pushed_days_ago=300)]
        readmes = {"b": ReadmeInfo()}

        first = await _analyzer(FakeFetcher(repositories=repos, readmes=readmes), test_settings).analyze("octocat")
        second = await _analyzer(FakeFetcher(repositories=repos, readmes=readmes), test_settings).analyze("octocat")

        assert first.model_dump() == second.model_dump()


class TestAnalyzeGitHubUser:
    """Tests for the module-level entry point."""

    @pytest.mark.asyncio
    async def test_with_fetcher_and_fixed_clock(self):
        fetcher = FakeFetcher(repositories=[make_raw_repo("a")])

        result = await analyze_github_user("octocat", fetcher, now=FIXED_NOW, reference_year=2024)

        assert result.analyzed_at == FIXED_NOW
        assert result.yearly_breakdown[-1].year == 2024
