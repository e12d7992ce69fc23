"""Tests for the prompt builder."""

import pytest

from services.models import (
    ActivityPattern,
    ContributionSource,
    ContributionSummary,
    DocumentationHabits,
    Metrics,
    ProjectFocus,
    Skill,
    SkillLevel,
)
from services.prompt_builder import PromptBuilder
from tests.factories import FIXED_NOW, make_repo, make_result


def _skill(name: str, rank: int) -> Skill:
    return Skill(
        name=name,
        total_bytes=10_000 - rank,
        evidence_count=1,
        first_used=FIXED_NOW,
        last_used=FIXED_NOW,
        level=SkillLevel.ADVANCED,
        rank=rank,
    )


@pytest.fixture
def builder() -> PromptBuilder:
    return PromptBuilder()


@pytest.fixture
def result():
    repos = [
        make_repo("api", created_days_ago=100),
        make_repo("docs-missing", has_readme=False, created_days_ago=300),
        make_repo("stale", has_readme=False, pushed_days_ago=400, created_days_ago=500),
    ]
    return make_result(
        repos,
        username="octocat",
        contributions=ContributionSummary(
            source=ContributionSource.CALENDAR,
            total_commits=321,
            longest_streak=12,
            current_streak=3,
        ),
        metrics=Metrics(
            consistency_score=64,
            impact_score=41,
            primary_tech_identity="Backend Developer",
            activity_pattern=ActivityPattern.CONSISTENT,
            project_focus=ProjectFocus.DEEP,
            documentation_habits=DocumentationHabits.INCONSISTENT,
            skills=[_skill(n, i + 1) for i, n in enumerate(["Go", "Python", "SQL", "Shell"])],
        ),
    )


class TestPromptBuilder:
    """Test suite for PromptBuilder."""

    def test_repo_summary(self, builder):
        repo = make_repo("api", description="REST API", languages={"Go": 900})
        prompt = builder.build_repo_summary_prompt(repo)

        assert "Repository: api" in prompt
        assert "Description: REST API" in prompt
        assert 'Languages: {"Go": 900}' in prompt
        assert "Commit count: 20" in prompt
        assert f"Last commit: {repo.pushed_at.date().isoformat()}" in prompt

    def test_repo_summary_defaults(self, builder):
        repo = make_repo("bare", has_readme=False)
        prompt = builder.build_repo_summary_prompt(repo)

        assert "Description: No description" in prompt
        assert "README (first 500 words): No README" in prompt

    def test_developer_insight_uses_top_three_skills(self, builder, result):
        prompt = builder.build_developer_insight_prompt(result)

        assert "Developer: octocat" in prompt
        assert "Total repos: 3" in prompt
        assert "Active repos: 2" in prompt
        assert "Primary languages: Go, Python, SQL" in prompt
        assert "Shell" not in prompt
        assert "Documentation quality: inconsistent" in prompt
        assert "Activity pattern: consistent" in prompt

    def test_activity_narrative(self, builder, result):
        prompt = builder.build_activity_narrative_prompt(result)

        assert "Total commits: 321" in prompt
        assert "Longest streak: 12 days" in prompt
        assert "Current streak: 3 days" in prompt
        assert "Inactive gaps: 0 gaps" in prompt

    def test_growth_actions_skip_abandoned(self, builder, result):
        prompt = builder.build_growth_actions_prompt(result)

        assert "Projects without README: docs-missing" in prompt
        assert "stale" not in prompt
        assert "Abandoned projects: 1" in prompt

    def test_growth_actions_none_missing(self, builder):
        prompt = builder.build_growth_actions_prompt(make_result([make_repo()]))
        assert "Projects without README: None" in prompt

    def test_archetype(self, builder, result):
        prompt = builder.build_archetype_prompt(result)

        assert "Project count: 3" in prompt
        assert "Average project lifespan: 300 days" in prompt
        assert "Primary tech: Backend Developer" in prompt

    def test_archetype_without_repositories(self, builder):
        prompt = builder.build_archetype_prompt(make_result())
        assert "Average project lifespan: 0 days" in prompt

    def test_comparison(self, builder, result):
        other = make_result(username="hubot", metrics=Metrics(project_focus=ProjectFocus.BROAD))
        prompt = builder.build_comparison_prompt(result, other)

        assert "Developer A (octocat):" in prompt
        assert "Developer B (hubot):" in prompt
        assert "- Focus: deep" in prompt
        assert "- Focus: broad" in prompt
        assert prompt.index("Developer A") < prompt.index("Developer B")
