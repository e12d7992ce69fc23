"""Composite scores and profile-level classifications.

Scores are 0-100 integers. Every ratio is guarded against empty
repository lists here rather than left for the sanitizer to repair.

Degraded repositories stay in every denominator. Their uncomputed
fields read as health 0, no maturity stage and no documentation, so a
failed enrichment lowers the ratios instead of dropping out of them.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

from services.models import (
    ActivityPattern,
    ContributionSummary,
    DocumentationHabits,
    DocumentationQuality,
    MaturityStage,
    ProjectFocus,
    RepositoryResult,
    Skill,
)

DEV_SCORE_WEIGHTS = {
    "consistency": 0.4,
    "impact": 0.3,
    "quality": 0.3,
}

BACKEND_LANGUAGES = {"Java", "Python", "Go", "Ruby", "PHP", "C#", "Rust"}
FRONTEND_LANGUAGES = {"JavaScript", "TypeScript", "HTML", "CSS"}

LONG_GAP_DAYS = 60
COMEBACK_GAP_DAYS = 90


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _clamp_score(value: float) -> int:
    return max(0, min(round_half_up(value), 100))


def _count_stage(repositories: Sequence[RepositoryResult], *stages: MaturityStage) -> int:
    return sum(1 for r in repositories if r.maturity_stage in stages)


def consistency_score(
    contributions: ContributionSummary | None,
    repositories: Sequence[RepositoryResult] | None = None,
) -> int:
    """Streak length, daily commit rate and long-gap count (0-100).

    An empty repository list scores 0 regardless of the summary.
    """
    if contributions is None:
        return 0
    if repositories is not None and len(repositories) == 0:
        return 0

    score = 0.0

    # Streak analysis (40 points)
    score += min(contributions.longest_streak / 30, 1) * 40

    # Commit rate (30 points)
    average = contributions.average_commits_per_day
    if average > 5:
        score += 30
    elif average > 2:
        score += 20
    elif average > 0.5:
        score += 10

    # Gap analysis (30 points)
    long_gaps = sum(1 for g in contributions.inactive_gaps if g.duration_days > LONG_GAP_DAYS)
    score += {0: 30, 1: 20, 2: 10}.get(long_gaps, 0)

    return _clamp_score(score)


def impact_score(repositories: Sequence[RepositoryResult]) -> int:
    """Community traction, maturity distribution and average health (0-100)."""
    total = len(repositories)
    if total == 0:
        return 0

    score = 0.0

    # Stars and forks (40 points)
    total_stars = sum(r.stars for r in repositories)
    total_forks = sum(r.forks for r in repositories)
    score += min(total_stars / 100, 1) * 30
    score += min(total_forks / 50, 1) * 10

    # Maturity distribution (30 points)
    active = _count_stage(repositories, MaturityStage.ACTIVE)
    stable = _count_stage(repositories, MaturityStage.STABLE)
    score += min((active + stable * 2) / total, 1) * 30

    # Average health (30 points)
    average_health = sum(r.health_score or 0 for r in repositories) / total
    score += (average_health / 100) * 30

    return _clamp_score(score)


def quality_score(repositories: Sequence[RepositoryResult]) -> int:
    """README coverage, license coverage and completion rate (0-100)."""
    total = len(repositories)
    if total == 0:
        return 0

    with_readme = sum(1 for r in repositories if r.has_readme)
    with_license = sum(1 for r in repositories if r.has_license)
    completed = _count_stage(repositories, MaturityStage.ACTIVE, MaturityStage.STABLE)

    score = (
        (with_readme / total) * 50
        + (with_license / total) * 25
        + (completed / total) * 25
    )
    return _clamp_score(score)


def dev_score(consistency: int, impact: int, quality: int) -> int:
    """Headline score: fixed 40/30/30 blend of the three composites."""
    return round_half_up(
        consistency * DEV_SCORE_WEIGHTS["consistency"]
        + impact * DEV_SCORE_WEIGHTS["impact"]
        + quality * DEV_SCORE_WEIGHTS["quality"]
    )


def primary_tech_identity(skills: Sequence[Skill]) -> str:
    if not skills:
        return "General Developer"

    names = {skill.name for skill in skills}
    has_backend = bool(names & BACKEND_LANGUAGES)
    has_frontend = bool(names & FRONTEND_LANGUAGES)

    if has_backend and has_frontend:
        return "Full-Stack Developer"
    if has_backend:
        return "Backend Developer"
    if has_frontend:
        return "Frontend Developer"
    return f"{skills[0].name} Developer"


def activity_pattern(contributions: ContributionSummary | None) -> ActivityPattern:
    """Shape of the contribution history. First matching rule wins."""
    if contributions is None:
        return ActivityPattern.SPORADIC

    average = contributions.average_commits_per_day
    gaps = contributions.inactive_gaps

    if average > 1 and contributions.longest_streak > 30 and len(gaps) < 3:
        return ActivityPattern.CONSISTENT
    if average > 2 and len(gaps) >= 3:
        return ActivityPattern.BURST
    if gaps and contributions.current_streak > 7 and gaps[-1].duration_days > COMEBACK_GAP_DAYS:
        return ActivityPattern.COMEBACK
    return ActivityPattern.SPORADIC


def project_focus(repositories: Sequence[RepositoryResult]) -> ProjectFocus:
    live = [
        r
        for r in repositories
        if r.maturity_stage in (MaturityStage.ACTIVE, MaturityStage.STABLE)
    ]
    if not live:
        return ProjectFocus.BALANCED

    average_commits = sum(r.commit_count for r in live) / len(live)
    if len(live) <= 5 and average_commits > 50:
        return ProjectFocus.DEEP
    if len(live) > 15:
        return ProjectFocus.BROAD
    return ProjectFocus.BALANCED


def documentation_habits(repositories: Sequence[RepositoryResult]) -> DocumentationHabits:
    if not repositories:
        return DocumentationHabits.POOR

    documented = sum(
        1
        for r in repositories
        if r.documentation_quality not in (None, DocumentationQuality.NONE)
    )
    ratio = documented / len(repositories)

    if ratio > 0.8:
        return DocumentationHabits.EXCELLENT
    if ratio > 0.5:
        return DocumentationHabits.GOOD
    if ratio > 0.2:
        return DocumentationHabits.INCONSISTENT
    return DocumentationHabits.POOR
