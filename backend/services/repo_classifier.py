"""Per-repository classifiers.

Pure functions over one repository's fields. Every recency rule takes
an explicit ``now`` so results are deterministic under test.
"""

from __future__ import annotations

from datetime import datetime

from services.date_utils import days_between
from services.models import (
    AnalyzedRepository,
    CommitFrequency,
    DocumentationQuality,
    MaturityStage,
    RawRepository,
    ReadmeInfo,
)

# Health score tiers: (max days since push, points)
RECENCY_TIERS = ((30, 30), (90, 20), (180, 10))
FREQUENCY_POINTS = {
    CommitFrequency.DAILY: 20,
    CommitFrequency.WEEKLY: 15,
    CommitFrequency.MONTHLY: 10,
}

ABANDONED_AFTER_DAYS = 180
IDEA_MAX_AGE_DAYS = 30
IDEA_MAX_COMMITS = 10
ACTIVE_WITHIN_DAYS = 30
STABLE_MIN_AGE_DAYS = 180
STABLE_MIN_COMMITS = 50


def commit_frequency(days_since_push: int, commit_count: int) -> CommitFrequency:
    if commit_count == 0:
        return CommitFrequency.NONE
    if days_since_push < 7 and commit_count > 10:
        return CommitFrequency.DAILY
    if days_since_push < 30 and commit_count > 5:
        return CommitFrequency.WEEKLY
    if days_since_push < 90:
        return CommitFrequency.MONTHLY
    return CommitFrequency.SPORADIC


def maturity_stage(age_in_days: int, days_since_push: int, commit_count: int) -> MaturityStage:
    """Lifecycle stage. Rules are evaluated in order and the first match wins."""
    if days_since_push > ABANDONED_AFTER_DAYS:
        return MaturityStage.ABANDONED
    if age_in_days < IDEA_MAX_AGE_DAYS and commit_count < IDEA_MAX_COMMITS:
        return MaturityStage.IDEA
    if days_since_push < ACTIVE_WITHIN_DAYS:
        return MaturityStage.ACTIVE
    if age_in_days > STABLE_MIN_AGE_DAYS and commit_count > STABLE_MIN_COMMITS:
        return MaturityStage.STABLE
    return MaturityStage.ACTIVE


def documentation_quality(has_readme: bool, readme_length: int) -> DocumentationQuality:
    if not has_readme:
        return DocumentationQuality.NONE
    if readme_length < 200:
        return DocumentationQuality.BASIC
    if readme_length < 1000:
        return DocumentationQuality.GOOD
    return DocumentationQuality.EXCELLENT


def health_score(
    *,
    days_since_push: int,
    has_readme: bool,
    readme_length: int,
    stars: int,
    forks: int,
    frequency: CommitFrequency,
    has_license: bool,
) -> int:
    """Additive 0-100 freshness/quality score for one repository."""
    score = 0

    # Recent activity (30 points)
    for max_days, points in RECENCY_TIERS:
        if days_since_push < max_days:
            score += points
            break

    # Documentation (20 points)
    if has_readme:
        score += 10
    if readme_length > 500:
        score += 10

    # Community engagement (15 points)
    if stars > 10:
        score += 5
    if stars > 50:
        score += 5
    if forks > 5:
        score += 5

    # Commit consistency (20 points)
    score += FREQUENCY_POINTS.get(frequency, 0)

    # License (15 points)
    if has_license:
        score += 15

    return min(score, 100)


def analyze_repository(
    raw: RawRepository,
    readme: ReadmeInfo,
    commit_count: int,
    now: datetime,
) -> AnalyzedRepository:
    """Derive every per-repository field.

    ``age_in_days`` and days-since-push are computed once here and shared
    by all dependent classifiers.
    """
    age_in_days = days_between(raw.created_at, now)
    days_since_push = days_between(raw.pushed_at, now)

    frequency = commit_frequency(days_since_push, commit_count)
    stage = maturity_stage(age_in_days, days_since_push, commit_count)
    docs = documentation_quality(readme.has_readme, readme.readme_length)
    health = health_score(
        days_since_push=days_since_push,
        has_readme=readme.has_readme,
        readme_length=readme.readme_length,
        stars=raw.stars,
        forks=raw.forks,
        frequency=frequency,
        has_license=raw.has_license,
    )

    return AnalyzedRepository(
        **raw.model_dump(),
        has_readme=readme.has_readme,
        readme_length=readme.readme_length,
        readme_content=readme.readme_content,
        commit_count=commit_count,
        age_in_days=age_in_days,
        commit_frequency=frequency,
        maturity_stage=stage,
        documentation_quality=docs,
        health_score=health,
    )
