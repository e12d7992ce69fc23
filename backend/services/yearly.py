"""Per-year breakdown over a fixed trailing window of years."""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from datetime import datetime

from services.contributions import calendar_longest_streak
from services.models import ContributionSummary, RepositoryResult, YearBucket

DEFAULT_YEAR_WINDOW = 4
# A clock reading 2026 is reported as 2025. Set DEVINTEL_REFERENCE_YEAR
# (or pass reference_year) to anchor the window explicitly.
PINNED_YEARS = {2026: 2025}

MONTH_KEYS = tuple(f"{m:02d}" for m in range(1, 13))


def resolve_reference_year(now: datetime, override: int | None = None) -> int:
    """Last year of the window: the override if given, else the (pinned) current year."""
    if override is not None:
        return override
    return PINNED_YEARS.get(now.year, now.year)


def year_window(reference_year: int, window: int = DEFAULT_YEAR_WINDOW) -> list[int]:
    return list(range(reference_year - window + 1, reference_year + 1))


def yearly_breakdown(
    repositories: Sequence[RepositoryResult],
    contributions: ContributionSummary,
    now: datetime,
    *,
    reference_year: int | None = None,
    window: int = DEFAULT_YEAR_WINDOW,
) -> list[YearBucket]:
    """Bucket repositories and commits into years, oldest first.

    Commits come from the daily calendar when one was used. Otherwise each
    repository's lifetime commit count is attributed to its creation year
    and month, a coarse approximation.
    """
    years = year_window(resolve_reference_year(now, reference_year), window)
    in_window = set(years)

    repo_counts: Counter[int] = Counter()
    stars: Counter[int] = Counter()
    languages: dict[int, Counter[str]] = {year: Counter() for year in years}
    monthly: dict[int, dict[str, int]] = {year: dict.fromkeys(MONTH_KEYS, 0) for year in years}

    for repo in repositories:
        year = repo.created_at.year
        if year not in in_window:
            continue
        repo_counts[year] += 1
        stars[year] += repo.stars
        if repo.language:
            languages[year][repo.language] += 1

    calendar = contributions.calendar or []
    if calendar:
        for day in calendar:
            if day.date.year in in_window:
                monthly[day.date.year][f"{day.date.month:02d}"] += day.count
    else:
        for repo in repositories:
            year = repo.created_at.year
            if year in in_window:
                monthly[year][f"{repo.created_at.month:02d}"] += repo.commit_count

    buckets = []
    for year in years:
        top = languages[year].most_common(1)
        year_days = [day for day in calendar if day.date.year == year]
        buckets.append(
            YearBucket(
                year=year,
                repos=repo_counts[year],
                commits=sum(monthly[year].values()),
                stars=stars[year],
                top_language=top[0][0] if top else None,
                best_streak=calendar_longest_streak(year_days),
                monthly_commits=monthly[year],
            )
        )
    return buckets
