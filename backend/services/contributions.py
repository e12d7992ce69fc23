"""Contribution summary: streaks, gaps and monthly totals.

Two independent strategies produce the same ContributionSummary shape:

- CalendarStrategy: per-day counts from the GraphQL contribution
  calendar. Accurate; used whenever the calendar has any activity.
- RepositoryStrategy: repository push dates only. A streak here means
  "some repository was pushed on each adjacent day", so its length is
  bounded by the repository count. Used when the calendar is missing
  or empty.

The two are not expected to agree numerically.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Sequence
from datetime import UTC, date, datetime, time, timedelta

from app.logging_config import get_logger
from app.metrics import CONTRIBUTION_SOURCE
from services.date_utils import days_between, start_of_day
from services.models import (
    CalendarDay,
    ContributionCalendar,
    ContributionSource,
    ContributionSummary,
    InactiveGap,
    MonthlyCommits,
    RepositoryResult,
)

logger = get_logger(__name__)

INACTIVE_GAP_DAYS = 60
WEEKDAY_NAMES = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)


def rank_months(month_totals: dict[str, int]) -> list[MonthlyCommits]:
    """Sort ``YYYY-MM`` totals by count (desc), not chronologically.

    Rank 1 is the busiest month. Ties keep chronological order.
    """
    ordered = sorted(month_totals.items(), key=lambda item: (-item[1], item[0]))
    return [
        MonthlyCommits(month=month, count=count, rank=index)
        for index, (month, count) in enumerate(ordered, start=1)
    ]


def _midnight(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=UTC)


# --- Calendar strategy ---


def calendar_current_streak(days: Iterable[CalendarDay], today: date) -> int:
    """Consecutive active days ending today.

    Walks backward from ``today``; a zero or missing day stops the walk.
    """
    counts = {day.date: day.count for day in days}
    streak = 0
    cursor = today
    while counts.get(cursor, 0) > 0:
        streak += 1
        cursor -= timedelta(days=1)
    return streak


def calendar_longest_streak(days: Iterable[CalendarDay]) -> int:
    """Longest run of chronologically adjacent days with count > 0."""
    longest = 0
    running = 0
    previous_active: date | None = None

    for day in sorted(days, key=lambda d: d.date):
        if day.count <= 0:
            running = 0
            continue
        if previous_active is not None and (day.date - previous_active).days == 1:
            running += 1
        else:
            running = 1
        previous_active = day.date
        longest = max(longest, running)

    return longest


def calendar_inactive_gaps(days: Iterable[CalendarDay]) -> list[InactiveGap]:
    """Gaps of more than 60 days between consecutive active calendar days."""
    active = sorted(day.date for day in days if day.count > 0)
    gaps = []
    for earlier, later in zip(active, active[1:]):
        duration = (later - earlier).days
        if duration > INACTIVE_GAP_DAYS:
            gaps.append(
                InactiveGap(start=_midnight(earlier), end=_midnight(later), duration_days=duration)
            )
    return gaps


def busiest_weekday(days: Iterable[CalendarDay]) -> str:
    totals = [0] * 7
    for day in days:
        totals[day.date.weekday()] += day.count
    if not any(totals):
        return "N/A"
    return WEEKDAY_NAMES[totals.index(max(totals))]


class CalendarStrategy:
    """Builds the summary from daily contribution counts."""

    source = ContributionSource.CALENDAR

    def summarize(self, calendar: ContributionCalendar, now: datetime) -> ContributionSummary:
        days = sorted(calendar.days, key=lambda d: d.date)
        total = sum(day.count for day in days)

        month_totals: dict[str, int] = defaultdict(int)
        for day in days:
            month_totals[day.date.strftime("%Y-%m")] += day.count
        commits_by_month = rank_months(month_totals)

        average = total / len(days) if days else 0.0

        return ContributionSummary(
            source=self.source,
            total_commits=total,
            commits_by_month=commits_by_month,
            longest_streak=calendar_longest_streak(days),
            current_streak=calendar_current_streak(days, start_of_day(now).date()),
            average_commits_per_day=round(average, 2),
            busiest_day=busiest_weekday(days),
            busiest_month=commits_by_month[0].month if commits_by_month else "N/A",
            inactive_gaps=calendar_inactive_gaps(days),
            calendar=days,
        )


# --- Repository strategy ---


def repository_current_streak(repositories: Sequence[RepositoryResult], now: datetime) -> int:
    """Streak over repository pushes, newest first.

    Seeded only when the latest push was at most one day ago, then
    extended while each next-older push is exactly one day earlier.
    """
    ordered = sorted(repositories, key=lambda r: r.pushed_at, reverse=True)
    if not ordered or days_between(ordered[0].pushed_at, now) > 1:
        return 0

    streak = 1
    for newer, older in zip(ordered, ordered[1:]):
        if days_between(newer.pushed_at, older.pushed_at) != 1:
            break
        streak += 1
    return streak


def repository_longest_streak(repositories: Sequence[RepositoryResult]) -> int:
    """Longest chain of repositories whose adjacent pushes are at most a day apart."""
    ordered = sorted(repositories, key=lambda r: r.pushed_at)
    if not ordered:
        return 0

    longest = running = 1
    for earlier, later in zip(ordered, ordered[1:]):
        if days_between(earlier.pushed_at, later.pushed_at) <= 1:
            running += 1
        else:
            running = 1
        longest = max(longest, running)
    return longest


def repository_inactive_gaps(repositories: Sequence[RepositoryResult]) -> list[InactiveGap]:
    """Adjacent pushes (ascending) more than 60 days apart."""
    ordered = sorted(repositories, key=lambda r: r.pushed_at)
    gaps = []
    for earlier, later in zip(ordered, ordered[1:]):
        duration = days_between(earlier.pushed_at, later.pushed_at)
        if duration > INACTIVE_GAP_DAYS:
            gaps.append(
                InactiveGap(start=earlier.pushed_at, end=later.pushed_at, duration_days=duration)
            )
    return gaps


class RepositoryStrategy:
    """Approximates the summary from repository push dates and commit counts."""

    source = ContributionSource.REPOSITORIES

    def summarize(
        self, repositories: Sequence[RepositoryResult], now: datetime
    ) -> ContributionSummary:
        total = sum(repo.commit_count for repo in repositories)

        # Whole-repo commit counts land in the month of the last push
        month_totals: dict[str, int] = defaultdict(int)
        for repo in repositories:
            month_totals[repo.pushed_at.strftime("%Y-%m")] += repo.commit_count
        commits_by_month = rank_months(month_totals)

        oldest = min((repo.created_at for repo in repositories), default=now)
        oldest = min(oldest, now)
        days_since_start = days_between(oldest, now)
        average = total / days_since_start if days_since_start > 0 else 0.0

        return ContributionSummary(
            source=self.source,
            total_commits=total,
            commits_by_month=commits_by_month,
            longest_streak=repository_longest_streak(repositories),
            current_streak=repository_current_streak(repositories, now),
            average_commits_per_day=round(average, 2),
            busiest_day="N/A",
            busiest_month=commits_by_month[0].month if commits_by_month else "N/A",
            inactive_gaps=repository_inactive_gaps(repositories),
            calendar=None,
        )


def build_contribution_summary(
    repositories: Sequence[RepositoryResult],
    calendar: ContributionCalendar | None,
    now: datetime,
) -> ContributionSummary:
    """Calendar first; repository fallback when the calendar has no activity."""
    if calendar is not None and calendar.has_signal:
        summary = CalendarStrategy().summarize(calendar, now)
    else:
        logger.info(
            "contribution_calendar_unavailable",
            calendar_present=calendar is not None,
            repo_count=len(repositories),
        )
        summary = RepositoryStrategy().summarize(repositories, now)

    CONTRIBUTION_SOURCE.labels(source=summary.source.value).inc()
    return summary
