"""Tests for the contribution summary strategies."""

from datetime import date, timedelta

from services.contributions import (
    CalendarStrategy,
    RepositoryStrategy,
    build_contribution_summary,
    busiest_weekday,
    calendar_current_streak,
    calendar_inactive_gaps,
    calendar_longest_streak,
    rank_months,
    repository_current_streak,
    repository_inactive_gaps,
    repository_longest_streak,
)
from services.models import CalendarDay, ContributionSource
from tests.factories import make_calendar, make_repo

TODAY = date(2025, 6, 15)


def _days(counts: dict[date, int]) -> list[CalendarDay]:
    return make_calendar(counts).days


class TestRankMonths:
    """Tests for rank_months."""

    def test_sorted_by_count_descending(self):
        ranked = rank_months({"2025-01": 5, "2025-02": 20, "2025-03": 10})
        assert [m.month for m in ranked] == ["2025-02", "2025-03", "2025-01"]
        assert [m.rank for m in ranked] == [1, 2, 3]

    def test_ties_are_chronological(self):
        ranked = rank_months({"2025-03": 7, "2025-01": 7})
        assert [m.month for m in ranked] == ["2025-01", "2025-03"]

    def test_empty(self):
        assert rank_months({}) == []


class TestCalendarStreaks:
    """Tests for calendar streak helpers."""

    def test_current_streak_ending_today(self):
        days = _days({TODAY - timedelta(days=i): 1 for i in range(3)})
        assert calendar_current_streak(days, TODAY) == 3

    def test_current_streak_zero_when_today_inactive(self):
        days = _days({TODAY - timedelta(days=1): 4, TODAY: 0})
        assert calendar_current_streak(days, TODAY) == 0

    def test_current_streak_stops_at_gap(self):
        days = _days({TODAY: 1, TODAY - timedelta(days=1): 1, TODAY - timedelta(days=3): 1})
        assert calendar_current_streak(days, TODAY) == 2

    def test_longest_streak(self):
        start = date(2025, 1, 1)
        counts = {start + timedelta(days=i): 1 for i in range(3)}
        counts[start + timedelta(days=3)] = 0
        counts.update({start + timedelta(days=4 + i): 2 for i in range(2)})
        assert calendar_longest_streak(_days(counts)) == 3

    def test_longest_streak_requires_adjacent_dates(self):
        """Missing calendar dates break a run even without a zero entry."""
        counts = {date(2025, 1, 1): 1, date(2025, 1, 3): 1, date(2025, 1, 4): 1}
        assert calendar_longest_streak(_days(counts)) == 2

    def test_longest_streak_unsorted_input(self):
        days = list(reversed(_days({date(2025, 1, d): 1 for d in range(1, 6)})))
        assert calendar_longest_streak(days) == 5

    def test_all_zero(self):
        assert calendar_longest_streak(_days({date(2025, 1, 1): 0})) == 0


class TestCalendarGapsAndWeekday:
    """Tests for calendar gaps and busiest weekday."""

    def test_gap_between_active_days(self):
        counts = {date(2025, 1, 1): 3, date(2025, 3, 15): 1}
        gaps = calendar_inactive_gaps(_days(counts))
        assert len(gaps) == 1
        assert gaps[0].duration_days == 73
        assert gaps[0].start.date() == date(2025, 1, 1)
        assert gaps[0].end.date() == date(2025, 3, 15)

    def test_sixty_days_is_not_a_gap(self):
        counts = {date(2025, 1, 1): 1, date(2025, 3, 2): 1}
        assert calendar_inactive_gaps(_days(counts)) == []

    def test_busiest_weekday(self):
        counts = {date(2025, 6, 9): 10, date(2025, 6, 10): 3}
        assert busiest_weekday(_days(counts)) == "Monday"

    def test_busiest_weekday_without_activity(self):
        assert busiest_weekday(_days({date(2025, 6, 9): 0})) == "N/A"


class TestCalendarStrategy:
    """Tests for CalendarStrategy.summarize."""

    def test_summary(self, now):
        counts = {TODAY - timedelta(days=i): 2 for i in range(4)}
        counts[date(2025, 5, 1)] = 12
        summary = CalendarStrategy().summarize(make_calendar(counts), now)

        assert summary.source == ContributionSource.CALENDAR
        assert summary.total_commits == 20
        assert summary.current_streak == 4
        assert summary.longest_streak == 4
        assert summary.average_commits_per_day == 4.0
        assert summary.busiest_month == "2025-05"
        assert summary.commits_by_month[0].count == 12
        assert summary.calendar is not None
        assert len(summary.calendar) == 5


class TestRepositoryStrategy:
    """Tests for the repository push-date fallback."""

    def test_current_streak_from_consecutive_pushes(self, now):
        repos = [make_repo(f"r{i}", pushed_days_ago=i) for i in range(3)]
        assert repository_current_streak(repos, now) == 3

    def test_current_streak_needs_recent_push(self, now):
        repos = [make_repo("old", pushed_days_ago=2)]
        assert repository_current_streak(repos, now) == 0

    def test_longest_streak(self):
        repos = [
            make_repo(name, pushed_days_ago=days)
            for name, days in [("a", 100), ("b", 99), ("c", 50), ("d", 49), ("e", 48)]
        ]
        assert repository_longest_streak(repos) == 3

    def test_longest_streak_same_day_pushes_extend(self):
        repos = [make_repo("a", pushed_days_ago=10), make_repo("b", pushed_days_ago=10)]
        assert repository_longest_streak(repos) == 2

    def test_longest_streak_empty(self):
        assert repository_longest_streak([]) == 0

    def test_gaps(self):
        repos = [make_repo("a", pushed_days_ago=200), make_repo("b", pushed_days_ago=100)]
        gaps = repository_inactive_gaps(repos)
        assert len(gaps) == 1
        assert gaps[0].duration_days == 100

    def test_summary(self, now):
        repos = [
            make_repo("a", created_days_ago=100, pushed_days_ago=0, commit_count=30),
            make_repo("b", created_days_ago=50, pushed_days_ago=40, commit_count=20),
        ]
        summary = RepositoryStrategy().summarize(repos, now)

        assert summary.source == ContributionSource.REPOSITORIES
        assert summary.total_commits == 50
        assert summary.average_commits_per_day == 0.5
        assert summary.busiest_day == "N/A"
        assert summary.busiest_month == "2025-06"
        assert summary.calendar is None

    def test_empty_repositories(self, now):
        summary = RepositoryStrategy().summarize([], now)
        assert summary.total_commits == 0
        assert summary.average_commits_per_day == 0
        assert summary.busiest_month == "N/A"


class TestBuildContributionSummary:
    """Tests for calendar-first strategy selection."""

    def test_uses_calendar_with_signal(self, now):
        calendar = make_calendar({TODAY: 3})
        summary = build_contribution_summary([make_repo()], calendar, now)
        assert summary.source == ContributionSource.CALENDAR

    def test_falls_back_without_calendar(self, now):
        summary = build_contribution_summary([make_repo()], None, now)
        assert summary.source == ContributionSource.REPOSITORIES

    def test_falls_back_on_all_zero_calendar(self, now):
        calendar = make_calendar({TODAY - timedelta(days=i): 0 for i in range(30)})
        summary = build_contribution_summary([make_repo(commit_count=7)], calendar, now)
        assert summary.source == ContributionSource.REPOSITORIES
        assert summary.total_commits == 7
