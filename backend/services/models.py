"""Typed data model for the analysis pipeline.

Every model is frozen. Scores are range-checked at construction and
counters repair NaN/negative input to 0, so no downstream consumer
ever sees a NaN or an unexplained negative number.
"""

from __future__ import annotations

import datetime as dt
import math
from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict, Field

from app.logging_config import get_logger
from services.date_utils import ensure_utc

logger = get_logger(__name__)


class CommitFrequency(str, Enum):
    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    SPORADIC = "sporadic"


class MaturityStage(str, Enum):
    IDEA = "idea"
    ACTIVE = "active"
    STABLE = "stable"
    ABANDONED = "abandoned"


class DocumentationQuality(str, Enum):
    NONE = "none"
    BASIC = "basic"
    GOOD = "good"
    EXCELLENT = "excellent"


class SkillLevel(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    EXPERT = "expert"


class ActivityPattern(str, Enum):
    CONSISTENT = "consistent"
    BURST = "burst"
    SPORADIC = "sporadic"
    COMEBACK = "comeback"


class ProjectFocus(str, Enum):
    DEEP = "deep"
    BROAD = "broad"
    BALANCED = "balanced"


class DocumentationHabits(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    INCONSISTENT = "inconsistent"
    POOR = "poor"


class ContributionSource(str, Enum):
    """Which strategy produced a ContributionSummary."""

    CALENDAR = "calendar"
    REPOSITORIES = "repositories"


def _repair_non_negative(value: Any) -> Any:
    """Coerce None, NaN, inf and negative numbers to 0."""
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return value
    if isinstance(value, float) and not math.isfinite(value):
        logger.warning("non_finite_value_repaired", value=str(value))
        return 0
    if value < 0:
        logger.warning("negative_value_repaired", value=value)
        return 0
    return value


Count = Annotated[int, BeforeValidator(_repair_non_negative)]
Amount = Annotated[float, BeforeValidator(_repair_non_negative)]
Score = Annotated[int, Field(ge=0, le=100)]
UTCDateTime = Annotated[dt.datetime, AfterValidator(ensure_utc)]


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class Profile(_Frozen):
    """Public GitHub user profile."""

    login: str
    name: str | None = None
    bio: str | None = None
    location: str | None = None
    company: str | None = None
    blog: str | None = None
    avatar_url: str | None = None
    followers: Count = 0
    following: Count = 0
    public_repos: Count = 0
    created_at: UTCDateTime | None = None


class RawRepository(_Frozen):
    """Repository as fetched from GitHub, before any derivation."""

    name: str
    description: str | None = None
    url: str | None = None
    stars: Count = 0
    forks: Count = 0
    watchers: Count = 0
    language: str | None = None
    languages: dict[str, Count] = Field(default_factory=dict)
    topics: list[str] = Field(default_factory=list)
    created_at: UTCDateTime
    updated_at: UTCDateTime
    pushed_at: UTCDateTime
    size: Count = 0
    has_license: bool = False
    is_archived: bool = False
    is_fork: bool = False


class ReadmeInfo(_Frozen):
    has_readme: bool = False
    readme_length: Count = 0
    readme_content: str = ""


class AnalyzedRepository(RawRepository):
    """Repository with every derived field computed."""

    status: Literal["analyzed"] = "analyzed"
    has_readme: bool = False
    readme_length: Count = 0
    readme_content: str = ""
    commit_count: Count = 0
    age_in_days: Count
    commit_frequency: CommitFrequency
    maturity_stage: MaturityStage
    documentation_quality: DocumentationQuality
    health_score: Score


class DegradedRepository(RawRepository):
    """Repository whose enrichment failed; derived fields were not computed."""

    status: Literal["degraded"] = "degraded"
    has_readme: bool = False
    readme_length: Count = 0
    commit_count: Count = 0
    error: str = ""
    age_in_days: int | None = None
    commit_frequency: CommitFrequency | None = None
    maturity_stage: MaturityStage | None = None
    documentation_quality: DocumentationQuality | None = None
    health_score: int | None = None


RepositoryResult = Annotated[
    AnalyzedRepository | DegradedRepository, Field(discriminator="status")
]


class CalendarDay(_Frozen):
    date: dt.date
    count: Count = 0


class ContributionCalendar(_Frozen):
    """Daily contribution counts from the GraphQL contribution calendar."""

    total_contributions: Count = 0
    days: list[CalendarDay] = Field(default_factory=list)

    @property
    def has_signal(self) -> bool:
        return any(day.count > 0 for day in self.days)


class InactiveGap(_Frozen):
    start: UTCDateTime
    end: UTCDateTime
    duration_days: Count


class MonthlyCommits(_Frozen):
    """Commit total for one ``YYYY-MM`` month. Rank 1 is the busiest month."""

    month: str
    count: Count
    rank: int = Field(ge=1)


class ContributionSummary(_Frozen):
    source: ContributionSource
    total_commits: Count = 0
    commits_by_month: list[MonthlyCommits] = Field(default_factory=list)
    longest_streak: Count = 0
    current_streak: Count = 0
    average_commits_per_day: Amount = 0.0
    busiest_day: str = "N/A"
    busiest_month: str = "N/A"
    inactive_gaps: list[InactiveGap] = Field(default_factory=list)
    calendar: list[CalendarDay] | None = None


class Skill(_Frozen):
    """A language skill. Rank 1 is the primary skill (most bytes)."""

    name: str
    total_bytes: Count
    evidence_count: Count
    first_used: UTCDateTime
    last_used: UTCDateTime
    level: SkillLevel
    rank: int = Field(ge=1)


class LanguageStat(_Frozen):
    name: str
    repo_count: Count = 0
    repo_percentage: Amount = 0.0
    bytes: Count = 0
    byte_percentage: Amount = 0.0


class Metrics(_Frozen):
    dev_score: Score = 0
    consistency_score: Score = 0
    impact_score: Score = 0
    quality_score: Score = 0
    primary_tech_identity: str = "General Developer"
    activity_pattern: ActivityPattern = ActivityPattern.SPORADIC
    project_focus: ProjectFocus = ProjectFocus.BALANCED
    documentation_habits: DocumentationHabits = DocumentationHabits.POOR
    skills: list[Skill] = Field(default_factory=list)
    language_stats: list[LanguageStat] = Field(default_factory=list)


class YearBucket(_Frozen):
    year: int
    repos: Count = 0
    commits: Count = 0
    stars: Count = 0
    top_language: str | None = None
    best_streak: Count = 0
    monthly_commits: dict[str, Count] = Field(default_factory=dict)


class AnalysisResult(_Frozen):
    """Root of one analysis run."""

    username: str
    profile: Profile
    repositories: list[RepositoryResult] = Field(default_factory=list)
    contributions: ContributionSummary
    metrics: Metrics
    yearly_breakdown: list[YearBucket] = Field(default_factory=list)
    analyzed_at: UTCDateTime
