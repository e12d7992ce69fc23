"""Gamification layer over an analysis result.

Levels and XP, earned achievements, a flat stats summary and rough
percentile rankings against an average-developer benchmark. Everything
here is derived from AnalysisResult; nothing is fetched.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Any

from services.date_utils import utc_now
from services.models import AnalysisResult, DocumentationHabits, MaturityStage
from services.scoring import round_half_up

MAX_LEVEL = 100

XP_WEIGHTS = {
    "commits": 10,
    "repos": 100,
    "active_repos": 150,
    "stars": 50,
    "consistency": 20,
    "impact": 25,
    "streak": 15,
    "languages": 80,
}

DOCUMENTATION_XP = {
    DocumentationHabits.EXCELLENT: 1000,
    DocumentationHabits.GOOD: 600,
    DocumentationHabits.INCONSISTENT: 300,
    DocumentationHabits.POOR: 100,
}

# (minimum level, tier name), highest first
LEVEL_TIERS = (
    (80, "Legendary"),
    (60, "Master"),
    (40, "Expert"),
    (20, "Advanced"),
    (10, "Intermediate"),
)

# Approximate averages for a typical public GitHub profile
BENCHMARKS = {
    "projects": 15,
    "stars": 50,
    "commits": 500,
    "streak": 20,
    "languages": 3,
    "overall": 50,
}

# (threshold, id, name, icon, description, rarity); first match per group wins
STREAK_ACHIEVEMENTS = (
    (100, "marathon_coder", "Marathon Coder", "🏃", "Maintained a 100+ day coding streak", "legendary"),
    (30, "streak_master", "Streak Master", "🔥", "Maintained a 30+ day coding streak", "rare"),
)
STAR_ACHIEVEMENTS = (
    (1000, "superstar", "Superstar", "🌟", "Earned 1000+ stars across projects", "legendary"),
    (500, "community_favorite", "Community Favorite", "⭐", "Earned 500+ stars across projects", "epic"),
    (100, "rising_star", "Rising Star", "✨", "Earned 100+ stars across projects", "rare"),
)
REPO_ACHIEVEMENTS = (
    (50, "prolific_creator", "Prolific Creator", "🚀", "Created 50+ repositories", "epic"),
    (20, "prolific_builder", "Prolific Builder", "🔨", "Created 20+ repositories", "rare"),
)
QUALITY_ACHIEVEMENTS = (
    (80, "quality_craftsman", "Quality Craftsman", "💎", "Maintains high code quality", "rare"),
)
IMPACT_ACHIEVEMENTS = (
    (80, "open_source_legend", "Open Source Legend", "🏆", "Exceptional community impact", "legendary"),
    (70, "open_source_champion", "Open Source Champion", "🎖️", "Strong community impact", "epic"),
)
CONSISTENCY_ACHIEVEMENTS = (
    (80, "specialist", "Specialist", "🎯", "Deep expertise and consistency", "rare"),
    (70, "consistent_contributor", "Consistent Contributor", "📈", "Maintains steady contribution rhythm", "uncommon"),
)
LANGUAGE_ACHIEVEMENTS = (
    (10, "polyglot_master", "Polyglot Master", "🌐", "Proficient in 10+ languages", "epic"),
    (5, "polyglot", "Polyglot", "🌈", "Proficient in 5+ languages", "rare"),
)
ACTIVE_REPO_ACHIEVEMENTS = (
    (10, "juggler", "Juggler", "🤹", "Maintains 10+ active projects", "rare"),
)
COMMIT_ACHIEVEMENTS = (
    (5000, "commit_legend", "Commit Legend", "⚡", "5000+ total commits", "legendary"),
    (1000, "commit_master", "Commit Master", "💪", "1000+ total commits", "epic"),
)


def _active_repo_count(result: AnalysisResult) -> int:
    return sum(1 for r in result.repositories if r.maturity_stage == MaturityStage.ACTIVE)


def _total_stars(result: AnalysisResult) -> int:
    return sum(r.stars for r in result.repositories)


def _average_health(result: AnalysisResult) -> float:
    if not result.repositories:
        return 0.0
    return sum(r.health_score or 0 for r in result.repositories) / len(result.repositories)


def level_tier(level: int) -> str:
    for minimum, name in LEVEL_TIERS:
        if level >= minimum:
            return name
    return "Beginner"


def calculate_level(result: AnalysisResult) -> dict[str, Any]:
    """Total XP, level (square-root scaling) and progress to the next level.

    Level 1 starts at 0 XP, level 2 at 100 XP, level n at (n-1)^2 * 100.
    """
    metrics = result.metrics
    contributions = result.contributions

    xp = {
        "commits": contributions.total_commits * XP_WEIGHTS["commits"],
        "repos": len(result.repositories) * XP_WEIGHTS["repos"],
        "active_repos": _active_repo_count(result) * XP_WEIGHTS["active_repos"],
        "stars": _total_stars(result) * XP_WEIGHTS["stars"],
        "consistency": metrics.consistency_score * XP_WEIGHTS["consistency"],
        "impact": metrics.impact_score * XP_WEIGHTS["impact"],
        "documentation": DOCUMENTATION_XP.get(metrics.documentation_habits, 0),
        "streak": contributions.longest_streak * XP_WEIGHTS["streak"],
        "languages": len(metrics.skills) * XP_WEIGHTS["languages"],
    }
    total_xp = sum(xp.values())

    level = math.floor(math.sqrt(total_xp / 100)) + 1
    current_level_xp = (level - 1) ** 2 * 100
    next_level_xp = level**2 * 100
    progress = (total_xp - current_level_xp) / (next_level_xp - current_level_xp) * 100

    capped = min(level, MAX_LEVEL)
    return {
        "level": capped,
        "total_xp": total_xp,
        "current_level_xp": current_level_xp,
        "next_level_xp": next_level_xp,
        "progress_to_next": round_half_up(progress),
        "xp_breakdown": xp,
        "tier": level_tier(capped),
    }


def _first_earned(value: float, table: tuple, earned_at: datetime) -> dict[str, Any] | None:
    for threshold, achievement_id, name, icon, description, rarity in table:
        if value >= threshold:
            return {
                "id": achievement_id,
                "name": name,
                "icon": icon,
                "description": description,
                "rarity": rarity,
                "earned_at": earned_at,
            }
    return None


def detect_achievements(result: AnalysisResult, now: datetime | None = None) -> list[dict[str, Any]]:
    """Achievements earned by this result, at most one per category."""
    earned_at = now or utc_now()
    metrics = result.metrics

    checks: list[tuple[float, tuple]] = [
        (result.contributions.current_streak, STREAK_ACHIEVEMENTS),
        (_total_stars(result), STAR_ACHIEVEMENTS),
        (len(result.repositories), REPO_ACHIEVEMENTS),
        (_average_health(result), QUALITY_ACHIEVEMENTS),
        (metrics.impact_score, IMPACT_ACHIEVEMENTS),
        (metrics.consistency_score, CONSISTENCY_ACHIEVEMENTS),
        (len(metrics.skills), LANGUAGE_ACHIEVEMENTS),
        (_active_repo_count(result), ACTIVE_REPO_ACHIEVEMENTS),
        (result.contributions.total_commits, COMMIT_ACHIEVEMENTS),
    ]

    achievements = []
    for value, table in checks:
        achievement = _first_earned(value, table, earned_at)
        if achievement:
            achievements.append(achievement)

    if metrics.documentation_habits == DocumentationHabits.EXCELLENT:
        achievements.append(
            {
                "id": "documentation_hero",
                "name": "Documentation Hero",
                "icon": "📚",
                "description": "Maintains excellent documentation",
                "rarity": "rare",
                "earned_at": earned_at,
            }
        )

    return achievements


def generate_stats_summary(result: AnalysisResult) -> dict[str, Any]:
    repositories = result.repositories
    contributions = result.contributions
    metrics = result.metrics

    return {
        "total_projects": len(repositories),
        "active_projects": _active_repo_count(result),
        "total_stars": _total_stars(result),
        "total_forks": sum(r.forks for r in repositories),
        "total_commits": contributions.total_commits,
        "current_streak": contributions.current_streak,
        "longest_streak": contributions.longest_streak,
        "languages": len(metrics.skills),
        "avg_health_score": round_half_up(_average_health(result)),
        "dev_score": metrics.dev_score,
        "consistency_score": metrics.consistency_score,
        "impact_score": metrics.impact_score,
    }


def percentile(value: float, benchmark: float) -> int:
    """Map value/benchmark onto 1-99; matching the benchmark gives 75."""
    return max(min(round_half_up(value / benchmark * 50 + 25), 99), 1)


def calculate_percentiles(result: AnalysisResult) -> dict[str, int]:
    stats = generate_stats_summary(result)
    return {
        "projects": percentile(stats["total_projects"], BENCHMARKS["projects"]),
        "stars": percentile(stats["total_stars"], BENCHMARKS["stars"]),
        "commits": percentile(stats["total_commits"], BENCHMARKS["commits"]),
        "streak": percentile(stats["longest_streak"], BENCHMARKS["streak"]),
        "languages": percentile(stats["languages"], BENCHMARKS["languages"]),
        "overall": percentile(stats["dev_score"], BENCHMARKS["overall"]),
    }
