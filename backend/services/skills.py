"""Skill inference from per-repository language byte counts."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from services.date_utils import days_between
from services.models import LanguageStat, RepositoryResult, Skill, SkillLevel

STALE_SKILL_DAYS = 365

# (exclusive upper byte bound, level)
LEVEL_TIERS = (
    (1_000, SkillLevel.BEGINNER),
    (5_000, SkillLevel.INTERMEDIATE),
    (20_000, SkillLevel.ADVANCED),
)


def skill_level(total_bytes: int, days_since_last_use: int) -> SkillLevel:
    """Byte-volume tier; expert is downgraded to advanced after a year unused."""
    level = SkillLevel.EXPERT
    for upper, tier in LEVEL_TIERS:
        if total_bytes < upper:
            level = tier
            break

    if level == SkillLevel.EXPERT and days_since_last_use > STALE_SKILL_DAYS:
        return SkillLevel.ADVANCED
    return level


@dataclass
class _SkillAccumulator:
    name: str
    total_bytes: int
    evidence_count: int
    first_used: datetime
    last_used: datetime


def infer_skills(repositories: Sequence[RepositoryResult], now: datetime) -> list[Skill]:
    """Aggregate language bytes across repositories into a ranked skill list.

    The list is sorted by total bytes, descending; ``rank`` 1 (index 0) is
    the primary skill. Equal byte counts are ordered by name.
    """
    accumulated: dict[str, _SkillAccumulator] = {}

    for repo in repositories:
        for language, byte_count in repo.languages.items():
            entry = accumulated.get(language)
            if entry is None:
                accumulated[language] = _SkillAccumulator(
                    name=language,
                    total_bytes=byte_count,
                    evidence_count=1,
                    first_used=repo.created_at,
                    last_used=repo.updated_at,
                )
                continue
            entry.total_bytes += byte_count
            entry.evidence_count += 1
            entry.first_used = min(entry.first_used, repo.created_at)
            entry.last_used = max(entry.last_used, repo.updated_at)

    ordered = sorted(accumulated.values(), key=lambda s: (-s.total_bytes, s.name))
    return [
        Skill(
            name=entry.name,
            total_bytes=entry.total_bytes,
            evidence_count=entry.evidence_count,
            first_used=entry.first_used,
            last_used=entry.last_used,
            level=skill_level(entry.total_bytes, days_between(entry.last_used, now)),
            rank=rank,
        )
        for rank, entry in enumerate(ordered, start=1)
    ]


def language_statistics(repositories: Sequence[RepositoryResult]) -> list[LanguageStat]:
    """Per-language share by primary-language repo count and by bytes.

    The two percentages are computed independently: a language can own
    few repositories but most of the code. Sorted by bytes, then repo count.
    """
    repo_counts: dict[str, int] = {}
    byte_counts: dict[str, int] = {}

    for repo in repositories:
        if repo.language:
            repo_counts[repo.language] = repo_counts.get(repo.language, 0) + 1
        for language, byte_count in repo.languages.items():
            byte_counts[language] = byte_counts.get(language, 0) + byte_count

    total_repos = sum(repo_counts.values())
    total_bytes = sum(byte_counts.values())

    stats = [
        LanguageStat(
            name=name,
            repo_count=repo_counts.get(name, 0),
            repo_percentage=(
                round(repo_counts.get(name, 0) / total_repos * 100, 1) if total_repos else 0.0
            ),
            bytes=byte_counts.get(name, 0),
            byte_percentage=(
                round(byte_counts.get(name, 0) / total_bytes * 100, 1) if total_bytes else 0.0
            ),
        )
        for name in set(repo_counts) | set(byte_counts)
    ]
    return sorted(stats, key=lambda s: (-s.bytes, -s.repo_count, s.name))
