"""Prompt Builder - text prompts for AI-written insights.

Formats analysis results into plain prompts for a text model. This
module only builds strings; sending them to a provider, retries and
fallbacks belong to the caller.
"""

from __future__ import annotations

import json
from collections.abc import Sequence

from app.logging_config import get_logger
from services.models import AnalysisResult, AnalyzedRepository, MaturityStage, Skill

logger = get_logger(__name__)

TOP_SKILLS = 3
MAX_README_SUGGESTIONS = 3


PROMPT_TEMPLATES = {
    "repo_summary": (
        "You are analyzing a GitHub repository for a developer intelligence platform.\n\n"
        "Repository: {name}\n"
        "Description: {description}\n"
        "README (first 500 words): {readme}\n"
        "Languages: {languages}\n"
        "Commit count: {commit_count}\n"
        "Last commit: {last_commit}\n"
        "Created: {created}\n\n"
        "Task: Write a single, concise sentence (max 20 words) that explains what this "
        "project IS and what problem it solves. Focus on value, not tech stack.\n\n"
        "Example good outputs:\n"
        '- "A web scraper that monitors product prices and sends alerts when deals appear"\n'
        '- "An automated backup system for MongoDB databases with S3 integration"\n'
        '- "A React component library for building accessible data tables"\n\n'
        "Your summary:"
    ),
    "developer_insight": (
        "You are analyzing a developer's GitHub activity for a developer intelligence platform.\n\n"
        "Developer: {username}\n"
        "Total repos: {total_repos}\n"
        "Active repos: {active_repos}\n"
        "Primary languages: {top_languages}\n"
        "Consistency score: {consistency_score}/100\n"
        "Documentation quality: {documentation_habits}\n"
        "Activity pattern: {activity_pattern}\n\n"
        "Task: Write ONE sentence (max 25 words) that captures this developer's building "
        "style and habits. Be specific and actionable.\n\n"
        "Examples:\n"
        '- "Consistent builder with strong backend focus; documentation is inconsistent '
        'across projects"\n'
        '- "Prolific experimenter who starts many projects but rarely maintains them long-term"\n'
        '- "Meticulous full-stack developer who prioritizes polish and documentation"\n\n'
        "Your insight:"
    ),
    "activity_narrative": (
        "Analyze this developer's GitHub contribution pattern:\n\n"
        "Total commits: {total_commits}\n"
        "Longest streak: {longest_streak} days\n"
        "Current streak: {current_streak} days\n"
        "Inactive gaps: {gap_count} gaps\n"
        "Activity pattern detected: {activity_pattern}\n\n"
        "Task: Write 2-3 sentences explaining their development rhythm. What does their "
        "pattern reveal about their workflow?\n\n"
        "Your insight:"
    ),
    "growth_actions": (
        "Based on this developer's GitHub profile, suggest 1-3 specific, actionable "
        "improvements they can make THIS WEEK:\n\n"
        "Active projects: {active_repos}\n"
        "Projects without README: {missing_readme}\n"
        "Abandoned projects: {abandoned_repos}\n"
        "Documentation score: {documentation_habits}\n"
        "Consistency score: {consistency_score}/100\n"
        "Activity pattern: {activity_pattern}\n\n"
        "Rules:\n"
        "- Max 3 suggestions\n"
        "- Be SPECIFIC (name repos if relevant)\n"
        "- Focus on quick wins\n"
        "- Use encouraging tone\n\n"
        "Format as a JSON array of strings.\n\n"
        "Example:\n"
        "[\"Add a detailed README to 'api-helper' to showcase its capabilities\", "
        '"Complete or archive the 3 projects untouched in 6+ months", '
        '"Establish a weekly commit routine to improve consistency"]\n\n'
        "Your suggestions (JSON array only):"
    ),
    "archetype": (
        "Classify this developer into ONE primary archetype based on their GitHub profile:\n\n"
        "Project count: {total_repos}\n"
        "Average project lifespan: {average_lifespan} days\n"
        "Documentation quality: {documentation_habits}\n"
        "Contribution frequency: {activity_pattern}\n"
        "Primary tech: {primary_tech_identity}\n\n"
        "Archetypes (choose ONE):\n"
        "1. Builder - Focuses on creating and shipping products\n"
        "2. Problem Solver - Prioritizes algorithmic thinking and competitive coding\n"
        "3. Educator - Shares knowledge through writing and teaching\n"
        "4. Experimenter - Explores many technologies, learns through building\n"
        "5. Specialist - Deep expertise in specific domains\n"
        "6. Balanced Polymath - Strong across multiple dimensions\n\n"
        "Output ONLY the archetype name, nothing else."
    ),
    "comparison_developer": (
        "Developer {label} ({username}):\n"
        "- Projects: {total_repos}\n"
        "- Consistency: {consistency_score}/100\n"
        "- Impact: {impact_score}/100\n"
        "- Tech stack: {top_languages}\n"
        "- Focus: {project_focus}\n"
    ),
    "comparison_verdict": (
        "Compare these two GitHub developers objectively:\n\n"
        "{developer_a}\n"
        "{developer_b}\n"
        "Task: Write a single paragraph (4-5 sentences) comparing their development "
        "approaches. Be balanced, specific, and avoid declaring a \"winner\". Focus on "
        "differences in style, focus, and execution.\n\n"
        "Your comparison:"
    ),
}


def _top_languages(skills: Sequence[Skill], limit: int = TOP_SKILLS) -> str:
    return ", ".join(skill.name for skill in skills[:limit])


def _count_stage(result: AnalysisResult, stage: MaturityStage) -> int:
    return sum(1 for r in result.repositories if r.maturity_stage == stage)


class PromptBuilder:
    """Builds insight prompts from an AnalysisResult."""

    def build_repo_summary_prompt(self, repo: AnalyzedRepository) -> str:
        return PROMPT_TEMPLATES["repo_summary"].format(
            name=repo.name,
            description=repo.description or "No description",
            readme=repo.readme_content or "No README",
            languages=json.dumps(repo.languages),
            commit_count=repo.commit_count,
            last_commit=repo.pushed_at.date().isoformat(),
            created=repo.created_at.date().isoformat(),
        )

    def build_developer_insight_prompt(self, result: AnalysisResult) -> str:
        metrics = result.metrics
        return PROMPT_TEMPLATES["developer_insight"].format(
            username=result.username,
            total_repos=len(result.repositories),
            active_repos=_count_stage(result, MaturityStage.ACTIVE),
            top_languages=_top_languages(metrics.skills),
            consistency_score=metrics.consistency_score,
            documentation_habits=metrics.documentation_habits.value,
            activity_pattern=metrics.activity_pattern.value,
        )

    def build_activity_narrative_prompt(self, result: AnalysisResult) -> str:
        contributions = result.contributions
        return PROMPT_TEMPLATES["activity_narrative"].format(
            total_commits=contributions.total_commits,
            longest_streak=contributions.longest_streak,
            current_streak=contributions.current_streak,
            gap_count=len(contributions.inactive_gaps),
            activity_pattern=result.metrics.activity_pattern.value,
        )

    def build_growth_actions_prompt(self, result: AnalysisResult) -> str:
        """Growth suggestions; names up to three live repos missing a README."""
        missing_readme = [
            r.name
            for r in result.repositories
            if not r.has_readme and r.maturity_stage != MaturityStage.ABANDONED
        ][:MAX_README_SUGGESTIONS]

        return PROMPT_TEMPLATES["growth_actions"].format(
            active_repos=_count_stage(result, MaturityStage.ACTIVE),
            missing_readme=", ".join(missing_readme) or "None",
            abandoned_repos=_count_stage(result, MaturityStage.ABANDONED),
            documentation_habits=result.metrics.documentation_habits.value,
            consistency_score=result.metrics.consistency_score,
            activity_pattern=result.metrics.activity_pattern.value,
        )

    def build_archetype_prompt(self, result: AnalysisResult) -> str:
        ages = [r.age_in_days or 0 for r in result.repositories]
        average_lifespan = round(sum(ages) / len(ages)) if ages else 0

        return PROMPT_TEMPLATES["archetype"].format(
            total_repos=len(result.repositories),
            average_lifespan=average_lifespan,
            documentation_habits=result.metrics.documentation_habits.value,
            activity_pattern=result.metrics.activity_pattern.value,
            primary_tech_identity=result.metrics.primary_tech_identity,
        )

    def build_comparison_prompt(self, first: AnalysisResult, second: AnalysisResult) -> str:
        """Side-by-side comparison of two developers, without a winner."""
        sections = [
            PROMPT_TEMPLATES["comparison_developer"].format(
                label=label,
                username=result.username,
                total_repos=len(result.repositories),
                consistency_score=result.metrics.consistency_score,
                impact_score=result.metrics.impact_score,
                top_languages=_top_languages(result.metrics.skills),
                project_focus=result.metrics.project_focus.value,
            )
            for label, result in (("A", first), ("B", second))
        ]
        logger.debug("comparison_prompt_built")
        return PROMPT_TEMPLATES["comparison_verdict"].format(
            developer_a=sections[0],
            developer_b=sections[1],
        )
