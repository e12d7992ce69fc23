"""Prometheus metrics for monitoring.

Tracks GitHub API latency, analysis durations, degraded repositories
and sanitizer repairs.
"""

from __future__ import annotations

from prometheus_client import Counter, Histogram, Info

# Application info
APP_INFO = Info("devintel_app", "DevIntel engine application info")

# GitHub API metrics
GITHUB_API_CALLS = Counter(
    "devintel_github_api_calls_total",
    "Total GitHub API calls",
    ["endpoint", "status"],
)

GITHUB_API_DURATION = Histogram(
    "devintel_github_api_duration_seconds",
    "GitHub API call duration",
    ["endpoint"],
)

# Analysis metrics
ANALYSIS_DURATION = Histogram(
    "devintel_analysis_duration_seconds",
    "Full profile analysis duration",
    buckets=(0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0),
)

REPOSITORIES_DEGRADED = Counter(
    "devintel_repositories_degraded_total",
    "Repositories that could not be fully analyzed",
)

CONTRIBUTION_SOURCE = Counter(
    "devintel_contribution_source_total",
    "Contribution summaries by data source",
    ["source"],
)

SANITIZED_FIELDS = Counter(
    "devintel_sanitized_fields_total",
    "Numeric fields repaired by the result sanitizer",
    ["reason"],
)

ACTIVITY_PATTERNS_ASSIGNED = Counter(
    "devintel_activity_patterns_assigned_total",
    "Activity patterns assigned",
    ["pattern"],
)
