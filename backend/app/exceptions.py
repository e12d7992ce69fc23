"""Custom exception classes for the DevIntel engine.

All exceptions follow the DevIntel error format:
{
    "error": {
        "code": "ERROR_CODE",
        "message": "Human-readable message",
        "details": {}  # optional
    }
}

Only fatal failures (profile, repository list, invalid input) reach the
caller. Per-repository and calendar failures are degraded inside the
analyzer and never raised.
"""

from __future__ import annotations

from typing import Any


class DevIntelError(Exception):
    """Base exception for the DevIntel engine."""

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "error": {
                "code": self.code,
                "message": self.message,
            }
        }
        if self.details:
            result["error"]["details"] = self.details
        return result


class GitHubAPIError(DevIntelError):
    """GitHub API specific errors."""

    def __init__(self, message: str, status_code: int = 502) -> None:
        super().__init__(
            code="GITHUB_API_ERROR",
            message=message,
            status_code=status_code,
        )


class GitHubUserNotFoundError(DevIntelError):
    """GitHub user (or repository) not found."""

    def __init__(self, username: str | None = None) -> None:
        message = "GitHub user not found"
        if username:
            message = f"GitHub user '{username}' not found"
        super().__init__(
            code="GITHUB_USER_NOT_FOUND",
            message=message,
            status_code=404,
        )


class GitHubRateLimitError(DevIntelError):
    """GitHub API rate limit exceeded."""

    def __init__(self, retry_after: int | None = None) -> None:
        details = {}
        if retry_after:
            details["retry_after_seconds"] = retry_after
        super().__init__(
            code="GITHUB_RATE_LIMIT",
            message="GitHub API rate limit exceeded. Try again later.",
            status_code=429,
            details=details,
        )


class ValidationError(DevIntelError):
    """Input validation error."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            code="VALIDATION_ERROR",
            message=message,
            status_code=422,
            details=details,
        )
