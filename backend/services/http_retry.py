"""Retry helpers shared by the GitHub REST and GraphQL clients."""

from __future__ import annotations

import random

from app.exceptions import DevIntelError

SERVER_ERROR_STATUSES = frozenset({502, 503, 504})
RATE_LIMIT_STATUSES = frozenset({403, 429})


class RetryableError(Exception):
    """A failed attempt worth retrying; ``error`` is raised once retries run out."""

    def __init__(self, error: DevIntelError) -> None:
        self.error = error
        super().__init__(error.message)


def backoff_delay(attempt: int, base: float = 1.0, max_delay: float = 30.0) -> float:
    """Exponential backoff with up to 10% jitter: min(base * 2^attempt + jitter, max_delay)."""
    delay = base * (2**attempt)
    jitter = random.uniform(0, delay * 0.1)
    return min(delay + jitter, max_delay)
