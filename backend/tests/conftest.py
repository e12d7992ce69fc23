"""Shared test fixtures for the DevIntel engine."""

from datetime import datetime

import pytest
from pydantic import SecretStr

from app.config import Environment, Settings
from tests.factories import FIXED_NOW


@pytest.fixture
def now() -> datetime:
    """Fixed clock reading for deterministic age and recency math."""
    return FIXED_NOW


@pytest.fixture
def test_settings() -> Settings:
    """Provide test settings with safe defaults."""
    return Settings(
        environment=Environment.TESTING,
        debug=True,
        github_token=SecretStr("ghp_test_token_fake_value"),
        github_max_retries=0,
        repo_batch_delay_seconds=0.0,
        reference_year=2025,
    )
