"""Tests for the result validator/sanitizer."""

import math

from services.models import Profile
from services.validator import sanitize, validate_result


class TestValidateResult:
    """Tests for validate_result."""

    def test_clean_data_is_valid(self):
        report = validate_result({"score": 10, "nested": {"items": [1, 2.5]}})
        assert report.valid is True
        assert report.errors == []
        assert report.sanitized == {"score": 10, "nested": {"items": [1, 2.5]}}

    def test_nan_and_infinity_replaced(self):
        report = validate_result({"average": math.nan, "ratio": math.inf})
        assert report.valid is False
        assert report.sanitized == {"average": 0, "ratio": 0}
        assert len(report.errors) == 2

    def test_negative_replaced(self):
        report = validate_result({"metrics": {"stars": -5}})
        assert report.sanitized["metrics"]["stars"] == 0
        assert report.errors == ["Negative metrics.stars: -5"]

    def test_whitelisted_negative_kept(self):
        data = {"latitude": -33.9, "longitude": -70.6, "timezone": -5}
        report = validate_result(data)
        assert report.valid is True
        assert report.sanitized == data

    def test_lists_are_walked(self):
        report = validate_result({"counts": [1, -1, math.nan]})
        assert report.sanitized == {"counts": [1, 0, 0]}
        assert "Negative counts[1]: -1" in report.errors

    def test_booleans_untouched(self):
        report = validate_result({"flag": False, "other": True})
        assert report.valid is True
        assert report.sanitized == {"flag": False, "other": True}

    def test_input_not_mutated(self):
        data = {"stars": -1}
        validate_result(data)
        assert data == {"stars": -1}

    def test_none_input(self):
        report = validate_result(None)
        assert report.valid is False
        assert report.errors == ["Invalid data object"]
        assert report.sanitized is None

    def test_scalar_input(self):
        assert validate_result(42).valid is False

    def test_pydantic_model_dumped(self):
        report = validate_result(Profile(login="octocat", followers=3))
        assert report.valid is True
        assert report.sanitized["login"] == "octocat"
        assert report.sanitized["followers"] == 3


class TestSanitize:
    """Tests for sanitize."""

    def test_returns_copy_and_errors(self):
        sanitized, errors = sanitize([{"value": -2}])
        assert sanitized == [{"value": 0}]
        assert errors == ["Negative [0].value: -2"]
