"""Last-line numeric sanitizer for analysis results.

Walks the whole result tree and repairs NaN, infinite and negative
numbers to 0. It never raises: callers always use ``sanitized``, even
when ``valid`` is False. Scorers guard their own divisions; this pass
only catches inconsistent upstream data.
"""

from __future__ import annotations

import copy
import math
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel

from app.logging_config import get_logger
from app.metrics import SANITIZED_FIELDS

logger = get_logger(__name__)

# Keys whose values may legitimately be negative
ALLOW_NEGATIVE = frozenset({"latitude", "longitude", "timezone"})


@dataclass
class ValidationReport:
    """Outcome of validating one result tree."""

    valid: bool
    errors: list[str] = field(default_factory=list)
    sanitized: Any = None


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _repair(key: str, value: Any, path: str, errors: list[str]) -> Any:
    if isinstance(value, float) and math.isnan(value):
        errors.append(f"Invalid {path}: NaN")
        SANITIZED_FIELDS.labels(reason="nan").inc()
        logger.warning("sanitizer_replaced_nan", field=path)
        return 0
    if isinstance(value, float) and math.isinf(value):
        errors.append(f"Invalid {path}: {value}")
        SANITIZED_FIELDS.labels(reason="infinite").inc()
        logger.warning("sanitizer_replaced_infinite", field=path)
        return 0
    if value < 0 and key not in ALLOW_NEGATIVE:
        errors.append(f"Negative {path}: {value}")
        SANITIZED_FIELDS.labels(reason="negative").inc()
        logger.warning("sanitizer_replaced_negative", field=path, value=value)
        return 0
    return value


def _walk(node: Any, key: str, path: str, errors: list[str]) -> Any:
    if isinstance(node, dict):
        for child_key in list(node.keys()):
            child_path = f"{path}.{child_key}" if path else str(child_key)
            node[child_key] = _walk(node[child_key], str(child_key), child_path, errors)
        return node
    if isinstance(node, list):
        for index, item in enumerate(node):
            node[index] = _walk(item, key, f"{path}[{index}]", errors)
        return node
    if _is_number(node):
        return _repair(key, node, path, errors)
    return node


def sanitize(data: Any) -> tuple[Any, list[str]]:
    """Deep-copy ``data`` and repair every invalid number in the copy."""
    if isinstance(data, BaseModel):
        data = data.model_dump()
    errors: list[str] = []
    sanitized = _walk(copy.deepcopy(data), "", "", errors)
    return sanitized, errors


def validate_result(data: Any) -> ValidationReport:
    """Validate and sanitize a result tree (dict, list or pydantic model)."""
    if data is None or not isinstance(data, (dict, list, BaseModel)):
        logger.warning("validation_invalid_payload", payload_type=type(data).__name__)
        return ValidationReport(valid=False, errors=["Invalid data object"], sanitized=None)

    sanitized, errors = sanitize(data)
    if errors:
        logger.warning("validation_failed", error_count=len(errors))
    return ValidationReport(valid=not errors, errors=errors, sanitized=sanitized)
