"""Violation taxonomy for parameter compilation.

Codes are stable and safe to use in logs, API responses and UI feedback.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class ViolationCode(str, Enum):
    """Stable codes for compilation violations."""

    MISSING_REQUIRED = "MISSING_REQUIRED"  # Required canonical value is empty
    COMPOSITE_RULE_FAILED = "COMPOSITE_RULE_FAILED"  # Cross-field rule not satisfied
    INVALID_VALUE = "INVALID_VALUE"  # Value cannot be coerced to its kind
    DEPENDENCY_NOT_READY = "DEPENDENCY_NOT_READY"  # Required field waits on a dependency


class Violation(BaseModel):
    """A single problem found while compiling an action payload."""

    code: ViolationCode = Field(..., description="Stable violation code")
    canonical_id: Optional[str] = Field(
        None, description="Canonical parameter the violation is about (None for cross-field rules)"
    )
    message: str = Field(..., description="Human-readable explanation")
