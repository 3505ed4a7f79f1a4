"""Typed result of a form compilation.

A result is either VALID (carries a payload) or INVALID (carries one error);
never both, never neither.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Union

from form_engine.errors import UnknownOperation, ValidationError


class CompileStatus(str, Enum):
    """Terminal compilation states."""

    VALID = "valid"
    INVALID = "invalid"


@dataclass(frozen=True)
class CompileResult:
    """Outcome of compiling runtime values into an action payload."""

    action_id: Optional[str]
    payload: Optional[Dict[str, Any]] = None
    error: Optional[Union[ValidationError, UnknownOperation]] = None

    def __post_init__(self):
        if (self.payload is None) == (self.error is None):
            raise ValueError("CompileResult requires exactly one of payload or error")

    @classmethod
    def valid(cls, action_id: str, payload: Dict[str, Any]) -> "CompileResult":
        return cls(action_id=action_id, payload=payload)

    @classmethod
    def invalid(
        cls,
        action_id: Optional[str],
        error: Union[ValidationError, UnknownOperation],
    ) -> "CompileResult":
        return cls(action_id=action_id, error=error)

    @property
    def status(self) -> CompileStatus:
        return CompileStatus.VALID if self.payload is not None else CompileStatus.INVALID

    @property
    def ok(self) -> bool:
        return self.payload is not None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for JSON output (CLI, API responses)."""
        data: Dict[str, Any] = {
            "status": self.status.value,
            "action_id": self.action_id,
        }
        if self.payload is not None:
            data["payload"] = self.payload
            return data

        if isinstance(self.error, ValidationError):
            data["error"] = {
                "type": "validation_error",
                "violations": [v.model_dump(mode="json") for v in self.error.violations],
            }
        else:
            data["error"] = {
                "type": "unknown_operation",
                "value": self.error.value,
                "discriminator_field": self.error.discriminator_field,
            }
        return data
