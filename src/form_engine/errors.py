"""Error types raised or returned by the form engine.

Load-time problems (``SchemaError``) are raised and are fatal. Request-time
problems (``UnknownOperation``, ``ValidationError``) are carried inside a
``CompileResult`` so callers handle batch validation and UI feedback the
same way.
"""

from typing import Iterable, List, Optional, Sequence

from form_engine.schemas.violations import Violation


class FormEngineError(Exception):
    """Base exception for form engine errors."""
    pass


class SchemaError(FormEngineError):
    """Raised when a schema document cannot be loaded or is inconsistent."""

    def __init__(self, problems: Iterable[str] | str, block_type: Optional[str] = None):
        if isinstance(problems, str):
            problems = [problems]
        self.problems: List[str] = list(problems)
        self.block_type = block_type
        prefix = f"Invalid schema '{block_type}'" if block_type else "Invalid schema"
        super().__init__(f"{prefix}: " + "; ".join(self.problems))


class UnknownOperation(FormEngineError):
    """Discriminator value is not mapped and the policy is strict."""

    def __init__(self, value: object, discriminator_field: Optional[str] = None):
        self.value = value
        self.discriminator_field = discriminator_field
        super().__init__(f"Unknown operation: {value!r}")

    @property
    def messages(self) -> List[str]:
        return [str(self)]


class ValidationError(FormEngineError):
    """Aggregated compilation failure listing every violation found."""

    def __init__(self, action_id: str, violations: Sequence[Violation]):
        self.action_id = action_id
        self.violations: List[Violation] = list(violations)
        super().__init__(
            f"{len(self.violations)} validation error(s) for action '{action_id}': "
            + "; ".join(self.messages)
        )

    @property
    def messages(self) -> List[str]:
        return [v.message for v in self.violations]


class DependencyNotReady(FormEngineError):
    """Soft readiness signal: a field's dependencies have no effective value."""

    def __init__(self, field_id: str, missing: Sequence[str]):
        self.field_id = field_id
        self.missing: List[str] = list(missing)
        super().__init__(
            f"Field '{field_id}' is waiting on: {', '.join(self.missing)}"
        )
