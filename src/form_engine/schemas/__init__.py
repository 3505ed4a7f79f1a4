"""Pydantic schemas and result types for block forms."""

from form_engine.schemas.form_schema import (
    CompositeKind,
    CompositeRule,
    Condition,
    FieldMode,
    FieldSpec,
    FormSchema,
    FormSchemaDocument,
    OperationRule,
    RequirementRule,
    UnknownValuePolicy,
    ValueKind,
)
from form_engine.schemas.violations import Violation, ViolationCode

__all__ = [
    "CompositeKind",
    "CompositeRule",
    "Condition",
    "FieldMode",
    "FieldSpec",
    "FormSchema",
    "FormSchemaDocument",
    "OperationRule",
    "RequirementRule",
    "UnknownValuePolicy",
    "ValueKind",
    "Violation",
    "ViolationCode",
]
