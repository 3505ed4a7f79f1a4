"""
Form Engine - schema-driven form resolution and parameter compilation

This package provides:
- schemas: block form definitions (fields, conditions, canonical groups,
  operation and requirement rules)
- runtime: condition evaluation, dependency ordering, canonical value
  resolution, operation selection and payload compilation
- engine: the request-time facade used by UI renderers and action executors
"""

__version__ = "0.1.0"

from form_engine.engine import (
    FormState,
    active_fields,
    compile_form,
    evaluate_form,
    is_ready,
    resolve_canonical_values,
    visible_fields,
)
from form_engine.errors import (
    DependencyNotReady,
    FormEngineError,
    SchemaError,
    UnknownOperation,
    ValidationError,
)
from form_engine.runtime.registry import SchemaRegistry, get_registry
from form_engine.runtime.schema_loader import load_schema, load_schema_file
from form_engine.schemas.compile_result import CompileResult, CompileStatus
from form_engine.schemas.form_schema import FormSchema

__all__ = [
    "FormState",
    "active_fields",
    "compile_form",
    "evaluate_form",
    "is_ready",
    "resolve_canonical_values",
    "visible_fields",
    "DependencyNotReady",
    "FormEngineError",
    "SchemaError",
    "UnknownOperation",
    "ValidationError",
    "SchemaRegistry",
    "get_registry",
    "load_schema",
    "load_schema_file",
    "CompileResult",
    "CompileStatus",
    "FormSchema",
]
