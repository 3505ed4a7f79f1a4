"""Runtime components of the form engine.

Leaves first:
1. condition_evaluator - visibility predicates
2. dependency_resolver - field ordering and readiness
3. canonical_resolver - one effective value per canonical parameter
4. operation_selector - discriminator value -> action id
5. parameter_compiler - validated, typed action payload
6. schema_loader / registry - load-time validation and block lookup
"""

from form_engine.runtime.canonical_resolver import resolve, resolve_all
from form_engine.runtime.condition_evaluator import evaluate, referenced_fields
from form_engine.runtime.dependency_resolver import check_ready, is_ready, order_fields
from form_engine.runtime.operation_selector import select_action
from form_engine.runtime.parameter_compiler import coerce_value, compile_payload
from form_engine.runtime.schema_loader import load_schema, load_schema_file

__all__ = [
    "resolve",
    "resolve_all",
    "evaluate",
    "referenced_fields",
    "check_ready",
    "is_ready",
    "order_fields",
    "select_action",
    "coerce_value",
    "compile_payload",
    "load_schema",
    "load_schema_file",
]
