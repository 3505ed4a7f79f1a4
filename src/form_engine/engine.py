"""Public facade of the form engine.

Request-time entry points used by UI renderers and action executors:
- visible_fields / is_ready / active_fields (renderer)
- resolve_canonical_values (renderer, debugging)
- compile_form (executor: values -> (action id, payload) or error)

Everything here is a pure function of (schema, values). The values mapping
is never modified, so any number of requests may run in parallel.
"""

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, List, Mapping, Tuple

from form_engine.errors import DependencyNotReady, UnknownOperation
from form_engine.runtime.canonical_resolver import resolve_all
from form_engine.runtime.condition_evaluator import evaluate
from form_engine.runtime.dependency_resolver import check_ready
from form_engine.runtime.operation_selector import select_action
from form_engine.runtime.parameter_compiler import compile_payload
from form_engine.schemas.compile_result import CompileResult
from form_engine.schemas.form_schema import FormSchema

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FormState:
    """Snapshot of a form for one set of runtime values.

    ``required`` lists, in declaration order, the canonical ids of visible
    fields marked ``required``; compilation rejects them when empty.
    """

    visible: FrozenSet[str]
    active: FrozenSet[str]
    not_ready: Mapping[str, DependencyNotReady]
    canonical_values: Mapping[str, Any]
    required: Tuple[str, ...] = ()


def visible_fields(schema: FormSchema, values: Mapping[str, Any]) -> FrozenSet[str]:
    """Field ids whose visibility condition holds (or that have none)."""
    visible = set()
    for field_id in schema.field_order:
        condition = schema.field(field_id).condition
        if condition is None or evaluate(condition, values):
            visible.add(field_id)
    return frozenset(visible)


def evaluate_form(schema: FormSchema, values: Mapping[str, Any]) -> FormState:
    """Compute visibility, readiness and effective canonical values.

    Readiness is judged on effective values supplied by active fields only.
    Dropping an unready field can only remove candidate values, so the
    active set shrinks monotonically and the loop ends after at most one
    pass per field.
    """
    visible = visible_fields(schema, values)
    active = visible

    while True:
        effective = resolve_all(schema, values, active)
        not_ready: Dict[str, DependencyNotReady] = {}
        for field_id in schema.field_order:
            signal = check_ready(schema, field_id, effective)
            if signal is not None:
                not_ready[field_id] = signal
        next_active = frozenset(fid for fid in visible if fid not in not_ready)
        if next_active == active:
            break
        active = next_active

    required: List[str] = []
    for field_id in schema.field_order:
        spec = schema.field(field_id)
        if spec.required and field_id in visible and spec.canonical_param_id not in required:
            required.append(spec.canonical_param_id)

    return FormState(
        visible=visible,
        active=active,
        not_ready=MappingProxyType(not_ready),
        canonical_values=MappingProxyType(effective),
        required=tuple(required),
    )


def is_ready(schema: FormSchema, field_id: str, values: Mapping[str, Any]) -> bool:
    """True if every dependency of the field has a non-empty effective value.

    Raises:
        KeyError: If the field is not part of the schema
    """
    if field_id not in schema.fields:
        raise KeyError(f"Unknown field: {field_id}")
    return field_id not in evaluate_form(schema, values).not_ready


def active_fields(schema: FormSchema, values: Mapping[str, Any]) -> FrozenSet[str]:
    """Fields that are both visible and ready."""
    return evaluate_form(schema, values).active


def resolve_canonical_values(schema: FormSchema, values: Mapping[str, Any]) -> Dict[str, Any]:
    """Effective value per canonical id, taken from active fields only."""
    return dict(evaluate_form(schema, values).canonical_values)


def _not_ready_by_canonical(schema: FormSchema, state: FormState) -> Dict[str, DependencyNotReady]:
    by_canonical: Dict[str, DependencyNotReady] = {}
    for canonical_id, group in schema.canonical_groups.items():
        for field_id in group:
            if field_id in state.visible and field_id in state.not_ready:
                by_canonical[canonical_id] = state.not_ready[field_id]
                break
    return by_canonical


def select_form_action(schema: FormSchema, state: FormState) -> str:
    """Select the action for a form state.

    Blocks without an operation rule have a single action named after the
    block type.

    Raises:
        UnknownOperation: If the discriminator value is unmapped under strict-throw
    """
    rule = schema.operation
    if rule is None:
        return schema.block_type
    discriminator = state.canonical_values.get(schema.canonical_of(rule.discriminator_field))
    return select_action(discriminator, rule)


def compile_form(schema: FormSchema, values: Mapping[str, Any]) -> CompileResult:
    """Compile runtime values into the selected action's payload.

    Args:
        schema: Loaded schema
        values: Raw field values (field id -> value); never modified

    Returns:
        CompileResult: VALID with (action_id, payload), or INVALID with a
        ValidationError / UnknownOperation. Never raises for request-time
        problems.
    """
    state = evaluate_form(schema, values)

    try:
        action_id = select_form_action(schema, state)
    except UnknownOperation as e:
        logger.debug(f"[{schema.block_type}] {e}")
        return CompileResult.invalid(None, e)

    return compile_payload(
        action_id,
        state.canonical_values,
        schema.requirements,
        schema.value_kinds,
        not_ready=_not_ready_by_canonical(schema, state),
        required_fields=state.required,
    )
