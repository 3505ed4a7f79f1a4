"""Parameter compiler: canonical values -> validated, typed action payload.

Compilation has two terminal states, VALID (payload) and INVALID (one
aggregated ValidationError). Every violation is collected before deciding;
a partial payload is never returned.

Steps:
1. Fetch the requirement rule of the action (no rule -> empty payload)
2. Fill empty canonical values from the rule's declared defaults
3. Check required canonical ids (rule and shown required fields) and
   cross-field composite rules
4. Coerce each declared key to its value kind, dropping empty results
5. Return the payload, or a ValidationError listing all violations
"""

import copy
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional

from form_engine.errors import DependencyNotReady, ValidationError
from form_engine.schemas.compile_result import CompileResult
from form_engine.schemas.form_schema import (
    CompositeKind,
    CompositeRule,
    RequirementRule,
    ValueKind,
)
from form_engine.schemas.violations import Violation, ViolationCode
from form_engine.utils.value_parsing import (
    ValueParseError,
    as_text,
    is_empty,
    parse_bool,
    parse_json,
    parse_number,
    split_list,
)

logger = logging.getLogger(__name__)


def coerce_value(value: Any, kind: ValueKind) -> Any:
    """Convert a raw canonical value to its payload type.

    Raises:
        ValueParseError: If the value cannot be represented as ``kind``
    """
    if kind == ValueKind.NUMBER:
        return parse_number(value)
    if kind == ValueKind.BOOLEAN:
        return parse_bool(value)
    if kind == ValueKind.ARRAY:
        return split_list(value)
    if kind == ValueKind.JSON:
        return parse_json(value)

    if isinstance(value, str):
        return value
    text = as_text(value)
    if text is None:
        raise ValueParseError(f"Expected text, got {type(value).__name__}")
    return text


def _check_composite(rule: CompositeRule, values: Mapping[str, Any]) -> Optional[Violation]:
    present = [key for key in rule.fields if not is_empty(values.get(key))]

    if rule.kind == CompositeKind.ANY_OF:
        failed = not present
    elif rule.kind == CompositeKind.ALL_OF:
        failed = len(present) < len(rule.fields)
    else:
        failed = len(present) > 1

    if not failed:
        return None
    return Violation(
        code=ViolationCode.COMPOSITE_RULE_FAILED,
        canonical_id=None,
        message=rule.describe(),
    )


def _missing_violation(
    canonical_id: str,
    not_ready: Mapping[str, DependencyNotReady],
) -> Violation:
    waiting = not_ready.get(canonical_id)
    if waiting is not None:
        return Violation(
            code=ViolationCode.DEPENDENCY_NOT_READY,
            canonical_id=canonical_id,
            message=f"'{canonical_id}' is required but waits on: {', '.join(waiting.missing)}",
        )
    return Violation(
        code=ViolationCode.MISSING_REQUIRED,
        canonical_id=canonical_id,
        message=f"'{canonical_id}' is required",
    )


def compile_payload(
    action_id: str,
    canonical_values: Mapping[str, Any],
    requirement_rules: Mapping[str, RequirementRule],
    value_kinds: Mapping[str, ValueKind],
    not_ready: Optional[Mapping[str, DependencyNotReady]] = None,
    required_fields: Iterable[str] = (),
) -> CompileResult:
    """Validate canonical values and shape them into an action payload.

    Args:
        action_id: Selected backend action
        canonical_values: Canonical id -> effective value; never modified
        requirement_rules: Action id -> requirement rule
        value_kinds: Canonical id -> value kind
        not_ready: Canonical id -> readiness signal for unready fields; a
            required value that is missing because its field is not ready is
            reported as DEPENDENCY_NOT_READY
        required_fields: Canonical ids of shown fields marked ``required``;
            checked like the rule's required ids but only shaped into the
            payload when the rule declares them

    Returns:
        CompileResult carrying either the payload or one ValidationError
    """
    not_ready = not_ready or {}
    rule = requirement_rules.get(action_id)
    if rule is None:
        logger.debug(f"No requirement rule for action '{action_id}', empty payload")
        rule = RequirementRule(action_id=action_id)

    declared = rule.declared_keys
    values: Dict[str, Any] = {key: canonical_values.get(key) for key in declared}
    for key, default in rule.defaults.items():
        if is_empty(values.get(key)):
            values[key] = copy.deepcopy(default)

    violations: List[Violation] = []
    reported = set()

    required = list(rule.required)
    required.extend(key for key in required_fields if key not in required)
    for key in required:
        value = values[key] if key in values else canonical_values.get(key)
        if is_empty(value):
            violations.append(_missing_violation(key, not_ready))
            reported.add(key)

    for composite in rule.composite:
        violation = _check_composite(composite, values)
        if violation is not None:
            violations.append(violation)

    payload: Dict[str, Any] = {}
    for key in declared:
        raw = values.get(key)
        if is_empty(raw):
            continue

        kind = value_kinds.get(key, ValueKind.STRING)
        try:
            coerced = coerce_value(raw, kind)
        except ValueParseError as e:
            violations.append(Violation(
                code=ViolationCode.INVALID_VALUE,
                canonical_id=key,
                message=f"'{key}' must be {kind.value}: {e}",
            ))
            continue

        if is_empty(coerced):
            if key in required and key not in reported:
                violations.append(_missing_violation(key, not_ready))
            continue
        payload[key] = coerced

    if violations:
        logger.debug(f"Action '{action_id}' rejected with {len(violations)} violation(s)")
        return CompileResult.invalid(action_id, ValidationError(action_id, violations))

    logger.debug(f"Action '{action_id}' compiled with keys {sorted(payload)}")
    return CompileResult.valid(action_id, payload)
