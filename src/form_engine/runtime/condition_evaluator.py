"""Condition evaluator: visibility predicates over current field values.

A condition is a conjunctive chain. Each link matches one field against a
scalar (equality) or a list (membership); ``negate`` inverts a link and
``and`` chains the next one. Values are compared by their trimmed text form.
"""

from typing import Any, Mapping, Set

from form_engine.schemas.form_schema import Condition
from form_engine.utils.value_parsing import as_text


def _matches_one(actual: Any, expected: Any) -> bool:
    if expected is None:
        return actual is None
    if actual is None:
        return False
    actual_text = as_text(actual)
    return actual_text is not None and actual_text == as_text(expected)


def _matches(condition: Condition, values: Mapping[str, Any]) -> bool:
    actual = values.get(condition.field)
    if isinstance(actual, str) and not actual.strip():
        actual = None

    expected = condition.value
    if isinstance(expected, tuple):
        if not expected:
            return False
        return any(_matches_one(actual, item) for item in expected)
    return _matches_one(actual, expected)


def evaluate(condition: Condition, values: Mapping[str, Any]) -> bool:
    """Evaluate a condition chain against the current values.

    Args:
        condition: Condition to evaluate
        values: Raw field values (field id -> value); never modified

    Returns:
        True if every link in the chain holds
    """
    for link in condition.chain():
        if isinstance(link.value, tuple) and not link.value:
            # An empty accepted-values list never holds, negated or not
            return False
        matched = _matches(link, values)
        if link.negate:
            matched = not matched
        if not matched:
            return False
    return True


def referenced_fields(condition: Condition) -> Set[str]:
    """Collect every field id read anywhere in the chain."""
    return {link.field for link in condition.chain()}
