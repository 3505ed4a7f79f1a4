"""Canonical value resolver.

Several fields may supply one logical parameter (a picker and a manual
entry box both feeding ``folder``). The schema declares their precedence;
the resolver returns the first non-empty candidate in that order.
"""

from typing import AbstractSet, Any, Dict, Mapping, Optional, Sequence

from form_engine.schemas.form_schema import FormSchema
from form_engine.utils.value_parsing import is_empty


def resolve(
    canonical_id: str,
    group: Sequence[str],
    values: Mapping[str, Any],
) -> Optional[Any]:
    """Pick the effective value of one canonical parameter.

    Args:
        canonical_id: Canonical parameter id (for callers' bookkeeping)
        group: Field ids in precedence order (basic/selector first)
        values: Raw field values; never modified

    Returns:
        First candidate value that is non-empty after trimming, or None
    """
    for field_id in group:
        value = values.get(field_id)
        if not is_empty(value):
            return value
    return None


def resolve_all(
    schema: FormSchema,
    values: Mapping[str, Any],
    candidates: Optional[AbstractSet[str]] = None,
) -> Dict[str, Any]:
    """Resolve every canonical parameter of a schema.

    Args:
        schema: Loaded schema
        values: Raw field values
        candidates: If given, only these field ids may supply values
            (typically the visible or active fields)

    Returns:
        Canonical id -> effective value, for canonical ids that resolved
    """
    resolved: Dict[str, Any] = {}
    for canonical_id, group in schema.canonical_groups.items():
        if candidates is not None:
            group = [field_id for field_id in group if field_id in candidates]
        value = resolve(canonical_id, group, values)
        if value is not None:
            resolved[canonical_id] = value
    return resolved
