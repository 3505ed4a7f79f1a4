"""Dependency resolver: field ordering and readiness.

Fields declare ``dependsOn`` edges (e.g. a repository picker depends on the
credential). The resolver sorts fields so dependencies come first and
reports whether a field's dependencies all have an effective value.
"""

import heapq
import logging
from collections import defaultdict
from typing import Any, Dict, List, Mapping, Optional, Sequence

from form_engine.errors import DependencyNotReady, SchemaError
from form_engine.schemas.form_schema import FieldSpec, FormSchema
from form_engine.utils.value_parsing import is_empty

logger = logging.getLogger(__name__)


def order_fields(specs: Sequence[FieldSpec]) -> List[str]:
    """Topologically sort fields by their ``dependsOn`` edges.

    Ties keep declaration order, so the result is a pure function of the
    schema.

    Args:
        specs: Field specs in declaration order

    Returns:
        Field ids, every dependency before its dependents

    Raises:
        SchemaError: If a dependency is unknown or the edges form a cycle
    """
    index = {spec.id: i for i, spec in enumerate(specs)}
    indegree: Dict[str, int] = {spec.id: 0 for spec in specs}
    dependents: Dict[str, List[str]] = defaultdict(list)

    problems = []
    for spec in specs:
        for dep in spec.depends_on:
            if dep == spec.id:
                problems.append(f"Field '{spec.id}' depends on itself")
            elif dep not in index:
                problems.append(f"Field '{spec.id}' depends on unknown field '{dep}'")
            else:
                indegree[spec.id] += 1
                dependents[dep].append(spec.id)
    if problems:
        raise SchemaError(problems)

    heap = [index[field_id] for field_id, degree in indegree.items() if degree == 0]
    heapq.heapify(heap)
    ordered: List[str] = []
    while heap:
        field_id = specs[heapq.heappop(heap)].id
        ordered.append(field_id)
        for child in dependents[field_id]:
            indegree[child] -= 1
            if indegree[child] == 0:
                heapq.heappush(heap, index[child])

    if len(ordered) < len(specs):
        cyclic = [spec.id for spec in specs if indegree[spec.id] > 0]
        raise SchemaError(f"Cyclic dependsOn between fields: {', '.join(cyclic)}")

    logger.debug(f"Field order: {ordered}")
    return ordered


def check_ready(
    schema: FormSchema,
    field_id: str,
    effective_values: Mapping[str, Any],
) -> Optional[DependencyNotReady]:
    """Check a field's dependencies against effective canonical values.

    Args:
        schema: Loaded schema
        field_id: Field to check
        effective_values: Canonical id -> resolved value

    Returns:
        None if ready, otherwise a DependencyNotReady naming the unmet dependencies
    """
    spec = schema.field(field_id)
    missing = [
        dep for dep in spec.depends_on
        if is_empty(effective_values.get(schema.canonical_of(dep)))
    ]
    if missing:
        return DependencyNotReady(field_id, missing)
    return None


def is_ready(
    schema: FormSchema,
    field_id: str,
    effective_values: Mapping[str, Any],
) -> bool:
    """True if every dependency of the field has a non-empty effective value."""
    return check_ready(schema, field_id, effective_values) is None
