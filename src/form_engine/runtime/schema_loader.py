"""Load and validate block form schemas.

All schema checks run here, once, at load time:
- document shape (pydantic)
- duplicate field ids
- condition references (unknown fields, self references)
- ``dependsOn`` references and cycles
- canonical group precedence and value-kind consistency
- operation and requirement rule references

Every problem found is collected into one SchemaError, so a broken schema
is reported in full rather than one defect per restart.
"""

import json
import logging
from collections import Counter, defaultdict
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Tuple, Union

import yaml
from pydantic import ValidationError as PydanticValidationError

from form_engine.errors import SchemaError
from form_engine.runtime.condition_evaluator import referenced_fields
from form_engine.runtime.dependency_resolver import order_fields
from form_engine.schemas.form_schema import (
    FieldMode,
    FieldSpec,
    FormSchema,
    FormSchemaDocument,
    UnknownValuePolicy,
    ValueKind,
)

logger = logging.getLogger(__name__)

SCHEMA_SUFFIXES = (".yaml", ".yml", ".json")

# Precedence used when a canonical group is not declared explicitly
_MODE_RANK = {FieldMode.BASIC: 0, FieldMode.ADVANCED: 1}


def _format_pydantic_errors(error: PydanticValidationError) -> List[str]:
    problems = []
    for err in error.errors():
        location = ".".join(str(part) for part in err.get("loc", ())) or "<document>"
        problems.append(f"{location}: {err.get('msg')}")
    return problems


def _check_conditions(fields: Mapping[str, FieldSpec], problems: List[str]) -> None:
    for spec in fields.values():
        if spec.condition is None:
            continue
        for link in spec.condition.chain():
            if isinstance(link.value, tuple) and not link.value:
                logger.warning(
                    f"Field '{spec.id}' has a condition on '{link.field}' with an empty "
                    f"value list; the field will never be visible"
                )
        refs = referenced_fields(spec.condition)
        if spec.id in refs:
            problems.append(f"Field '{spec.id}' has a condition that references itself")
        for ref in sorted(refs - {spec.id}):
            if ref not in fields:
                problems.append(f"Field '{spec.id}' condition references unknown field '{ref}'")


def _build_canonical_groups(
    document: FormSchemaDocument,
    fields: Mapping[str, FieldSpec],
    problems: List[str],
) -> Tuple[Dict[str, Tuple[str, ...]], Dict[str, ValueKind]]:
    members: Dict[str, List[str]] = defaultdict(list)
    for spec in document.fields:
        members[spec.canonical_param_id].append(spec.id)

    for canonical_id, declared in document.canonical_groups.items():
        if canonical_id not in members:
            problems.append(f"Canonical group '{canonical_id}' matches no field")
            continue
        duplicates = [fid for fid, count in Counter(declared).items() if count > 1]
        if duplicates:
            problems.append(
                f"Canonical group '{canonical_id}' lists fields more than once: {', '.join(duplicates)}"
            )
        if set(declared) != set(members[canonical_id]):
            problems.append(
                f"Canonical group '{canonical_id}' must list exactly the fields "
                f"{sorted(members[canonical_id])}, got {list(declared)}"
            )

    groups: Dict[str, Tuple[str, ...]] = {}
    kinds: Dict[str, ValueKind] = {}
    for canonical_id, field_ids in members.items():
        if canonical_id in document.canonical_groups:
            groups[canonical_id] = tuple(document.canonical_groups[canonical_id])
        elif len(field_ids) == 1:
            groups[canonical_id] = (field_ids[0],)
        else:
            # Implicit precedence: basic (selector) before advanced (manual)
            modes = Counter(fields[fid].mode for fid in field_ids)
            if any(count > 1 for count in modes.values()):
                problems.append(
                    f"Canonical group '{canonical_id}' has no defined precedence between "
                    f"fields {', '.join(field_ids)}; declare canonicalGroups.{canonical_id}"
                )
                continue
            ordered = sorted(field_ids, key=lambda fid: _MODE_RANK[fields[fid].mode])
            logger.debug(f"Derived precedence for '{canonical_id}': {ordered}")
            groups[canonical_id] = tuple(ordered)

        field_kinds = {fields[fid].value_kind for fid in field_ids}
        if len(field_kinds) > 1:
            problems.append(
                f"Canonical group '{canonical_id}' mixes value kinds: "
                f"{sorted(kind.value for kind in field_kinds)}"
            )
        kinds[canonical_id] = fields[field_ids[0]].value_kind

    return groups, kinds


def _check_rules(
    document: FormSchemaDocument,
    fields: Mapping[str, FieldSpec],
    canonical_ids: set,
    problems: List[str],
) -> None:
    operation = document.operation
    reachable_actions = set()
    if operation is not None:
        if operation.discriminator_field not in fields:
            problems.append(
                f"Operation discriminator references unknown field '{operation.discriminator_field}'"
            )
        if operation.unknown_value_policy == UnknownValuePolicy.FALLBACK_DEFAULT and not operation.default:
            problems.append("Operation policy 'fallback-default' requires a default action")
        reachable_actions.update(operation.mapping.values())
        if operation.default:
            reachable_actions.add(operation.default)
    else:
        # Single-action blocks compile under their block type
        reachable_actions.add(document.block_type)

    action_counts = Counter(rule.action_id for rule in document.requirements)
    for action_id, count in action_counts.items():
        if count > 1:
            problems.append(f"Action '{action_id}' has {count} requirement rules")

    for rule in document.requirements:
        for key in rule.declared_keys:
            if key not in canonical_ids:
                problems.append(
                    f"Requirement rule for '{rule.action_id}' references unknown canonical parameter '{key}'"
                )
        if rule.action_id not in reachable_actions:
            logger.warning(
                f"Requirement rule for '{rule.action_id}' is unreachable from the operation mapping"
            )


def load_schema(doc: Union[Mapping[str, Any], FormSchemaDocument]) -> FormSchema:
    """
    Validate a schema document and build the immutable FormSchema.

    Args:
        doc: Parsed schema document (dict from JSON/YAML) or FormSchemaDocument

    Returns:
        FormSchema ready for request-time use

    Raises:
        SchemaError: Listing every problem found in the document
    """
    if isinstance(doc, FormSchemaDocument):
        document = doc
    else:
        if not isinstance(doc, Mapping):
            raise SchemaError(f"Schema document must be a mapping, got {type(doc).__name__}")
        block_type = doc.get("blockType") or doc.get("block_type")
        try:
            document = FormSchemaDocument.model_validate(dict(doc))
        except PydanticValidationError as e:
            raise SchemaError(_format_pydantic_errors(e), block_type=block_type)

    block_type = document.block_type

    id_counts = Counter(spec.id for spec in document.fields)
    duplicates = sorted(fid for fid, count in id_counts.items() if count > 1)
    if duplicates:
        raise SchemaError(f"Duplicate field ids: {', '.join(duplicates)}", block_type=block_type)

    fields = {spec.id: spec for spec in document.fields}
    problems: List[str] = []

    _check_conditions(fields, problems)

    field_order: List[str] = []
    try:
        field_order = order_fields(document.fields)
    except SchemaError as e:
        problems.extend(e.problems)

    groups, kinds = _build_canonical_groups(document, fields, problems)
    canonical_ids = {spec.canonical_param_id for spec in document.fields}
    _check_rules(document, fields, canonical_ids, problems)

    if problems:
        raise SchemaError(problems, block_type=block_type)

    schema = FormSchema(
        block_type=block_type,
        version=document.version,
        description=document.description,
        fields=MappingProxyType(fields),
        field_order=tuple(field_order),
        canonical_groups=MappingProxyType(groups),
        value_kinds=MappingProxyType(kinds),
        operation=document.operation,
        requirements=MappingProxyType({rule.action_id: rule for rule in document.requirements}),
    )
    logger.debug(
        f"Loaded schema '{block_type}' v{document.version}: "
        f"{len(fields)} fields, {len(groups)} canonical parameters, "
        f"{len(schema.requirements)} actions"
    )
    return schema


def read_schema_document(file_path: Union[str, Path]) -> Dict[str, Any]:
    """
    Read a schema document from a YAML or JSON file.

    Raises:
        SchemaError: If the file is missing, unparsable or not a mapping
    """
    path = Path(file_path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            if path.suffix.lower() == ".json":
                data = json.load(f)
            else:
                data = yaml.safe_load(f)
    except FileNotFoundError:
        raise SchemaError(f"Schema file not found: {path}")
    except json.JSONDecodeError as e:
        raise SchemaError(f"Invalid JSON in schema file {path}: {e}")
    except yaml.YAMLError as e:
        raise SchemaError(f"Invalid YAML in schema file {path}: {e}")

    if not isinstance(data, dict):
        raise SchemaError(f"Schema file {path} must contain a mapping")
    return data


def load_schema_file(file_path: Union[str, Path]) -> FormSchema:
    """Load and validate a schema from a YAML or JSON file."""
    return load_schema(read_schema_document(file_path))


def find_schema_files(directory: Union[str, Path]) -> List[Path]:
    """List schema files in a directory, sorted by name."""
    directory = Path(directory)
    if not directory.is_dir():
        return []
    return sorted(
        p for p in directory.iterdir()
        if p.is_file() and p.suffix.lower() in SCHEMA_SUFFIXES
    )
