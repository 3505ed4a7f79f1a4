"""Pydantic schemas for block form definitions.

A block form document declares the configurable fields of one block type,
their visibility conditions and dependencies, how several fields share one
canonical parameter, how the discriminator selects a backend action, and
which canonical parameters each action requires.

Documents use camelCase keys (``canonicalParamId``, ``dependsOn``); Python
code may use the snake_case attribute names.
"""

import copy
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


ScalarValue = Union[str, bool, int, float, None]


class ValueKind(str, Enum):
    """Type a canonical parameter is coerced to in the compiled payload."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    JSON = "json"
    ARRAY = "array"


class FieldMode(str, Enum):
    """UI modality of a field."""

    BASIC = "basic"  # Selector / picker
    ADVANCED = "advanced"  # Manual entry


class UnknownValuePolicy(str, Enum):
    """What the operation selector does with an unmapped discriminator value."""

    STRICT_THROW = "strict-throw"
    FALLBACK_DEFAULT = "fallback-default"


class CompositeKind(str, Enum):
    """Cross-field requirement kinds."""

    ANY_OF = "any_of"  # At least one field non-empty
    ALL_OF = "all_of"  # Every field non-empty
    AT_MOST_ONE_OF = "at_most_one_of"  # Fields are mutually exclusive


class _SchemaModel(BaseModel):
    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )


class Condition(_SchemaModel):
    """Visibility predicate over the current field values.

    ``value`` may be a scalar (equality) or a list (membership). ``and``
    chains a further condition that must also hold.
    """

    field: str = Field(..., min_length=1, description="Field id the predicate reads")
    value: Union[ScalarValue, Tuple[ScalarValue, ...]] = Field(
        ..., description="Expected value, or list of accepted values"
    )
    negate: bool = Field(False, description="Invert the match")
    and_: Optional["Condition"] = Field(
        default=None, alias="and", description="Chained condition that must also hold"
    )

    def chain(self) -> List["Condition"]:
        """Return this condition followed by every chained ``and`` condition."""
        links = []
        node: Optional[Condition] = self
        while node is not None:
            links.append(node)
            node = node.and_
        return links


Condition.model_rebuild()


class FieldSpec(_SchemaModel):
    """Schema description of one configurable input."""

    id: str = Field(..., min_length=1, description="Field id, unique per schema")
    canonical_param_id: str = Field(
        ..., min_length=1, description="Logical parameter this field supplies"
    )
    mode: FieldMode = Field(FieldMode.BASIC, description="basic (selector) or advanced (manual)")
    condition: Optional[Condition] = Field(None, description="Visibility condition")
    depends_on: Tuple[str, ...] = Field(default=(), description="Ordered field ids this field needs")
    required: bool = Field(False, description="Value must be non-empty while the field is visible")
    value_kind: ValueKind = Field(ValueKind.STRING, description="Payload type of the value")
    title: Optional[str] = Field(None, description="Renderer label, not interpreted")
    placeholder: Optional[str] = Field(None, description="Renderer hint, not interpreted")

    @model_validator(mode="before")
    @classmethod
    def default_canonical_id(cls, data: Any) -> Any:
        """Default the canonical parameter id to the field id."""
        if not isinstance(data, dict):
            return data
        if data.get("canonicalParamId") or data.get("canonical_param_id"):
            return data
        data = dict(data)
        data.pop("canonical_param_id", None)
        data["canonicalParamId"] = data.get("id")
        return data


class CompositeRule(_SchemaModel):
    """Cross-field requirement over canonical parameters (e.g. "A or B")."""

    kind: CompositeKind
    fields: Tuple[str, ...] = Field(..., min_length=1)
    message: Optional[str] = None

    def describe(self) -> str:
        if self.message:
            return self.message
        names = ", ".join(self.fields)
        if self.kind == CompositeKind.ANY_OF:
            return f"At least one of {names} is required"
        if self.kind == CompositeKind.ALL_OF:
            return f"All of {names} are required"
        return f"Only one of {names} may be set"


class RequirementRule(_SchemaModel):
    """Requirements and payload shape of one backend action."""

    action_id: str = Field(..., min_length=1)
    required: Tuple[str, ...] = Field(default=(), description="Canonical ids that must be non-empty")
    optional: Tuple[str, ...] = Field(default=(), description="Canonical ids passed when present")
    composite: Tuple[CompositeRule, ...] = Field(default=())
    defaults: Mapping[str, Any] = Field(
        default_factory=dict,
        validate_default=True,
        description="Canonical id -> value used when the value is empty",
    )

    @field_validator("defaults")
    @classmethod
    def freeze_defaults(cls, v: Mapping[str, Any]) -> Mapping[str, Any]:
        """Detach defaults from the source document and make them read-only."""
        return MappingProxyType(copy.deepcopy(dict(v)))

    @property
    def declared_keys(self) -> Tuple[str, ...]:
        """Every canonical id that may appear in this action's payload."""
        keys: List[str] = []
        candidates = list(self.required) + list(self.optional)
        for rule in self.composite:
            candidates.extend(rule.fields)
        candidates.extend(self.defaults.keys())
        for key in candidates:
            if key not in keys:
                keys.append(key)
        return tuple(keys)


class OperationRule(_SchemaModel):
    """Maps a discriminator field value to a backend action id."""

    discriminator_field: str = Field(..., min_length=1)
    mapping: Mapping[str, str] = Field(..., description="Discriminator value -> action id")
    default: Optional[str] = Field(None, description="Action id used under fallback-default")
    unknown_value_policy: UnknownValuePolicy = Field(UnknownValuePolicy.STRICT_THROW)

    @field_validator("mapping")
    @classmethod
    def validate_mapping(cls, v: Mapping[str, str]) -> Mapping[str, str]:
        """Mapping keys are matched after trimming, so store them trimmed and read-only."""
        trimmed = {key.strip(): action for key, action in v.items()}
        if len(trimmed) != len(v):
            raise ValueError("mapping contains keys that collide after trimming")
        return MappingProxyType(trimmed)


class FormSchemaDocument(_SchemaModel):
    """Serialized form of a block schema (one per block type)."""

    block_type: str = Field(..., min_length=1)
    version: str = "1"
    description: Optional[str] = None
    fields: Tuple[FieldSpec, ...] = Field(..., min_length=1)
    canonical_groups: Dict[str, Tuple[str, ...]] = Field(
        default_factory=dict, description="Canonical id -> field ids in precedence order"
    )
    operation: Optional[OperationRule] = None
    requirements: Tuple[RequirementRule, ...] = Field(default=())


@dataclass(frozen=True)
class FormSchema:
    """Validated, immutable schema aggregate consumed by the runtime.

    Built only by ``load_schema``; every reference inside it has been
    checked, so request-time code never meets a schema defect.
    """

    block_type: str
    version: str
    fields: Mapping[str, FieldSpec]
    field_order: Tuple[str, ...]
    canonical_groups: Mapping[str, Tuple[str, ...]]
    value_kinds: Mapping[str, ValueKind]
    operation: Optional[OperationRule]
    requirements: Mapping[str, RequirementRule]
    description: Optional[str] = None

    def field(self, field_id: str) -> FieldSpec:
        return self.fields[field_id]

    def canonical_of(self, field_id: str) -> str:
        return self.fields[field_id].canonical_param_id

    def group(self, canonical_id: str) -> Tuple[str, ...]:
        return self.canonical_groups.get(canonical_id, ())

    @property
    def canonical_ids(self) -> Tuple[str, ...]:
        return tuple(self.canonical_groups.keys())
