"""
formengine/core/models.py - Pydantic Schema Models

Typed view of the declarative form document. Keys are camelCase on the
wire (``dependsOn``, ``visibleWhen``) and snake_case in Python; unknown
keys are kept so a document survives an import/export round trip.
"""

from __future__ import annotations

from typing import Annotated, Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag
from pydantic.alias_generators import to_camel

from .enums import FieldType


class SchemaModel(BaseModel):
    """Base for every schema node: camelCase aliases, extra keys preserved."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )


# =============================================================================
# Options
# =============================================================================


class FieldOption(SchemaModel):
    """A single selectable option."""

    value: Any = Field(..., description="Stored value")
    label: str = Field("", description="Human-readable label")


def normalize_options(options: Optional[List[Any]]) -> List[FieldOption]:
    """Convert plain strings to {value, label} options."""
    if not options:
        return []
    normalized = []
    for opt in options:
        if isinstance(opt, FieldOption):
            normalized.append(opt)
        elif isinstance(opt, dict):
            normalized.append(FieldOption.model_validate(opt))
        else:
            normalized.append(FieldOption(value=opt, label=str(opt)))
    return normalized


# =============================================================================
# Conditions
# =============================================================================


class ConditionLeaf(SchemaModel):
    """Compare the current value of ``field`` against ``value``."""

    field: str
    operator: str = "equals"
    value: Any = None


def _condition_kind(value: Any) -> str:
    if isinstance(value, dict):
        return "group" if "conditions" in value else "leaf"
    return "group" if isinstance(value, ConditionGroup) else "leaf"


Condition = Annotated[
    Union[
        Annotated["ConditionGroup", Tag("group")],
        Annotated[ConditionLeaf, Tag("leaf")],
    ],
    Discriminator(_condition_kind),
]


class ConditionGroup(SchemaModel):
    """Combine child conditions with ``and`` / ``or``."""

    operator: str = "and"
    conditions: List[Condition] = Field(default_factory=list)


# =============================================================================
# Field configuration blocks
# =============================================================================


class AsyncValidatorConfig(SchemaModel):
    """Remote validation descriptor."""

    endpoint: str
    method: str = "POST"
    debounce_ms: Optional[int] = None
    valid_when: str = "custom"
    error_message: Optional[str] = None


class Validations(SchemaModel):
    """Validation rules attached to a field."""

    required: Optional[bool] = None
    required_true: Optional[bool] = None
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    min: Optional[float] = None
    max: Optional[float] = None
    pattern: Optional[str] = None
    matches_field: Optional[str] = None
    greater_than_field: Optional[str] = None
    less_than_field: Optional[str] = None
    required_if: Optional[ConditionLeaf] = None
    custom_message: Optional[str] = None
    async_validator: Optional[AsyncValidatorConfig] = None


class ComputedConfig(SchemaModel):
    """Formula-derived value."""

    formula: str
    dependencies: List[str] = Field(default_factory=list)
    format_as: str = "number"
    decimal: Optional[int] = None
    prefix: Optional[str] = None
    suffix: Optional[str] = None


class MaskConfig(SchemaModel):
    """Custom mask pattern."""

    type: str = "custom"
    pattern: str = ""
    placeholder: Optional[str] = None
    prefix: Optional[str] = None
    suffix: Optional[str] = None


Mask = Union[str, MaskConfig]


class ArrayConfig(SchemaModel):
    """Repeatable group of nested fields."""

    fields: List[FormField] = Field(default_factory=list)
    min_items: Optional[int] = None
    max_items: Optional[int] = None
    initial_items: Optional[int] = None


# =============================================================================
# Field and schema
# =============================================================================


class FormField(SchemaModel):
    """Declarative field descriptor."""

    name: str
    type: str
    label: str = ""

    options: Optional[List[Union[FieldOption, str]]] = None
    depends_on: Optional[Union[str, List[str]]] = None
    options_map: Optional[Dict[str, List[FieldOption]]] = None
    options_endpoint: Optional[str] = None

    validations: Optional[Validations] = None
    visible_when: Optional[Condition] = None
    computed: Optional[ComputedConfig] = None
    mask: Optional[Mask] = None
    array_config: Optional[ArrayConfig] = None

    readonly: Optional[bool] = None
    min: Optional[float] = None
    max: Optional[float] = None
    min_selections: Optional[int] = None
    max_selections: Optional[int] = None
    max_file_size: Optional[float] = None
    max_characters: Optional[int] = None

    @property
    def parents(self) -> List[str]:
        """Names listed in dependsOn, always as a list."""
        if not self.depends_on:
            return []
        if isinstance(self.depends_on, str):
            return [self.depends_on]
        return list(self.depends_on)

    @property
    def is_required(self) -> bool:
        return bool(self.validations and self.validations.required)

    @property
    def async_validator(self) -> Optional[AsyncValidatorConfig]:
        return self.validations.async_validator if self.validations else None

    def static_options(self) -> List[FieldOption]:
        return normalize_options(self.options)

    def initial_value(self) -> Any:
        """Value a freshly initialized form holds for this field."""
        if self.type == FieldType.CHECKBOX.value:
            return False
        if self.type == FieldType.MULTISELECT.value:
            return []
        if self.type == FieldType.ARRAY.value:
            count = self.array_config.initial_items if self.array_config else 0
            return [{} for _ in range(count or 0)]
        return ""


class Section(SchemaModel):
    """One step of a multi-step form."""

    title: str = ""
    description: Optional[str] = None
    fields: List[FormField] = Field(default_factory=list)


class FormSchema(SchemaModel):
    """Root form document."""

    title: str = ""
    fields: Optional[List[FormField]] = None
    sections: Optional[List[Section]] = None

    # Opaque collaborator blocks
    autosave: Optional[Dict[str, Any]] = None
    submission: Optional[Dict[str, Any]] = None
    i18n: Optional[Dict[str, Any]] = None

    def all_fields(self) -> List[FormField]:
        """Flattened field list (flat fields first, then section fields)."""
        result: List[FormField] = list(self.fields or [])
        for section in self.sections or []:
            result.extend(section.fields)
        return result

    def get_field(self, name: str) -> Optional[FormField]:
        for f in self.all_fields():
            if f.name == name:
                return f
        return None

    def field_names(self) -> List[str]:
        return [f.name for f in self.all_fields()]


ConditionGroup.model_rebuild()
ArrayConfig.model_rebuild()
FormField.model_rebuild()
