"""
formengine/core/schema_io.py - Schema Import / Export

parse / serialize are a pure pair: serializing emits exactly the keys the
document was built from (camelCase), so parse(serialize(s)) == s.

Import runs the static validator on the raw document first and refuses
any schema with blocking findings.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Mapping, Optional, Tuple, Type, Union

from pydantic import BaseModel, ValidationError, create_model

from formengine.errors import SchemaImportError
from .enums import FieldType
from .models import FormField, FormSchema

logger = logging.getLogger(__name__)


# =============================================================================
# Parse / serialize
# =============================================================================


def parse_schema(source: Union[str, bytes, Mapping[str, Any]]) -> FormSchema:
    """Build a FormSchema from JSON text or an already-decoded document."""
    if isinstance(source, (str, bytes)):
        return FormSchema.model_validate_json(source)
    return FormSchema.model_validate(source)


def serialize_schema(schema: FormSchema) -> Dict[str, Any]:
    """camelCase document containing only the keys that were set."""
    return schema.model_dump(by_alias=True, exclude_unset=True, mode="json")


def export_schema(schema: FormSchema, indent: int = 2) -> str:
    """Indented JSON text."""
    return json.dumps(serialize_schema(schema), indent=indent)


# =============================================================================
# Import with validation
# =============================================================================


@dataclass
class ImportResult:
    """Outcome of importing a schema document."""
    schema: Optional[FormSchema] = None
    error: Optional[str] = None
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.schema is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "error": self.error,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "schema": serialize_schema(self.schema) if self.schema else None,
        }


def _pydantic_messages(exc: ValidationError) -> List[str]:
    messages = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ()))
        messages.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return messages


def import_schema(source: Union[str, bytes, Mapping[str, Any]]) -> ImportResult:
    """
    Parse, validate and accept a schema document.

    Never raises; refusals are reported through ``error`` / ``errors``.
    """
    from formengine.validators import SchemaValidator

    if isinstance(source, (str, bytes)):
        try:
            document = json.loads(source)
        except json.JSONDecodeError as e:
            logger.info(f"Schema import refused, bad JSON: {e}")
            return ImportResult(error=f"JSON parse error: {e}", errors=[str(e)])
    else:
        document = source

    validation = SchemaValidator().validate(document)
    if not validation.is_valid:
        errors = validation.errors
        logger.info(f"Schema import refused with {len(errors)} errors")
        return ImportResult(
            error=f"Invalid schema: {', '.join(errors)}",
            errors=errors,
            warnings=validation.warnings,
        )

    try:
        schema = parse_schema(document)
    except ValidationError as e:
        errors = _pydantic_messages(e)
        logger.info(f"Schema import refused, model errors: {errors}")
        return ImportResult(
            error=f"Invalid schema: {', '.join(errors)}",
            errors=errors,
            warnings=validation.warnings,
        )

    logger.info(f"Imported schema '{schema.title}' ({len(schema.all_fields())} fields)")
    return ImportResult(schema=schema, warnings=validation.warnings)


def import_schema_or_raise(source: Union[str, bytes, Mapping[str, Any]]) -> FormSchema:
    """import_schema, raising SchemaImportError on refusal."""
    result = import_schema(source)
    if result.schema is None:
        raise SchemaImportError(result.errors or [result.error or "unknown error"])
    return result.schema


# =============================================================================
# Values model
# =============================================================================

_STRING_TYPES = {
    FieldType.TEXT.value,
    FieldType.EMAIL.value,
    FieldType.PASSWORD.value,
    FieldType.TEXTAREA.value,
    FieldType.RICHTEXT.value,
    FieldType.COLOR.value,
    FieldType.DATE.value,
    FieldType.DATETIME.value,
}


def _annotation_for(f: FormField) -> Any:
    values = tuple(str(o.value) for o in f.static_options())

    if f.type in _STRING_TYPES:
        return str
    if f.type in (FieldType.NUMBER.value, FieldType.RANGE.value):
        return float
    if f.type == FieldType.CHECKBOX.value:
        return bool
    if f.type in (FieldType.SELECT.value, FieldType.RADIO.value):
        return Literal[values] if values else str
    if f.type == FieldType.MULTISELECT.value:
        return List[Literal[values]] if values else List[str]
    if f.type == FieldType.ARRAY.value:
        return List[Dict[str, Any]]
    return Any


def build_values_model(schema: FormSchema, name: str = "FormData") -> Type[BaseModel]:
    """
    Pydantic model mirroring the schema's field set.

    Required fields have no default; every other field is Optional with a
    None default.
    """
    definitions: Dict[str, Tuple[Any, Any]] = {}
    for f in schema.all_fields():
        annotation = _annotation_for(f)
        if f.is_required:
            definitions[f.name] = (annotation, ...)
        else:
            definitions[f.name] = (Optional[annotation], None)
    return create_model(name, **definitions)
