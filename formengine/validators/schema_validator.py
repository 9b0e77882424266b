"""
formengine Schema Validator

Static checks over a schema document, run once on import and again on
every edit. Works on the raw JSON document so that malformed input is
reported as findings instead of failing model parsing.

Findings:
- Structural (errors): title, fields/sections, per-field type/name/label,
  duplicate names, arrays without arrayConfig
- Numeric (errors): min/max, range bounds, selection bounds
- References (errors): dependsOn, visibleWhen, computed dependencies,
  cross-field validations
- Cycles (errors): dependsOn and computed dependencies, checked separately
- Advisory (warnings): unknown types / masks, missing options, bad regex,
  computed field presentation, non-positive limits
"""

from __future__ import annotations
from collections import Counter
from typing import Any, Dict, List, Mapping, Optional, Union
import logging
import re

from formengine.core.conditions import condition_fields
from formengine.core.enums import FieldType, KNOWN_FIELD_TYPES
from formengine.core.models import FormSchema
from formengine.dependencies.graph import (
    EdgeType,
    FieldDependencyGraph,
    computed_inputs_of,
    parents_of,
)
from formengine.errors import ErrorCode
from formengine.expressions import FormulaError, parse_formula, referenced_names
from formengine.masks import KNOWN_MASKS
from .taxonomy import SchemaSummary, SchemaValidationResult

logger = logging.getLogger(__name__)

SchemaLike = Union[FormSchema, Mapping[str, Any]]

CROSS_FIELD_RULES = ("matchesField", "greaterThanField", "lessThanField")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _fmt(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def flatten_fields(document: Mapping[str, Any]) -> List[Any]:
    """Flat fields first, then each section's fields, in order."""
    fields: List[Any] = []
    flat = document.get("fields")
    if isinstance(flat, list):
        fields.extend(flat)
    sections = document.get("sections")
    if isinstance(sections, list):
        for section in sections:
            if isinstance(section, Mapping) and isinstance(section.get("fields"), list):
                fields.extend(section["fields"])
    return fields


class SchemaValidator:
    """
    Validates a schema document.

    ``validate`` is a pure function of its argument; the instance holds no
    state between calls.
    """

    def validate(self, schema: SchemaLike) -> SchemaValidationResult:
        """Run every check and return errors, warnings and a summary."""
        result = SchemaValidationResult()

        if isinstance(schema, FormSchema):
            document: Any = schema.model_dump(by_alias=True, exclude_none=True)
        else:
            document = schema

        if not isinstance(document, Mapping):
            result.add_error("Schema must be a JSON object")
            result.summary = SchemaSummary(error_count=1)
            return result

        self._check_root(document, result)

        fields = flatten_fields(document)
        field_dicts = [f for f in fields if isinstance(f, Mapping)]

        for index, f in enumerate(fields):
            if not isinstance(f, Mapping):
                result.add_error(f"Field[{index}]: must be an object")
                continue
            self._check_field(f, f'Field[{index}] "{f.get("name", "")}"', result)

        self._check_duplicates(field_dicts, result)

        names = {f.get("name") for f in field_dicts if isinstance(f.get("name"), str)}
        graph = FieldDependencyGraph.from_fields(field_dicts)
        self._check_dependencies(field_dicts, names, graph, result)
        self._check_computed(field_dicts, names, graph, result)

        result.summary = self._summarize(document, field_dicts, result)

        logger.info(
            f"Schema '{document.get('title', '')}' validated: "
            f"{result.summary.error_count} errors, {result.summary.warning_count} warnings"
        )
        return result

    # -------------------------------------------------------------------------
    # Structure
    # -------------------------------------------------------------------------

    def _check_root(self, document: Mapping[str, Any], result: SchemaValidationResult) -> None:
        if not document.get("title"):
            result.add_error('Schema is missing required "title" property')

        has_fields = document.get("fields") is not None
        has_sections = document.get("sections") is not None
        if not has_fields and not has_sections:
            result.add_error('Schema must have either "fields" or "sections" property')
        elif has_fields and has_sections:
            result.add_warning('Schema has both "fields" and "sections"; both are used')

        if has_fields and not isinstance(document.get("fields"), list):
            result.add_error('"fields" must be an array')
        if has_sections:
            sections = document.get("sections")
            if not isinstance(sections, list):
                result.add_error('"sections" must be an array')
            else:
                for i, section in enumerate(sections):
                    if not isinstance(section, Mapping) or not isinstance(section.get("fields"), list):
                        result.add_error(f'Section[{i}]: Missing required property "fields"')

    def _check_required_props(
        self,
        f: Mapping[str, Any],
        ref: str,
        result: SchemaValidationResult,
    ) -> None:
        for prop in ("type", "name", "label"):
            if not f.get(prop):
                result.add_error(
                    f'{ref}: Missing required property "{prop}"',
                    field_name=f.get("name") or None,
                )

    def _check_field(self, f: Mapping[str, Any], ref: str, result: SchemaValidationResult) -> None:
        name = f.get("name") or None
        field_type = f.get("type")

        self._check_required_props(f, ref, result)

        if field_type and field_type not in KNOWN_FIELD_TYPES:
            result.add_warning(f'{ref}: Unknown field type "{field_type}"', field_name=name)

        has_options = any(f.get(k) for k in ("options", "optionsEndpoint", "optionsMap"))
        if field_type in (FieldType.SELECT.value, FieldType.RADIO.value) and not has_options:
            result.add_warning(
                f'{ref}: Select/Radio field should have "options", "optionsEndpoint", or "optionsMap"',
                field_name=name,
            )
        if field_type == FieldType.MULTISELECT.value:
            if not has_options:
                result.add_warning(
                    f'{ref}: Multiselect field should have "options", "optionsEndpoint", or "optionsMap"',
                    field_name=name,
                )
            low, high = f.get("minSelections"), f.get("maxSelections")
            if _is_number(low) and _is_number(high) and low > high:
                result.add_error(
                    f'{ref}: "minSelections" cannot be greater than "maxSelections"',
                    code=ErrorCode.SCH_RANGE,
                    field_name=name,
                )

        if field_type == FieldType.ARRAY.value:
            self._check_array(f, ref, result)

        low, high = f.get("min"), f.get("max")
        if field_type == FieldType.NUMBER.value:
            if _is_number(low) and _is_number(high) and low > high:
                result.add_error(
                    f'{ref}: "min" ({_fmt(low)}) cannot be greater than "max" ({_fmt(high)})',
                    code=ErrorCode.SCH_RANGE,
                    field_name=name,
                )

        if field_type == FieldType.RANGE.value:
            if low is None or high is None:
                result.add_warning(
                    f'{ref}: Range field should have both "min" and "max" properties',
                    field_name=name,
                )
            if _is_number(low) and _is_number(high) and low >= high:
                result.add_error(
                    f'{ref}: "min" must be less than "max" for range fields',
                    code=ErrorCode.SCH_RANGE,
                    field_name=name,
                )

        if field_type == FieldType.FILE.value:
            size = f.get("maxFileSize")
            if size is not None and (not _is_number(size) or size <= 0):
                result.add_warning(f'{ref}: "maxFileSize" should be a positive number', field_name=name)

        if field_type == FieldType.RICHTEXT.value:
            chars = f.get("maxCharacters")
            if chars is not None and (not _is_number(chars) or chars <= 0):
                result.add_warning(f'{ref}: "maxCharacters" should be a positive number', field_name=name)

        validations = f.get("validations")
        if isinstance(validations, Mapping):
            self._check_validations(f, validations, ref, result)

        self._check_mask(f, ref, result)

        if f.get("computed") is not None:
            if field_type != FieldType.TEXT.value:
                result.add_warning(f'{ref}: Computed fields work best with type="text"', field_name=name)
            if not f.get("readonly"):
                result.add_warning(f"{ref}: Computed fields should be readonly", field_name=name)

    def _check_array(self, f: Mapping[str, Any], ref: str, result: SchemaValidationResult) -> None:
        name = f.get("name") or None
        config = f.get("arrayConfig")
        if not config:
            result.add_error(f'{ref}: Array field must have "arrayConfig" property', field_name=name)
            return
        if not isinstance(config, Mapping):
            result.add_error(f'{ref}: "arrayConfig" must be an object', field_name=name)
            return

        low, high = config.get("minItems"), config.get("maxItems")
        if _is_number(low) and _is_number(high) and low > high:
            result.add_error(
                f'{ref}: "minItems" cannot be greater than "maxItems"',
                code=ErrorCode.SCH_RANGE,
                field_name=name,
            )

        nested = config.get("fields")
        if not isinstance(nested, list):
            result.add_error(f'{ref}: "arrayConfig" must have a "fields" array', field_name=name)
            return

        nested_names: List[str] = []
        for j, sub in enumerate(nested):
            sub_ref = f'{ref}.arrayConfig.fields[{j}]'
            if not isinstance(sub, Mapping):
                result.add_error(f"{sub_ref}: must be an object", field_name=name)
                continue
            sub_ref = f'{sub_ref} "{sub.get("name", "")}"'
            self._check_required_props(sub, sub_ref, result)
            sub_type = sub.get("type")
            if sub_type and sub_type not in KNOWN_FIELD_TYPES:
                result.add_warning(f'{sub_ref}: Unknown field type "{sub_type}"', field_name=name)
            if isinstance(sub.get("name"), str) and sub.get("name"):
                nested_names.append(sub["name"])

        for sub_name, count in Counter(nested_names).items():
            if count > 1:
                result.add_error(
                    f'{ref}: Duplicate field name "{sub_name}" found {count} times',
                    code=ErrorCode.SCH_DUPLICATE_NAME,
                    field_name=name,
                )

    def _check_validations(
        self,
        f: Mapping[str, Any],
        validations: Mapping[str, Any],
        ref: str,
        result: SchemaValidationResult,
    ) -> None:
        name = f.get("name") or None

        low, high = validations.get("minLength"), validations.get("maxLength")
        if _is_number(low) and _is_number(high) and low > high:
            result.add_warning(f'{ref}: "minLength" cannot be greater than "maxLength"', field_name=name)

        if validations.get("requiredTrue") and f.get("type") != FieldType.CHECKBOX.value:
            result.add_warning(
                f'{ref}: "requiredTrue" validation is only for checkbox fields',
                field_name=name,
            )

        pattern = validations.get("pattern")
        if pattern:
            try:
                re.compile(str(pattern))
            except re.error:
                result.add_warning(f"{ref}: Invalid regex pattern in validations", field_name=name)

        async_validator = validations.get("asyncValidator")
        if async_validator is not None:
            if not isinstance(async_validator, Mapping) or not async_validator.get("endpoint"):
                result.add_error(
                    f'{ref}: "asyncValidator" must have an "endpoint"',
                    field_name=name,
                )

    def _check_mask(self, f: Mapping[str, Any], ref: str, result: SchemaValidationResult) -> None:
        mask = f.get("mask")
        if not mask:
            return
        name = f.get("name") or None
        if isinstance(mask, str):
            if mask not in KNOWN_MASKS:
                result.add_warning(f'{ref}: Unknown mask type "{mask}"', field_name=name)
        elif isinstance(mask, Mapping):
            if mask.get("type", "custom") == "custom" and not mask.get("pattern"):
                result.add_warning(f'{ref}: Custom mask should have a "pattern"', field_name=name)

    def _check_duplicates(self, fields: List[Mapping[str, Any]], result: SchemaValidationResult) -> None:
        counts = Counter(
            f.get("name") for f in fields
            if isinstance(f.get("name"), str) and f.get("name")
        )
        for name, count in counts.items():
            if count > 1:
                result.add_error(
                    f'Duplicate field name "{name}" found {count} times',
                    code=ErrorCode.SCH_DUPLICATE_NAME,
                    field_name=name,
                )

    # -------------------------------------------------------------------------
    # References and cycles
    # -------------------------------------------------------------------------

    def _check_dependencies(
        self,
        fields: List[Mapping[str, Any]],
        names: set,
        graph: FieldDependencyGraph,
        result: SchemaValidationResult,
    ) -> None:
        cycles = graph.find_cycles(EdgeType.DEPENDS_ON)

        for f in fields:
            name = f.get("name")

            for dep in parents_of(f):
                if dep not in names:
                    result.add_error(
                        f'Field "{name}" depends on non-existent field "{dep}"',
                        code=ErrorCode.SCH_MISSING_REFERENCE,
                        field_name=name,
                    )

            if name in cycles:
                result.add_error(
                    f'Field "{name}" has circular dependency',
                    code=ErrorCode.SCH_CIRCULAR_DEP,
                    field_name=name,
                )

            condition = f.get("visibleWhen")
            if isinstance(condition, Mapping):
                for ref in condition_fields(condition):
                    if ref not in names:
                        result.add_error(
                            f'Field "{name}" visibleWhen references non-existent field "{ref}"',
                            code=ErrorCode.SCH_MISSING_REFERENCE,
                            field_name=name,
                        )

            validations = f.get("validations")
            if not isinstance(validations, Mapping):
                continue
            for rule in CROSS_FIELD_RULES:
                ref = validations.get(rule)
                if isinstance(ref, str) and ref and ref not in names:
                    result.add_error(
                        f'Field "{name}" {rule} references non-existent field "{ref}"',
                        code=ErrorCode.SCH_MISSING_REFERENCE,
                        field_name=name,
                    )
            required_if = validations.get("requiredIf")
            if isinstance(required_if, Mapping):
                for ref in condition_fields(required_if):
                    if ref not in names:
                        result.add_error(
                            f'Field "{name}" requiredIf references non-existent field "{ref}"',
                            code=ErrorCode.SCH_MISSING_REFERENCE,
                            field_name=name,
                        )

    def _check_computed(
        self,
        fields: List[Mapping[str, Any]],
        names: set,
        graph: FieldDependencyGraph,
        result: SchemaValidationResult,
    ) -> None:
        cycles = graph.find_cycles(EdgeType.COMPUTED)

        for f in fields:
            computed = f.get("computed")
            if computed is None:
                continue
            name = f.get("name")
            if not isinstance(computed, Mapping) or not isinstance(computed.get("formula"), str):
                result.add_error(
                    f'Computed field "{name}" must have a "formula"',
                    field_name=name,
                )
                continue

            dependencies = computed_inputs_of(f)
            for dep in dependencies:
                if dep not in names:
                    result.add_error(
                        f'Computed field "{name}" depends on non-existent field "{dep}"',
                        code=ErrorCode.SCH_MISSING_REFERENCE,
                        field_name=name,
                    )

            if name in dependencies:
                result.add_error(
                    f'Computed field "{name}" cannot depend on itself',
                    code=ErrorCode.SCH_CIRCULAR_DEP,
                    field_name=name,
                )

            cycle = cycles.get(name)
            # A self-reference is reported above
            if cycle and cycle != [name, name]:
                result.add_error(
                    f'Computed field "{name}" has circular dependency: {" -> ".join(cycle)}',
                    code=ErrorCode.SCH_CIRCULAR_DEP,
                    field_name=name,
                )

            try:
                tree = parse_formula(computed["formula"])
            except FormulaError as e:
                result.add_warning(f'Computed field "{name}" has an invalid formula: {e}', field_name=name)
                continue
            for ref in referenced_names(tree):
                if ref not in dependencies:
                    result.add_warning(
                        f'Computed field "{name}" formula uses "{ref}" which is not listed in dependencies',
                        field_name=name,
                    )

    # -------------------------------------------------------------------------
    # Summary
    # -------------------------------------------------------------------------

    def _summarize(
        self,
        document: Mapping[str, Any],
        fields: List[Mapping[str, Any]],
        result: SchemaValidationResult,
    ) -> SchemaSummary:
        field_types: Dict[str, int] = {}
        required = 0
        for f in fields:
            key = str(f.get("type") or "unknown")
            field_types[key] = field_types.get(key, 0) + 1
            validations = f.get("validations")
            if isinstance(validations, Mapping) and validations.get("required"):
                required += 1

        def block(key: str) -> Mapping[str, Any]:
            value = document.get(key)
            return value if isinstance(value, Mapping) else {}

        return SchemaSummary(
            total_fields=len(fields),
            required_fields=required,
            optional_fields=len(fields) - required,
            field_types=field_types,
            has_autosave=bool(block("autosave").get("enabled")),
            has_submission=bool(block("submission").get("endpoint")),
            has_i18n=bool(block("i18n").get("enabled")),
            error_count=len(result.errors),
            warning_count=len(result.warnings),
        )


def validate_schema(schema: SchemaLike) -> SchemaValidationResult:
    """Convenience wrapper around SchemaValidator.validate."""
    return SchemaValidator().validate(schema)
