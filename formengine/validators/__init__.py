"""
formengine Validators

Provides:
- SchemaValidator: static checks over a schema document
- FieldRuleValidator: synchronous per-field rules at runtime
- Result types shared by both
"""

from .taxonomy import (
    SchemaSummary,
    SchemaValidationResult,
    FieldErrors,
)
from .schema_validator import (
    SchemaValidator,
    flatten_fields,
    validate_schema,
)
from .field_rules import (
    FieldRuleValidator,
    RuleContext,
    fails_required,
    is_blank,
    validate_values,
)

__all__ = [
    # Taxonomy
    "SchemaSummary",
    "SchemaValidationResult",
    "FieldErrors",
    # Schema
    "SchemaValidator",
    "flatten_fields",
    "validate_schema",
    # Field rules
    "FieldRuleValidator",
    "RuleContext",
    "fails_required",
    "is_blank",
    "validate_values",
]
