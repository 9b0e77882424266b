"""
formengine Core

Provides:
- Enums for field types, condition operators and async validation states
- Pydantic schema models (FormSchema, FormField, ...)
- Condition evaluation shared by visibility and requiredIf
- FormState: values / touched / dirty maps of one form
- Schema import / export and the generated values model
"""

from .enums import (
    FieldType,
    ConditionOperator,
    LogicalOperator,
    FormatAs,
    AsyncValidationStatus,
    ValidWhen,
    HttpMethod,
    KNOWN_FIELD_TYPES,
    OPTION_FIELD_TYPES,
    NUMERIC_FIELD_TYPES,
)
from .models import (
    SchemaModel,
    FieldOption,
    normalize_options,
    ConditionLeaf,
    ConditionGroup,
    AsyncValidatorConfig,
    Validations,
    ComputedConfig,
    MaskConfig,
    ArrayConfig,
    FormField,
    Section,
    FormSchema,
)
from .conditions import (
    OPERATORS,
    condition_fields,
    evaluate_condition,
    is_empty,
    values_equal,
)
from .form_state import FormState
from .schema_io import (
    ImportResult,
    build_values_model,
    export_schema,
    import_schema,
    import_schema_or_raise,
    parse_schema,
    serialize_schema,
)

__all__ = [
    # Enums
    "FieldType",
    "ConditionOperator",
    "LogicalOperator",
    "FormatAs",
    "AsyncValidationStatus",
    "ValidWhen",
    "HttpMethod",
    "KNOWN_FIELD_TYPES",
    "OPTION_FIELD_TYPES",
    "NUMERIC_FIELD_TYPES",
    # Models
    "SchemaModel",
    "FieldOption",
    "normalize_options",
    "ConditionLeaf",
    "ConditionGroup",
    "AsyncValidatorConfig",
    "Validations",
    "ComputedConfig",
    "MaskConfig",
    "ArrayConfig",
    "FormField",
    "Section",
    "FormSchema",
    # Conditions
    "OPERATORS",
    "condition_fields",
    "evaluate_condition",
    "is_empty",
    "values_equal",
    # State
    "FormState",
    # Import / export
    "ImportResult",
    "build_values_model",
    "export_schema",
    "import_schema",
    "import_schema_or_raise",
    "parse_schema",
    "serialize_schema",
]
