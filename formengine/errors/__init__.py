"""
errors/ - Error Taxonomy

Structured error classification for schema, field, async, formula and
transport failures.
"""

from .taxonomy import (
    ErrorSeverity,
    ErrorCategory,
    ErrorCode,
    FormEngineError,
    create_schema_error,
    create_schema_warning,
    create_field_error,
    create_formula_error,
    create_transport_error,
    FormEngineException,
    SchemaImportError,
    CyclicDependencyError,
)

__all__ = [
    "ErrorSeverity",
    "ErrorCategory",
    "ErrorCode",
    "FormEngineError",
    "create_schema_error",
    "create_schema_warning",
    "create_field_error",
    "create_formula_error",
    "create_transport_error",
    "FormEngineException",
    "SchemaImportError",
    "CyclicDependencyError",
]
