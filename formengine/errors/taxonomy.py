"""
errors/taxonomy.py - Error classification system

Every failure the engine reports to a caller is a FormEngineError record
carried in a list or map. The exception classes at the bottom are used
only for refusals at the import boundary and for programming errors.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from datetime import datetime, timezone
from enum import Enum
import uuid


class ErrorSeverity(Enum):
    """Error severity levels."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    """Error categories."""
    # Schema errors (1xxx)
    SCHEMA = "schema"
    SCHEMA_WARNING = "schema_warning"

    # Field errors (2xxx)
    FIELD_VALIDATION = "field_validation"

    # Async errors (3xxx)
    ASYNC_VALIDATION = "async_validation"

    # Formula errors (4xxx)
    FORMULA = "formula"

    # Transport errors (5xxx)
    TRANSPORT = "transport"

    # System errors (6xxx)
    CONFIGURATION = "configuration"


class ErrorCode(Enum):
    """Specific error codes."""

    # Schema (1xxx)
    SCH_STRUCTURE = 1001
    SCH_DUPLICATE_NAME = 1002
    SCH_MISSING_REFERENCE = 1003
    SCH_CIRCULAR_DEP = 1004
    SCH_RANGE = 1005
    SCH_ADVISORY = 1006
    SCH_PARSE = 1007

    # Field (2xxx)
    FLD_REQUIRED = 2001
    FLD_CONSTRAINT = 2002
    FLD_CROSS_FIELD = 2003

    # Async (3xxx)
    ASY_INVALID = 3001
    ASY_REQUEST_FAILED = 3002

    # Formula (4xxx)
    FRM_PARSE = 4001
    FRM_EVALUATION = 4002

    # Transport (5xxx)
    TRN_OPTIONS = 5001
    TRN_VALIDATION = 5002

    # System (6xxx)
    SYS_CONFIG = 6001


@dataclass
class FormEngineError:
    """Structured error representation."""

    error_id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])

    code: ErrorCode = ErrorCode.SCH_STRUCTURE
    category: ErrorCategory = ErrorCategory.SCHEMA
    severity: ErrorSeverity = ErrorSeverity.ERROR

    message: str = ""
    detail: str = ""

    # Context
    source: str = ""  # Component that produced it
    field_name: Optional[str] = None

    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_blocking(self) -> bool:
        return self.severity in (ErrorSeverity.ERROR, ErrorSeverity.CRITICAL)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_id": self.error_id,
            "code": self.code.value,
            "category": self.category.value,
            "severity": self.severity.value,
            "message": self.message,
            "source": self.source,
            "field": self.field_name,
        }


def create_schema_error(
    message: str,
    code: ErrorCode = ErrorCode.SCH_STRUCTURE,
    field_name: str = None,
) -> FormEngineError:
    """Factory for blocking schema errors."""
    return FormEngineError(
        code=code,
        category=ErrorCategory.SCHEMA,
        severity=ErrorSeverity.ERROR,
        message=message,
        source="schema_validator",
        field_name=field_name,
    )


def create_schema_warning(
    message: str,
    field_name: str = None,
) -> FormEngineError:
    """Factory for advisory schema findings."""
    return FormEngineError(
        code=ErrorCode.SCH_ADVISORY,
        category=ErrorCategory.SCHEMA_WARNING,
        severity=ErrorSeverity.WARNING,
        message=message,
        source="schema_validator",
        field_name=field_name,
    )


def create_field_error(
    message: str,
    field_name: str,
    code: ErrorCode = ErrorCode.FLD_CONSTRAINT,
) -> FormEngineError:
    """Factory for synchronous field validation errors."""
    return FormEngineError(
        code=code,
        category=ErrorCategory.FIELD_VALIDATION,
        severity=ErrorSeverity.ERROR,
        message=message,
        source="field_rules",
        field_name=field_name,
    )


def create_formula_error(
    message: str,
    field_name: str,
    detail: str = "",
) -> FormEngineError:
    """Factory for computed-field evaluation failures."""
    return FormEngineError(
        code=ErrorCode.FRM_EVALUATION,
        category=ErrorCategory.FORMULA,
        severity=ErrorSeverity.WARNING,
        message=message,
        detail=detail,
        source="computed_evaluator",
        field_name=field_name,
    )


def create_transport_error(
    message: str,
    field_name: str = None,
    code: ErrorCode = ErrorCode.TRN_OPTIONS,
) -> FormEngineError:
    """Factory for options fetch / remote validation failures."""
    return FormEngineError(
        code=code,
        category=ErrorCategory.TRANSPORT,
        severity=ErrorSeverity.WARNING,
        message=message,
        source="remote",
        field_name=field_name,
    )


# =============================================================================
# EXCEPTIONS
# =============================================================================

class FormEngineException(Exception):
    """Base exception for the form engine."""
    pass


class SchemaImportError(FormEngineException):
    """Raised when a document is refused at the import boundary."""

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__(f"Invalid schema: {', '.join(self.errors)}")


class CyclicDependencyError(FormEngineException):
    """Raised when an ordering is requested over a cyclic graph."""

    def __init__(self, cycle: List[str]):
        self.cycle = cycle
        super().__init__(f"Circular dependency detected: {' -> '.join(cycle)}")
