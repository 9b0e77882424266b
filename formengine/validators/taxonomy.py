"""
formengine Validator Taxonomy

Result types shared by the static schema validator and the runtime field
rule validator.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
import logging

from formengine.errors import (
    ErrorCode,
    ErrorSeverity,
    FormEngineError,
    create_schema_error,
    create_schema_warning,
)

logger = logging.getLogger(__name__)


# =============================================================================
# SCHEMA SUMMARY
# =============================================================================

@dataclass
class SchemaSummary:
    """Order-independent aggregation over the flattened field set."""
    total_fields: int = 0
    required_fields: int = 0
    optional_fields: int = 0
    field_types: Dict[str, int] = field(default_factory=dict)
    has_autosave: bool = False
    has_submission: bool = False
    has_i18n: bool = False
    error_count: int = 0
    warning_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalFields": self.total_fields,
            "requiredFields": self.required_fields,
            "optionalFields": self.optional_fields,
            "fieldTypes": dict(self.field_types),
            "hasAutosave": self.has_autosave,
            "hasSubmission": self.has_submission,
            "hasI18n": self.has_i18n,
            "errorCount": self.error_count,
            "warningCount": self.warning_count,
        }


# =============================================================================
# SCHEMA VALIDATION RESULT
# =============================================================================

@dataclass
class SchemaValidationResult:
    """Complete result from validating one schema document."""
    findings: List[FormEngineError] = field(default_factory=list)
    summary: SchemaSummary = field(default_factory=SchemaSummary)
    validated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def errors(self) -> List[str]:
        """Blocking messages, in the order they were found."""
        return [f.message for f in self.findings if f.is_blocking]

    @property
    def warnings(self) -> List[str]:
        return [f.message for f in self.findings if f.severity == ErrorSeverity.WARNING]

    @property
    def is_valid(self) -> bool:
        return not any(f.is_blocking for f in self.findings)

    def add_error(
        self,
        message: str,
        code: ErrorCode = ErrorCode.SCH_STRUCTURE,
        field_name: Optional[str] = None,
    ) -> None:
        self.findings.append(create_schema_error(message, code=code, field_name=field_name))

    def add_warning(self, message: str, field_name: Optional[str] = None) -> None:
        self.findings.append(create_schema_warning(message, field_name=field_name))

    def errors_with_code(self, code: ErrorCode) -> List[str]:
        return [f.message for f in self.findings if f.code == code]

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for API / CLI output."""
        return {
            "isValid": self.is_valid,
            "errors": self.errors,
            "warnings": self.warnings,
            "summary": self.summary.to_dict(),
        }


# =============================================================================
# FIELD RULE RESULT
# =============================================================================

@dataclass
class FieldErrors:
    """
    Per-field synchronous errors.

    At most one message per field; the map is rebuilt on every evaluation.
    """
    records: Dict[str, FormEngineError] = field(default_factory=dict)

    @property
    def messages(self) -> Dict[str, str]:
        return {name: err.message for name, err in self.records.items()}

    @property
    def is_valid(self) -> bool:
        return not self.records

    def get(self, field_name: str) -> Optional[str]:
        err = self.records.get(field_name)
        return err.message if err else None

    def __contains__(self, field_name: str) -> bool:
        return field_name in self.records

    def __len__(self) -> int:
        return len(self.records)
