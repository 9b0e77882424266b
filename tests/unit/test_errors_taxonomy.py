"""
Unit tests for errors/taxonomy.py
"""

from formengine.errors import (
    CyclicDependencyError,
    ErrorCategory,
    ErrorCode,
    ErrorSeverity,
    FormEngineError,
    FormEngineException,
    SchemaImportError,
    create_field_error,
    create_formula_error,
    create_schema_error,
    create_schema_warning,
    create_transport_error,
)


class TestFormEngineError:
    """Test the error record."""

    def test_defaults(self):
        error = FormEngineError()
        assert error.code == ErrorCode.SCH_STRUCTURE
        assert error.severity == ErrorSeverity.ERROR
        assert len(error.error_id) == 8
        assert error.is_blocking

    def test_unique_ids(self):
        assert FormEngineError().error_id != FormEngineError().error_id

    def test_to_dict(self):
        data = create_field_error("Name is required", field_name="name").to_dict()
        assert data["code"] == ErrorCode.FLD_CONSTRAINT.value
        assert data["category"] == "field_validation"
        assert data["severity"] == "error"
        assert data["message"] == "Name is required"
        assert data["field"] == "name"
        assert data["source"] == "field_rules"


class TestFactories:
    """Test the per-category factories."""

    def test_schema_error(self):
        error = create_schema_error("bad", code=ErrorCode.SCH_RANGE, field_name="n")
        assert error.category == ErrorCategory.SCHEMA
        assert error.code == ErrorCode.SCH_RANGE
        assert error.is_blocking

    def test_schema_warning_is_not_blocking(self):
        warning = create_schema_warning("hmm")
        assert warning.severity == ErrorSeverity.WARNING
        assert warning.code == ErrorCode.SCH_ADVISORY
        assert not warning.is_blocking

    def test_formula_error(self):
        error = create_formula_error("Could not compute Total", field_name="total", detail="Division by zero")
        assert error.category == ErrorCategory.FORMULA
        assert error.detail == "Division by zero"
        assert not error.is_blocking

    def test_transport_error(self):
        error = create_transport_error("fetch failed", code=ErrorCode.TRN_VALIDATION)
        assert error.category == ErrorCategory.TRANSPORT
        assert error.code == ErrorCode.TRN_VALIDATION
        assert error.source == "remote"


class TestExceptions:
    """Test the exception hierarchy."""

    def test_schema_import_error(self):
        exc = SchemaImportError(["a", "b"])
        assert isinstance(exc, FormEngineException)
        assert exc.errors == ["a", "b"]
        assert str(exc) == "Invalid schema: a, b"

    def test_cyclic_dependency_error(self):
        exc = CyclicDependencyError(["a", "b", "a"])
        assert exc.cycle == ["a", "b", "a"]
        assert "a -> b -> a" in str(exc)
