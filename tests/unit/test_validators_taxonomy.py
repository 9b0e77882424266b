"""
Unit tests for validators/taxonomy.py

Tests the schema summary, schema validation result and field error map.
"""

from formengine.errors import ErrorCode, create_field_error
from formengine.validators import FieldErrors, SchemaSummary, SchemaValidationResult


class TestSchemaSummary:
    """Test SchemaSummary serialization."""

    def test_to_dict_is_camel_case(self):
        summary = SchemaSummary(total_fields=3, required_fields=1, optional_fields=2, field_types={"text": 3})
        data = summary.to_dict()
        assert data["totalFields"] == 3
        assert data["requiredFields"] == 1
        assert data["fieldTypes"] == {"text": 3}
        assert data["hasAutosave"] is False


class TestSchemaValidationResult:
    """Test findings bookkeeping."""

    def test_empty_result_is_valid(self):
        result = SchemaValidationResult()
        assert result.is_valid
        assert result.errors == []
        assert result.warnings == []

    def test_errors_and_warnings_keep_order(self):
        result = SchemaValidationResult()
        result.add_warning("w1")
        result.add_error("e1")
        result.add_error("e2", code=ErrorCode.SCH_RANGE, field_name="n")
        assert result.errors == ["e1", "e2"]
        assert result.warnings == ["w1"]
        assert not result.is_valid

    def test_warnings_only_is_valid(self):
        result = SchemaValidationResult()
        result.add_warning("advisory")
        assert result.is_valid

    def test_errors_with_code(self):
        result = SchemaValidationResult()
        result.add_error("cycle", code=ErrorCode.SCH_CIRCULAR_DEP)
        result.add_error("other")
        assert result.errors_with_code(ErrorCode.SCH_CIRCULAR_DEP) == ["cycle"]

    def test_to_dict(self):
        result = SchemaValidationResult()
        result.add_error("bad")
        data = result.to_dict()
        assert data == {
            "isValid": False,
            "errors": ["bad"],
            "warnings": [],
            "summary": SchemaSummary().to_dict(),
        }


class TestFieldErrors:
    """Test the per-field error map."""

    def test_accessors(self):
        errors = FieldErrors()
        errors.records["name"] = create_field_error("Name is required", field_name="name")
        assert errors.messages == {"name": "Name is required"}
        assert errors.get("name") == "Name is required"
        assert errors.get("email") is None
        assert "name" in errors
        assert len(errors) == 1
        assert not errors.is_valid
