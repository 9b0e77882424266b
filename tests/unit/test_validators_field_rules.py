"""
Unit tests for validators/field_rules.py

Tests synchronous rule evaluation, rule order and hidden-field handling.
"""

import pytest

from formengine.errors import ErrorCategory, ErrorCode
from formengine.validators import FieldRuleValidator, fails_required, is_blank, validate_values


def field(name, type_="text", label=None, **extra):
    data = {"name": name, "type": type_, "label": label or name.title()}
    data.update(extra)
    return data


class TestIsBlank:
    """Test emptiness for optional fields."""

    @pytest.mark.parametrize("value", [None, "", "  ", [], False])
    def test_blank(self, value):
        assert is_blank(value)

    @pytest.mark.parametrize("value", [0, "0", ["a"], True])
    def test_present(self, value):
        assert not is_blank(value)


class TestFailsRequired:
    """Test falsy values for the required rule."""

    @pytest.mark.parametrize("value", [None, "", [], False, 0, 0.0])
    def test_fails(self, value):
        assert fails_required(value)

    @pytest.mark.parametrize("value", ["0", 1, -2.5, True, ["a"]])
    def test_passes(self, value):
        assert not fails_required(value)


class TestPresenceRules:
    """Test required / requiredIf / requiredTrue."""

    def test_required(self, make_schema):
        schema = make_schema(field("name", validations={"required": True}))
        assert validate_values(schema, {"name": ""}) == {"name": "Name is required"}
        assert validate_values(schema, {"name": "Ada"}) == {}

    def test_zero_fails_required(self, make_schema):
        schema = make_schema(field("qty", "number", label="Quantity", validations={"required": True}))
        assert validate_values(schema, {"qty": 0}) == {"qty": "Quantity is required"}
        assert validate_values(schema, {"qty": "0"}) == {}
        assert validate_values(schema, {"qty": 3}) == {}

    def test_required_if_true(self, contact_schema):
        errors = FieldRuleValidator(contact_schema).validate(
            {"name": "Ada", "email": "a@b.co", "hasReferral": True, "referralCode": ""}
        )
        assert errors.get("referralCode") == "Referral code is required"
        assert errors.records["referralCode"].code == ErrorCode.FLD_REQUIRED

    def test_required_if_false(self, contact_schema):
        for code in ("", "ABC"):
            errors = FieldRuleValidator(contact_schema).validate(
                {"name": "Ada", "email": "a@b.co", "hasReferral": False, "referralCode": code}
            )
            assert "referralCode" not in errors

    def test_required_true(self, make_schema):
        schema = make_schema(field("terms", "checkbox", label="Terms", validations={"requiredTrue": True}))
        assert validate_values(schema, {"terms": False}) == {"terms": "Terms must be checked"}
        assert validate_values(schema, {"terms": True}) == {}


class TestValueRules:
    """Test rules applied to non-empty values."""

    def test_empty_optional_skips_value_rules(self, make_schema):
        schema = make_schema(field("code", validations={"minLength": 3, "pattern": "[A-Z]+"}))
        assert validate_values(schema, {"code": ""}) == {}

    def test_length(self, make_schema):
        schema = make_schema(field("code", validations={"minLength": 2, "maxLength": 4}))
        assert validate_values(schema, {"code": "a"}) == {"code": "Code must be at least 2 characters"}
        assert validate_values(schema, {"code": "abcde"}) == {"code": "Code must be a maximum of 4 characters"}

    def test_pattern_full_match(self, make_schema):
        schema = make_schema(field("code", validations={"pattern": "[A-Z]{3}"}))
        assert validate_values(schema, {"code": "ABCD"}) == {"code": "Code format is invalid"}
        assert validate_values(schema, {"code": "ABC"}) == {}

    def test_invalid_pattern_is_ignored(self, make_schema):
        schema = make_schema(field("code", validations={"pattern": "[unclosed"}))
        assert validate_values(schema, {"code": "x"}) == {}

    def test_email(self, make_schema):
        schema = make_schema(field("email", "email"))
        assert validate_values(schema, {"email": "nope"}) == {"email": "Email must be a valid email address"}
        assert validate_values(schema, {"email": "ada@example.com"}) == {}

    def test_mask_completeness(self, contact_schema):
        values = {"name": "Ada", "email": "a@b.co", "phone": "(555) ", "hasReferral": False}
        errors = FieldRuleValidator(contact_schema).validate(values)
        assert errors.get("phone") == "Phone is incomplete"

        values["phone"] = "(555) 123-4567"
        assert "phone" not in FieldRuleValidator(contact_schema).validate(values)

    def test_number_bounds(self, make_schema):
        schema = make_schema(field("qty", "number", label="Quantity", validations={"min": 1, "max": 10}))
        assert validate_values(schema, {"qty": 0}) == {"qty": "Quantity must be at least 1"}
        assert validate_values(schema, {"qty": "11"}) == {"qty": "Quantity must be a maximum of 10"}
        assert validate_values(schema, {"qty": "abc"}) == {"qty": "Quantity must be a number"}

    def test_field_level_bounds(self, make_schema):
        schema = make_schema(field("level", "range", min=0, max=5))
        assert validate_values(schema, {"level": 7}) == {"level": "Level must be a maximum of 5"}

    def test_selections(self, make_schema):
        schema = make_schema(field("tags", "multiselect", minSelections=2, maxSelections=3))
        assert validate_values(schema, {"tags": ["a"]}) == {"tags": "Select at least 2 options for Tags"}
        assert validate_values(schema, {"tags": ["a", "b", "c", "d"]}) == {
            "tags": "Select a maximum of 3 options for Tags"
        }

    def test_array_items(self, make_schema):
        schema = make_schema(field("items", "array", arrayConfig={"fields": [], "minItems": 2}))
        assert validate_values(schema, {"items": [{}]}) == {"items": "Items needs at least 2 items"}


class TestCrossFieldRules:
    """Test rules comparing two fields."""

    def test_matches_field(self, make_schema):
        schema = make_schema(
            field("password", "password"),
            field("confirm", "password", label="Confirm", validations={"matchesField": "password"}),
        )
        assert validate_values(schema, {"password": "a", "confirm": "b"}) == {
            "confirm": "Confirm must match Password"
        }
        assert validate_values(schema, {"password": "a", "confirm": "a"}) == {}

    def test_greater_than_field(self, make_schema):
        schema = make_schema(
            field("start", "number"),
            field("end", "number", validations={"greaterThanField": "start"}),
        )
        assert validate_values(schema, {"start": 5, "end": 3}) == {"end": "End must be greater than Start"}
        assert validate_values(schema, {"start": 5, "end": 6}) == {}
        assert validate_values(schema, {"start": "", "end": 3}) == {}

    def test_less_than_field(self, make_schema):
        schema = make_schema(
            field("low", "number"),
            field("high", "number"),
            field("mid", "number", validations={"lessThanField": "high"}),
        )
        assert validate_values(schema, {"high": 10, "mid": 10}) == {"mid": "Mid must be less than High"}

    def test_dates_compare_as_text(self, make_schema):
        schema = make_schema(
            field("checkIn", "date", label="Check-in"),
            field("checkOut", "date", label="Check-out", validations={"greaterThanField": "checkIn"}),
        )
        assert validate_values(schema, {"checkIn": "2024-05-02", "checkOut": "2024-05-01"}) == {
            "checkOut": "Check-out must be greater than Check-in"
        }


class TestValidator:
    """Test error map assembly."""

    def test_first_failing_rule_wins(self, make_schema):
        schema = make_schema(field("code", validations={"minLength": 5, "pattern": "[0-9]+"}))
        assert validate_values(schema, {"code": "ab"}) == {"code": "Code must be at least 5 characters"}

    def test_custom_message_overrides(self, make_schema):
        schema = make_schema(field("code", validations={"required": True, "customMessage": "Enter a code"}))
        assert validate_values(schema, {"code": ""}) == {"code": "Enter a code"}

    def test_hidden_fields_have_no_errors(self, make_schema):
        schema = make_schema(field("a", validations={"required": True}), field("b", validations={"required": True}))
        errors = FieldRuleValidator(schema).validate({"a": "", "b": ""}, visible=["a"])
        assert set(errors.messages) == {"a"}

    def test_error_records(self, make_schema):
        schema = make_schema(field("a", validations={"required": True}))
        errors = FieldRuleValidator(schema).validate({"a": ""})
        record = errors.records["a"]
        assert record.category == ErrorCategory.FIELD_VALIDATION
        assert record.field_name == "a"
        assert not errors.is_valid
        assert len(errors) == 1
