"""
Unit tests for dependencies/cascade.py

Tests option resolution and the cascading reset of dependents.
"""

import pytest

from formengine.core.models import FieldOption, FormField
from formengine.dependencies import (
    CascadeExecutor,
    cascade_reset,
    is_disabled,
    is_valid_choice,
    option_key,
    resolve_options,
)


class TestOptionKey:
    """Test optionsMap key normalisation."""

    @pytest.mark.parametrize("value,key", [
        (True, "true"),
        (False, "false"),
        (2.0, "2"),
        (2, "2"),
        ("usa", "usa"),
    ])
    def test_keys(self, value, key):
        assert option_key(value) == key


class TestResolveOptions:
    """Test option resolution per field kind."""

    def test_options_map(self, location_schema):
        state = location_schema.get_field("state")
        options = resolve_options(state, {"country": "canada"})
        assert [o.value for o in options] == ["on", "qc"]

    def test_unknown_parent_value(self, location_schema):
        state = location_schema.get_field("state")
        assert resolve_options(state, {"country": "mexico"}) == []

    def test_empty_parent_disables(self, location_schema):
        state = location_schema.get_field("state")
        assert resolve_options(state, {"country": ""}) == []
        assert is_disabled(state, {"country": ""})
        assert not is_disabled(state, {"country": "usa"})

    def test_static_options(self, location_schema):
        country = location_schema.get_field("country")
        assert [o.value for o in resolve_options(country, {})] == ["usa", "canada"]

    def test_string_options_are_normalized(self):
        field = FormField(name="size", type="select", options=["S", "M"])
        options = resolve_options(field, {})
        assert options[0] == FieldOption(value="S", label="S")

    def test_unconstrained_field(self):
        assert resolve_options(FormField(name="x", type="text"), {}) is None

    def test_remote_options_not_loaded(self):
        field = FormField(name="city", type="select", depends_on="state", options_endpoint="/cities/{{state}}")
        assert resolve_options(field, {"state": "ca"}) is None
        assert resolve_options(field, {"state": "ca"}, {}) is None

    def test_remote_options_loaded(self):
        field = FormField(name="city", type="select", depends_on="state", options_endpoint="/cities/{{state}}")
        loaded = {"city": [FieldOption(value="la", label="LA")]}
        assert [o.value for o in resolve_options(field, {"state": "ca"}, loaded)] == ["la"]


class TestIsValidChoice:
    """Test membership checks."""

    def test_scalar(self):
        options = [FieldOption(value="a"), FieldOption(value=1)]
        assert is_valid_choice("a", options)
        assert is_valid_choice(1.0, options)
        assert not is_valid_choice("b", options)

    def test_list(self):
        options = [FieldOption(value="a"), FieldOption(value="b")]
        assert is_valid_choice(["a", "b"], options)
        assert not is_valid_choice(["a", "z"], options)


class TestCascadeExecutor:
    """Test cascading reset."""

    def test_country_change_resets_state(self, location_schema):
        values = {"country": "canada", "state": "ca", "city": ""}
        result = CascadeExecutor(location_schema).execute(values, ["country"])
        assert result.values["state"] == ""
        assert result.reset_fields == ["state"]
        assert values["state"] == "ca"

    def test_chain_is_cleared(self, location_schema):
        values = {"country": "canada", "state": "ca", "city": "la"}
        result = CascadeExecutor(location_schema).execute(values, ["country"])
        assert result.values["state"] == ""
        assert result.values["city"] == ""
        assert set(result.reset_fields) == {"state", "city"}
        assert result.changed

    def test_valid_value_is_kept(self, location_schema):
        values = {"country": "usa", "state": "ny", "city": "nyc"}
        result = CascadeExecutor(location_schema).execute(values, ["country"])
        assert result.values == values
        assert not result.changed
        assert result.passes == 1

    def test_affected_fields(self, location_schema):
        executor = CascadeExecutor(location_schema)
        assert executor.affected_fields(["country"]) == ["state", "city"]
        assert executor.affected_fields(["state"]) == ["city"]
        assert executor.affected_fields() == ["state", "city"]

    def test_unrelated_change_checks_nothing(self, location_schema):
        values = {"country": "canada", "state": "ca", "city": ""}
        result = CascadeExecutor(location_schema).execute(values, ["city"])
        assert result.values["state"] == "ca"

    def test_multiselect_keeps_valid_entries(self, make_schema):
        schema = make_schema(
            {"name": "plan", "type": "select", "options": ["basic", "pro"]},
            {
                "name": "features",
                "type": "multiselect",
                "dependsOn": "plan",
                "optionsMap": {
                    "basic": [{"value": "email", "label": "Email"}],
                    "pro": [{"value": "email", "label": "Email"}, {"value": "sso", "label": "SSO"}],
                },
            },
        )
        values = {"plan": "basic", "features": ["email", "sso"]}
        result = CascadeExecutor(schema).execute(values, ["plan"])
        assert result.values["features"] == ["email"]

    def test_remote_field_without_loaded_options_is_kept(self, make_schema):
        schema = make_schema(
            {"name": "state", "type": "text"},
            {"name": "city", "type": "select", "dependsOn": "state", "optionsEndpoint": "/c/{{state}}"},
        )
        values = {"state": "ca", "city": "la"}
        assert cascade_reset(schema, values, ["state"])["city"] == "la"

    def test_to_dict(self, location_schema):
        values = {"country": "canada", "state": "ca", "city": ""}
        data = CascadeExecutor(location_schema).execute(values, ["country"]).to_dict()
        assert data["trigger_fields"] == ["country"]
        assert data["resets"][0]["field"] == "state"
        assert data["resets"][0]["parents"] == {"country": "canada"}
