"""
Unit tests for dependencies/resolver.py

Tests the full evaluation pass: cascade, computed fields, visibility,
errors and option resolution.
"""

import logging

import pytest

from formengine.dependencies import DependencyResolver, FormSnapshot, evaluate_form


@pytest.fixture
def order_resolver(order_schema):
    return DependencyResolver(order_schema)


class TestInitialValues:
    """Test per-type initial values."""

    def test_initial_values(self, contact_schema):
        values = DependencyResolver(contact_schema).initial_values()
        assert values == {"name": "", "email": "", "phone": "", "hasReferral": False, "referralCode": ""}

    def test_multiselect_and_array(self, make_schema):
        schema = make_schema(
            {"name": "tags", "type": "multiselect", "options": ["a"]},
            {"name": "rows", "type": "array", "arrayConfig": {"fields": [], "initialItems": 2}},
        )
        values = DependencyResolver(schema).initial_values()
        assert values == {"tags": [], "rows": [{}, {}]}


class TestComputedFields:
    """Test recomputation of computed fields."""

    def test_price_times_quantity(self, order_resolver):
        snapshot = order_resolver.apply_change({"price": 10, "quantity": 0}, "quantity", 5)
        assert snapshot.resolved_values["total"] == "50.00"

    def test_chain_reads_formatted_input(self, order_resolver):
        snapshot = order_resolver.evaluate({"price": 10, "quantity": 5})
        assert snapshot.resolved_values["totalWithTax"] == "$55.00"

    def test_computation_order(self, order_resolver):
        assert order_resolver.computation_order == ["total", "totalWithTax"]

    def test_missing_inputs_degrade(self, order_resolver):
        snapshot = order_resolver.evaluate({"price": 10})
        assert snapshot.resolved_values["total"] == ""
        assert snapshot.formula_errors[0].field_name == "total"

    def test_input_values_untouched(self, order_resolver):
        values = {"price": 2, "quantity": 3}
        order_resolver.evaluate(values)
        assert "total" not in values

    def test_cyclic_schema_falls_back(self, make_schema, caplog):
        with caplog.at_level(logging.ERROR):
            resolver = DependencyResolver(make_schema(
                {"name": "a", "type": "text", "computed": {"formula": "b", "dependencies": ["b"]}},
                {"name": "b", "type": "text", "computed": {"formula": "a", "dependencies": ["a"]}},
            ))
        assert resolver.computation_order == ["a", "b"]
        assert "cyclic" in caplog.text


class TestVisibilityAndErrors:
    """Test visibility and the error map."""

    def test_hidden_field_has_no_error(self, contact_schema):
        values = {"name": "Ada", "email": "a@b.co", "phone": "", "hasReferral": False, "referralCode": ""}
        snapshot = evaluate_form(contact_schema, values)
        assert "referralCode" not in snapshot.visible_fields
        assert snapshot.is_valid

    def test_required_if_when_visible(self, contact_schema):
        values = {"name": "Ada", "email": "a@b.co", "phone": "", "hasReferral": True, "referralCode": ""}
        snapshot = evaluate_form(contact_schema, values)
        assert snapshot.is_visible("referralCode")
        assert snapshot.errors == {"referralCode": "Referral code is required"}

    def test_displayed_errors_follow_touched(self, contact_schema):
        values = DependencyResolver(contact_schema).initial_values()
        snapshot = evaluate_form(contact_schema, values, touched={"name": True})
        assert set(snapshot.errors) == {"name", "email"}
        assert snapshot.displayed_errors == {"name": "Name is required"}

    def test_visible_fields_keep_declaration_order(self, contact_schema):
        values = {"hasReferral": True}
        assert evaluate_form(contact_schema, values).visible_fields == [
            "name", "email", "phone", "hasReferral", "referralCode",
        ]


class TestCascade:
    """Test cascade integration."""

    def test_parent_change_resets_children(self, location_schema):
        resolver = DependencyResolver(location_schema)
        values = {"country": "usa", "state": "ca", "city": "la"}
        snapshot = resolver.apply_change(values, "country", "canada")
        assert snapshot.resolved_values == {"country": "canada", "state": "", "city": ""}
        assert set(snapshot.reset_fields) == {"state", "city"}
        assert [o.value for o in snapshot.options["state"]] == ["on", "qc"]
        assert snapshot.disabled == {"state": False, "city": True}

    def test_remote_options(self, make_schema):
        from formengine.core.models import FieldOption

        schema = make_schema(
            {"name": "state", "type": "text"},
            {"name": "city", "type": "select", "dependsOn": "state", "optionsEndpoint": "/c/{{state}}"},
        )
        resolver = DependencyResolver(schema)
        remote = {"city": [FieldOption(value="sf", label="SF")]}
        snapshot = resolver.evaluate({"state": "ca", "city": "la"}, remote_options=remote)
        assert snapshot.resolved_values["city"] == ""
        assert snapshot.options["city"] == remote["city"]


class TestSnapshot:
    """Test FormSnapshot serialization."""

    def test_to_dict(self, location_schema):
        data = evaluate_form(location_schema, {"country": "usa", "state": "", "city": ""}).to_dict()
        assert data["visibleFields"] == ["country", "state", "city"]
        assert data["options"]["state"][0] == {"value": "ca", "label": "California"}
        assert data["disabled"]["city"] is True
        assert data["formulaErrors"] == []

    def test_empty_snapshot(self):
        snapshot = FormSnapshot()
        assert snapshot.is_valid
        assert snapshot.displayed_errors == {}
