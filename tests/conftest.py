"""
formengine Test Configuration and Fixtures

Schema documents shared across the unit tests. Documents are plain dicts
so each test can feed them to the validator raw or parse them first.
"""

import copy

import pytest

from formengine.core import FormSchema, parse_schema


CONTACT_SCHEMA = {
    "title": "Contact",
    "fields": [
        {"name": "name", "type": "text", "label": "Name", "validations": {"required": True, "minLength": 2}},
        {"name": "email", "type": "email", "label": "Email", "validations": {"required": True}},
        {"name": "phone", "type": "text", "label": "Phone", "mask": "phone"},
        {
            "name": "hasReferral",
            "type": "checkbox",
            "label": "Referred?",
        },
        {
            "name": "referralCode",
            "type": "text",
            "label": "Referral code",
            "validations": {
                "requiredIf": {"field": "hasReferral", "operator": "equals", "value": True},
            },
            "visibleWhen": {"field": "hasReferral", "operator": "equals", "value": True},
        },
    ],
}


ORDER_SCHEMA = {
    "title": "Order",
    "fields": [
        {"name": "price", "type": "number", "label": "Price"},
        {"name": "quantity", "type": "number", "label": "Quantity"},
        {
            "name": "total",
            "type": "text",
            "label": "Total",
            "computed": {
                "formula": "price * quantity",
                "dependencies": ["price", "quantity"],
                "formatAs": "number",
                "decimal": 2,
            },
        },
        {
            "name": "totalWithTax",
            "type": "text",
            "label": "Total with tax",
            "computed": {
                "formula": "total * 1.1",
                "dependencies": ["total"],
                "formatAs": "currency",
            },
        },
    ],
}


LOCATION_SCHEMA = {
    "title": "Location",
    "fields": [
        {
            "name": "country",
            "type": "select",
            "label": "Country",
            "options": [
                {"value": "usa", "label": "USA"},
                {"value": "canada", "label": "Canada"},
            ],
        },
        {
            "name": "state",
            "type": "select",
            "label": "State",
            "dependsOn": "country",
            "optionsMap": {
                "usa": [{"value": "ca", "label": "California"}, {"value": "ny", "label": "New York"}],
                "canada": [{"value": "on", "label": "Ontario"}, {"value": "qc", "label": "Quebec"}],
            },
        },
        {
            "name": "city",
            "type": "select",
            "label": "City",
            "dependsOn": "state",
            "optionsMap": {
                "ca": [{"value": "la", "label": "Los Angeles"}],
                "ny": [{"value": "nyc", "label": "New York City"}],
                "on": [{"value": "tor", "label": "Toronto"}],
                "qc": [{"value": "mtl", "label": "Montreal"}],
            },
        },
    ],
}


SIGNUP_SCHEMA = {
    "title": "Signup",
    "fields": [
        {
            "name": "username",
            "type": "text",
            "label": "Username",
            "validations": {
                "required": True,
                "asyncValidator": {
                    "endpoint": "/api/users/check",
                    "method": "POST",
                    "debounceMs": 300,
                    "validWhen": "custom",
                    "errorMessage": "Username is taken",
                },
            },
        },
        {"name": "bio", "type": "textarea", "label": "Bio"},
    ],
}


@pytest.fixture
def contact_document():
    return copy.deepcopy(CONTACT_SCHEMA)


@pytest.fixture
def contact_schema() -> FormSchema:
    return parse_schema(copy.deepcopy(CONTACT_SCHEMA))


@pytest.fixture
def order_document():
    return copy.deepcopy(ORDER_SCHEMA)


@pytest.fixture
def order_schema() -> FormSchema:
    return parse_schema(copy.deepcopy(ORDER_SCHEMA))


@pytest.fixture
def location_document():
    return copy.deepcopy(LOCATION_SCHEMA)


@pytest.fixture
def location_schema() -> FormSchema:
    return parse_schema(copy.deepcopy(LOCATION_SCHEMA))


@pytest.fixture
def signup_document():
    return copy.deepcopy(SIGNUP_SCHEMA)


@pytest.fixture
def signup_schema() -> FormSchema:
    return parse_schema(copy.deepcopy(SIGNUP_SCHEMA))


@pytest.fixture
def make_schema():
    """Parse a schema from inline field dicts."""
    def factory(*fields, title="Test") -> FormSchema:
        return parse_schema({"title": title, "fields": list(fields)})
    return factory
