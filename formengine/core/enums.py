"""
formengine Core Enumerations

All enumeration types used throughout the form engine.
"""

from enum import Enum


class FieldType(str, Enum):
    """
    Field kinds understood by the engine.

    TABLE and TIMELINE are composite kinds rendered by external widgets.
    """
    TEXT = "text"
    EMAIL = "email"
    PASSWORD = "password"
    NUMBER = "number"
    DATE = "date"
    DATETIME = "datetime"
    TEXTAREA = "textarea"
    SELECT = "select"
    MULTISELECT = "multiselect"
    RADIO = "radio"
    CHECKBOX = "checkbox"
    ARRAY = "array"
    RANGE = "range"
    COLOR = "color"
    FILE = "file"
    RICHTEXT = "richtext"
    TABLE = "table"
    TIMELINE = "timeline"


KNOWN_FIELD_TYPES = frozenset(t.value for t in FieldType)

# Types whose value is picked from an option list
OPTION_FIELD_TYPES = frozenset({"select", "radio", "multiselect"})

# Types whose value is numeric
NUMERIC_FIELD_TYPES = frozenset({"number", "range"})


class ConditionOperator(str, Enum):
    """Operators usable in a visibleWhen leaf."""
    EQUALS = "equals"
    NOT_EQUALS = "notEquals"
    GREATER_THAN = "greaterThan"
    LESS_THAN = "lessThan"
    GREATER_THAN_OR_EQUAL = "greaterThanOrEqual"
    LESS_THAN_OR_EQUAL = "lessThanOrEqual"
    CONTAINS = "contains"
    NOT_CONTAINS = "notContains"
    IN = "in"
    NOT_IN = "notIn"
    IS_EMPTY = "isEmpty"
    IS_NOT_EMPTY = "isNotEmpty"


class LogicalOperator(str, Enum):
    """Operators combining child conditions."""
    AND = "and"
    OR = "or"


class FormatAs(str, Enum):
    """Display format applied to a computed value."""
    NUMBER = "number"
    CURRENCY = "currency"
    TEXT = "text"


class AsyncValidationStatus(str, Enum):
    """
    Per-field state of the async validation coordinator.

    Flow: idle -> validating -> valid | invalid
    """
    IDLE = "idle"
    VALIDATING = "validating"
    VALID = "valid"
    INVALID = "invalid"


class ValidWhen(str, Enum):
    """How a remote validation payload is interpreted."""
    EXISTS = "exists"
    NOT_EXISTS = "notExists"
    CUSTOM = "custom"


class HttpMethod(str, Enum):
    """HTTP verbs used by the remote collaborators."""
    GET = "GET"
    POST = "POST"
