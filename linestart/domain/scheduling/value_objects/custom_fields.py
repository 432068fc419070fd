"""Validation of configurable job fields against their schema."""

from collections.abc import Iterable, Mapping
from datetime import date, datetime
from enum import Enum
from typing import Any

from ...shared.base import ValueObject
from ...shared.exceptions import InvalidCustomField


class CustomFieldType(str, Enum):
    STRING = "string"
    NUMBER = "number"
    DATE = "date"
    BOOLEAN = "boolean"


class CustomFieldDefinition(ValueObject):
    name: str
    type: CustomFieldType = CustomFieldType.STRING
    required: bool = False
    default: Any = None


def _coerce(definition: CustomFieldDefinition, value: Any) -> Any:
    field_type = definition.type
    if field_type == CustomFieldType.STRING:
        if not isinstance(value, str):
            raise InvalidCustomField(definition.name, "expected a string")
        return value
    if field_type == CustomFieldType.NUMBER:
        # bool is an int subclass but never a valid number here
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise InvalidCustomField(definition.name, "expected a number")
        return value
    if field_type == CustomFieldType.BOOLEAN:
        if not isinstance(value, bool):
            raise InvalidCustomField(definition.name, "expected a boolean")
        return value
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, str):
        try:
            return date.fromisoformat(value).isoformat()
        except ValueError:
            pass
    raise InvalidCustomField(definition.name, "expected an ISO date")


def validate_custom_fields(
    values: Mapping[str, Any], definitions: Iterable[CustomFieldDefinition]
) -> dict[str, Any]:
    """
    Check values against the schema and fill in defaults.

    Unknown keys are rejected; dates are normalised to ISO strings so the
    result is JSON-serialisable.
    """
    schema = {definition.name: definition for definition in definitions}
    unknown = sorted(set(values) - set(schema))
    if unknown:
        raise InvalidCustomField(unknown[0], "is not a configured field")

    validated: dict[str, Any] = {}
    for name, definition in schema.items():
        value = values.get(name, definition.default)
        if value is None:
            if definition.required:
                raise InvalidCustomField(name, "is required")
            continue
        validated[name] = _coerce(definition, value)
    return validated
