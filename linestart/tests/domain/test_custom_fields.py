"""Unit tests for configurable job fields."""

from datetime import date

import pytest

from linestart.domain.scheduling.value_objects.custom_fields import (
    CustomFieldDefinition,
    validate_custom_fields,
)
from linestart.domain.shared.exceptions import InvalidCustomField

SCHEMA = [
    CustomFieldDefinition(name="customer", type="string", required=True),
    CustomFieldDefinition(name="weight", type="number"),
    CustomFieldDefinition(name="due", type="date"),
    CustomFieldDefinition(name="rush", type="boolean", default=False),
]


class TestValidateCustomFields:
    def test_defaults_filled_in(self):
        assert validate_custom_fields({"customer": "Acme"}, SCHEMA) == {
            "customer": "Acme",
            "rush": False,
        }

    def test_dates_normalised(self):
        values = validate_custom_fields(
            {"customer": "Acme", "due": date(2024, 3, 4)}, SCHEMA
        )
        assert values["due"] == "2024-03-04"

    def test_unknown_key_rejected(self):
        with pytest.raises(InvalidCustomField, match="colour"):
            validate_custom_fields({"customer": "Acme", "colour": "red"}, SCHEMA)

    def test_missing_required_rejected(self):
        with pytest.raises(InvalidCustomField, match="required"):
            validate_custom_fields({}, SCHEMA)

    @pytest.mark.parametrize(
        "field, value",
        [("weight", "heavy"), ("weight", True), ("rush", "yes"), ("due", "soon")],
    )
    def test_type_mismatch_rejected(self, field, value):
        with pytest.raises(InvalidCustomField):
            validate_custom_fields({"customer": "Acme", field: value}, SCHEMA)
