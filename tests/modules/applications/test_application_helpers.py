"""
Unit tests for application helpers and property-details validation.
"""

import pytest

from rentalcert.modules.applications.errors import IncompletePropertyDetailsError
from rentalcert.modules.applications.helpers import (
    find_missing_property_fields,
    map_document_type,
)
from rentalcert.modules.applications.models import DocumentType
from rentalcert.modules.applications.validation import validate_property_details


class TestMapDocumentType:
    def test_aliases(self):
        assert map_document_type("PROPERTY_OWNERSHIP") == DocumentType.PROPERTY_DEED
        assert map_document_type("safety_certificate") == DocumentType.SAFETY_PERMIT

    def test_canonical_names_pass_through(self):
        assert map_document_type("ID_DOCUMENT") == DocumentType.ID_DOCUMENT

    def test_unknown_and_empty_become_other(self):
        assert map_document_type("utility_bill") == DocumentType.OTHER
        assert map_document_type(None) == DocumentType.OTHER
        assert map_document_type("") == DocumentType.OTHER


class TestFindMissingPropertyFields:
    def test_complete_details(self, complete_details):
        assert find_missing_property_fields(complete_details) == []

    def test_none_lists_everything(self):
        assert find_missing_property_fields(None) == [
            "property_name",
            "address",
            "property_type_id",
            "bedrooms",
            "bathrooms",
            "max_guests",
        ]

    def test_blank_text_and_zero_counts(self, complete_details):
        details = {**complete_details, "address": "   ", "bedrooms": 0, "max_guests": True}
        assert find_missing_property_fields(details) == ["address", "bedrooms", "max_guests"]

    def test_numeric_strings_accepted(self, complete_details):
        details = {**complete_details, "bathrooms": "2"}
        assert find_missing_property_fields(details) == []


class TestValidatePropertyDetails:
    def test_reports_all_missing_fields(self, property_type_id):
        with pytest.raises(IncompletePropertyDetailsError) as exc_info:
            validate_property_details({"property_type_id": str(property_type_id), "bedrooms": 1})
        assert exc_info.value.missing_fields == [
            "property_name",
            "address",
            "bathrooms",
            "max_guests",
        ]
        assert exc_info.value.details["missing_fields"] == exc_info.value.missing_fields
