"""
Fixtures for application tests.
"""

from datetime import UTC, datetime
from unittest.mock import MagicMock
from uuid import uuid4

import pytest

from rentalcert.modules.applications.models import (
    Application,
    ApplicationStatus,
    ApplicationStep,
)
from rentalcert.modules.catalog.models import ChecklistItem


def make_checklist_item(name: str, position: int = 0) -> ChecklistItem:
    # ``name`` is special to the MagicMock constructor, so set it afterwards
    item = MagicMock(spec=ChecklistItem)
    item.id = uuid4()
    item.name = name
    item.position = position
    return item


@pytest.fixture
def property_type_id():
    return uuid4()


@pytest.fixture
def checklist_items():
    """Items A, B and C in configured order."""
    return [make_checklist_item(name, i) for i, name in enumerate(("A", "B", "C"))]


@pytest.fixture
def complete_details(property_type_id):
    return {
        "property_name": "Seaside Loft",
        "address": "12 Harbour Road",
        "property_type_id": str(property_type_id),
        "bedrooms": 2,
        "bathrooms": 1,
        "max_guests": 4,
        "description": None,
    }


@pytest.fixture
def draft_application(host_actor, complete_details):
    """A DRAFT application sitting on PROPERTY_DETAILS with complete details."""
    app = MagicMock(spec=Application)
    app.id = uuid4()
    app.host_id = host_actor.id
    app.property_details = dict(complete_details)
    app.status = ApplicationStatus.DRAFT
    app.current_step = ApplicationStep.PROPERTY_DETAILS
    app.submitted_at = None
    app.reviewed_at = None
    app.reviewed_by = None
    app.review_notes = None
    app.deleted_at = None
    app.created_at = datetime.now(UTC)
    app.updated_at = datetime.now(UTC)
    return app
