"""
Fixtures for certification tests.
"""

from unittest.mock import MagicMock
from uuid import uuid4

import pytest

from rentalcert.modules.applications.models import Application, ApplicationStatus
from rentalcert.modules.certifications.models import CertificateTemplate


@pytest.fixture
def approved_application():
    app = MagicMock(spec=Application)
    app.id = uuid4()
    app.host_id = uuid4()
    app.status = ApplicationStatus.APPROVED
    app.property_type_id = uuid4()
    app.property_details = {"property_name": "Seaside Loft"}
    return app


@pytest.fixture
def active_template(approved_application):
    template = MagicMock(spec=CertificateTemplate)
    template.id = uuid4()
    template.property_type_id = approved_application.property_type_id
    template.validity_months = 12
    template.is_active = True
    return template
