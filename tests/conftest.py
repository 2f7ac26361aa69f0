"""
Shared fixtures: mocked session, actors and collaborators.
"""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock
from uuid import UUID, uuid4

import pytest

from rentalcert.core.auth import Actor, UserRole
from rentalcert.modules.applications.models import DocumentType
from rentalcert.modules.certifications.models import Certification, CertificationStatus
from rentalcert.modules.shared.collaborators import (
    BadgeUrls,
    Collaborators,
    DocumentStepResult,
)


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.refresh = AsyncMock()
    db.flush = AsyncMock()
    db.get = AsyncMock()
    db.execute = AsyncMock()
    db.add = MagicMock()
    db.add_all = MagicMock()
    return db


@pytest.fixture
def host_actor():
    return Actor(id=uuid4(), role=UserRole.HOST)


@pytest.fixture
def admin_actor():
    """Return a consistent admin actor for testing."""
    return Actor(id=UUID("00000000-0000-0000-0000-000000000001"), role=UserRole.ADMIN)


@pytest.fixture
def super_admin_actor():
    return Actor(id=UUID("00000000-0000-0000-0000-000000000002"), role=UserRole.SUPER_ADMIN)


@pytest.fixture
def all_documents():
    return {
        DocumentType.ID_DOCUMENT,
        DocumentType.SAFETY_PERMIT,
        DocumentType.INSURANCE_CERTIFICATE,
        DocumentType.PROPERTY_DEED,
    }


@pytest.fixture
def collaborators(all_documents):
    """Collaborators that report a fully documented, paid application."""
    documents = MagicMock()
    documents.document_types_uploaded = AsyncMock(return_value=set(all_documents))
    documents.validate_document_step_completion = AsyncMock(
        return_value=DocumentStepResult(is_complete=True, message="All required documents uploaded")
    )

    payments = MagicMock()
    payments.has_completed_payment = AsyncMock(return_value=True)

    notifier = MagicMock()
    notifier.notify = AsyncMock()

    badges = MagicMock()
    badges.generate_badge = AsyncMock(return_value=BadgeUrls())

    audit = MagicMock()
    audit.record = AsyncMock()

    return Collaborators(
        documents=documents,
        payments=payments,
        notifier=notifier,
        badges=badges,
        audit=audit,
    )


@pytest.fixture
def make_certification():
    """Factory for mocked certifications with every response field populated."""

    def _make(
        status: CertificationStatus = CertificationStatus.ACTIVE,
        expires_in: timedelta = timedelta(days=365),
        **overrides,
    ) -> Certification:
        now = datetime.now(UTC)
        cert = MagicMock(spec=Certification)
        cert.id = uuid4()
        cert.application_id = uuid4()
        cert.host_id = uuid4()
        cert.certificate_number = f"CERT-{now.year}-123456"
        cert.verification_token = "a" * 32
        cert.verification_url = f"http://localhost:3000/verify/{'a' * 32}"
        cert.status = status
        cert.issued_at = now - timedelta(days=30)
        cert.expires_at = now + expires_in
        cert.revoked_at = None
        cert.revoked_by = None
        cert.revoke_reason = None
        cert.badge_url = ""
        cert.qr_code_url = ""
        for key, value in overrides.items():
            setattr(cert, key, value)
        return cert

    return _make
