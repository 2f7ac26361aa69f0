"""
Tests for the review workflow.

These tests verify:
- Reviewer assignment moves the application to UNDER_REVIEW
- Decisions require UNDER_REVIEW and the assigned reviewer
- Approval followed by failed issuance is a partial failure, not an error
- Risk scoring thresholds
"""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest

from rentalcert.core.auth import Actor, UserRole
from rentalcert.core.exceptions import ForbiddenError
from rentalcert.modules.applications.errors import (
    ApplicationAccessDeniedError,
    InvalidApplicationStateError,
    InvalidStatusTransitionError,
)
from rentalcert.modules.applications.models import (
    Application,
    ApplicationStatus,
    ApplicationStep,
    DocumentType,
)
from rentalcert.modules.certifications.errors import NoActiveTemplateError
from rentalcert.modules.review.schemas import ReviewDecision, RiskLevel
from rentalcert.modules.review.service import (
    CONTACT_ADMIN,
    assess_risk,
    assign_reviewer,
    get_review_queue_stats,
    submit_review_decision,
)

REVIEW = "rentalcert.modules.review.service"


def _echo(_db, application):
    return application


@pytest.fixture
def submitted_application():
    app = MagicMock(spec=Application)
    app.id = uuid4()
    app.host_id = uuid4()
    app.property_details = {
        "property_name": "Seaside Loft",
        "address": "4 Harbour Road",
        "property_type_id": str(uuid4()),
        "bedrooms": 2,
        "bathrooms": 1,
        "max_guests": 4,
    }
    app.status = ApplicationStatus.SUBMITTED
    app.current_step = ApplicationStep.SUBMISSION
    app.submitted_at = datetime.now(UTC) - timedelta(days=2)
    app.reviewed_at = None
    app.reviewed_by = None
    app.review_notes = None
    return app


@pytest.fixture
def under_review_application(submitted_application, admin_actor):
    submitted_application.status = ApplicationStatus.UNDER_REVIEW
    submitted_application.reviewed_by = admin_actor.id
    return submitted_application


# ============================================
# Assignment
# ============================================


class TestAssignReviewer:
    @pytest.mark.asyncio
    async def test_submitted_goes_under_review(
        self, mock_db, super_admin_actor, collaborators, submitted_application
    ):
        reviewer_id = uuid4()

        with (
            patch(
                f"{REVIEW}.get_application_or_404",
                AsyncMock(return_value=submitted_application),
            ),
            patch(f"{REVIEW}.applications_repository") as mock_repo,
        ):
            mock_repo.save = AsyncMock(side_effect=_echo)

            result = await assign_reviewer(
                mock_db, submitted_application.id, reviewer_id, super_admin_actor, collaborators
            )

        assert result.status == ApplicationStatus.UNDER_REVIEW
        assert result.reviewed_by == reviewer_id
        assert collaborators.notifier.notify.call_args.args[:2] == (
            reviewer_id,
            "REVIEW_ASSIGNED",
        )

    @pytest.mark.asyncio
    async def test_draft_cannot_be_assigned(
        self, mock_db, super_admin_actor, collaborators, submitted_application
    ):
        submitted_application.status = ApplicationStatus.DRAFT

        with (
            patch(
                f"{REVIEW}.get_application_or_404",
                AsyncMock(return_value=submitted_application),
            ),
            patch(f"{REVIEW}.applications_repository") as mock_repo,
        ):
            mock_repo.save = AsyncMock()

            with pytest.raises(InvalidStatusTransitionError):
                await assign_reviewer(
                    mock_db, submitted_application.id, uuid4(), super_admin_actor, collaborators
                )

            mock_repo.save.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_host_cannot_assign(self, mock_db, host_actor, collaborators):
        with pytest.raises(ForbiddenError):
            await assign_reviewer(mock_db, uuid4(), uuid4(), host_actor, collaborators)


# ============================================
# Decisions
# ============================================


class TestSubmitReviewDecision:
    @pytest.mark.asyncio
    async def test_approve_without_template_is_partial_failure(
        self, mock_db, admin_actor, collaborators, under_review_application
    ):
        with (
            patch(
                f"{REVIEW}.get_application_or_404",
                AsyncMock(return_value=under_review_application),
            ),
            patch(f"{REVIEW}.applications_repository") as mock_repo,
            patch(f"{REVIEW}.issuer") as mock_issuer,
        ):
            mock_repo.save = AsyncMock(side_effect=_echo)
            mock_issuer.generate_certification = AsyncMock(
                side_effect=NoActiveTemplateError(uuid4())
            )

            result = await submit_review_decision(
                mock_db,
                under_review_application.id,
                ReviewDecision.APPROVE,
                "Looks good",
                admin_actor,
                collaborators,
            )

        assert result.success is False
        assert result.partial_failure is True
        assert result.status == ApplicationStatus.APPROVED
        assert result.error_code == "NO_ACTIVE_TEMPLATE"
        assert result.next_action == CONTACT_ADMIN
        assert result.certification is None
        assert under_review_application.status == ApplicationStatus.APPROVED
        mock_repo.save.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_approve_unexpected_issuer_error(
        self, mock_db, admin_actor, collaborators, under_review_application
    ):
        with (
            patch(
                f"{REVIEW}.get_application_or_404",
                AsyncMock(return_value=under_review_application),
            ),
            patch(f"{REVIEW}.applications_repository") as mock_repo,
            patch(f"{REVIEW}.issuer") as mock_issuer,
        ):
            mock_repo.save = AsyncMock(side_effect=_echo)
            mock_issuer.generate_certification = AsyncMock(side_effect=RuntimeError("db gone"))

            result = await submit_review_decision(
                mock_db,
                under_review_application.id,
                ReviewDecision.APPROVE,
                "",
                admin_actor,
                collaborators,
            )

        assert result.partial_failure is True
        assert result.error_code == "CERTIFICATION_GENERATION_FAILED"
        mock_db.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_approve_issues_certification(
        self, mock_db, admin_actor, collaborators, under_review_application, make_certification
    ):
        certification = make_certification(application_id=under_review_application.id)

        with (
            patch(
                f"{REVIEW}.get_application_or_404",
                AsyncMock(return_value=under_review_application),
            ),
            patch(f"{REVIEW}.applications_repository") as mock_repo,
            patch(f"{REVIEW}.issuer") as mock_issuer,
        ):
            mock_repo.save = AsyncMock(side_effect=_echo)
            mock_issuer.generate_certification = AsyncMock(return_value=certification)

            result = await submit_review_decision(
                mock_db,
                under_review_application.id,
                ReviewDecision.APPROVE,
                "",
                admin_actor,
                collaborators,
            )

        assert result.success is True
        assert result.partial_failure is False
        assert result.certification.certificate_number == certification.certificate_number
        assert under_review_application.reviewed_by == admin_actor.id
        assert under_review_application.reviewed_at is not None
        assert under_review_application.review_notes is None

    @pytest.mark.asyncio
    async def test_reject_records_notes(
        self, mock_db, admin_actor, collaborators, under_review_application
    ):
        with (
            patch(
                f"{REVIEW}.get_application_or_404",
                AsyncMock(return_value=under_review_application),
            ),
            patch(f"{REVIEW}.applications_repository") as mock_repo,
            patch(f"{REVIEW}.issuer") as mock_issuer,
        ):
            mock_repo.save = AsyncMock(side_effect=_echo)
            mock_issuer.generate_certification = AsyncMock()

            result = await submit_review_decision(
                mock_db,
                under_review_application.id,
                ReviewDecision.REJECT,
                "Insurance expired",
                admin_actor,
                collaborators,
            )

            mock_issuer.generate_certification.assert_not_awaited()

        assert result.success is True
        assert result.status == ApplicationStatus.REJECTED
        assert under_review_application.review_notes == "Insurance expired"
        assert collaborators.audit.record.call_args.args[0] == "APPLICATION_REJECTED"

    @pytest.mark.asyncio
    async def test_super_admin_decision_keeps_assignee(
        self, mock_db, admin_actor, super_admin_actor, collaborators, under_review_application
    ):
        with (
            patch(
                f"{REVIEW}.get_application_or_404",
                AsyncMock(return_value=under_review_application),
            ),
            patch(f"{REVIEW}.applications_repository") as mock_repo,
        ):
            mock_repo.save = AsyncMock(side_effect=_echo)

            await submit_review_decision(
                mock_db,
                under_review_application.id,
                ReviewDecision.REJECT,
                "Insurance expired",
                super_admin_actor,
                collaborators,
            )

        assert under_review_application.reviewed_by == admin_actor.id
        assert under_review_application.reviewed_at is not None
        audit_args = collaborators.audit.record.call_args.args
        assert audit_args[3] == super_admin_actor.id
        assert audit_args[5]["decided_by"] == str(super_admin_actor.id)

    @pytest.mark.asyncio
    async def test_request_more_info_keeps_review_stamp(
        self, mock_db, admin_actor, collaborators, under_review_application
    ):
        with (
            patch(
                f"{REVIEW}.get_application_or_404",
                AsyncMock(return_value=under_review_application),
            ),
            patch(f"{REVIEW}.applications_repository") as mock_repo,
        ):
            mock_repo.save = AsyncMock(side_effect=_echo)

            result = await submit_review_decision(
                mock_db,
                under_review_application.id,
                ReviewDecision.REQUEST_MORE_INFO,
                "Upload a clearer ID",
                admin_actor,
                collaborators,
            )

        assert result.status == ApplicationStatus.MORE_INFO_REQUESTED
        assert under_review_application.reviewed_at is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status",
        [
            ApplicationStatus.SUBMITTED,
            ApplicationStatus.APPROVED,
            ApplicationStatus.REJECTED,
            ApplicationStatus.MORE_INFO_REQUESTED,
        ],
    )
    async def test_requires_under_review(
        self, mock_db, admin_actor, collaborators, under_review_application, status
    ):
        under_review_application.status = status

        with (
            patch(
                f"{REVIEW}.get_application_or_404",
                AsyncMock(return_value=under_review_application),
            ),
            patch(f"{REVIEW}.applications_repository") as mock_repo,
        ):
            mock_repo.save = AsyncMock()

            with pytest.raises(InvalidApplicationStateError):
                await submit_review_decision(
                    mock_db,
                    under_review_application.id,
                    ReviewDecision.APPROVE,
                    "",
                    admin_actor,
                    collaborators,
                )

            mock_repo.save.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unassigned_admin_denied(
        self, mock_db, collaborators, under_review_application
    ):
        other_admin = Actor(id=uuid4(), role=UserRole.ADMIN)

        with patch(
            f"{REVIEW}.get_application_or_404",
            AsyncMock(return_value=under_review_application),
        ):
            with pytest.raises(ApplicationAccessDeniedError):
                await submit_review_decision(
                    mock_db,
                    under_review_application.id,
                    ReviewDecision.REJECT,
                    "",
                    other_admin,
                    collaborators,
                )


# ============================================
# Risk & Stats
# ============================================


class TestAssessRisk:
    def test_low_risk(self, submitted_application, all_documents):
        risk = assess_risk(submitted_application, all_documents)
        assert risk.level == RiskLevel.LOW
        assert risk.score == 0
        assert risk.recommendations == ["Standard review process applicable"]

    def test_medium_risk_with_stale_submission(self, submitted_application, all_documents):
        now = datetime.now(UTC)
        submitted_application.submitted_at = now - timedelta(days=31)
        uploaded = all_documents - {DocumentType.SAFETY_PERMIT}

        risk = assess_risk(submitted_application, uploaded, now=now)

        assert risk.score == 3
        assert risk.level == RiskLevel.MEDIUM
        assert "Consider requesting updated documents" in risk.recommendations

    def test_high_risk(self, submitted_application):
        submitted_application.property_details = {}

        risk = assess_risk(submitted_application, {DocumentType.ID_DOCUMENT})

        assert risk.score == 8
        assert risk.level == RiskLevel.HIGH
        assert risk.factors[0] == "Incomplete property details"

    def test_partial_details_are_incomplete(self, submitted_application, all_documents):
        submitted_application.property_details = {
            "property_type_id": str(uuid4()),
            "property_name": None,
            "address": None,
            "bedrooms": None,
            "bathrooms": None,
            "max_guests": None,
        }

        risk = assess_risk(submitted_application, all_documents)

        assert risk.score == 2
        assert risk.factors == ["Incomplete property details"]
        assert risk.level == RiskLevel.LOW


class TestQueueStats:
    @pytest.mark.asyncio
    async def test_stats_are_per_reviewer(self, mock_db, admin_actor):
        with patch(f"{REVIEW}.applications_repository") as mock_repo:
            mock_repo.count_by_status = AsyncMock(
                return_value={status: 0 for status in ApplicationStatus}
                | {ApplicationStatus.UNDER_REVIEW: 4}
            )
            mock_repo.count_assigned_under_review = AsyncMock(return_value=2)
            mock_repo.count_under_review_submitted_before = AsyncMock(return_value=1)
            mock_repo.count_decided_since = AsyncMock(return_value=3)

            stats = await get_review_queue_stats(mock_db, admin_actor)

        assert stats.total_under_review == 4
        assert stats.assigned_to_me == 2
        assert stats.urgent == 1
        assert stats.decided_today == 3
        assert mock_repo.count_decided_since.call_args.kwargs["reviewer_id"] == admin_actor.id
