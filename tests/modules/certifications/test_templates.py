"""
Tests for certificate template management.
"""

from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest
from sqlalchemy.exc import IntegrityError

from rentalcert.core.exceptions import ForbiddenError
from rentalcert.modules.applications.errors import InvalidPropertyTypeError
from rentalcert.modules.certifications.errors import TemplateNotFoundError
from rentalcert.modules.certifications.schemas import TemplateCreate
from rentalcert.modules.certifications.templates import (
    ConcurrentActivationError,
    activate_template,
    create_template,
    deactivate_template,
)

TEMPLATES = "rentalcert.modules.certifications.templates"


class TestActivateTemplate:
    @pytest.mark.asyncio
    async def test_deactivates_others_in_same_commit(
        self, mock_db, super_admin_actor, active_template
    ):
        active_template.is_active = False

        with patch(f"{TEMPLATES}.repository") as mock_repo:
            mock_repo.get_template = AsyncMock(return_value=active_template)
            mock_repo.deactivate_templates_for_type = AsyncMock()

            result = await activate_template(mock_db, active_template.id, super_admin_actor)

        assert result.is_active is True
        mock_repo.deactivate_templates_for_type.assert_awaited_once_with(
            mock_db, active_template.property_type_id, except_id=active_template.id
        )
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_admin_forbidden(self, mock_db, admin_actor):
        with patch(f"{TEMPLATES}.repository") as mock_repo:
            mock_repo.get_template = AsyncMock()

            with pytest.raises(ForbiddenError):
                await activate_template(mock_db, uuid4(), admin_actor)

            mock_repo.get_template.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_template(self, mock_db, super_admin_actor):
        with patch(f"{TEMPLATES}.repository") as mock_repo:
            mock_repo.get_template = AsyncMock(return_value=None)

            with pytest.raises(TemplateNotFoundError):
                await activate_template(mock_db, uuid4(), super_admin_actor)

    @pytest.mark.asyncio
    async def test_concurrent_activation_conflict(
        self, mock_db, super_admin_actor, active_template
    ):
        mock_db.commit.side_effect = IntegrityError("UPDATE", {}, Exception("unique"))

        with patch(f"{TEMPLATES}.repository") as mock_repo:
            mock_repo.get_template = AsyncMock(return_value=active_template)
            mock_repo.deactivate_templates_for_type = AsyncMock()

            with pytest.raises(ConcurrentActivationError):
                await activate_template(mock_db, active_template.id, super_admin_actor)

        mock_db.rollback.assert_awaited_once()


class TestCreateTemplate:
    @pytest.mark.asyncio
    async def test_active_template_replaces_existing(self, mock_db, super_admin_actor):
        property_type_id = uuid4()
        data = TemplateCreate(
            property_type_id=property_type_id, name=" Standard ", validity_months=24, is_active=True
        )

        with (
            patch(f"{TEMPLATES}.repository") as mock_repo,
            patch(f"{TEMPLATES}.catalog_repository") as mock_catalog,
        ):
            mock_catalog.get_property_type = AsyncMock(return_value=MagicMock())
            mock_repo.deactivate_templates_for_type = AsyncMock()

            template = await create_template(mock_db, data, super_admin_actor)

        mock_repo.deactivate_templates_for_type.assert_awaited_once_with(mock_db, property_type_id)
        assert template.name == "Standard"
        assert template.validity_months == 24
        assert template.created_by == super_admin_actor.id
        mock_db.add.assert_called_once_with(template)

    @pytest.mark.asyncio
    async def test_inactive_template_leaves_others(self, mock_db, super_admin_actor):
        data = TemplateCreate(property_type_id=uuid4(), name="Draft")

        with (
            patch(f"{TEMPLATES}.repository") as mock_repo,
            patch(f"{TEMPLATES}.catalog_repository") as mock_catalog,
        ):
            mock_catalog.get_property_type = AsyncMock(return_value=MagicMock())
            mock_repo.deactivate_templates_for_type = AsyncMock()

            await create_template(mock_db, data, super_admin_actor)

        mock_repo.deactivate_templates_for_type.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_property_type(self, mock_db, super_admin_actor):
        data = TemplateCreate(property_type_id=uuid4(), name="Standard")

        with patch(f"{TEMPLATES}.catalog_repository") as mock_catalog:
            mock_catalog.get_property_type = AsyncMock(return_value=None)

            with pytest.raises(InvalidPropertyTypeError):
                await create_template(mock_db, data, super_admin_actor)


class TestDeactivateTemplate:
    @pytest.mark.asyncio
    async def test_deactivate(self, mock_db, super_admin_actor, active_template):
        with patch(f"{TEMPLATES}.repository") as mock_repo:
            mock_repo.get_template = AsyncMock(return_value=active_template)

            result = await deactivate_template(mock_db, active_template.id, super_admin_actor)

        assert result.is_active is False
        mock_db.commit.assert_awaited_once()
