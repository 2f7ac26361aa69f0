"""initial certification schema

Revision ID: 3f9a1c2b7d40
Revises:
Create Date: 2026-10-19 09:00:00.000000

This migration:
1. Creates the catalog tables (property_types, checklist_items)
2. Creates applications and the per-step tables (compliance_checklists,
   documents, payments)
3. Creates certificate_templates with a partial unique index allowing one
   active template per property type
4. Creates certifications, bound 1:1 to an application

Enum types are created up front with checkfirst so the migration can be
re-run against a database where they already exist.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "3f9a1c2b7d40"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


ENUMS = {
    "application_status": (
        "DRAFT",
        "SUBMITTED",
        "UNDER_REVIEW",
        "APPROVED",
        "REJECTED",
        "MORE_INFO_REQUESTED",
    ),
    "application_step": (
        "PROPERTY_DETAILS",
        "COMPLIANCE_CHECKLIST",
        "DOCUMENT_UPLOAD",
        "PAYMENT",
        "SUBMISSION",
    ),
    "document_type": (
        "ID_DOCUMENT",
        "SAFETY_PERMIT",
        "INSURANCE_CERTIFICATE",
        "PROPERTY_DEED",
        "OTHER",
    ),
    "payment_status": ("PENDING", "COMPLETED", "FAILED", "REFUNDED", "PARTIALLY_REFUNDED"),
    "certification_status": ("ACTIVE", "EXPIRED", "REVOKED"),
}


def _enum(name: str) -> postgresql.ENUM:
    return postgresql.ENUM(*ENUMS[name], name=name, create_type=False)


def _timestamps(with_updated: bool = True) -> list[sa.Column]:
    columns = [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        )
    ]
    if with_updated:
        columns.append(
            sa.Column(
                "updated_at",
                sa.DateTime(timezone=True),
                server_default=sa.text("now()"),
                nullable=False,
            )
        )
    return columns


def upgrade() -> None:
    """Create the certification schema."""
    bind = op.get_bind()
    for name in ENUMS:
        _enum(name).create(bind, checkfirst=True)

    # Catalog
    op.create_table(
        "property_types",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name", name="uq_property_types_name"),
    )

    op.create_table(
        "checklist_items",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("property_type_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(with_updated=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["property_type_id"],
            ["property_types.id"],
            name="fk_checklist_items_property_type_id",
            ondelete="CASCADE",
        ),
    )
    op.create_index(
        "ix_checklist_items_property_type", "checklist_items", ["property_type_id"]
    )
    op.create_index(
        "uq_checklist_items_type_name",
        "checklist_items",
        ["property_type_id", "name"],
        unique=True,
    )

    # Applications
    op.create_table(
        "applications",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("host_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("property_details", postgresql.JSON(astext_type=sa.Text()), nullable=True),
        sa.Column(
            "status", _enum("application_status"), nullable=False, server_default="DRAFT"
        ),
        sa.Column(
            "current_step",
            _enum("application_step"),
            nullable=False,
            server_default="PROPERTY_DETAILS",
        ),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reviewed_by", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("review_notes", sa.Text(), nullable=True),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_applications_host_id", "applications", ["host_id"])
    op.create_index("ix_applications_status", "applications", ["status"])
    op.create_index("ix_applications_reviewed_by", "applications", ["reviewed_by"])

    op.create_table(
        "compliance_checklists",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("application_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("checklist_item_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("checked", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column(
            "checked_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["application_id"],
            ["applications.id"],
            name="fk_compliance_checklists_application_id",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["checklist_item_id"],
            ["checklist_items.id"],
            name="fk_compliance_checklists_checklist_item_id",
            ondelete="CASCADE",
        ),
        sa.UniqueConstraint(
            "application_id", "checklist_item_id", name="uq_compliance_checklists_app_item"
        ),
    )

    op.create_table(
        "documents",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("application_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("document_type", _enum("document_type"), nullable=False),
        sa.Column("file_name", sa.String(length=255), nullable=False),
        sa.Column("original_name", sa.String(length=255), nullable=False),
        sa.Column("mime_type", sa.String(length=100), nullable=True),
        sa.Column("size", sa.Integer(), nullable=True),
        sa.Column("url", sa.String(length=1000), nullable=False),
        sa.Column(
            "uploaded_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["application_id"],
            ["applications.id"],
            name="fk_documents_application_id",
            ondelete="CASCADE",
        ),
    )
    op.create_index(
        "ix_documents_application_type", "documents", ["application_id", "document_type"]
    )

    op.create_table(
        "payments",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("application_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("host_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False, server_default="USD"),
        sa.Column("status", _enum("payment_status"), nullable=False, server_default="PENDING"),
        *_timestamps(with_updated=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["application_id"],
            ["applications.id"],
            name="fk_payments_application_id",
            ondelete="CASCADE",
        ),
    )
    op.create_index(
        "ix_payments_application_status", "payments", ["application_id", "status"]
    )

    # Certificate templates
    op.create_table(
        "certificate_templates",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("property_type_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("validity_months", sa.Integer(), nullable=False, server_default="12"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("created_by", postgresql.UUID(as_uuid=True), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["property_type_id"],
            ["property_types.id"],
            name="fk_certificate_templates_property_type_id",
            ondelete="CASCADE",
        ),
    )
    # At most one active template per property type
    op.create_index(
        "uq_certificate_templates_active_per_type",
        "certificate_templates",
        ["property_type_id"],
        unique=True,
        postgresql_where=sa.text("is_active"),
    )

    # Certifications
    op.create_table(
        "certifications",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("application_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("host_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("certificate_number", sa.String(length=20), nullable=False),
        sa.Column("verification_token", sa.String(length=64), nullable=False),
        sa.Column("verification_url", sa.String(length=500), nullable=False),
        sa.Column(
            "status", _enum("certification_status"), nullable=False, server_default="ACTIVE"
        ),
        sa.Column("issued_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("revoked_by", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("revoke_reason", sa.Text(), nullable=True),
        sa.Column("badge_url", sa.String(length=1000), nullable=False, server_default=""),
        sa.Column("qr_code_url", sa.String(length=1000), nullable=False, server_default=""),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["application_id"],
            ["applications.id"],
            name="fk_certifications_application_id",
            ondelete="RESTRICT",
        ),
        sa.UniqueConstraint("application_id", name="uq_certifications_application_id"),
        sa.UniqueConstraint("certificate_number", name="uq_certifications_certificate_number"),
        sa.UniqueConstraint("verification_token", name="uq_certifications_verification_token"),
    )
    op.create_index(
        "ix_certifications_status_expires_at", "certifications", ["status", "expires_at"]
    )
    op.create_index("ix_certifications_host_id", "certifications", ["host_id"])


def downgrade() -> None:
    """Drop the certification schema."""
    op.drop_index("ix_certifications_host_id", table_name="certifications")
    op.drop_index("ix_certifications_status_expires_at", table_name="certifications")
    op.drop_table("certifications")

    op.drop_index(
        "uq_certificate_templates_active_per_type", table_name="certificate_templates"
    )
    op.drop_table("certificate_templates")

    op.drop_index("ix_payments_application_status", table_name="payments")
    op.drop_table("payments")
    op.drop_index("ix_documents_application_type", table_name="documents")
    op.drop_table("documents")
    op.drop_table("compliance_checklists")

    op.drop_index("ix_applications_reviewed_by", table_name="applications")
    op.drop_index("ix_applications_status", table_name="applications")
    op.drop_index("ix_applications_host_id", table_name="applications")
    op.drop_table("applications")

    op.drop_index("uq_checklist_items_type_name", table_name="checklist_items")
    op.drop_index("ix_checklist_items_property_type", table_name="checklist_items")
    op.drop_table("checklist_items")
    op.drop_table("property_types")

    bind = op.get_bind()
    for name in reversed(list(ENUMS)):
        _enum(name).drop(bind, checkfirst=True)
