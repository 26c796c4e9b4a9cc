"""Initial schema — services, versions, partners, roles, profiles, audit.

Revision ID: 001
Revises: None
Create Date: 2026-10-18
"""
from __future__ import annotations

from typing import Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, tuple[str, ...], None] = None
depends_on: Union[str, tuple[str, ...], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("id", postgresql.UUID(as_uuid=True), server_default=sa.text("gen_random_uuid()"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def upgrade() -> None:
    # ── Standalone tables (no FKs) ─────────────────────────────────────

    op.create_table(
        "audit_log",
        sa.Column("event_type", sa.String(100), nullable=False, index=True),
        sa.Column("service_id", postgresql.UUID(as_uuid=True), index=True),
        sa.Column("actor_id", sa.String(100), comment="User ID or 'system'"),
        sa.Column("actor_role", sa.String(50), comment="admin, agent, system"),
        sa.Column("data", postgresql.JSONB(astext_type=sa.Text())),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "user_roles",
        sa.Column("user_id", sa.String(100), nullable=False, index=True),
        sa.Column("role", sa.String(20), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "role", name="uq_user_roles_user_role"),
    )

    op.create_table(
        "profiles",
        sa.Column("user_id", sa.String(100), nullable=False, unique=True),
        sa.Column("display_name", sa.String(200)),
        sa.Column("deals_last_12m", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("buyers_last_12m", sa.Integer()),
        sa.Column("sellers_last_12m", sa.Integer()),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "vendor_partners",
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("logo", sa.String(500)),
        sa.Column("description", sa.String(2000)),
        sa.Column("verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("markets", postgresql.ARRAY(sa.String(100)), nullable=False, server_default="{}"),
        sa.Column("benefits", postgresql.ARRAY(sa.String(300)), nullable=False, server_default="{}"),
        sa.Column("copay_eligibility", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("share_pct", sa.Numeric(5, 2), comment="Vendor contribution %"),
        sa.Column("max_share_cents_per_order", sa.Integer()),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "services",
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("slug", sa.String(200), unique=True),
        sa.Column("category", sa.String(100)),
        sa.Column("vendor_id", postgresql.UUID(as_uuid=True), index=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("published_version_id", postgresql.UUID(as_uuid=True)),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )

    # ── Versions ───────────────────────────────────────────────────────

    op.create_table(
        "service_versions",
        sa.Column("service_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("services.id"), nullable=False, index=True),
        sa.Column("state", sa.String(20), nullable=False, index=True),
        sa.Column("row_version", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("card", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("pricing", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("funnel", postgresql.JSONB(astext_type=sa.Text())),
        sa.Column("created_by", sa.String(100), comment="Identity provider user ID"),
        sa.Column("submitted_at", sa.DateTime(timezone=True)),
        sa.Column("approved_at", sa.DateTime(timezone=True)),
        sa.Column("published_at", sa.DateTime(timezone=True)),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("row_version > 0", name="ck_service_versions_row_version_positive"),
    )

    # One working draft per service
    op.create_index(
        "uq_service_versions_one_draft",
        "service_versions",
        ["service_id"],
        unique=True,
        postgresql_where=sa.text("state = 'draft'"),
    )

    op.create_foreign_key(
        "fk_services_published_version",
        "services",
        "service_versions",
        ["published_version_id"],
        ["id"],
    )


def downgrade() -> None:
    op.drop_constraint("fk_services_published_version", "services", type_="foreignkey")
    op.drop_index("uq_service_versions_one_draft", table_name="service_versions")
    op.drop_table("service_versions")
    op.drop_table("services")
    op.drop_table("vendor_partners")
    op.drop_table("profiles")
    op.drop_table("user_roles")
    op.drop_table("audit_log")
