"""create tenants, schools and users

Revision ID: a0c1d2e3f4a5
Revises:
Create Date: 2026-10-18 09:00:00.000000

This migration:
1. Creates the enum types used by the three tables
2. Creates tenants, then schools (tenant-scoped), then users
3. Adds per-tenant uniqueness for school codes and user emails, ignoring
   soft-deleted rows
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "a0c1d2e3f4a5"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

ENUMS = {
    "tenant_status": ("active", "inactive", "suspended"),
    "subscription_plan": ("free", "basic", "premium", "enterprise"),
    "school_status": ("active", "inactive", "pending"),
    "school_type": ("primary", "secondary", "high_school", "college", "university", "other"),
    "school_board": ("CBSE", "ICSE", "State Board", "IB", "IGCSE", "Other"),
    "user_role": (
        "super_admin",
        "school_admin",
        "teacher",
        "student",
        "parent",
        "accountant",
        "librarian",
        "receptionist",
        "transport_manager",
    ),
    "account_status": ("active", "pending", "suspended", "inactive"),
}


def _enum(name: str) -> postgresql.ENUM:
    return postgresql.ENUM(*ENUMS[name], name=name, create_type=False)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def _audit_columns() -> list[sa.Column]:
    return [
        sa.Column("is_deleted", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("created_by", postgresql.UUID(as_uuid=False), nullable=True),
        sa.Column("updated_by", postgresql.UUID(as_uuid=False), nullable=True),
    ]


def upgrade() -> None:
    """Create tenants, schools and users."""
    bind = op.get_bind()
    for name, values in ENUMS.items():
        postgresql.ENUM(*values, name=name).create(bind, checkfirst=True)

    # Tenants
    op.create_table(
        "tenants",
        sa.Column("id", postgresql.UUID(as_uuid=False), nullable=False),
        *_timestamps(),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("code", sa.String(length=50), nullable=False),
        sa.Column("slug", sa.String(length=50), nullable=False),
        sa.Column("domain", sa.String(length=255), nullable=True),
        sa.Column("status", _enum("tenant_status"), nullable=False, server_default="active"),
        sa.Column(
            "subscription_plan",
            _enum("subscription_plan"),
            nullable=False,
            server_default="free",
        ),
        sa.Column("subscription_start", sa.DateTime(timezone=True), nullable=True),
        sa.Column("subscription_end", sa.DateTime(timezone=True), nullable=True),
        sa.Column("settings", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_tenants_code"), "tenants", ["code"], unique=True)
    op.create_index(op.f("ix_tenants_slug"), "tenants", ["slug"], unique=True)

    # Schools
    op.create_table(
        "schools",
        sa.Column("id", postgresql.UUID(as_uuid=False), nullable=False),
        *_timestamps(),
        *_audit_columns(),
        sa.Column("tenant_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("code", sa.String(length=50), nullable=False),
        sa.Column("establishment_year", sa.Integer(), nullable=True),
        sa.Column("school_type", _enum("school_type"), nullable=False, server_default="secondary"),
        sa.Column("board", _enum("school_board"), nullable=False, server_default="CBSE"),
        sa.Column("affiliation_number", sa.String(length=100), nullable=True),
        sa.Column("address", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("contact_info", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("principal", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("logo_url", sa.String(length=500), nullable=True),
        sa.Column("banner_url", sa.String(length=500), nullable=True),
        sa.Column("status", _enum("school_status"), nullable=False, server_default="active"),
        sa.Column("settings", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("features_enabled", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["tenant_id"],
            ["tenants.id"],
            name="fk_schools_tenant_id",
            ondelete="CASCADE",
        ),
    )
    op.create_index(op.f("ix_schools_tenant_id"), "schools", ["tenant_id"], unique=False)
    op.create_index(op.f("ix_schools_name"), "schools", ["name"], unique=False)
    op.create_index(op.f("ix_schools_code"), "schools", ["code"], unique=False)
    op.create_index(op.f("ix_schools_status"), "schools", ["status"], unique=False)
    op.create_index(op.f("ix_schools_is_deleted"), "schools", ["is_deleted"], unique=False)
    # Soft-deleted schools free their code
    op.create_index(
        "uq_schools_tenant_code",
        "schools",
        ["tenant_id", "code"],
        unique=True,
        postgresql_where=sa.text("NOT is_deleted"),
    )

    # Users
    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=False), nullable=False),
        *_timestamps(),
        *_audit_columns(),
        sa.Column("tenant_id", postgresql.UUID(as_uuid=False), nullable=True),
        sa.Column("school_id", postgresql.UUID(as_uuid=False), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.Text(), nullable=False),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=False),
        sa.Column("phone", sa.String(length=20), nullable=True),
        sa.Column("profile_image", sa.String(length=500), nullable=True),
        sa.Column("role", _enum("user_role"), nullable=False, server_default="student"),
        sa.Column("permissions", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("preferences", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column(
            "account_status",
            _enum("account_status"),
            nullable=False,
            server_default="active",
        ),
        sa.Column("email_verified", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("must_change_password", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("reset_password_token_hash", sa.String(length=64), nullable=True),
        sa.Column("reset_password_expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["tenant_id"],
            ["tenants.id"],
            name="fk_users_tenant_id",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["school_id"],
            ["schools.id"],
            name="fk_users_school_id",
            ondelete="SET NULL",
        ),
    )
    op.create_index(op.f("ix_users_tenant_id"), "users", ["tenant_id"], unique=False)
    op.create_index(op.f("ix_users_school_id"), "users", ["school_id"], unique=False)
    op.create_index(op.f("ix_users_email"), "users", ["email"], unique=False)
    op.create_index(op.f("ix_users_role"), "users", ["role"], unique=False)
    op.create_index(op.f("ix_users_account_status"), "users", ["account_status"], unique=False)
    op.create_index(op.f("ix_users_is_deleted"), "users", ["is_deleted"], unique=False)
    op.create_index(
        op.f("ix_users_reset_password_token_hash"),
        "users",
        ["reset_password_token_hash"],
        unique=False,
    )
    op.create_index(
        "uq_users_tenant_email",
        "users",
        ["tenant_id", "email"],
        unique=True,
        postgresql_where=sa.text("NOT is_deleted"),
    )
    # Platform super admins have no tenant; keep their emails unique too
    op.create_index(
        "uq_users_platform_email",
        "users",
        ["email"],
        unique=True,
        postgresql_where=sa.text("tenant_id IS NULL AND NOT is_deleted"),
    )


def downgrade() -> None:
    """Drop users, schools and tenants."""
    op.drop_table("users")
    op.drop_table("schools")
    op.drop_table("tenants")

    bind = op.get_bind()
    for name, values in reversed(ENUMS.items()):
        postgresql.ENUM(*values, name=name).drop(bind, checkfirst=True)
