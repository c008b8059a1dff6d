"""create licensing tables

Revision ID: 3c1f9a2d7b40
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3c1f9a2d7b40"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "user_licenses",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("user_email", sa.String(length=320), nullable=False),
        sa.Column("organization_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("license_tier", sa.String(length=32), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("assigned_date", sa.Date(), nullable=True),
        sa.Column("last_access_date", sa.Date(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.UniqueConstraint("user_email", "organization_id"),
    )
    op.create_index(
        "ix_user_licenses_user_email", "user_licenses", ["user_email"], unique=False
    )

    op.create_table(
        "organization_modules",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("organization_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("module_key", sa.String(length=32), nullable=False),
        sa.Column("module_name", sa.String(length=255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("license_key", sa.String(length=255), nullable=True),
        sa.Column("activation_date", sa.Date(), nullable=True),
        sa.Column("expiry_date", sa.Date(), nullable=True),
        sa.UniqueConstraint("organization_id", "module_key"),
    )

    op.create_table(
        "license_tier_permissions",
        sa.Column("license_tier", sa.String(length=32), primary_key=True),
        sa.Column("permission_key", sa.String(length=64), primary_key=True),
        sa.Column(
            "can_execute", sa.Boolean(), nullable=False, server_default=sa.false()
        ),
    )


def downgrade() -> None:
    op.drop_table("license_tier_permissions")
    op.drop_table("organization_modules")
    op.drop_index("ix_user_licenses_user_email", table_name="user_licenses")
    op.drop_table("user_licenses")
