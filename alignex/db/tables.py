"""SQLAlchemy table definitions.

These map to the frozen dataclass domain models in alignex/models/.
Repos convert between rows and domain dataclasses.  Enum-valued columns
are stored as plain strings so rows written by other tools (seed scripts,
the admin UI) stay readable.
"""

from __future__ import annotations

import uuid
from datetime import date

from sqlalchemy import Boolean, Date, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from alignex.db.engine import Base


class UserLicenseRow(Base):
    __tablename__ = "user_licenses"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    user_email: Mapped[str] = mapped_column(String(320), nullable=False, index=True)
    organization_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), nullable=False
    )
    license_tier: Mapped[str] = mapped_column(
        String(32), nullable=False
    )  # read_only|team_member|full_license
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    assigned_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    last_access_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (UniqueConstraint("user_email", "organization_id"),)


class OrganizationModuleRow(Base):
    __tablename__ = "organization_modules"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    organization_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), nullable=False
    )
    module_key: Mapped[str] = mapped_column(
        String(32), nullable=False
    )  # base|skills|benefits
    module_name: Mapped[str] = mapped_column(String(255), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    license_key: Mapped[str | None] = mapped_column(String(255), nullable=True)
    activation_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    expiry_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    __table_args__ = (UniqueConstraint("organization_id", "module_key"),)


class LicenseTierPermissionRow(Base):
    __tablename__ = "license_tier_permissions"

    license_tier: Mapped[str] = mapped_column(String(32), primary_key=True)
    permission_key: Mapped[str] = mapped_column(String(64), primary_key=True)
    can_execute: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
