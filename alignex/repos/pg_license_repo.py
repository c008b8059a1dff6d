"""PostgreSQL implementation of UserLicenseRepo."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from alignex.db.tables import UserLicenseRow
from alignex.models.license import LicenseTier, UserLicense


class PgUserLicenseRepo:
    """Satisfies the UserLicenseRepo Protocol using PostgreSQL via SQLAlchemy.

    Takes a session factory rather than a session: the permission resolver
    outlives any single request, so each call opens its own short session.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get_by_id(self, license_id: UUID) -> UserLicense | None:
        async with self._session_factory() as session:
            row = await session.get(UserLicenseRow, license_id)
            return _row_to_license(row) if row is not None else None

    async def find_active_by_email(self, user_email: str) -> UserLicense | None:
        # No ORDER BY: with several active rows the first one returned wins.
        stmt = (
            select(UserLicenseRow)
            .where(UserLicenseRow.user_email == user_email)
            .where(UserLicenseRow.is_active.is_(True))
            .limit(1)
        )
        async with self._session_factory() as session:
            row = (await session.execute(stmt)).scalars().first()
            return _row_to_license(row) if row is not None else None

    async def get_for_user(
        self, user_email: str, organization_id: UUID
    ) -> UserLicense | None:
        stmt = select(UserLicenseRow).where(
            UserLicenseRow.user_email == user_email,
            UserLicenseRow.organization_id == organization_id,
        )
        async with self._session_factory() as session:
            row = (await session.execute(stmt)).scalar_one_or_none()
            return _row_to_license(row) if row is not None else None

    async def list_by_org(self, organization_id: UUID) -> list[UserLicense]:
        stmt = (
            select(UserLicenseRow)
            .where(UserLicenseRow.organization_id == organization_id)
            .order_by(UserLicenseRow.user_email)
        )
        async with self._session_factory() as session:
            rows = (await session.execute(stmt)).scalars().all()
            return [_row_to_license(r) for r in rows]

    async def add(self, user_license: UserLicense) -> None:
        row = UserLicenseRow(
            id=user_license.id,
            user_email=user_license.user_email,
            organization_id=user_license.organization_id,
            license_tier=user_license.license_tier.value,
            is_active=user_license.is_active,
            assigned_date=user_license.assigned_date,
            last_access_date=user_license.last_access_date,
            notes=user_license.notes,
        )
        async with self._session_factory() as session:
            session.add(row)
            try:
                await session.commit()
            except IntegrityError:
                raise ValueError("license already exists for this user") from None

    async def update_tier(
        self, license_id: UUID, license_tier: LicenseTier
    ) -> UserLicense | None:
        stmt = (
            update(UserLicenseRow)
            .where(UserLicenseRow.id == license_id)
            .values(license_tier=license_tier.value)
        )
        return await self._update(license_id, stmt)

    async def set_active(
        self, license_id: UUID, is_active: bool
    ) -> UserLicense | None:
        stmt = (
            update(UserLicenseRow)
            .where(UserLicenseRow.id == license_id)
            .values(is_active=is_active)
        )
        return await self._update(license_id, stmt)

    async def _update(self, license_id: UUID, stmt) -> UserLicense | None:
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            await session.commit()
            if result.rowcount == 0:
                return None
        return await self.get_by_id(license_id)


def _row_to_license(row: UserLicenseRow) -> UserLicense:
    return UserLicense(
        id=row.id,
        user_email=row.user_email,
        organization_id=row.organization_id,
        license_tier=LicenseTier(row.license_tier),
        is_active=row.is_active,
        assigned_date=row.assigned_date,
        last_access_date=row.last_access_date,
        notes=row.notes,
    )
