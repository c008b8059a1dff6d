"""PostgreSQL implementation of OrganizationModuleRepo."""

from __future__ import annotations

from datetime import date
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from alignex.db.tables import OrganizationModuleRow
from alignex.models.module import ModuleKey, OrganizationModule


class PgOrganizationModuleRepo:
    """Satisfies the OrganizationModuleRepo Protocol using PostgreSQL."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def list_by_org(
        self, organization_id: UUID, *, active_only: bool = False
    ) -> list[OrganizationModule]:
        stmt = select(OrganizationModuleRow).where(
            OrganizationModuleRow.organization_id == organization_id
        )
        if active_only:
            stmt = stmt.where(OrganizationModuleRow.is_active.is_(True))
        stmt = stmt.order_by(OrganizationModuleRow.module_key)
        async with self._session_factory() as session:
            rows = (await session.execute(stmt)).scalars().all()
            return [m for m in (_row_to_module(r) for r in rows) if m is not None]

    async def get(
        self, organization_id: UUID, module_key: ModuleKey
    ) -> OrganizationModule | None:
        stmt = select(OrganizationModuleRow).where(
            OrganizationModuleRow.organization_id == organization_id,
            OrganizationModuleRow.module_key == module_key.value,
        )
        async with self._session_factory() as session:
            row = (await session.execute(stmt)).scalar_one_or_none()
            return _row_to_module(row) if row is not None else None

    async def add(self, module: OrganizationModule) -> None:
        row = OrganizationModuleRow(
            id=module.id,
            organization_id=module.organization_id,
            module_key=module.module_key.value,
            module_name=module.module_name,
            is_active=module.is_active,
            license_key=module.license_key,
            activation_date=module.activation_date,
            expiry_date=module.expiry_date,
        )
        async with self._session_factory() as session:
            session.add(row)
            try:
                await session.commit()
            except IntegrityError:
                raise ValueError("module already provisioned for this organization") from None

    async def activate(
        self,
        organization_id: UUID,
        module_key: ModuleKey,
        *,
        license_key: str | None,
        activation_date: date,
        expiry_date: date | None,
    ) -> OrganizationModule | None:
        return await self._update(
            organization_id,
            module_key,
            is_active=True,
            license_key=license_key,
            activation_date=activation_date,
            expiry_date=expiry_date,
        )

    async def deactivate(
        self, organization_id: UUID, module_key: ModuleKey
    ) -> OrganizationModule | None:
        return await self._update(organization_id, module_key, is_active=False)

    async def _update(
        self, organization_id: UUID, module_key: ModuleKey, **values
    ) -> OrganizationModule | None:
        stmt = (
            update(OrganizationModuleRow)
            .where(OrganizationModuleRow.organization_id == organization_id)
            .where(OrganizationModuleRow.module_key == module_key.value)
            .values(**values)
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            await session.commit()
            if result.rowcount == 0:
                return None
        return await self.get(organization_id, module_key)


def _row_to_module(row: OrganizationModuleRow) -> OrganizationModule | None:
    try:
        key = ModuleKey(row.module_key)
    except ValueError:
        # Rows for modules this build does not know about are ignored.
        return None
    return OrganizationModule(
        id=row.id,
        organization_id=row.organization_id,
        module_key=key,
        module_name=row.module_name,
        is_active=row.is_active,
        license_key=row.license_key,
        activation_date=row.activation_date,
        expiry_date=row.expiry_date,
    )
