"""PostgreSQL implementation of PermissionRuleRepo."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from alignex.db.tables import LicenseTierPermissionRow
from alignex.models.license import LicenseTier
from alignex.models.permission import PermissionRule


class PgPermissionRuleRepo:
    """Satisfies the PermissionRuleRepo Protocol using PostgreSQL."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def list_by_tier(self, license_tier: LicenseTier) -> list[PermissionRule]:
        stmt = select(LicenseTierPermissionRow).where(
            LicenseTierPermissionRow.license_tier == license_tier.value
        )
        async with self._session_factory() as session:
            rows = (await session.execute(stmt)).scalars().all()
            return [
                PermissionRule(
                    license_tier=license_tier,
                    permission_key=r.permission_key,
                    can_execute=r.can_execute,
                )
                for r in rows
            ]

    async def upsert(self, rule: PermissionRule) -> PermissionRule:
        stmt = (
            insert(LicenseTierPermissionRow)
            .values(
                license_tier=rule.license_tier.value,
                permission_key=rule.permission_key,
                can_execute=rule.can_execute,
            )
            .on_conflict_do_update(
                index_elements=["license_tier", "permission_key"],
                set_={"can_execute": rule.can_execute},
            )
        )
        async with self._session_factory() as session:
            await session.execute(stmt)
            await session.commit()
        return rule
