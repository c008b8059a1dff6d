from __future__ import annotations

from typing import Protocol

from alignex.models.license import LicenseTier
from alignex.models.permission import PermissionRule


class PermissionRuleRepo(Protocol):
    async def list_by_tier(self, license_tier: LicenseTier) -> list[PermissionRule]: ...
    async def upsert(self, rule: PermissionRule) -> PermissionRule: ...


class InMemoryPermissionRuleRepo:
    def __init__(self) -> None:
        self._store: dict[tuple[LicenseTier, str], PermissionRule] = {}

    async def list_by_tier(self, license_tier: LicenseTier) -> list[PermissionRule]:
        return [r for r in self._store.values() if r.license_tier == license_tier]

    async def upsert(self, rule: PermissionRule) -> PermissionRule:
        self._store[(rule.license_tier, rule.permission_key)] = rule
        return rule
