from __future__ import annotations

from dataclasses import replace
from datetime import date
from typing import Protocol
from uuid import UUID

from alignex.models.module import ModuleKey, OrganizationModule


class OrganizationModuleRepo(Protocol):
    async def list_by_org(
        self, organization_id: UUID, *, active_only: bool = False
    ) -> list[OrganizationModule]: ...
    async def get(
        self, organization_id: UUID, module_key: ModuleKey
    ) -> OrganizationModule | None: ...
    async def add(self, module: OrganizationModule) -> None: ...
    async def activate(
        self,
        organization_id: UUID,
        module_key: ModuleKey,
        *,
        license_key: str | None,
        activation_date: date,
        expiry_date: date | None,
    ) -> OrganizationModule | None: ...
    async def deactivate(
        self, organization_id: UUID, module_key: ModuleKey
    ) -> OrganizationModule | None: ...


class InMemoryOrganizationModuleRepo:
    def __init__(self) -> None:
        self._store: dict[tuple[UUID, ModuleKey], OrganizationModule] = {}

    async def list_by_org(
        self, organization_id: UUID, *, active_only: bool = False
    ) -> list[OrganizationModule]:
        found = [
            m
            for m in self._store.values()
            if m.organization_id == organization_id and (m.is_active or not active_only)
        ]
        return sorted(found, key=lambda m: m.module_key.value)

    async def get(
        self, organization_id: UUID, module_key: ModuleKey
    ) -> OrganizationModule | None:
        return self._store.get((organization_id, module_key))

    async def add(self, module: OrganizationModule) -> None:
        key = (module.organization_id, module.module_key)
        if key in self._store:
            raise ValueError("module already provisioned for this organization")
        self._store[key] = module

    async def activate(
        self,
        organization_id: UUID,
        module_key: ModuleKey,
        *,
        license_key: str | None,
        activation_date: date,
        expiry_date: date | None,
    ) -> OrganizationModule | None:
        key = (organization_id, module_key)
        existing = self._store.get(key)
        if existing is None:
            return None
        updated = replace(
            existing,
            is_active=True,
            license_key=license_key,
            activation_date=activation_date,
            expiry_date=expiry_date,
        )
        self._store[key] = updated
        return updated

    async def deactivate(
        self, organization_id: UUID, module_key: ModuleKey
    ) -> OrganizationModule | None:
        key = (organization_id, module_key)
        existing = self._store.get(key)
        if existing is None:
            return None
        updated = replace(existing, is_active=False)
        self._store[key] = updated
        return updated
