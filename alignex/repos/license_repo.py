from __future__ import annotations

from dataclasses import replace
from typing import Protocol
from uuid import UUID

from alignex.models.license import LicenseTier, UserLicense


class UserLicenseRepo(Protocol):
    async def get_by_id(self, license_id: UUID) -> UserLicense | None: ...
    async def find_active_by_email(self, user_email: str) -> UserLicense | None: ...
    async def get_for_user(
        self, user_email: str, organization_id: UUID
    ) -> UserLicense | None: ...
    async def list_by_org(self, organization_id: UUID) -> list[UserLicense]: ...
    async def add(self, user_license: UserLicense) -> None: ...
    async def update_tier(
        self, license_id: UUID, license_tier: LicenseTier
    ) -> UserLicense | None: ...
    async def set_active(
        self, license_id: UUID, is_active: bool
    ) -> UserLicense | None: ...


class InMemoryUserLicenseRepo:
    def __init__(self) -> None:
        # Insertion-ordered; "first active match" follows insertion order.
        self._by_id: dict[UUID, UserLicense] = {}

    async def get_by_id(self, license_id: UUID) -> UserLicense | None:
        return self._by_id.get(license_id)

    async def find_active_by_email(self, user_email: str) -> UserLicense | None:
        for lic in self._by_id.values():
            if lic.user_email == user_email and lic.is_active:
                return lic
        return None

    async def get_for_user(
        self, user_email: str, organization_id: UUID
    ) -> UserLicense | None:
        for lic in self._by_id.values():
            if lic.user_email == user_email and lic.organization_id == organization_id:
                return lic
        return None

    async def list_by_org(self, organization_id: UUID) -> list[UserLicense]:
        found = [
            lic for lic in self._by_id.values() if lic.organization_id == organization_id
        ]
        return sorted(found, key=lambda lic: lic.user_email)

    async def add(self, user_license: UserLicense) -> None:
        existing = await self.get_for_user(
            user_license.user_email, user_license.organization_id
        )
        if existing is not None:
            raise ValueError("license already exists for this user")
        self._by_id[user_license.id] = user_license

    async def update_tier(
        self, license_id: UUID, license_tier: LicenseTier
    ) -> UserLicense | None:
        existing = self._by_id.get(license_id)
        if existing is None:
            return None
        updated = replace(existing, license_tier=license_tier)
        self._by_id[license_id] = updated
        return updated

    async def set_active(
        self, license_id: UUID, is_active: bool
    ) -> UserLicense | None:
        existing = self._by_id.get(license_id)
        if existing is None:
            return None
        updated = replace(existing, is_active=is_active)
        self._by_id[license_id] = updated
        return updated
