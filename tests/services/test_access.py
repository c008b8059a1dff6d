"""Tests for the aggregate access views (module access, permission snapshot)."""

from __future__ import annotations

import asyncio
from uuid import UUID

from alignex.models.license import LicenseTier, UserLicense
from alignex.models.module import ModuleKey, OrganizationModule
from alignex.models.permission import PermissionKey, PermissionRule
from alignex.repos.license_repo import InMemoryUserLicenseRepo
from alignex.repos.module_repo import InMemoryOrganizationModuleRepo
from alignex.repos.permission_repo import InMemoryPermissionRuleRepo
from alignex.services.access import resolve_module_access, resolve_permission_snapshot
from alignex.services.permission_resolver import PermissionResolver

ORG = UUID("11111111-1111-1111-1111-111111111111")
DEFAULT_ORG = UUID("00000000-0000-0000-0000-000000000001")


def _resolver() -> PermissionResolver:
    licenses = InMemoryUserLicenseRepo()
    modules = InMemoryOrganizationModuleRepo()
    rules = InMemoryPermissionRuleRepo()

    asyncio.run(
        licenses.add(
            UserLicense.new(
                user_email="a@x.com",
                organization_id=ORG,
                license_tier=LicenseTier.TEAM_MEMBER,
            )
        )
    )
    for key, active in ((ModuleKey.BASE, True), (ModuleKey.SKILLS, True)):
        asyncio.run(
            modules.add(
                OrganizationModule.new(
                    organization_id=ORG, module_key=key, is_active=active
                )
            )
        )
    for key, can in (("view", True), ("edit", True), ("manage", False)):
        asyncio.run(rules.upsert(PermissionRule(LicenseTier.TEAM_MEMBER, key, can)))

    return PermissionResolver(
        licenses=licenses, modules=modules, permissions=rules, default_org_id=DEFAULT_ORG
    )


def test_module_access_for_active_module() -> None:
    access = asyncio.run(resolve_module_access(_resolver(), ModuleKey.SKILLS, "a@x.com"))
    assert access.is_available is True
    assert access.can_view is True
    assert access.can_edit is True
    assert access.can_manage is False


def test_module_access_for_unavailable_module_grants_nothing() -> None:
    access = asyncio.run(
        resolve_module_access(_resolver(), ModuleKey.BENEFITS, "a@x.com")
    )
    assert access.is_available is False
    assert not (access.can_view or access.can_edit or access.can_manage)


def test_permission_snapshot() -> None:
    snapshot = asyncio.run(resolve_permission_snapshot(_resolver(), "a@x.com"))

    assert snapshot.license_tier == LicenseTier.TEAM_MEMBER
    assert snapshot.organization_id == ORG
    assert snapshot.available_modules == (ModuleKey.BASE, ModuleKey.SKILLS)
    assert set(snapshot.can) == set(PermissionKey)
    assert snapshot.allows(PermissionKey.VIEW) is True
    assert snapshot.allows(PermissionKey.MANAGE) is False
    # No row for delete: denied.
    assert snapshot.allows(PermissionKey.DELETE) is False


def test_permission_snapshot_for_unlicensed_user() -> None:
    snapshot = asyncio.run(resolve_permission_snapshot(_resolver(), "new@x.com"))

    assert snapshot.license_tier == LicenseTier.FULL_LICENSE
    assert snapshot.organization_id == DEFAULT_ORG
    assert snapshot.available_modules == (ModuleKey.BASE,)
    # Full-license rules were never seeded, so every key is denied.
    assert not any(snapshot.can.values())


class _SlowRuleRepo(InMemoryPermissionRuleRepo):
    """Yields to the event loop on every read, like a real database round trip."""

    def __init__(self) -> None:
        super().__init__()
        self.lookups = 0

    async def list_by_tier(self, license_tier: LicenseTier) -> list[PermissionRule]:
        self.lookups += 1
        await asyncio.sleep(0)
        return await super().list_by_tier(license_tier)


class _SlowLicenseRepo(InMemoryUserLicenseRepo):
    def __init__(self) -> None:
        super().__init__()
        self.lookups = 0

    async def find_active_by_email(self, user_email: str) -> UserLicense | None:
        self.lookups += 1
        await asyncio.sleep(0)
        return await super().find_active_by_email(user_email)


def _slow_resolver() -> tuple[PermissionResolver, _SlowLicenseRepo, _SlowRuleRepo]:
    licenses = _SlowLicenseRepo()
    rules = _SlowRuleRepo()
    asyncio.run(
        licenses.add(
            UserLicense.new(
                user_email="a@x.com",
                organization_id=ORG,
                license_tier=LicenseTier.TEAM_MEMBER,
            )
        )
    )
    asyncio.run(rules.upsert(PermissionRule(LicenseTier.TEAM_MEMBER, "view", True)))
    resolver = PermissionResolver(
        licenses=licenses,
        modules=InMemoryOrganizationModuleRepo(),
        permissions=rules,
        default_org_id=DEFAULT_ORG,
    )
    return resolver, licenses, rules


def test_permission_snapshot_queries_each_store_once_with_slow_repos() -> None:
    resolver, licenses, rules = _slow_resolver()

    snapshot = asyncio.run(resolve_permission_snapshot(resolver, "a@x.com"))

    assert snapshot.allows(PermissionKey.VIEW) is True
    assert rules.lookups == 1
    assert licenses.lookups == 1


def test_module_access_queries_rules_once_with_slow_repos() -> None:
    resolver, _, rules = _slow_resolver()

    access = asyncio.run(resolve_module_access(resolver, ModuleKey.BASE, "a@x.com"))

    assert access.can_view is True
    assert access.can_edit is False
    assert rules.lookups == 1
