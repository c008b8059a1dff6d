from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date
from uuid import UUID

from alignex.models.license import LicenseTier, UserLicense
from alignex.models.module import ALL_MODULES, ModuleKey, OrganizationModule
from alignex.models.permission import PermissionKey, PermissionRule
from alignex.repos.license_repo import UserLicenseRepo
from alignex.repos.module_repo import OrganizationModuleRepo
from alignex.repos.permission_repo import PermissionRuleRepo
from alignex.services.permission_resolver import PermissionResolver

logger = logging.getLogger(__name__)


class LicenseValidationError(ValueError):
    pass


class LicenseAlreadyExistsError(Exception):
    pass


class LicenseNotFoundError(Exception):
    pass


class ModuleRecordNotFoundError(Exception):
    pass


class BaseModuleLockedError(Exception):
    pass


@dataclass(frozen=True)
class LicenseUsageStats:
    read_only: int
    team_member: int
    full_license: int
    inactive: int
    total: int


class LicenseAdminService:
    """Administrative writes to licenses, modules and permission rules.

    Every successful mutation clears the whole resolver cache, so a changed
    tier or module is visible on the very next check instead of after the
    cache TTL.
    """

    def __init__(
        self,
        *,
        licenses: UserLicenseRepo,
        modules: OrganizationModuleRepo,
        permissions: PermissionRuleRepo,
        resolver: PermissionResolver,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._licenses = licenses
        self._modules = modules
        self._permissions = permissions
        self._resolver = resolver
        self._today = today

    # --- user licenses ---

    async def list_licenses(self, org_id: UUID) -> list[UserLicense]:
        return await self._licenses.list_by_org(org_id)

    async def assign_license(
        self,
        org_id: UUID,
        user_email: str,
        license_tier: LicenseTier,
        notes: str | None = None,
    ) -> UserLicense:
        user_email = user_email.strip().lower()
        if not user_email:
            logger.warning("Rejected license with blank email org=%s", org_id)
            raise LicenseValidationError("user email must be non-empty")

        if await self._licenses.get_for_user(user_email, org_id) is not None:
            logger.warning("Rejected duplicate license email=%s org=%s", user_email, org_id)
            raise LicenseAlreadyExistsError(user_email)

        notes = (notes or "").strip() or None
        user_license = UserLicense.new(
            user_email=user_email,
            organization_id=org_id,
            license_tier=license_tier,
            notes=notes,
            assigned_date=self._today(),
        )
        await self._licenses.add(user_license)
        self._resolver.clear_cache()
        logger.info(
            "Assigned license id=%s email=%s tier=%s org=%s",
            user_license.id,
            user_email,
            license_tier.value,
            org_id,
        )
        return user_license

    async def change_tier(
        self, org_id: UUID, license_id: UUID, license_tier: LicenseTier
    ) -> UserLicense:
        await self._get_license(org_id, license_id)
        updated = await self._licenses.update_tier(license_id, license_tier)
        if updated is None:
            raise LicenseNotFoundError(str(license_id))
        self._resolver.clear_cache()
        logger.info("Changed license id=%s tier=%s", license_id, license_tier.value)
        return updated

    async def toggle_license(self, org_id: UUID, license_id: UUID) -> UserLicense:
        existing = await self._get_license(org_id, license_id)
        updated = await self._licenses.set_active(license_id, not existing.is_active)
        if updated is None:
            raise LicenseNotFoundError(str(license_id))
        self._resolver.clear_cache()
        logger.info(
            "License id=%s %s",
            license_id,
            "activated" if updated.is_active else "deactivated",
        )
        return updated

    async def usage_stats(self, org_id: UUID) -> LicenseUsageStats:
        licenses = await self._licenses.list_by_org(org_id)
        active = [lic for lic in licenses if lic.is_active]

        def _count(tier: LicenseTier) -> int:
            return sum(1 for lic in active if lic.license_tier == tier)

        return LicenseUsageStats(
            read_only=_count(LicenseTier.READ_ONLY),
            team_member=_count(LicenseTier.TEAM_MEMBER),
            full_license=_count(LicenseTier.FULL_LICENSE),
            inactive=len(licenses) - len(active),
            total=len(licenses),
        )

    async def _get_license(self, org_id: UUID, license_id: UUID) -> UserLicense:
        existing = await self._licenses.get_by_id(license_id)
        if existing is None or existing.organization_id != org_id:
            raise LicenseNotFoundError(str(license_id))
        return existing

    # --- organization modules ---

    async def list_modules(self, org_id: UUID) -> list[OrganizationModule]:
        return await self._modules.list_by_org(org_id)

    async def provision_organization(self, org_id: UUID) -> list[OrganizationModule]:
        """Create the missing module records for an org: base active, add-ons off."""
        created: list[OrganizationModule] = []
        for key in ALL_MODULES:
            if await self._modules.get(org_id, key) is not None:
                continue
            module = OrganizationModule.new(
                organization_id=org_id,
                module_key=key,
                is_active=key == ModuleKey.BASE,
            )
            await self._modules.add(module)
            created.append(module)
        if created:
            self._resolver.clear_cache()
            logger.info(
                "Provisioned modules=%s org=%s",
                [m.module_key.value for m in created],
                org_id,
            )
        return created

    async def activate_module(
        self,
        org_id: UUID,
        module_key: ModuleKey,
        *,
        license_key: str | None = None,
        expiry_date: date | None = None,
    ) -> OrganizationModule:
        updated = await self._modules.activate(
            org_id,
            module_key,
            license_key=(license_key or "").strip() or None,
            activation_date=self._today(),
            expiry_date=expiry_date,
        )
        if updated is None:
            raise ModuleRecordNotFoundError(module_key.value)
        self._resolver.clear_cache()
        logger.info("Activated module=%s org=%s", module_key.value, org_id)
        return updated

    async def deactivate_module(
        self, org_id: UUID, module_key: ModuleKey
    ) -> OrganizationModule:
        if module_key == ModuleKey.BASE:
            logger.warning("Rejected deactivation of base module org=%s", org_id)
            raise BaseModuleLockedError("the base module cannot be deactivated")

        updated = await self._modules.deactivate(org_id, module_key)
        if updated is None:
            raise ModuleRecordNotFoundError(module_key.value)
        self._resolver.clear_cache()
        logger.info("Deactivated module=%s org=%s", module_key.value, org_id)
        return updated

    # --- permission rules ---

    async def set_permission(
        self,
        license_tier: LicenseTier,
        permission_key: PermissionKey,
        can_execute: bool,
    ) -> PermissionRule:
        rule = await self._permissions.upsert(
            PermissionRule(
                license_tier=license_tier,
                permission_key=permission_key.value,
                can_execute=can_execute,
            )
        )
        self._resolver.clear_cache()
        logger.info(
            "Set permission tier=%s key=%s can_execute=%s",
            license_tier.value,
            permission_key.value,
            can_execute,
        )
        return rule
