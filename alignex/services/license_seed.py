"""Default licensing data: the tier/permission matrix and org provisioning.

Idempotent: rules are upserted and module records that already exist are
left alone, so this can run on every deploy.
"""

from __future__ import annotations

import logging
from uuid import UUID

from alignex.models.license import LicenseTier
from alignex.models.permission import PermissionKey
from alignex.services.license_admin import LicenseAdminService

logger = logging.getLogger(__name__)

DEFAULT_TIER_PERMISSIONS: dict[LicenseTier, frozenset[PermissionKey]] = {
    LicenseTier.READ_ONLY: frozenset({PermissionKey.VIEW, PermissionKey.EXPORT}),
    LicenseTier.TEAM_MEMBER: frozenset(
        {
            PermissionKey.VIEW,
            PermissionKey.CREATE,
            PermissionKey.EDIT,
            PermissionKey.ENTER_TIMESHEET,
            PermissionKey.CREATE_REQUEST,
            PermissionKey.MANAGE_OWN_SKILLS,
            PermissionKey.TRACK_BENEFITS,
            PermissionKey.EXPORT,
        }
    ),
    LicenseTier.FULL_LICENSE: frozenset(PermissionKey),
}


async def seed_permission_rules(admin: LicenseAdminService) -> int:
    """Write an explicit allow/deny row for every tier and key."""
    written = 0
    for tier, allowed in DEFAULT_TIER_PERMISSIONS.items():
        for key in PermissionKey:
            await admin.set_permission(tier, key, key in allowed)
            written += 1
    logger.info("Seeded %d permission rules", written)
    return written


async def seed_licensing(admin: LicenseAdminService, org_id: UUID) -> None:
    await seed_permission_rules(admin)
    created = await admin.provision_organization(org_id)
    logger.info("Organization %s: %d module records created", org_id, len(created))
