"""Aggregate access views built on the permission resolver.

`resolve_permission_snapshot` answers everything a page needs at once
(tier, org, active modules, every permission key); `resolve_module_access`
answers "can this user use module X, and how much of it".  One awaited
check fills the tier's rule cache before the remaining keys are gathered,
so each view costs one license query and one rule query however slowly
the stores answer.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from uuid import UUID

from alignex.models.license import LicenseTier
from alignex.models.module import ModuleKey
from alignex.models.permission import PermissionKey
from alignex.services.permission_resolver import PermissionResolver


@dataclass(frozen=True, slots=True)
class ModuleAccess:
    module_key: ModuleKey
    is_available: bool
    can_view: bool
    can_edit: bool
    can_manage: bool


@dataclass(frozen=True, slots=True)
class PermissionSnapshot:
    user_email: str
    license_tier: LicenseTier
    organization_id: UUID
    available_modules: tuple[ModuleKey, ...]
    can: dict[PermissionKey, bool]

    def allows(self, permission: PermissionKey) -> bool:
        return self.can.get(permission, False)


async def resolve_module_access(
    resolver: PermissionResolver, module_key: ModuleKey, user_email: str
) -> ModuleAccess:
    org_id = await resolver.get_organization_id(user_email)

    if not await resolver.has_module_access(org_id, module_key):
        # An inactive module grants nothing, whatever the tier allows.
        return ModuleAccess(
            module_key=module_key,
            is_available=False,
            can_view=False,
            can_edit=False,
            can_manage=False,
        )

    can_view = await resolver.can_perform_action(user_email, PermissionKey.VIEW)
    can_edit, can_manage = await asyncio.gather(
        resolver.can_perform_action(user_email, PermissionKey.EDIT),
        resolver.can_perform_action(user_email, PermissionKey.MANAGE),
    )
    return ModuleAccess(
        module_key=module_key,
        is_available=True,
        can_view=can_view,
        can_edit=can_edit,
        can_manage=can_manage,
    )


async def resolve_permission_snapshot(
    resolver: PermissionResolver, user_email: str
) -> PermissionSnapshot:
    tier = await resolver.get_user_license_tier(user_email)
    org_id = await resolver.get_organization_id(user_email)
    modules = await resolver.get_available_modules(org_id)

    keys = list(PermissionKey)
    first = await resolver.can_perform_action(user_email, keys[0])
    rest = await asyncio.gather(
        *(resolver.can_perform_action(user_email, k) for k in keys[1:])
    )
    decisions = [first, *rest]

    return PermissionSnapshot(
        user_email=user_email,
        license_tier=tier,
        organization_id=org_id,
        available_modules=tuple(modules),
        can=dict(zip(keys, decisions, strict=True)),
    )
