"""License, module and permission-rule administration.

All endpoints require the `manage` permission, resolved through the same
permission resolver they invalidate.  Each write clears the resolver cache
so the change applies to the next access check.
"""

from __future__ import annotations

from datetime import date
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from alignex.api.dependencies import require_org_permission, require_permission
from alignex.api.wiring import license_admin
from alignex.models.license import LicenseTier, UserLicense
from alignex.models.module import ModuleKey, OrganizationModule
from alignex.models.permission import PermissionKey
from alignex.models.principal import Principal
from alignex.services.license_admin import (
    BaseModuleLockedError,
    LicenseAlreadyExistsError,
    LicenseNotFoundError,
    LicenseValidationError,
    ModuleRecordNotFoundError,
)

router = APIRouter(prefix="/v1/orgs/{org_id}", tags=["licenses"])
rules_router = APIRouter(prefix="/v1/permissions", tags=["licenses"])

_require_manage = require_permission(PermissionKey.MANAGE)
_require_org_manage = require_org_permission(PermissionKey.MANAGE)


# --- Pydantic schemas ---


class LicenseOut(BaseModel):
    id: str
    user_email: str
    organization_id: str
    license_tier: str
    is_active: bool
    assigned_date: date | None
    last_access_date: date | None
    notes: str | None


class LicenseCreateIn(BaseModel):
    user_email: str
    license_tier: LicenseTier = LicenseTier.TEAM_MEMBER
    notes: str | None = None


class LicenseTierIn(BaseModel):
    license_tier: LicenseTier


class UsageStatsOut(BaseModel):
    read_only: int
    team_member: int
    full_license: int
    inactive: int
    total: int


class ModuleOut(BaseModel):
    id: str
    module_key: str
    module_name: str
    is_active: bool
    license_key: str | None
    activation_date: date | None
    expiry_date: date | None


class ModuleActivateIn(BaseModel):
    license_key: str | None = None
    expiry_date: date | None = None


class PermissionRuleIn(BaseModel):
    can_execute: bool


class PermissionRuleOut(BaseModel):
    license_tier: str
    permission_key: str
    can_execute: bool


def _license_out(lic: UserLicense) -> LicenseOut:
    return LicenseOut(
        id=str(lic.id),
        user_email=lic.user_email,
        organization_id=str(lic.organization_id),
        license_tier=lic.license_tier.value,
        is_active=lic.is_active,
        assigned_date=lic.assigned_date,
        last_access_date=lic.last_access_date,
        notes=lic.notes,
    )


def _module_out(module: OrganizationModule) -> ModuleOut:
    return ModuleOut(
        id=str(module.id),
        module_key=module.module_key.value,
        module_name=module.module_name,
        is_active=module.is_active,
        license_key=module.license_key,
        activation_date=module.activation_date,
        expiry_date=module.expiry_date,
    )


# --- User licenses ---


@router.get("/licenses", response_model=list[LicenseOut])
async def list_licenses(
    org_id: UUID,
    _principal: Annotated[Principal, Depends(_require_org_manage)],
) -> list[LicenseOut]:
    return [_license_out(lic) for lic in await license_admin.list_licenses(org_id)]


@router.get("/licenses/stats", response_model=UsageStatsOut)
async def license_stats(
    org_id: UUID,
    _principal: Annotated[Principal, Depends(_require_org_manage)],
) -> UsageStatsOut:
    stats = await license_admin.usage_stats(org_id)
    return UsageStatsOut(
        read_only=stats.read_only,
        team_member=stats.team_member,
        full_license=stats.full_license,
        inactive=stats.inactive,
        total=stats.total,
    )


@router.post(
    "/licenses", response_model=LicenseOut, status_code=status.HTTP_201_CREATED
)
async def assign_license(
    org_id: UUID,
    body: LicenseCreateIn,
    _principal: Annotated[Principal, Depends(_require_org_manage)],
) -> LicenseOut:
    try:
        lic = await license_admin.assign_license(
            org_id, body.user_email, body.license_tier, body.notes
        )
    except LicenseValidationError as e:
        raise HTTPException(status_code=422, detail=str(e)) from None
    except LicenseAlreadyExistsError:
        raise HTTPException(
            status_code=409,
            detail="user already has a license; update it instead",
        ) from None
    return _license_out(lic)


@router.patch("/licenses/{license_id}", response_model=LicenseOut)
async def change_license_tier(
    org_id: UUID,
    license_id: UUID,
    body: LicenseTierIn,
    _principal: Annotated[Principal, Depends(_require_org_manage)],
) -> LicenseOut:
    try:
        lic = await license_admin.change_tier(org_id, license_id, body.license_tier)
    except LicenseNotFoundError:
        raise HTTPException(status_code=404, detail="license not found") from None
    return _license_out(lic)


@router.post("/licenses/{license_id}/toggle", response_model=LicenseOut)
async def toggle_license(
    org_id: UUID,
    license_id: UUID,
    _principal: Annotated[Principal, Depends(_require_org_manage)],
) -> LicenseOut:
    try:
        lic = await license_admin.toggle_license(org_id, license_id)
    except LicenseNotFoundError:
        raise HTTPException(status_code=404, detail="license not found") from None
    return _license_out(lic)


# --- Organization modules ---


@router.get("/modules", response_model=list[ModuleOut])
async def list_modules(
    org_id: UUID,
    _principal: Annotated[Principal, Depends(_require_org_manage)],
) -> list[ModuleOut]:
    return [_module_out(m) for m in await license_admin.list_modules(org_id)]


@router.post(
    "/modules/provision",
    response_model=list[ModuleOut],
    status_code=status.HTTP_201_CREATED,
)
async def provision_modules(
    org_id: UUID,
    _principal: Annotated[Principal, Depends(_require_org_manage)],
) -> list[ModuleOut]:
    """Create missing module records: base active, add-ons inactive."""
    return [_module_out(m) for m in await license_admin.provision_organization(org_id)]


@router.post("/modules/{module_key}/activate", response_model=ModuleOut)
async def activate_module(
    org_id: UUID,
    module_key: ModuleKey,
    body: ModuleActivateIn,
    _principal: Annotated[Principal, Depends(_require_org_manage)],
) -> ModuleOut:
    try:
        module = await license_admin.activate_module(
            org_id,
            module_key,
            license_key=body.license_key,
            expiry_date=body.expiry_date,
        )
    except ModuleRecordNotFoundError:
        raise HTTPException(status_code=404, detail="module not provisioned") from None
    return _module_out(module)


@router.post("/modules/{module_key}/deactivate", response_model=ModuleOut)
async def deactivate_module(
    org_id: UUID,
    module_key: ModuleKey,
    _principal: Annotated[Principal, Depends(_require_org_manage)],
) -> ModuleOut:
    try:
        module = await license_admin.deactivate_module(org_id, module_key)
    except BaseModuleLockedError as e:
        raise HTTPException(status_code=422, detail=str(e)) from None
    except ModuleRecordNotFoundError:
        raise HTTPException(status_code=404, detail="module not provisioned") from None
    return _module_out(module)


# --- Permission rules ---


@rules_router.put("/{license_tier}/{permission_key}", response_model=PermissionRuleOut)
async def set_permission_rule(
    license_tier: LicenseTier,
    permission_key: PermissionKey,
    body: PermissionRuleIn,
    _principal: Annotated[Principal, Depends(_require_manage)],
) -> PermissionRuleOut:
    rule = await license_admin.set_permission(
        license_tier, permission_key, body.can_execute
    )
    return PermissionRuleOut(
        license_tier=rule.license_tier.value,
        permission_key=rule.permission_key,
        can_execute=rule.can_execute,
    )
