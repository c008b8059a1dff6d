"""Caller-facing access endpoints.

Everything here answers for the authenticated caller only; the identity
comes from the bearer token, never from a query parameter.
"""

from __future__ import annotations

from typing import Annotated, Literal

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from alignex.api.dependencies import require_user
from alignex.api.wiring import permission_resolver
from alignex.models.module import ModuleKey
from alignex.models.permission import PermissionKey
from alignex.models.principal import Principal
from alignex.services.access import resolve_module_access, resolve_permission_snapshot
from alignex.services.access_gates import (
    ModuleGate,
    PermissionGate,
    RestrictedIndicator,
    UpgradePrompt,
)

router = APIRouter(prefix="/v1/access", tags=["access"])

GateAction = Literal["view", "create", "edit", "delete", "manage"]

# Placeholder standing in for the guarded content in gate responses.
_CHILDREN = "children"


# --- Pydantic schemas ---


class PermissionSnapshotOut(BaseModel):
    user_email: str
    license_tier: str
    organization_id: str
    available_modules: list[str]
    can: dict[str, bool]


class ModuleAccessOut(BaseModel):
    module_key: str
    is_available: bool
    can_view: bool
    can_edit: bool
    can_manage: bool


class PermissionDecisionOut(BaseModel):
    permission_key: str
    allowed: bool


class UpgradePromptOut(BaseModel):
    title: str
    message: str
    action_label: str
    action_href: str


class GateOut(BaseModel):
    outcome: Literal["children", "upgrade_prompt", "restricted", "nothing"]
    upgrade_prompt: UpgradePromptOut | None = None
    restricted_label: str | None = None


# --- Endpoints ---


@router.get("/me", response_model=PermissionSnapshotOut)
async def my_permissions(
    principal: Annotated[Principal, Depends(require_user)],
) -> PermissionSnapshotOut:
    """Tier, organization, active modules and every permission decision."""
    snapshot = await resolve_permission_snapshot(
        permission_resolver, principal.user_email
    )
    return PermissionSnapshotOut(
        user_email=snapshot.user_email,
        license_tier=snapshot.license_tier.value,
        organization_id=str(snapshot.organization_id),
        available_modules=[m.value for m in snapshot.available_modules],
        can={k.value: v for k, v in snapshot.can.items()},
    )


@router.get("/modules/{module_key}", response_model=ModuleAccessOut)
async def module_access(
    module_key: ModuleKey,
    principal: Annotated[Principal, Depends(require_user)],
) -> ModuleAccessOut:
    access = await resolve_module_access(
        permission_resolver, module_key, principal.user_email
    )
    return ModuleAccessOut(
        module_key=access.module_key.value,
        is_available=access.is_available,
        can_view=access.can_view,
        can_edit=access.can_edit,
        can_manage=access.can_manage,
    )


@router.get("/can/{permission_key}", response_model=PermissionDecisionOut)
async def can_perform(
    permission_key: str,
    principal: Annotated[Principal, Depends(require_user)],
) -> PermissionDecisionOut:
    """Single decision.  Unknown keys are answered with allowed=false."""
    allowed = await permission_resolver.can_perform_action(
        principal.user_email, permission_key
    )
    return PermissionDecisionOut(permission_key=permission_key, allowed=allowed)


@router.get("/gates/modules/{module_key}", response_model=GateOut)
async def module_gate(
    module_key: ModuleKey,
    principal: Annotated[Principal, Depends(require_user)],
    show_upgrade_prompt: bool = True,
) -> GateOut:
    """What a module gate around some content renders for the caller."""
    gate = ModuleGate(
        permission_resolver,
        module_key,
        children=_CHILDREN,
        show_upgrade_prompt=show_upgrade_prompt,
        user_email=principal.user_email,
    )
    return _gate_out(await gate.mount())


@router.get("/gates/actions/{action}", response_model=GateOut)
async def permission_gate(
    action: GateAction,
    principal: Annotated[Principal, Depends(require_user)],
    show_lock_icon: bool = False,
) -> GateOut:
    """What a permission gate around some content renders for the caller."""
    gate = PermissionGate(
        permission_resolver,
        PermissionKey(action),
        children=_CHILDREN,
        show_lock_icon=show_lock_icon,
        user_email=principal.user_email,
    )
    return _gate_out(await gate.mount())


def _gate_out(rendered: object) -> GateOut:
    if rendered is _CHILDREN:
        return GateOut(outcome="children")
    if isinstance(rendered, UpgradePrompt):
        return GateOut(
            outcome="upgrade_prompt",
            upgrade_prompt=UpgradePromptOut(
                title=rendered.title,
                message=rendered.message,
                action_label=rendered.action_label,
                action_href=rendered.action_href,
            ),
        )
    if isinstance(rendered, RestrictedIndicator):
        return GateOut(outcome="restricted", restricted_label=rendered.label)
    return GateOut(outcome="nothing")
