"""Access gates: decide what a guarded piece of content renders as.

A gate wraps some content ("children") and, after asking the permission
resolver, renders exactly one of:

  - the children            (access granted)
  - the caller's fallback   (denied, fallback supplied)
  - a built-in placeholder  (denied, placeholder enabled)
  - None                    (denied, nothing to show; also while loading)

The gate is a small state machine mirroring a mounted UI component:

    gate = ModuleGate(resolver, ModuleKey.SKILLS, children=panel)
    gate.render()          # None: still loading
    await gate.resolve()
    gate.render()          # panel, fallback, UpgradePrompt or None

`update()` changes props; a change of key or user identity sends the gate
back to loading and re-resolves.  Gates share nothing with each other; any
reuse of answers comes from the resolver's cache.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from alignex.core.config import SETTINGS
from alignex.core.metrics import ACCESS_GATE_DECISIONS
from alignex.models.module import ModuleKey
from alignex.models.permission import GATE_ACTIONS, PermissionKey
from alignex.services.permission_resolver import PermissionResolver

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class UpgradePrompt:
    """Panel shown in place of a module the organization has not activated."""

    module_key: ModuleKey
    title: str
    message: str
    action_label: str = "Activate Module"
    action_href: str = "/settings"

    @staticmethod
    def for_module(module_key: ModuleKey) -> UpgradePrompt:
        name = module_key.display_name
        return UpgradePrompt(
            module_key=module_key,
            title=f"{name} Module Not Available",
            message=(
                f"This feature requires the {name} add-on module. Contact your "
                "administrator to activate this module for your organization."
            ),
        )


@dataclass(frozen=True, slots=True)
class RestrictedIndicator:
    """Small lock marker shown in place of an action the user may not perform."""

    label: str = "Restricted"
    title: str = "Insufficient permissions"


class _AccessGate:
    _gate_name = "gate"

    def __init__(
        self,
        resolver: PermissionResolver,
        *,
        children: Any,
        fallback: Any = None,
        user_email: str | None = None,
        default_user_email: str | None = None,
    ) -> None:
        self._resolver = resolver
        self.children = children
        self.fallback = fallback
        self.user_email = user_email
        self._default_user_email = default_user_email or SETTINGS.default_user_email
        self.loading = True
        self._allowed = False

    @property
    def effective_user_email(self) -> str:
        return self.user_email or self._default_user_email

    @property
    def allowed(self) -> bool:
        return not self.loading and self._allowed

    async def resolve(self) -> bool:
        self.loading = True
        self._allowed = await self._check()
        self.loading = False
        return self._allowed

    async def mount(self) -> Any:
        """Resolve, then render."""
        await self.resolve()
        return self.render()

    def render(self) -> Any:
        if self.loading:
            return None

        if self._allowed:
            outcome, output = "allowed", self.children
        elif self.fallback is not None:
            outcome, output = "fallback", self.fallback
        else:
            output = self._placeholder()
            outcome = "placeholder" if output is not None else "hidden"

        ACCESS_GATE_DECISIONS.labels(gate=self._gate_name, outcome=outcome).inc()
        return output

    async def _check(self) -> bool:
        raise NotImplementedError

    def _placeholder(self) -> Any:
        raise NotImplementedError


class ModuleGate(_AccessGate):
    """Render children only when the user's organization has the module active."""

    _gate_name = "module"

    def __init__(
        self,
        resolver: PermissionResolver,
        module_key: ModuleKey,
        *,
        children: Any,
        fallback: Any = None,
        show_upgrade_prompt: bool = True,
        user_email: str | None = None,
        default_user_email: str | None = None,
    ) -> None:
        super().__init__(
            resolver,
            children=children,
            fallback=fallback,
            user_email=user_email,
            default_user_email=default_user_email,
        )
        self.module_key = module_key
        self.show_upgrade_prompt = show_upgrade_prompt

    async def update(
        self,
        *,
        module_key: ModuleKey | None = None,
        user_email: str | None = None,
    ) -> None:
        changed = False
        if module_key is not None and module_key != self.module_key:
            self.module_key = module_key
            changed = True
        if user_email is not None and user_email != self.user_email:
            self.user_email = user_email
            changed = True
        if changed:
            await self.resolve()

    async def _check(self) -> bool:
        user_email = self.effective_user_email
        org_id = await self._resolver.get_organization_id(user_email)
        available = await self._resolver.has_module_access(org_id, self.module_key)
        logger.debug(
            "Module gate %s for user=%s org=%s: %s",
            self.module_key.value,
            user_email,
            org_id,
            "available" if available else "unavailable",
        )
        return available

    def _placeholder(self) -> Any:
        if self.show_upgrade_prompt:
            return UpgradePrompt.for_module(self.module_key)
        return None


class PermissionGate(_AccessGate):
    """Render children only when the user's tier allows the action."""

    _gate_name = "permission"

    def __init__(
        self,
        resolver: PermissionResolver,
        action: PermissionKey,
        *,
        children: Any,
        fallback: Any = None,
        show_lock_icon: bool = False,
        user_email: str | None = None,
        default_user_email: str | None = None,
    ) -> None:
        _require_gate_action(action)
        super().__init__(
            resolver,
            children=children,
            fallback=fallback,
            user_email=user_email,
            default_user_email=default_user_email,
        )
        self.action = action
        self.show_lock_icon = show_lock_icon

    async def update(
        self,
        *,
        action: PermissionKey | None = None,
        user_email: str | None = None,
    ) -> None:
        changed = False
        if action is not None and action != self.action:
            _require_gate_action(action)
            self.action = action
            changed = True
        if user_email is not None and user_email != self.user_email:
            self.user_email = user_email
            changed = True
        if changed:
            await self.resolve()

    async def _check(self) -> bool:
        return await self._resolver.can_perform_action(
            self.effective_user_email, self.action
        )

    def _placeholder(self) -> Any:
        if self.show_lock_icon:
            return RestrictedIndicator()
        return None


def _require_gate_action(action: PermissionKey) -> None:
    if action not in GATE_ACTIONS:
        raise ValueError(
            f"permission gate action must be view|create|edit|delete|manage "
            f"(got {action.value!r})"
        )
