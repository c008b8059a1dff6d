"""Permission / license / module resolution.

Answers three questions for the rest of the service:

  - which license tier does this user hold?
  - is this module active for this organization?
  - may this user perform this action?

Each answer is read through a short-lived cache (see services/cache.py)
in front of three stores: user licenses, organization modules and
license-tier permission rules.

FAILURE POLICY
----------------
No method raises.  A failed store query is logged with its stack trace,
counted in `permission_store_failures_total`, and replaced by a default:

  operation               record absent        store error (fail_open)
  ----------------------  -------------------  -----------------------
  get_user_license_tier   full_license         full_license
  get_organization_id     default org          default org
  has_module_access       False                True
  can_perform_action      False                True
  get_available_modules   (active ones)        every module

Absence denies but failure allows.  Downstream gating depends on that
behaviour, so it is kept as-is; `fail_open=False` flips the error column
to the restrictive answer (read_only / False / [base]).
"""

from __future__ import annotations

import logging
import time
from uuid import UUID

from alignex.core.metrics import PERMISSION_STORE_FAILURES
from alignex.models.license import LicenseTier, UserLicense
from alignex.models.module import ALL_MODULES, ModuleKey, OrganizationModule
from alignex.models.permission import PermissionKey
from alignex.repos.license_repo import UserLicenseRepo
from alignex.repos.module_repo import OrganizationModuleRepo
from alignex.repos.permission_repo import PermissionRuleRepo
from alignex.services.cache import Clock, ExpiringCache

logger = logging.getLogger(__name__)

CACHE_TTL_SECONDS = 5 * 60

# Users with no license record predate licensing and keep full access.
DEFAULT_LICENSE_TIER = LicenseTier.FULL_LICENSE

_MISS = object()


class PermissionResolver:
    def __init__(
        self,
        *,
        licenses: UserLicenseRepo,
        modules: OrganizationModuleRepo,
        permissions: PermissionRuleRepo,
        default_org_id: UUID,
        ttl_seconds: float = CACHE_TTL_SECONDS,
        fail_open: bool = True,
        clock: Clock = time.monotonic,
    ) -> None:
        self._licenses = licenses
        self._modules = modules
        self._permissions = permissions
        self._default_org_id = default_org_id
        self._fail_open = fail_open

        self._license_cache: ExpiringCache[UserLicense | None] = ExpiringCache(
            "license", ttl_seconds, clock=clock
        )
        self._module_cache: ExpiringCache[list[OrganizationModule]] = ExpiringCache(
            "modules", ttl_seconds, clock=clock
        )
        self._rule_cache: ExpiringCache[dict[str, bool]] = ExpiringCache(
            "permissions", ttl_seconds, clock=clock
        )

    @property
    def default_org_id(self) -> UUID:
        return self._default_org_id

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def get_user_license_tier(self, user_email: str) -> LicenseTier:
        try:
            user_license = await self._load_license(user_email)
        except Exception:
            self._record_failure(
                "get_user_license_tier", extra={"user_email": user_email}
            )
            return DEFAULT_LICENSE_TIER if self._fail_open else LicenseTier.READ_ONLY

        if user_license is None:
            return DEFAULT_LICENSE_TIER
        return user_license.license_tier

    async def get_organization_id(self, user_email: str) -> UUID:
        try:
            user_license = await self._load_license(user_email)
        except Exception:
            self._record_failure(
                "get_organization_id", extra={"user_email": user_email}
            )
            return self._default_org_id

        if user_license is None:
            return self._default_org_id
        return user_license.organization_id

    async def has_module_access(self, org_id: UUID, module_key: ModuleKey) -> bool:
        if module_key == ModuleKey.BASE:
            return True

        try:
            modules = await self._load_modules(org_id)
        except Exception:
            self._record_failure(
                "has_module_access",
                extra={"org_id": str(org_id), "module_key": module_key.value},
            )
            return self._fail_open

        for module in modules:
            if module.module_key == module_key:
                return module.is_active
        return False

    async def can_perform_action(
        self, user_email: str, permission: PermissionKey | str
    ) -> bool:
        key = (
            permission
            if isinstance(permission, PermissionKey)
            else PermissionKey.parse(permission)
        )
        if key is None:
            logger.warning(
                "Unknown permission key %r denied for user=%s",
                permission,
                user_email,
                extra={"user_email": user_email, "permission_key": str(permission)},
            )
            return False

        tier = await self.get_user_license_tier(user_email)

        try:
            rules = await self._load_rules(tier)
        except Exception:
            self._record_failure(
                "can_perform_action",
                extra={"user_email": user_email, "permission_key": key.value},
            )
            return self._fail_open

        return rules.get(key.value, False)

    async def get_available_modules(self, org_id: UUID) -> list[ModuleKey]:
        try:
            modules = await self._load_modules(org_id)
        except Exception:
            self._record_failure("get_available_modules", extra={"org_id": str(org_id)})
            return list(ALL_MODULES) if self._fail_open else [ModuleKey.BASE]

        active = {m.module_key for m in modules if m.is_active}
        active.add(ModuleKey.BASE)
        return [k for k in ALL_MODULES if k in active]

    def clear_cache(self, user_email: str | None = None) -> None:
        """Drop one user's license entry, or every cached entry when no user is given.

        Every path that writes licenses, modules or rules must call this.
        """
        if user_email is not None:
            self._license_cache.delete(_license_key(user_email))
            logger.debug("Permission cache cleared for user=%s", user_email)
            return

        self._license_cache.clear()
        self._module_cache.clear()
        self._rule_cache.clear()
        logger.debug("Permission cache cleared")

    # ------------------------------------------------------------------
    # Read-through loaders (raise on store failure)
    # ------------------------------------------------------------------

    async def _load_license(self, user_email: str) -> UserLicense | None:
        key = _license_key(user_email)
        cached = self._license_cache.get(key, _MISS)
        if cached is not _MISS:
            return cached  # type: ignore[return-value]

        user_license = await self._licenses.find_active_by_email(user_email)
        # "No license" is cached as well so untracked users cost one query per TTL.
        self._license_cache.set(key, user_license)
        return user_license

    async def _load_modules(self, org_id: UUID) -> list[OrganizationModule]:
        key = f"org:{org_id}"
        cached = self._module_cache.get(key, _MISS)
        if cached is not _MISS:
            return cached  # type: ignore[return-value]

        modules = await self._modules.list_by_org(org_id)
        self._module_cache.set(key, modules)
        return modules

    async def _load_rules(self, tier: LicenseTier) -> dict[str, bool]:
        key = f"perms:{tier.value}"
        cached = self._rule_cache.get(key, _MISS)
        if cached is not _MISS:
            return cached  # type: ignore[return-value]

        rules: dict[str, bool] = {}
        for rule in await self._permissions.list_by_tier(tier):
            # First matching row wins, as with a linear scan.
            rules.setdefault(rule.permission_key, rule.can_execute)
        self._rule_cache.set(key, rules)
        return rules

    def _record_failure(self, operation: str, *, extra: dict[str, str]) -> None:
        PERMISSION_STORE_FAILURES.labels(operation=operation).inc()
        logger.exception(
            "Store query failed in %s; answering with %s default",
            operation,
            "fail-open" if self._fail_open else "fail-closed",
            extra=extra,
        )


def _license_key(user_email: str) -> str:
    return f"user:{user_email}"
