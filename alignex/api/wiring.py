"""Process-wide repositories, resolver and admin service.

Built once at import time from SETTINGS: PostgreSQL repos when
DATABASE_URL is set, in-memory repos otherwise.  Routers import from here;
tests reach into the in-memory repos to seed and reset state.
"""

from __future__ import annotations

from uuid import UUID

from alignex.core.config import SETTINGS
from alignex.db.engine import async_session_factory
from alignex.repos.license_repo import InMemoryUserLicenseRepo, UserLicenseRepo
from alignex.repos.module_repo import (
    InMemoryOrganizationModuleRepo,
    OrganizationModuleRepo,
)
from alignex.repos.permission_repo import (
    InMemoryPermissionRuleRepo,
    PermissionRuleRepo,
)
from alignex.services.license_admin import LicenseAdminService
from alignex.services.permission_resolver import PermissionResolver

if async_session_factory is not None:
    from alignex.repos.pg_license_repo import PgUserLicenseRepo
    from alignex.repos.pg_module_repo import PgOrganizationModuleRepo
    from alignex.repos.pg_permission_repo import PgPermissionRuleRepo

    license_repo: UserLicenseRepo = PgUserLicenseRepo(async_session_factory)
    module_repo: OrganizationModuleRepo = PgOrganizationModuleRepo(
        async_session_factory
    )
    permission_repo: PermissionRuleRepo = PgPermissionRuleRepo(async_session_factory)
else:
    license_repo = InMemoryUserLicenseRepo()
    module_repo = InMemoryOrganizationModuleRepo()
    permission_repo = InMemoryPermissionRuleRepo()

permission_resolver = PermissionResolver(
    licenses=license_repo,
    modules=module_repo,
    permissions=permission_repo,
    default_org_id=UUID(SETTINGS.default_org_id),
    ttl_seconds=SETTINGS.permission_cache_ttl_seconds,
    fail_open=SETTINGS.permission_fail_open,
)

license_admin = LicenseAdminService(
    licenses=license_repo,
    modules=module_repo,
    permissions=permission_repo,
    resolver=permission_resolver,
)
