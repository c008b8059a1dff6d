from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from uuid import UUID

import pytest
from fastapi.testclient import TestClient

from alignex.api.wiring import (
    license_repo,
    module_repo,
    permission_repo,
    permission_resolver,
)
from alignex.main import app
from alignex.models.license import LicenseTier, UserLicense
from alignex.models.module import ALL_MODULES, ModuleKey, OrganizationModule
from alignex.models.permission import PermissionKey, PermissionRule
from alignex.services import token_service

# Ensure repo root is on sys.path so `import alignex` works under pytest.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

DEFAULT_ORG = permission_resolver.default_org_id
OTHER_ORG = UUID("00000000-0000-0000-0000-0000000000aa")


@pytest.fixture(autouse=True)
def reset_licensing_state() -> None:
    """Empty the in-memory stores and the resolver cache between tests."""
    license_repo._by_id.clear()  # type: ignore[union-attr]
    module_repo._store.clear()  # type: ignore[union-attr]
    permission_repo._store.clear()  # type: ignore[union-attr]
    permission_resolver.clear_cache()


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


def mint_token(email: str = "member@alignex.com") -> str:
    """Create a valid ES256 JWT for testing."""
    return token_service.create_access_token(sub=email)


def auth(email: str = "member@alignex.com") -> dict[str, str]:
    return {"Authorization": f"Bearer {mint_token(email)}"}


# ---------------------------------------------------------------------------
# Seed helpers (write straight to the in-memory repos)
# ---------------------------------------------------------------------------


def seed_license(
    email: str,
    tier: LicenseTier,
    *,
    org_id: UUID = DEFAULT_ORG,
    is_active: bool = True,
) -> UserLicense:
    lic = UserLicense.new(user_email=email, organization_id=org_id, license_tier=tier)
    asyncio.run(license_repo.add(lic))
    if not is_active:
        lic = asyncio.run(license_repo.set_active(lic.id, False))
    permission_resolver.clear_cache()
    return lic


def seed_modules(
    org_id: UUID = DEFAULT_ORG, *, active: tuple[ModuleKey, ...] = ()
) -> None:
    """Provision every module for the org; base plus `active` are switched on."""
    for key in ALL_MODULES:
        asyncio.run(
            module_repo.add(
                OrganizationModule.new(
                    organization_id=org_id,
                    module_key=key,
                    is_active=key == ModuleKey.BASE or key in active,
                )
            )
        )
    permission_resolver.clear_cache()


def seed_rules(tier: LicenseTier, allowed: set[PermissionKey]) -> None:
    """Write an explicit row for every key: allowed ones true, the rest false."""
    for key in PermissionKey:
        asyncio.run(
            permission_repo.upsert(
                PermissionRule(
                    license_tier=tier,
                    permission_key=key.value,
                    can_execute=key in allowed,
                )
            )
        )
    permission_resolver.clear_cache()


def seed_admin(email: str = "admin@alignex.com", org_id: UUID = DEFAULT_ORG) -> str:
    """A full-license user whose tier allows `manage`. Returns the email."""
    seed_license(email, LicenseTier.FULL_LICENSE, org_id=org_id)
    seed_rules(LicenseTier.FULL_LICENSE, set(PermissionKey))
    return email
