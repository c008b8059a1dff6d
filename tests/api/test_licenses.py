"""License, module and permission-rule administration endpoints."""

from __future__ import annotations

from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from alignex.models.license import LicenseTier
from alignex.models.permission import PermissionKey
from tests.conftest import OTHER_ORG, auth, seed_admin, seed_license, seed_rules

ORG_URL = f"/v1/orgs/{OTHER_ORG}"


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return auth(seed_admin(org_id=OTHER_ORG))


# --- guards ---


@pytest.mark.parametrize(
    "method,path",
    [
        ("GET", f"{ORG_URL}/licenses"),
        ("GET", f"{ORG_URL}/licenses/stats"),
        ("POST", f"{ORG_URL}/licenses"),
        ("GET", f"{ORG_URL}/modules"),
        ("POST", f"{ORG_URL}/modules/provision"),
        ("PUT", "/v1/permissions/read_only/view"),
    ],
)
def test_admin_endpoints_require_token(
    client: TestClient, method: str, path: str
) -> None:
    resp = client.request(method, path)
    assert resp.status_code == 401


def test_admin_endpoints_forbidden_without_manage(client: TestClient) -> None:
    seed_license("member@x.com", LicenseTier.TEAM_MEMBER)
    seed_rules(LicenseTier.TEAM_MEMBER, {PermissionKey.VIEW, PermissionKey.EDIT})

    resp = client.get(f"{ORG_URL}/licenses", headers=auth("member@x.com"))
    assert resp.status_code == 403
    assert resp.json()["detail"] == "Insufficient permissions"


# --- licenses ---


def test_assign_and_list_licenses(client: TestClient, admin_headers) -> None:
    resp = client.post(
        f"{ORG_URL}/licenses",
        json={"user_email": " Ann@X.com ", "license_tier": "read_only", "notes": "pilot"},
        headers=admin_headers,
    )
    assert resp.status_code == 201
    created = resp.json()
    assert created["user_email"] == "ann@x.com"
    assert created["organization_id"] == str(OTHER_ORG)
    assert created["license_tier"] == "read_only"
    assert created["is_active"] is True
    assert created["notes"] == "pilot"

    listed = client.get(f"{ORG_URL}/licenses", headers=admin_headers).json()
    assert [lic["user_email"] for lic in listed] == ["admin@alignex.com", "ann@x.com"]


def test_assign_license_defaults_to_team_member(
    client: TestClient, admin_headers
) -> None:
    resp = client.post(
        f"{ORG_URL}/licenses", json={"user_email": "t@x.com"}, headers=admin_headers
    )
    assert resp.json()["license_tier"] == "team_member"


def test_assign_license_blank_email(client: TestClient, admin_headers) -> None:
    resp = client.post(
        f"{ORG_URL}/licenses", json={"user_email": "   "}, headers=admin_headers
    )
    assert resp.status_code == 422


def test_assign_license_duplicate(client: TestClient, admin_headers) -> None:
    body = {"user_email": "dup@x.com", "license_tier": "read_only"}
    assert client.post(f"{ORG_URL}/licenses", json=body, headers=admin_headers).status_code == 201
    resp = client.post(f"{ORG_URL}/licenses", json=body, headers=admin_headers)
    assert resp.status_code == 409
    assert "update it instead" in resp.json()["detail"]


def test_assign_license_invalid_tier(client: TestClient, admin_headers) -> None:
    resp = client.post(
        f"{ORG_URL}/licenses",
        json={"user_email": "x@x.com", "license_tier": "platinum"},
        headers=admin_headers,
    )
    assert resp.status_code == 422


def test_change_tier_applies_immediately(client: TestClient, admin_headers) -> None:
    seed_rules(LicenseTier.READ_ONLY, {PermissionKey.VIEW})
    created = client.post(
        f"{ORG_URL}/licenses",
        json={"user_email": "u@x.com", "license_tier": "read_only"},
        headers=admin_headers,
    ).json()
    assert client.get("/v1/access/can/manage", headers=auth("u@x.com")).json()["allowed"] is False

    resp = client.patch(
        f"{ORG_URL}/licenses/{created['id']}",
        json={"license_tier": "full_license"},
        headers=admin_headers,
    )
    assert resp.status_code == 200
    assert resp.json()["license_tier"] == "full_license"
    assert client.get("/v1/access/can/manage", headers=auth("u@x.com")).json()["allowed"] is True


def test_change_tier_unknown_license(client: TestClient, admin_headers) -> None:
    resp = client.patch(
        f"{ORG_URL}/licenses/{uuid4()}",
        json={"license_tier": "read_only"},
        headers=admin_headers,
    )
    assert resp.status_code == 404


def test_toggle_license_and_stats(client: TestClient, admin_headers) -> None:
    for email, tier in (("a@x.com", "read_only"), ("b@x.com", "team_member")):
        client.post(
            f"{ORG_URL}/licenses",
            json={"user_email": email, "license_tier": tier},
            headers=admin_headers,
        )
    licenses = client.get(f"{ORG_URL}/licenses", headers=admin_headers).json()
    target = next(lic for lic in licenses if lic["user_email"] == "a@x.com")

    resp = client.post(f"{ORG_URL}/licenses/{target['id']}/toggle", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["is_active"] is False

    stats = client.get(f"{ORG_URL}/licenses/stats", headers=admin_headers).json()
    assert stats == {
        "read_only": 0,
        "team_member": 1,
        "full_license": 1,
        "inactive": 1,
        "total": 3,
    }


def test_toggle_unknown_license(client: TestClient, admin_headers) -> None:
    resp = client.post(f"{ORG_URL}/licenses/{uuid4()}/toggle", headers=admin_headers)
    assert resp.status_code == 404


# --- modules ---


def test_provision_activate_deactivate(client: TestClient, admin_headers) -> None:
    member = auth(seed_license("m@x.com", LicenseTier.TEAM_MEMBER, org_id=OTHER_ORG).user_email)

    provisioned = client.post(f"{ORG_URL}/modules/provision", headers=admin_headers)
    assert provisioned.status_code == 201
    assert [m["module_key"] for m in provisioned.json()] == ["base", "skills", "benefits"]
    assert client.post(f"{ORG_URL}/modules/provision", headers=admin_headers).json() == []

    gate = client.get("/v1/access/gates/modules/skills", headers=member)
    assert gate.json()["outcome"] == "upgrade_prompt"

    resp = client.post(
        f"{ORG_URL}/modules/skills/activate",
        json={"license_key": "SK-42", "expiry_date": "2030-01-01"},
        headers=admin_headers,
    )
    assert resp.status_code == 200
    assert resp.json()["is_active"] is True
    assert resp.json()["license_key"] == "SK-42"
    assert resp.json()["expiry_date"] == "2030-01-01"
    assert resp.json()["activation_date"] is not None

    gate = client.get("/v1/access/gates/modules/skills", headers=member)
    assert gate.json()["outcome"] == "children"

    resp = client.post(f"{ORG_URL}/modules/skills/deactivate", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["is_active"] is False

    modules = client.get(f"{ORG_URL}/modules", headers=admin_headers).json()
    assert {m["module_key"]: m["is_active"] for m in modules} == {
        "base": True,
        "benefits": False,
        "skills": False,
    }


def test_activate_unprovisioned_module(client: TestClient, admin_headers) -> None:
    resp = client.post(
        f"{ORG_URL}/modules/benefits/activate", json={}, headers=admin_headers
    )
    assert resp.status_code == 404
    assert resp.json()["detail"] == "module not provisioned"


def test_deactivate_base_rejected(client: TestClient, admin_headers) -> None:
    client.post(f"{ORG_URL}/modules/provision", headers=admin_headers)
    resp = client.post(f"{ORG_URL}/modules/base/deactivate", headers=admin_headers)
    assert resp.status_code == 422


# --- permission rules ---


def test_set_permission_rule(client: TestClient, admin_headers) -> None:
    seed_license("r@x.com", LicenseTier.READ_ONLY)
    assert client.get("/v1/access/can/export", headers=auth("r@x.com")).json()["allowed"] is False

    resp = client.put(
        "/v1/permissions/read_only/export",
        json={"can_execute": True},
        headers=admin_headers,
    )
    assert resp.status_code == 200
    assert resp.json() == {
        "license_tier": "read_only",
        "permission_key": "export",
        "can_execute": True,
    }
    assert client.get("/v1/access/can/export", headers=auth("r@x.com")).json()["allowed"] is True


def test_set_permission_rule_unknown_key(client: TestClient, admin_headers) -> None:
    resp = client.put(
        "/v1/permissions/read_only/launch.missiles",
        json={"can_execute": True},
        headers=admin_headers,
    )
    assert resp.status_code == 422
