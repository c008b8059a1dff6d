"""Tests for Prometheus metrics middleware.

The prometheus-client registry is global and counters only go up, so every
assertion is on a DELTA: read before, act, read after.
"""

from __future__ import annotations

from fastapi.testclient import TestClient
from prometheus_client import REGISTRY

from alignex.models.module import ModuleKey
from tests.conftest import auth, seed_modules


def _get_sample(name: str, labels: dict | None = None) -> float:
    """Read a metric sample's current value from the global registry."""
    value = REGISTRY.get_sample_value(name, labels=labels or {})
    return value if value is not None else 0.0


def test_request_counter_increments(client: TestClient) -> None:
    labels = {"method": "GET", "endpoint": "/health", "status_code": "200"}
    before = _get_sample("http_requests_total", labels)
    client.get("/health")
    after = _get_sample("http_requests_total", labels)
    assert after - before >= 1


def test_request_duration_histogram_observes(client: TestClient) -> None:
    labels = {"method": "GET", "endpoint": "/health"}
    before = _get_sample("http_request_duration_seconds_count", labels)
    client.get("/health")
    after = _get_sample("http_request_duration_seconds_count", labels)
    assert after - before >= 1


def test_metrics_endpoint_returns_prometheus_format(client: TestClient) -> None:
    client.get("/health")
    resp = client.get("/metrics")
    assert resp.status_code == 200
    assert "http_requests_total" in resp.text
    assert "permission_store_failures_total" in resp.text


def test_metrics_endpoint_not_self_instrumented(client: TestClient) -> None:
    labels = {"method": "GET", "endpoint": "/metrics", "status_code": "200"}
    before = _get_sample("http_requests_total", labels)
    client.get("/metrics")
    client.get("/metrics")
    assert _get_sample("http_requests_total", labels) == before


def test_gate_decisions_counted(client: TestClient) -> None:
    seed_modules(active=(ModuleKey.SKILLS,))
    allowed = {"gate": "module", "outcome": "allowed"}
    prompt = {"gate": "module", "outcome": "placeholder"}
    allowed_before = _get_sample("access_gate_decisions_total", allowed)
    prompt_before = _get_sample("access_gate_decisions_total", prompt)

    client.get("/v1/access/gates/modules/skills", headers=auth("nolicense@x.com"))
    client.get("/v1/access/gates/modules/benefits", headers=auth("nolicense@x.com"))

    assert _get_sample("access_gate_decisions_total", allowed) - allowed_before == 1
    assert _get_sample("access_gate_decisions_total", prompt) - prompt_before == 1


def test_permission_cache_hits_counted(client: TestClient) -> None:
    hit = {"cache": "license", "result": "hit"}
    before = _get_sample("permission_cache_operations_total", hit)

    client.get("/v1/access/can/view", headers=auth("cached@x.com"))
    client.get("/v1/access/can/view", headers=auth("cached@x.com"))

    assert _get_sample("permission_cache_operations_total", hit) - before >= 1
