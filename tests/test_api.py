"""Status API tests. The app is built once: Prometheus collectors are process-global."""
from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from conftest import FakeSource, RecordingController, make_targets
from pagerlight.application.orchestrator import NotificationOrchestrator
from pagerlight.presentation.app_factory import create_app


@pytest.fixture(scope="module")
def orchestrator():
    orch = NotificationOrchestrator(
        FakeSource([0]),
        RecordingController(),
        make_targets("L1", "L2"),
        poll_interval=3600,
        max_workers=2,
    )
    yield orch
    orch.shutdown(wait=True)


@pytest.fixture(scope="module")
def client(orchestrator):
    app = create_app(orchestrator, title="pagerlight-test")
    with TestClient(app) as test_client:
        yield test_client


def test_health(client):
    resp = client.get("/api/health")

    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_status_reports_loop(client, orchestrator):
    assert orchestrator.wait_idle(timeout=5)

    resp = client.get("/api/status")

    assert resp.status_code == 200
    body = resp.json()
    assert body["lights"] == ["L1", "L2"]
    assert body["poll_interval"] == 3600
    assert body["state"] in {"startup", "polling"}


def test_metrics_exposed(client, orchestrator):
    assert orchestrator.wait_idle(timeout=5)

    resp = client.get("/metrics")

    assert resp.status_code == 200
    assert "pagerlight_light_notifications_total" in resp.text
    assert "pagerlight_polls_total" in resp.text
