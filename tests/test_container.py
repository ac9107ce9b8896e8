from __future__ import annotations

import pytest

from pagerlight import container
from pagerlight.infrastructure.hue.bridge import HueBridge
from pagerlight.infrastructure.pagerduty.client import PagerDutyIncidentSource


@pytest.fixture
def configured(monkeypatch, tmp_path):
    # keep a stray .env in the working directory out of the picture
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("PAGERDUTY_TOKEN", "s3cr3t")
    monkeypatch.setenv("PAGERDUTY_TEAM_ID", "PTEAM1")
    monkeypatch.setenv("PAGERDUTY_USER_ID", "PUSER1")
    monkeypatch.setenv("HUEBRIDGE_IP", "10.0.0.5")
    monkeypatch.setenv("HUEBRIDGE_USERNAME", "hue-user")
    monkeypatch.setenv("HUEBRIDGE_LIGHT_IDS", "1,2")
    monkeypatch.setenv("POLL_INTERVAL", "30")
    container.reset()
    yield
    container.orchestrator().shutdown(wait=True)
    container.reset()


def test_wires_orchestrator_from_environment(configured):
    orch = container.orchestrator()

    assert [t.light_id for t in orch.targets] == ["1", "2"]
    assert orch.poll_interval == 30.0
    assert isinstance(container.incident_source(), PagerDutyIncidentSource)


def test_lights_on_one_bridge_share_a_client(configured):
    first, second = container.orchestrator().targets

    bridge = container.bridge_for(first)
    assert isinstance(bridge, HueBridge)
    assert bridge.endpoint == "http://10.0.0.5"
    assert container.bridge_for(second) is bridge
