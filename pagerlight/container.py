from __future__ import annotations

from functools import lru_cache

from pagerlight.config import Settings, get_settings
from pagerlight.application.light_controller import LightController
from pagerlight.application.orchestrator import NotificationOrchestrator
from pagerlight.domain.models import LightTarget
from pagerlight.domain.ports.alert_service import IAlertService
from pagerlight.domain.ports.incident_source import IIncidentSource
from pagerlight.infrastructure.alerts.discord_alert_service import DiscordAlertService
from pagerlight.infrastructure.hue.bridge import HueBridge
from pagerlight.infrastructure.pagerduty.client import PagerDutyIncidentSource


@lru_cache(maxsize=1)
def settings() -> Settings:
    return get_settings()


@lru_cache(maxsize=1)
def incident_source() -> IIncidentSource:
    cfg = settings()
    return PagerDutyIncidentSource(
        cfg.incident_query(),
        api_url=cfg.pagerduty_api_url,
        timeout=cfg.http_timeout,
    )


@lru_cache(maxsize=None)
def hue_bridge(endpoint: str, username: str) -> HueBridge:
    return HueBridge(endpoint, username, timeout=settings().http_timeout)


def bridge_for(target: LightTarget) -> HueBridge:
    return hue_bridge(target.bridge_endpoint, target.bridge_credential)


@lru_cache(maxsize=1)
def alert_service() -> IAlertService:
    cfg = settings()
    return DiscordAlertService(cfg.discord_webhook_url, service_name=cfg.app_name)


@lru_cache(maxsize=1)
def light_controller() -> LightController:
    return LightController(
        bridge_for,
        transition_time=settings().transition_time,
        alert_service=alert_service(),
    )


@lru_cache(maxsize=1)
def orchestrator() -> NotificationOrchestrator:
    cfg = settings()
    return NotificationOrchestrator(
        incident_source(),
        light_controller(),
        cfg.light_targets(),
        poll_interval=cfg.poll_interval,
        max_workers=cfg.max_light_workers,
    )


def reset() -> None:
    for provider in (settings, incident_source, hue_bridge, alert_service, light_controller, orchestrator):
        provider.cache_clear()
    get_settings.cache_clear()
