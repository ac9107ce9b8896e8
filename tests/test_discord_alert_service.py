from __future__ import annotations

from unittest.mock import MagicMock

import requests

from pagerlight.infrastructure.alerts import discord_alert_service as mod
from pagerlight.infrastructure.alerts.discord_alert_service import DiscordAlertService


class _InlineThread:
    def __init__(self, target, name=None, daemon=None):
        self._target = target

    def start(self):
        self._target()


def test_disabled_without_url(monkeypatch):
    post = MagicMock()
    monkeypatch.setattr(mod.requests, "post", post)
    service = DiscordAlertService("")

    service.notify_stuck_light("light 3 left in alert state")

    assert service.enabled is False
    post.assert_not_called()


def test_posts_embed(monkeypatch):
    post = MagicMock()
    monkeypatch.setattr(mod.requests, "post", post)
    monkeypatch.setattr(mod.threading, "Thread", _InlineThread)
    service = DiscordAlertService("https://discord.example/webhook", service_name="pagerlight")

    service.notify_stuck_light("light 3 left in alert state", level="ERROR", context={"light_id": "3"})

    args, kwargs = post.call_args
    assert args[0] == "https://discord.example/webhook"
    embed = kwargs["json"]["embeds"][0]
    assert embed["title"] == "[ERROR] pagerlight"
    assert embed["color"] == 0xE11D48
    assert embed["fields"][0]["name"] == "light_id"


def test_webhook_failure_is_logged_not_raised(monkeypatch, caplog):
    monkeypatch.setattr(mod.requests, "post", MagicMock(side_effect=requests.ConnectionError("down")))
    monkeypatch.setattr(mod.threading, "Thread", _InlineThread)
    service = DiscordAlertService("https://discord.example/webhook")

    service.notify_stuck_light("boom")

    assert "discord webhook failed" in caplog.text


def test_stuck_light_defaults_to_error_level():
    payload = DiscordAlertService("https://discord.example/webhook").build_payload("light 3 left in alert state")

    assert payload["embeds"][0]["title"] == "[ERROR] pagerlight"
