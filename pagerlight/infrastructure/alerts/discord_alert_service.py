from __future__ import annotations

import threading
import json
import logging
from typing import Mapping, Any, Optional

import requests

from pagerlight.domain.ports.alert_service import IAlertService

logger = logging.getLogger(__name__)


class DiscordAlertService(IAlertService):
    """Posts operator notifications to a Discord webhook; a no-op without a URL."""

    def __init__(self, webhook_url: Optional[str] = None, *, service_name: str = "pagerlight", timeout: float = 5.0) -> None:
        self._url = webhook_url or ""
        self._service_name = service_name
        self._timeout = timeout

    @property
    def enabled(self) -> bool:
        return bool(self._url)

    def build_payload(self, message: str, *, level: str = "ERROR", context: Optional[Mapping[str, Any]] = None) -> dict:
        return {
            "content": None,
            "embeds": [
                {
                    "title": f"[{level}] {self._service_name}",
                    "description": str(message)[:4000],
                    "color": 0xE11D48 if str(level).upper() in {"CRITICAL", "ERROR"} else 0xF59E0B,
                    "fields": [
                        {"name": k, "value": "```json\n" + json.dumps(v, ensure_ascii=False, indent=2)[:1000] + "\n```", "inline": False}
                        for k, v in (context or {}).items()
                    ],
                }
            ],
        }

    def notify_stuck_light(self, message: str, *, level: str = "ERROR", context: Optional[Mapping[str, Any]] = None) -> None:
        if not self._url:
            return
        payload = self.build_payload(message, level=level, context=context)

        def _send() -> None:
            try:
                requests.post(self._url, json=payload, timeout=self._timeout)
            except requests.RequestException as exc:
                logger.warning("discord webhook failed: %s", exc)

        threading.Thread(target=_send, name="discord-alert", daemon=True).start()
