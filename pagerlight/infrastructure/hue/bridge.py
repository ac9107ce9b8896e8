from __future__ import annotations

import logging
from typing import Any, Optional

import requests

from pagerlight.domain.errors import BridgeError
from pagerlight.domain.models import LightState, StateModifier
from pagerlight.domain.ports.light_bridge import ILightBridge

logger = logging.getLogger(__name__)


class HueBridge(ILightBridge):
    """Hue bridge v1 REST client (``/api/<username>/lights``).

    The bridge answers most rejections with HTTP 200 and a list of
    ``{"error": {...}}`` items, so every body is inspected.
    """

    def __init__(
        self,
        endpoint: str,
        username: str,
        *,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._base = f"{endpoint.rstrip('/')}/api/{username}/lights"
        self._endpoint = endpoint
        self._timeout = timeout
        self._session = session or requests.Session()
        logger.info("Hue bridge configured at %s", endpoint)

    @property
    def endpoint(self) -> str:
        return self._endpoint

    def _call(self, method: str, light_id: str, path: str = "", payload: Optional[dict] = None) -> Any:
        url = f"{self._base}/{light_id}{path}"
        try:
            resp = self._session.request(method, url, json=payload, timeout=self._timeout)
        except requests.RequestException as exc:
            raise BridgeError(f"bridge unreachable at {self._endpoint}: {exc}", light_id=light_id) from exc
        if not 200 <= resp.status_code < 300:
            raise BridgeError(f"bridge answered HTTP {resp.status_code} for light {light_id}", light_id=light_id)
        try:
            body = resp.json()
        except ValueError as exc:
            raise BridgeError(f"bridge returned malformed JSON for light {light_id}", light_id=light_id) from exc

        errors = [item["error"] for item in body if isinstance(item, dict) and "error" in item] if isinstance(body, list) else []
        if errors:
            desc = "; ".join(str(e.get("description", e) if isinstance(e, dict) else e) for e in errors)
            raise BridgeError(f"bridge rejected request for light {light_id}: {desc}", light_id=light_id, errors=errors)
        return body

    def get_light_state(self, light_id: str) -> LightState:
        body = self._call("GET", light_id)
        if not isinstance(body, dict) or not isinstance(body.get("state"), dict):
            raise BridgeError(f"bridge returned no state for light {light_id}", light_id=light_id)
        try:
            state = LightState.from_hue_api(body)
        except (KeyError, TypeError, ValueError, IndexError) as exc:
            raise BridgeError(f"bridge returned an unreadable state for light {light_id}: {exc}", light_id=light_id) from exc
        logger.debug("light %s state: %s", light_id, state)
        return state

    def set_light_state(self, light_id: str, modifier: StateModifier) -> list[dict]:
        payload = modifier.to_payload()
        body = self._call("PUT", light_id, "/state", payload)
        responses = body if isinstance(body, list) else []
        for response in responses:
            logger.debug("light %s: %s", light_id, response)
        return responses

    def close(self) -> None:
        self._session.close()
