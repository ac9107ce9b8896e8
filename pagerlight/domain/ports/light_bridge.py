from __future__ import annotations

from typing import Protocol

from pagerlight.domain.models import LightState, StateModifier


class ILightBridge(Protocol):
    def get_light_state(self, light_id: str) -> LightState: ...

    def set_light_state(self, light_id: str, modifier: StateModifier) -> list[dict]: ...
