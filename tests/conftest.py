"""Shared fakes for the bridge, the incident source and the light controller."""
from __future__ import annotations

import threading
from dataclasses import replace
from typing import Callable, Optional

import pytest

from pagerlight.domain.errors import BridgeError
from pagerlight.domain.models import AlertVisual, LightState, LightTarget, StateModifier


class FakeBridge:
    """In-memory bridge that applies modifiers and records every call.

    ``fail_sets`` holds indexes of ``set_light_state`` calls that must fail
    (0 = override, 1 = blink, 2 = restore, 3 = restore retry).
    """

    def __init__(
        self,
        states: Optional[dict[str, LightState]] = None,
        *,
        fail_get: bool = False,
        fail_sets: Optional[set[int]] = None,
    ) -> None:
        self.states = dict(states or {})
        self.fail_get = fail_get
        self.fail_sets = set(fail_sets or ())
        self.gets: list[str] = []
        self.sets: list[tuple[str, StateModifier]] = []
        self._lock = threading.Lock()

    def get_light_state(self, light_id: str) -> LightState:
        with self._lock:
            self.gets.append(light_id)
        if self.fail_get:
            raise BridgeError("bridge unreachable", light_id=light_id)
        return self.states[light_id]

    def set_light_state(self, light_id: str, modifier: StateModifier) -> list[dict]:
        with self._lock:
            index = len(self.sets)
            self.sets.append((light_id, modifier))
        if index in self.fail_sets:
            raise BridgeError("rejected", light_id=light_id)
        current = self.states.get(light_id, LightState(powered=False))
        changes = {}
        if modifier.on is not None:
            changes["powered"] = modifier.on
        if modifier.brightness is not None:
            changes["brightness"] = modifier.brightness
        if modifier.hue is not None:
            changes["hue"] = modifier.hue
        if modifier.saturation is not None:
            changes["saturation"] = modifier.saturation
        if modifier.xy is not None:
            changes["xy"] = modifier.xy
            changes["color_mode"] = "xy"
        if modifier.color_temp is not None:
            changes["color_temp"] = modifier.color_temp
            changes["color_mode"] = "ct"
            changes["xy"] = None
        if modifier.hue is not None or modifier.saturation is not None:
            changes["color_mode"] = "hs"
            changes["xy"] = None
        self.states[light_id] = replace(current, **changes)
        return [{"success": {k: v}} for k, v in modifier.to_payload().items()]


class FakeSource:
    def __init__(self, results: list) -> None:
        self._results = list(results)
        self.calls = 0

    def count_triggered(self) -> int:
        self.calls += 1
        result = self._results.pop(0) if len(self._results) > 1 else self._results[0]
        if isinstance(result, BaseException):
            raise result
        return result


class RecordingController:
    """Stands in for LightController; optionally blocks one light on a gate."""

    def __init__(self, gate_light: Optional[str] = None, behaviour: Optional[Callable[[LightTarget], None]] = None) -> None:
        self.calls: list[tuple[str, AlertVisual]] = []
        self.gate = threading.Event()
        self.gate_light = gate_light
        self.behaviour = behaviour
        self._lock = threading.Lock()

    def apply_alert(self, target: LightTarget, visual: AlertVisual) -> bool:
        with self._lock:
            self.calls.append((target.light_id, visual))
        if target.light_id == self.gate_light:
            self.gate.wait(timeout=5)
        if self.behaviour is not None:
            self.behaviour(target)
        return True


class NoSleep:
    def __init__(self) -> None:
        self.waits: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.waits.append(seconds)


def make_targets(*light_ids: str) -> list[LightTarget]:
    return [LightTarget("http://192.168.1.2", "hue-user", light_id) for light_id in light_ids]


@pytest.fixture
def targets() -> list[LightTarget]:
    return make_targets("L1", "L2", "L3")


@pytest.fixture
def no_sleep() -> NoSleep:
    return NoSleep()
