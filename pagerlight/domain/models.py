"""Value objects shared by the incident poller and the light controller."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from pagerlight.domain.color import rgb_to_xy


MAX_BRIGHTNESS = 254
# Bridge-native unit: tenths of a second
DEFAULT_TRANSITION_TIME = 10


class BlinkPattern(str, Enum):
    NONE = "none"
    SINGLE = "select"  # one breathe cycle
    REPEATING = "lselect"  # breathe cycles for ~15 seconds


@dataclass(frozen=True, slots=True)
class IncidentQuery:
    api_token: str
    team_id: str
    user_id: str

    def __repr__(self) -> str:
        return f"IncidentQuery(team_id={self.team_id!r}, user_id={self.user_id!r})"


@dataclass(frozen=True, slots=True)
class LightTarget:
    bridge_endpoint: str
    bridge_credential: str
    light_id: str

    def __repr__(self) -> str:
        return f"LightTarget(bridge_endpoint={self.bridge_endpoint!r}, light_id={self.light_id!r})"


@dataclass(frozen=True, slots=True)
class AlertVisual:
    name: str
    color: tuple[int, int, int]
    blink_pattern: BlinkPattern
    duration_seconds: float

    @property
    def xy(self) -> tuple[float, float]:
        return rgb_to_xy(*self.color)


ALERT_COLOR: tuple[int, int, int] = (21, 163, 69)

BLINK_VISUAL = AlertVisual(name="blink", color=ALERT_COLOR, blink_pattern=BlinkPattern.SINGLE, duration_seconds=1)
ALERT_VISUAL = AlertVisual(name="alert", color=ALERT_COLOR, blink_pattern=BlinkPattern.REPEATING, duration_seconds=15)


@dataclass(frozen=True, slots=True)
class LightState:
    """Snapshot of a light taken right before an alert sequence.

    Color fields are optional: white-only bulbs report no hue/saturation and
    on/off plugs report no brightness.
    """

    powered: bool
    brightness: int | None = None
    hue: int | None = None
    saturation: int | None = None
    xy: tuple[float, float] | None = None
    color_temp: int | None = None
    color_mode: str | None = None

    @classmethod
    def from_hue_api(cls, data: dict[str, Any]) -> LightState:
        state = data.get("state", data) or {}
        xy = state.get("xy")
        if xy is not None and (not isinstance(xy, (list, tuple)) or len(xy) != 2):
            raise ValueError(f"xy must be a pair of coordinates, got {xy!r}")
        return cls(
            powered=bool(state.get("on", False)),
            brightness=state.get("bri"),
            hue=state.get("hue"),
            saturation=state.get("sat"),
            xy=(float(xy[0]), float(xy[1])) if xy else None,
            color_temp=state.get("ct"),
            color_mode=state.get("colormode"),
        )


@dataclass(frozen=True, slots=True)
class StateModifier:
    """Partial light state update. Fields left as ``None`` are not sent."""

    on: bool | None = None
    brightness: int | None = None
    hue: int | None = None
    saturation: int | None = None
    xy: tuple[float, float] | None = None
    color_temp: int | None = None
    transition_time: int | None = None
    alert: BlinkPattern | None = None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        if self.on is not None:
            payload["on"] = self.on
        if self.brightness is not None:
            payload["bri"] = max(0, min(MAX_BRIGHTNESS, int(self.brightness)))
        if self.hue is not None:
            payload["hue"] = int(self.hue)
        if self.saturation is not None:
            payload["sat"] = int(self.saturation)
        if self.xy is not None:
            payload["xy"] = [self.xy[0], self.xy[1]]
        if self.color_temp is not None:
            payload["ct"] = int(self.color_temp)
        if self.transition_time is not None:
            payload["transitiontime"] = int(self.transition_time)
        if self.alert is not None:
            payload["alert"] = self.alert.value
        return payload

    @classmethod
    def alert_color(cls, visual: AlertVisual, transition_time: int = DEFAULT_TRANSITION_TIME) -> StateModifier:
        return cls(on=True, brightness=MAX_BRIGHTNESS, xy=visual.xy, transition_time=transition_time)

    @classmethod
    def blink(cls, visual: AlertVisual) -> StateModifier:
        return cls(alert=visual.blink_pattern)

    @classmethod
    def restoring(cls, state: LightState, transition_time: int = DEFAULT_TRANSITION_TIME) -> StateModifier:
        """Build the command that puts a light back to ``state``.

        Color fields the snapshot does not carry are skipped instead of guessed.
        """
        hue = sat = ct = None
        xy = None
        if state.color_mode == "ct" and state.color_temp is not None:
            ct = state.color_temp
        elif state.color_mode == "xy" and state.xy is not None:
            xy = state.xy
        else:
            hue, sat = state.hue, state.saturation
        return cls(
            on=state.powered,
            brightness=state.brightness,
            hue=hue,
            saturation=sat,
            xy=xy,
            color_temp=ct,
            transition_time=transition_time,
        )
