from __future__ import annotations

import pytest

from pagerlight.domain.color import rgb_to_xy
from pagerlight.domain.models import (
    ALERT_VISUAL,
    BlinkPattern,
    LightState,
    StateModifier,
)


def test_alert_color_is_green():
    x, y = ALERT_VISUAL.xy
    assert x == pytest.approx(0.175, abs=0.01)
    assert y == pytest.approx(0.615, abs=0.01)


def test_white_maps_to_hue_white_point():
    assert rgb_to_xy(255, 255, 255) == pytest.approx((0.3227, 0.3290), abs=0.001)


def test_black_has_no_chromaticity():
    assert rgb_to_xy(0, 0, 0) == (0.0, 0.0)


def test_empty_modifier_has_empty_payload():
    assert StateModifier().to_payload() == {}


def test_alert_color_payload():
    payload = StateModifier.alert_color(ALERT_VISUAL, transition_time=10).to_payload()

    assert payload["on"] is True
    assert payload["bri"] == 254
    assert payload["transitiontime"] == 10
    assert payload["xy"] == list(ALERT_VISUAL.xy)
    assert "alert" not in payload


def test_brightness_is_clamped_to_bridge_range():
    assert StateModifier(brightness=300).to_payload() == {"bri": 254}


def test_blink_patterns_match_bridge_values():
    assert BlinkPattern.NONE.value == "none"
    assert BlinkPattern.SINGLE.value == "select"
    assert BlinkPattern.REPEATING.value == "lselect"


def test_restoring_hue_saturation_light():
    state = LightState(powered=True, brightness=10, hue=500, saturation=60, color_mode="hs")

    assert StateModifier.restoring(state, 10).to_payload() == {
        "on": True,
        "bri": 10,
        "hue": 500,
        "sat": 60,
        "transitiontime": 10,
    }


def test_restoring_xy_light():
    state = LightState(powered=True, brightness=10, hue=500, saturation=60, xy=(0.4, 0.4), color_mode="xy")

    payload = StateModifier.restoring(state, 10).to_payload()

    assert payload["xy"] == [0.4, 0.4]
    assert "hue" not in payload


def test_restoring_skips_absent_fields():
    state = LightState(powered=False)

    assert StateModifier.restoring(state, 4).to_payload() == {"on": False, "transitiontime": 4}


def test_light_state_from_partial_api_body():
    state = LightState.from_hue_api({"state": {"on": True, "bri": 5, "colormode": "ct", "ct": 300}})

    assert state.powered is True
    assert state.brightness == 5
    assert state.hue is None
    assert state.saturation is None
    assert state.color_temp == 300
