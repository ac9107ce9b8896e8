from __future__ import annotations


def _gamma(channel: int) -> float:
    v = max(0, min(255, int(channel))) / 255.0
    if v > 0.04045:
        return ((v + 0.055) / (1.0 + 0.055)) ** 2.4
    return v / 12.92


def rgb_to_xy(red: int, green: int, blue: int) -> tuple[float, float]:
    """Convert an sRGB color to CIE 1931 xy coordinates for a Hue bulb.

    Uses the Wide RGB D65 conversion published for Hue lights. Black has no
    chromaticity and maps to (0.0, 0.0).
    """
    r, g, b = _gamma(red), _gamma(green), _gamma(blue)
    x = r * 0.664511 + g * 0.154324 + b * 0.162028
    y = r * 0.283881 + g * 0.668433 + b * 0.047685
    z = r * 0.000088 + g * 0.072310 + b * 0.986039
    total = x + y + z
    if total == 0:
        return (0.0, 0.0)
    return (round(x / total, 4), round(y / total, 4))
