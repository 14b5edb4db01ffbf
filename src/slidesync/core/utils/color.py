from __future__ import annotations

from pptx.dml.color import RGBColor


def convert_color_to_rgb(color: RGBColor) -> int:
    """Pack a colour the way the presentation host stores it (`B << 16 | G << 8 | R`)."""
    r, g, b = color
    return (b << 16) | (g << 8) | r


def convert_rgb_to_color(value: int) -> RGBColor:
    if not 0 <= value <= 0xFFFFFF:
        raise ValueError(f"packed colour out of range: {value!r}")
    return RGBColor(value & 0xFF, (value >> 8) & 0xFF, (value >> 16) & 0xFF)
