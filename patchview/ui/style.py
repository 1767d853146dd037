"""
Colours and the flat styles used by the knob, the meter and the panel.

Styles are frozen; make variants with dataclasses.replace().
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Tuple

# RGB or RGBA floats in 0..1; None draws nothing
Color = Optional[Tuple[float, ...]]
RGBA = Tuple[float, float, float, float]

TRANSPARENT: RGBA = (0.0, 0.0, 0.0, 0.0)


def color_rgba(c: Color) -> RGBA:
    if c is None:
        return TRANSPARENT
    r, g, b, *rest = c
    return (r, g, b, rest[0] if rest else 1.0)


def hex_to_color(hex_str: str) -> RGBA:
    """'#fff', '#ffff', '#ffffff' or '#ffffffff' to RGBA floats."""
    digits = hex_str.lstrip('#')
    if len(digits) in (3, 4):
        channels = [int(d, 16) / 15 for d in digits]
    elif len(digits) in (6, 8):
        channels = [int(digits[i:i + 2], 16) / 255 for i in range(0, len(digits), 2)]
    else:
        raise ValueError(f"Invalid hex color: {hex_str}")
    return color_rgba(tuple(channels))


@dataclass(frozen=True)
class KnobStyle:
    body: Color = hex_to_color("#272c2f")
    rim: Color = hex_to_color("#6a6d6f")
    tick_active: Color = (0.95, 0.55, 0.25, 1.0)
    tick_inactive: Color = (0.35, 0.37, 0.40, 1.0)
    indicator: Color = (1.0, 1.0, 1.0, 1.0)
    label: Color = hex_to_color("#cccccc")
    tick_width: float = 2.0
    font_size: float = 11.0


@dataclass(frozen=True)
class MeterStyle:
    background: Color = (0.0, 0.0, 0.0, 0.9)
    trace: Color = hex_to_color("#fefffeff")
    marker: Color = hex_to_color("#fefffeff")
    line_width: float = 1.5
    marker_radius: float = 2.0


@dataclass(frozen=True)
class PanelStyle:
    background: Color = (0.12, 0.12, 0.12, 1.0)
    title: Color = (1.0, 1.0, 1.0, 1.0)
    title_size: float = 14.0
