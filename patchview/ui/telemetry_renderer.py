"""
TelemetryRenderer - Draws an AmplitudeTelemetryBuffer onto a Surface.

Every render is a full redraw: clear, stroke the trace, draw the live marker.
"""

from __future__ import annotations
from typing import List, Tuple
import math

import numpy as np

from patchview.controls.telemetry import AmplitudeTelemetryBuffer
from patchview.ui.draw import Surface
from patchview.ui.style import MeterStyle

BOTTOM_MARGIN = 10
RESERVED_MARGIN = 30  # bottom margin plus 20 px total headroom


def sample_y(normalized, height: float):
    """Pixel row for a normalized sample (0 at the bottom margin)."""
    return height - BOTTOM_MARGIN - normalized * (height - RESERVED_MARGIN)


def trace_points(buffer: AmplitudeTelemetryBuffer, height: float) -> List[Tuple[float, float]]:
    """Polyline vertices for the buffer, left to right, pixel-centred."""
    ys = np.floor(sample_y(buffer.normalized(), height)) + 0.5
    xs = np.arange(ys.shape[0], dtype=np.float64) + 0.5
    return list(zip(xs.tolist(), ys.tolist()))


def marker_position(buffer: AmplitudeTelemetryBuffer, width: float, height: float) -> Tuple[float, float]:
    normalized = min(1.0, buffer.latest() / buffer.max_scale)
    return (float(math.floor(width - 2)), float(math.floor(sample_y(normalized, height))))


class TelemetryRenderer:
    """Renders one buffer onto one fixed-size surface."""

    def __init__(self, buffer: AmplitudeTelemetryBuffer, surface: Surface, style: MeterStyle = None):
        self.buffer = buffer
        self.surface = surface
        self.style = style or MeterStyle()
        self.frame_count = 0

    def render(self):
        surface = self.surface
        style = self.style
        width, height = surface.width, surface.height

        surface.clear_rect(0, 0, width, height)

        points = trace_points(self.buffer, height)
        surface.set_stroke_style(style.trace, style.line_width)
        surface.begin_path()
        if points:
            surface.move_to(*points[0])
            for x, y in points[1:]:
                surface.line_to(x, y)
        surface.stroke()

        mx, my = marker_position(self.buffer, width, height)
        surface.set_fill_style(style.marker)
        surface.fill_circle(mx, my, style.marker_radius)

        self.frame_count += 1
