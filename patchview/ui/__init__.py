"""
UI System

Components:
- layout: Rect
- style: Colors and flat widget styles
- widget: Widget tree, events, pointer capture
- draw: Surface protocol and recording DrawContext
- telemetry_renderer: Amplitude trace drawing
- renderer: moderngl presentation of a DrawBatch
- widgets/: KnobWidget, AmplitudeMeterWidget
"""

from patchview.ui.layout import Rect
from patchview.ui.style import Color, KnobStyle, MeterStyle, PanelStyle, hex_to_color
from patchview.ui.widget import (
    Widget, RootWidget, Event, EventType, EventHandler,
    MOD_SHIFT,
)
from patchview.ui.draw import Surface, DrawContext, DrawBatch
from patchview.ui.telemetry_renderer import TelemetryRenderer
from patchview.ui.renderer import PanelRenderer
from patchview.ui.widgets import KnobWidget, AmplitudeMeterWidget

__all__ = [
    "Rect",
    "Color", "KnobStyle", "MeterStyle", "PanelStyle", "hex_to_color",
    "Widget", "RootWidget", "Event", "EventType", "EventHandler",
    "MOD_SHIFT",
    "Surface", "DrawContext", "DrawBatch",
    "TelemetryRenderer",
    "PanelRenderer",
    "KnobWidget", "AmplitudeMeterWidget",
]
