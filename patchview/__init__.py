# patchview/__init__.py
"""
patchview - Knobs and an amplitude meter bound to a remote audio engine.

Core components:
- ValueAngleMapper: parameter range <-> knob rotation
- GestureController: pointer/touch state machine per knob
- AmplitudeTelemetryBuffer / TelemetryRenderer: auto-scaled amplitude trace
- ParameterBindingRegistry: subscription lifecycle, at-most-once release
- ControlPanel: composes the controls against a map of bindings
- PatchView: rebuilds the panel from a patch connection's status
"""

from patchview.bindings import AmplitudeBinding, ParameterBinding, Subscription
from patchview.config import DragMode, KnobConfig, PanelConfig, TelemetryConfig
from patchview.controls import (
    AmplitudeTelemetryBuffer, ControlState, GestureController, GestureState, ValueAngleMapper,
)
from patchview.registry import ParameterBindingRegistry
from patchview.ui.telemetry_renderer import TelemetryRenderer
from patchview.panel import ControlPanel, KnobSpec, PanelLayout, KARPLUS_LAYOUT
from patchview.host import (
    LoopbackPatchConnection, PatchView, create_amplitude_binding, create_parameter_binding,
)

__version__ = "0.1.0"

__all__ = [
    "AmplitudeBinding", "ParameterBinding", "Subscription",
    "DragMode", "KnobConfig", "PanelConfig", "TelemetryConfig",
    "AmplitudeTelemetryBuffer", "ControlState", "GestureController", "GestureState",
    "ValueAngleMapper",
    "ParameterBindingRegistry",
    "TelemetryRenderer",
    "ControlPanel", "KnobSpec", "PanelLayout", "KARPLUS_LAYOUT",
    "LoopbackPatchConnection", "PatchView", "create_amplitude_binding", "create_parameter_binding",
]
