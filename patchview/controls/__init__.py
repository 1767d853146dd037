"""
Control logic with no drawing:
- mapping: ValueAngleMapper (value <-> rotation)
- gesture: GestureController and ControlState
- telemetry: AmplitudeTelemetryBuffer
"""

from patchview.controls.mapping import ValueAngleMapper, clamp
from patchview.controls.gesture import GestureController, GestureState, ControlState, pointer_angle
from patchview.controls.telemetry import AmplitudeTelemetryBuffer, TelemetryStats

__all__ = [
    "ValueAngleMapper", "clamp",
    "GestureController", "GestureState", "ControlState", "pointer_angle",
    "AmplitudeTelemetryBuffer", "TelemetryStats",
]
