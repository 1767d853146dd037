"""
GestureController - Pointer/touch state machine for one knob.

States:
    IDLE --press--> DRAGGING --release/cancel--> IDLE
    any  --double activation--> (start, update(default), end) --> IDLE

The controller owns the knob's ControlState and talks to the host only
through the binding's start_gesture / update_value / end_gesture. Repainting
is delegated to an on_display callback receiving the new angle.

Capture loss (focus change, pointer leaving the window, destroy mid-drag)
auto-cancels: end_gesture() is sent and the controller returns to IDLE.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, Optional
import math
import time
import logging

from patchview.config import DragMode, KnobConfig
from patchview.controls.mapping import ValueAngleMapper

logger = logging.getLogger(__name__)


def _now_ms() -> float:
    return time.perf_counter() * 1000.0


class GestureState(Enum):
    IDLE = auto()
    DRAGGING = auto()


@dataclass
class ControlState:
    current_angle: Optional[float] = None
    dragging: bool = False
    last_update_timestamp: float = float("-inf")
    drag_angle: Optional[float] = None  # accumulated angle while dragging
    drag_offset: float = 0.0            # raw sum of dy * sensitivity, unclamped


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves towards +infinity (2.5 -> 3, -2.5 -> -2)."""
    return math.floor(value + 0.5)


def pointer_angle(x: float, y: float, cx: float, cy: float) -> float:
    """
    Angle of (x, y) around (cx, cy) in whole degrees, screen coordinates.

    Straight up is 0, right is 90, left is -90, straight down is 180.
    """
    r = math.atan2(y - cy, x - cx)
    res = round_half_up(r / math.pi * 180) + 90
    return res if res <= 180 else res - 360


class GestureController:
    """
    Turns input into value updates for one ParameterBinding.

    When enable_real_time_control is False the host's update_value is wrapped
    so every local change also repaints immediately; otherwise the knob waits
    for the host echo through the binding listener.
    """

    def __init__(
        self,
        binding,
        config: KnobConfig = None,
        enable_real_time_control: bool = True,
        on_display: Callable[[float], None] = None,
        on_gesture: Callable[[str], None] = None,
        clock: Callable[[], float] = None,
        name: str = "",
    ):
        self.name = name
        self.config = config or KnobConfig()
        self.binding = binding
        self.mapper = ValueAngleMapper(
            binding.min_value, binding.max_value, self.config.max_rotation
        )
        self.default_value = binding.default_value
        self.enable_real_time_control = enable_real_time_control
        self.state = ControlState()

        self._on_display = on_display
        self._on_gesture = on_gesture
        self._clock = clock or _now_ms
        self._destroyed = False

        if enable_real_time_control:
            self._update_value = binding.update_value
        else:
            def update_and_display(value: float):
                binding.update_value(value)
                self.update_display(value)
            self._update_value = update_and_display

        self.update_display(self.default_value, force=True)

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def gesture_state(self) -> GestureState:
        return GestureState.DRAGGING if self.state.dragging else GestureState.IDLE

    @property
    def dragging(self) -> bool:
        return self.state.dragging

    @property
    def angle(self) -> Optional[float]:
        return self.state.current_angle

    @property
    def value(self) -> float:
        """Parameter value at the displayed angle."""
        angle = self.state.current_angle or 0.0
        return self.mapper.to_value(angle)

    # -------------------------------------------------------------------------
    # Display
    # -------------------------------------------------------------------------

    def update_display(self, value: float, force: bool = False) -> bool:
        """
        Move the knob to value. Used as the binding listener.

        Returns False when nothing changed (and force is not set).
        """
        target = self.mapper.clamp_angle(self.mapper.to_angle(value))
        if not force and self.state.current_angle == target:
            return False
        self.state.current_angle = target
        if self._on_display:
            self._on_display(target)
        return True

    # -------------------------------------------------------------------------
    # Gesture lifecycle
    # -------------------------------------------------------------------------

    def press(self, x: float = 0.0, y: float = 0.0, cx: float = 0.0, cy: float = 0.0,
              absolute: bool = None):
        """Pointer-down. In absolute mode the press position is applied at once."""
        if self._destroyed or self.state.dragging:
            return
        self.state.dragging = True
        self.state.drag_angle = self.state.current_angle
        self.state.drag_offset = 0.0
        self._start_gesture()

        if absolute is None:
            absolute = self.config.drag_mode is DragMode.ABSOLUTE
        if absolute:
            self.move_to(x, y, cx, cy)

    def move_by(self, dy: float, fine: bool = False) -> bool:
        """
        Relative drag by vertical movement dy (screen pixels, down positive).

        Returns True when the move was processed, False when ignored
        (not dragging, or throttled).
        """
        if not self.state.dragging or not self._accept_move():
            return False

        sensitivity = self.config.fine_sensitivity if fine else self.config.sensitivity
        delta = dy * sensitivity
        self.state.drag_offset += delta
        origin = self.state.drag_angle if self.state.drag_angle is not None else 0.0
        self.state.drag_angle = self.mapper.clamp_angle(origin - delta)
        self._update_value(self.mapper.to_value(self.state.drag_angle))
        return True

    def move_to(self, x: float, y: float, cx: float, cy: float) -> bool:
        """Absolute drag: point the knob at (x, y) around centre (cx, cy)."""
        if not self.state.dragging or not self._accept_move():
            return False

        angle = self.mapper.clamp_angle(pointer_angle(x, y, cx, cy))
        self.state.drag_angle = angle
        self._update_value(self.mapper.to_value(angle))
        return True

    def release(self) -> bool:
        if not self.state.dragging:
            return False
        self._finish_drag()
        return True

    def cancel(self) -> bool:
        """Input capture lost mid-drag: end the gesture, back to IDLE."""
        if not self.state.dragging:
            return False
        logger.debug(f"Gesture on '{self.name}' cancelled by capture loss")
        self._finish_drag()
        return True

    def reset(self):
        """Double activation: restore the default value as one gesture."""
        if self._destroyed:
            return
        if self.state.dragging:
            self._finish_drag()
        self._start_gesture()
        self._update_value(self.default_value)
        self._end_gesture()
        logger.debug(f"Reset '{self.name}' to default value: {self.default_value}")

    def destroy(self):
        if self._destroyed:
            return
        self.cancel()
        self._destroyed = True

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _accept_move(self) -> bool:
        now = self._clock()
        if now - self.state.last_update_timestamp < self.config.throttle_ms:
            return False
        self.state.last_update_timestamp = now
        return True

    def _finish_drag(self):
        self.state.dragging = False
        self.state.drag_angle = None
        self._end_gesture()

    def _start_gesture(self):
        self.binding.start_gesture()
        if self._on_gesture:
            self._on_gesture("start")

    def _end_gesture(self):
        self.binding.end_gesture()
        if self._on_gesture:
            self._on_gesture("end")
