"""
Knob Widget

Rotary knob bound to one ParameterBinding.

The widget is only the view and the event wiring; all state and value logic
lives in its GestureController:
- POINTER_DOWN  -> press (absolute drag for touch or DragMode.ABSOLUTE)
- POINTER_MOVE  -> move_by(delta_y, fine=shift) or move_to(x, y, centre)
- POINTER_UP    -> release
- POINTER_CANCEL / BLUR -> cancel (end gesture, back to idle)
- DOUBLE_CLICK  -> reset to default
"""

from __future__ import annotations
from typing import Callable, List, Optional, TYPE_CHECKING
import math

from patchview.config import DragMode, KnobConfig
from patchview.controls.gesture import GestureController
from patchview.ui.layout import Rect
from patchview.ui.style import KnobStyle
from patchview.ui.widget import Widget, Event, EventType

if TYPE_CHECKING:
    from patchview.ui.draw import DrawContext


def tick_angles(max_rotation: float, steps: int) -> List[float]:
    """Gradation tick angles from -max_rotation to +max_rotation inclusive."""
    q = max_rotation / steps
    return [-max_rotation + i * q for i in range(2 * steps + 1)]


def point_on_dial(cx: float, cy: float, radius: float, angle: float):
    """Screen point at angle (0 = up, clockwise) on a circle."""
    rad = math.radians(angle)
    return (cx + radius * math.sin(rad), cy - radius * math.cos(rad))


class KnobWidget(Widget):
    """
    Rotary control.

    Use update_display (or controller.update_display) as the binding
    listener; the panel wires it through the registry.
    """

    def __init__(
        self,
        name: str,
        binding,
        label: str = "",
        config: KnobConfig = None,
        enable_real_time_control: bool = True,
        size: float = 70.0,
        style: KnobStyle = None,
        on_gesture: Callable[[str, str], None] = None,
        on_value: Callable[[str, float], None] = None,
        clock: Callable[[], float] = None,
    ):
        super().__init__(rect=Rect(0, 0, size, size))
        self.name = name
        self.label = label or name
        self.size = size
        self.style = style or KnobStyle()
        self.config = config or KnobConfig()
        self._on_gesture = on_gesture
        self._on_value = on_value
        self._destroyed = False
        self.repaint_count = 0

        self._ticks = tick_angles(self.config.max_rotation, self.config.tick_steps)

        self.controller = GestureController(
            binding,
            config=self.config,
            enable_real_time_control=enable_real_time_control,
            on_display=self._on_display,
            on_gesture=self._forward_gesture,
            clock=clock,
            name=name,
        )

        self.on(EventType.POINTER_DOWN, self._on_pointer_down)
        self.on(EventType.POINTER_MOVE, self._on_pointer_move)
        self.on(EventType.POINTER_UP, self._on_pointer_up)
        self.on(EventType.POINTER_CANCEL, self._on_pointer_cancel)
        self.on(EventType.BLUR, self._on_pointer_cancel)
        self.on(EventType.DOUBLE_CLICK, self._on_double_click)

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def angle(self) -> Optional[float]:
        return self.controller.angle

    @property
    def value(self) -> float:
        return self.controller.value

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    def update_display(self, value: float, force: bool = False) -> bool:
        """Binding listener: repaint from a host-pushed value."""
        if self._destroyed:
            return False
        return self.controller.update_display(value, force=force)

    def active_ticks(self) -> List[float]:
        """Ticks lit at the current angle."""
        angle = self.angle if self.angle is not None else -self.config.max_rotation
        return [deg for deg in self._ticks if deg <= angle]

    # -------------------------------------------------------------------------
    # Event wiring
    # -------------------------------------------------------------------------

    def _centre(self):
        return (self._rect.w / 2, self._rect.h / 2)

    def _on_pointer_down(self, event: Event):
        cx, cy = self._centre()
        absolute = event.pointer_type == "touch" or self.config.drag_mode is DragMode.ABSOLUTE
        self.controller.press(event.x, event.y, cx, cy, absolute=absolute)
        event.stop_propagation()

    def _on_pointer_move(self, event: Event):
        if not self.controller.dragging:
            return
        if event.pointer_type == "touch" or self.config.drag_mode is DragMode.ABSOLUTE:
            cx, cy = self._centre()
            self.controller.move_to(event.x, event.y, cx, cy)
        else:
            self.controller.move_by(event.delta_y, fine=event.shift)
        event.stop_propagation()

    def _on_pointer_up(self, event: Event):
        self.controller.release()
        event.stop_propagation()

    def _on_pointer_cancel(self, event: Event):
        self.controller.cancel()

    def _on_double_click(self, event: Event):
        self.controller.reset()
        event.stop_propagation()

    def _on_display(self, angle: float):
        self.repaint_count += 1
        if self._on_value:
            self._on_value(self.name, self.controller.mapper.to_value(angle))

    def _forward_gesture(self, phase: str):
        if self._on_gesture:
            self._on_gesture(self.name, phase)

    # -------------------------------------------------------------------------
    # Drawing
    # -------------------------------------------------------------------------

    def draw(self, ctx: DrawContext):
        if not self._visible or self._rect is None or self._destroyed:
            return

        rect = self._rect
        style = self.style
        ctx.push_offset(rect.x, rect.y)
        try:
            cx, cy = rect.w / 2, rect.h / 2
            radius = min(rect.w, rect.h) / 2 - 2

            ctx.draw_circle(cx, cy, radius, style.rim)
            ctx.draw_circle(cx, cy, radius * 0.72, style.body)

            angle = self.angle if self.angle is not None else 0.0
            for deg in self._ticks:
                color = style.tick_active if deg <= angle else style.tick_inactive
                x0, y0 = point_on_dial(cx, cy, radius * 0.80, deg)
                x1, y1 = point_on_dial(cx, cy, radius, deg)
                ctx.draw_line(x0, y0, x1, y1, color, style.tick_width)

            ix, iy = point_on_dial(cx, cy, radius * 0.55, angle)
            ctx.draw_circle(ix, iy, max(2.0, radius * 0.08), style.indicator)

            ctx.draw_text(self.label.upper(), cx, rect.h + 4, style.label,
                          font_size=style.font_size, align="center")
        finally:
            ctx.pop_offset()

    # -------------------------------------------------------------------------
    # Teardown
    # -------------------------------------------------------------------------

    def destroy(self):
        if self._destroyed:
            return
        self.controller.destroy()
        self._destroyed = True
        super().destroy()
