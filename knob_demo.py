"""
Knob Panel Demo

Runs the Karplus-Strong control panel against an in-memory patch
connection. Shows:
- Three knobs (drag vertically, shift for fine control, double-click reset)
- Amplitude meter fed with a plucked-string style envelope
- Status rebuild (press R to resend the patch status)
"""

from __future__ import annotations
import logging
import time

import numpy as np
import moderngl_window as mglw

from patchview import LoopbackPatchConnection, PanelConfig, PatchView
from patchview.ui import DrawContext, EventType, PanelRenderer, MOD_SHIFT

logger = logging.getLogger(__name__)

DEMO_STATUS = {
    "details": {
        "inputs": [
            {"endpointID": "impulseLength", "annotation": {"min": 1, "max": 500, "init": 100}},
            {"endpointID": "filter", "annotation": {"min": 0.0, "max": 1.0, "init": 0.5}},
            {"endpointID": "feedback", "annotation": {"min": 0.8, "max": 0.999, "init": 0.99}},
        ],
        "outputs": [
            {"endpointID": "amplitude"},
        ],
    }
}

DOUBLE_CLICK_SECONDS = 0.3
DOUBLE_CLICK_DISTANCE = 5


class KnobDemoApp(mglw.WindowConfig):
    """Demo window hosting one PatchView."""

    gl_version = (3, 3)
    title = "Karplus-Strong Controls"
    window_size = (280, 490)
    resource_dir = "."

    def __init__(self, **kwargs):
        super().__init__(**kwargs)

        self.ctx.enable(self.ctx.BLEND)
        self.ctx.blend_func = self.ctx.SRC_ALPHA, self.ctx.ONE_MINUS_SRC_ALPHA

        self.connection = LoopbackPatchConnection(DEMO_STATUS)
        self.view = PatchView(self.connection, PanelConfig(enable_real_time_control=True))
        self.view.open()

        self.renderer = PanelRenderer(self.ctx)
        self.rng = np.random.default_rng()

        self._envelope = 0.0
        self._next_pluck = 0.0
        self._last_click_time = 0.0
        self._last_click_pos = (0.0, 0.0)
        self._modifiers = 0

    # -------------------------------------------------------------------------
    # Simulated engine output
    # -------------------------------------------------------------------------

    def _pump_amplitude(self, now: float, frame_time: float):
        values = self.connection.values
        decay = float(values.get("feedback", 0.99))
        if now >= self._next_pluck:
            self._envelope = 0.6 + 0.4 * self.rng.random()
            self._next_pluck = now + 0.4 + float(values.get("impulseLength", 100)) / 250.0
        self._envelope *= decay ** (frame_time * 200)
        noise = 1.0 + 0.1 * self.rng.standard_normal()
        self.connection.emit_endpoint("amplitude", max(0.0, self._envelope * noise))

    # -------------------------------------------------------------------------
    # Render loop
    # -------------------------------------------------------------------------

    def on_render(self, time_s: float, frame_time: float):
        self._pump_amplitude(time_s, max(1e-6, frame_time))

        w, h = self.wnd.size
        self.ctx.screen.use()
        self.ctx.clear(0.08, 0.09, 0.11, 1.0)

        panel = self.view.panel
        if panel is None:
            return

        draw_ctx = DrawContext(w, h, device_pixel_ratio=self.wnd.pixel_ratio)
        panel.draw(draw_ctx)
        self.renderer.present(draw_ctx)

    # -------------------------------------------------------------------------
    # Input Handling
    # -------------------------------------------------------------------------

    def mouse_drag_event(self, x, y, dx, dy):
        if self.view.panel:
            self.view.panel.handle_pointer_event(
                EventType.POINTER_MOVE, x, y, delta_x=dx, delta_y=dy, modifiers=self._modifiers
            )

    def mouse_press_event(self, x, y, button):
        panel = self.view.panel
        if panel is None:
            return
        now = time.monotonic()
        is_double = (
            now - self._last_click_time < DOUBLE_CLICK_SECONDS and
            abs(x - self._last_click_pos[0]) < DOUBLE_CLICK_DISTANCE and
            abs(y - self._last_click_pos[1]) < DOUBLE_CLICK_DISTANCE
        )
        if is_double:
            panel.handle_double_click(x, y)
            self._last_click_time = 0.0
            return
        self._last_click_time = now
        self._last_click_pos = (x, y)
        panel.handle_pointer_event(EventType.POINTER_DOWN, x, y, button=button)

    def mouse_release_event(self, x, y, button):
        if self.view.panel:
            self.view.panel.handle_pointer_event(EventType.POINTER_UP, x, y, button=button)

    def key_event(self, key, action, modifiers):
        self._modifiers = MOD_SHIFT if modifiers.shift else 0
        keys = self.wnd.keys
        if action == keys.ACTION_PRESS and key == keys.R:
            self.connection.request_status_update()

    def on_iconify(self, iconified: bool):
        # Minimizing drops the pointer without a release
        if iconified and self.view.panel:
            self.view.panel.cancel_pointer()

    def on_close(self):
        self.view.close()
        self.renderer.release()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    mglw.run_window_config(KnobDemoApp)
