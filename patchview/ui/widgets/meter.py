"""
Amplitude Meter Widget

Scrolling amplitude trace fed by an AmplitudeBinding. Owns one
AmplitudeTelemetryBuffer, one TelemetryRenderer and the off-screen
DrawContext it renders into; the panel composites that layer.
"""

from __future__ import annotations
from dataclasses import replace
from typing import Callable, Optional, TYPE_CHECKING
import logging

from patchview.config import TelemetryConfig
from patchview.controls.telemetry import AmplitudeTelemetryBuffer, TelemetryStats
from patchview.registry import ParameterBindingRegistry
from patchview.ui.draw import DrawContext
from patchview.ui.layout import Rect
from patchview.ui.style import MeterStyle
from patchview.ui.telemetry_renderer import TelemetryRenderer
from patchview.ui.widget import Widget

if TYPE_CHECKING:
    from patchview.bindings import Subscription

logger = logging.getLogger(__name__)


class AmplitudeMeterWidget(Widget):
    """
    Amplitude display.

    connect()/disconnect() go through a registry slot, so connecting twice
    never leaks the first subscription and disconnecting twice never calls
    the host unsubscribe twice.
    """

    def __init__(
        self,
        name: str = "amplitude",
        config: TelemetryConfig = None,
        style: MeterStyle = None,
        registry: ParameterBindingRegistry = None,
        on_sample: Callable[[float, float], None] = None,
    ):
        self.config = config or TelemetryConfig()
        super().__init__(rect=Rect(0, 0, self.config.width, self.config.height))
        self.name = name
        self.style = style or MeterStyle()
        self.registry = registry or ParameterBindingRegistry()
        self._on_sample = on_sample
        self._destroyed = False

        self.buffer = AmplitudeTelemetryBuffer(self.config)
        self.surface = DrawContext(
            self.config.width,
            self.config.height,
            device_pixel_ratio=self.config.device_pixel_ratio,
            clear_color=self.style.background,
        )
        self.renderer = TelemetryRenderer(self.buffer, self.surface, self.style)
        self.renderer.render()

    @property
    def connected(self) -> bool:
        return self.name in self.registry

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    def connect(self, binding) -> Optional[Subscription]:
        if self._destroyed:
            return None
        subscription = self.registry.connect(self.name, binding, self.update_amplitude)
        if subscription is not None:
            logger.debug(f"AmplitudeMeter '{self.name}' connected to amplitude source")
        return subscription

    def disconnect(self) -> bool:
        return self.registry.disconnect(self.name)

    def update_amplitude(self, value: float):
        """Binding listener: one raw amplitude sample."""
        if self._destroyed:
            return
        processed = self.buffer.push(value)
        self.renderer.render()
        if self._on_sample:
            self._on_sample(processed, self.buffer.max_scale)

    def reset(self):
        self.buffer.reset()
        self.renderer.render()

    def resize(self, width: int, height: int = None):
        """Change the surface size; the history restarts empty."""
        height = height or self.config.height
        if width <= 0 or height <= 0:
            raise ValueError(f"meter size must be positive, got {width}x{height}")
        # config may belong to a PanelConfig shared across panels
        self.config = replace(self.config, width=width, height=height)
        self.buffer.config = self.config
        self.buffer.resize(width)
        self.surface.width, self.surface.height = width, height
        self._rect = self._rect.resized(width, height)
        self.renderer.render()

    def stats(self) -> TelemetryStats:
        return self.buffer.stats()

    def draw(self, ctx: DrawContext):
        if not self._visible or self._rect is None or self._destroyed:
            return
        ctx.draw_layer(self.surface, self._rect.x, self._rect.y)

    def destroy(self):
        if self._destroyed:
            return
        self.disconnect()
        self._destroyed = True
        self.surface.clear()
        super().destroy()
