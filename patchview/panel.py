"""
ControlPanel - Knobs plus one amplitude meter against a map of bindings.

    bindings = {
        "filterFreq": ParameterBinding(...),
        "amplitude": AmplitudeBinding(...),
    }
    panel = ControlPanel(bindings, PanelConfig(enable_real_time_control=False))
    panel.attach()       # build controls, open subscriptions
    ...
    panel.detach()       # destroy controls, then release subscriptions

Bindings are optional capabilities: a name with no binding simply gets no
control.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Dict, List, Mapping, Optional, Tuple
import logging

from patchview.config import PanelConfig
from patchview.core.signal import (
    SignalBridge,
    SIGNAL_GESTURE_START, SIGNAL_GESTURE_END, SIGNAL_VALUE_CHANGED,
    SIGNAL_KNOB_RESET, SIGNAL_AMPLITUDE, SIGNAL_ATTACHED, SIGNAL_DETACHED,
)
from patchview.registry import ParameterBindingRegistry
from patchview.ui.draw import DrawContext
from patchview.ui.layout import Rect
from patchview.ui.style import PanelStyle
from patchview.ui.widget import EventType, RootWidget, Widget
from patchview.ui.widgets.knob import KnobWidget
from patchview.ui.widgets.meter import AmplitudeMeterWidget

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KnobSpec:
    """Where a named parameter's knob goes."""
    name: str
    label: str
    x: float
    y: float
    size: float = 70.0


@dataclass(frozen=True)
class PanelLayout:
    width: int
    height: int
    title: str
    knobs: Tuple[KnobSpec, ...]
    amplitude: Optional[str] = "amplitude"
    meter_origin: Tuple[float, float] = (0.0, 0.0)


KARPLUS_LAYOUT = PanelLayout(
    width=280,
    height=490,
    title="KARPLUS-STRONG",
    knobs=(
        KnobSpec("impulseLength", "Impulse", x=50, y=70),
        KnobSpec("filterFreq", "Filter", x=160, y=70),
        KnobSpec("feedbackAmount", "Feedback", x=112, y=170, size=55),
    ),
    amplitude="amplitude",
    meter_origin=(0.0, 320.0),
)


class ControlPanel:
    """
    Composes controls against bindings and owns their subscriptions.

    All listener lists (registry, signal bridge) belong to this instance.
    """

    def __init__(
        self,
        bindings: Mapping[str, object] = None,
        config: PanelConfig = None,
        layout: PanelLayout = KARPLUS_LAYOUT,
        style: PanelStyle = None,
        clock: Callable[[], float] = None,
    ):
        self.bindings: Dict[str, object] = dict(bindings or {})
        self.config = config or PanelConfig()
        self.layout = layout
        self.style = style or PanelStyle()
        self._clock = clock

        self.bridge = SignalBridge()
        self.registry = ParameterBindingRegistry()
        self.root = RootWidget(layout.width, layout.height)

        self.knobs: Dict[str, KnobWidget] = {}
        self.meter: Optional[AmplitudeMeterWidget] = None
        self._attached = False

        known = {spec.name for spec in layout.knobs} | {layout.amplitude}
        for name in self.bindings:
            if name not in known:
                logger.warning(f"Binding '{name}' has no control in layout '{layout.title}'")

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    @property
    def attached(self) -> bool:
        return self._attached

    @property
    def controls(self) -> List[Widget]:
        controls: List[Widget] = list(self.knobs.values())
        if self.meter is not None:
            controls.append(self.meter)
        return controls

    def attach(self):
        """Build the controls and open every subscription."""
        if self._attached:
            return
        self._attached = True

        for spec in self.layout.knobs:
            binding = self.bindings.get(spec.name)
            if binding is None:
                continue
            knob = self._build_knob(spec, binding)
            self.knobs[spec.name] = knob
            self.registry.connect(spec.name, binding, knob.update_display)

        amplitude = self.bindings.get(self.layout.amplitude) if self.layout.amplitude else None
        if amplitude is not None:
            self.meter = self._build_meter()
            self.meter.connect(amplitude)

        logger.debug(f"Panel attached: {sorted(self.knobs)} meter={self.meter is not None}")
        self.bridge.emit(SIGNAL_ATTACHED, tuple(self.knobs))

    def detach(self):
        """Destroy every control, then release every subscription. Once per attach."""
        if not self._attached:
            return
        self._attached = False

        self.root.cancel_capture()
        for control in self.controls:
            self.root.release_widget(control)
            control.destroy()
        failures = self.registry.teardown()
        if failures:
            logger.error(f"Panel detached with {len(failures)} failed unsubscribe(s)")

        self.root.clear_children()
        self.knobs = {}
        self.meter = None
        self.bridge.emit(SIGNAL_DETACHED)

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    def _build_knob(self, spec: KnobSpec, binding) -> KnobWidget:
        knob = KnobWidget(
            spec.name,
            binding,
            label=spec.label,
            config=self.config.knob,
            enable_real_time_control=self.config.enable_real_time_control,
            size=spec.size,
            on_gesture=self._on_gesture,
            on_value=self._on_value,
            clock=self._clock,
        )
        knob.layout(Rect(spec.x, spec.y, spec.size, spec.size))
        self.root.add_child(knob)
        return knob

    def _build_meter(self) -> AmplitudeMeterWidget:
        meter = AmplitudeMeterWidget(
            name=self.layout.amplitude,
            config=self.config.telemetry,
            registry=self.registry,
            on_sample=self._on_sample,
        )
        x, y = self.layout.meter_origin
        meter.layout(Rect(x, y, meter.config.width, meter.config.height))
        self.root.add_child(meter)
        return meter

    def _on_gesture(self, name: str, phase: str):
        signal = SIGNAL_GESTURE_START if phase == "start" else SIGNAL_GESTURE_END
        self.bridge.emit(signal, name)

    def _on_value(self, name: str, value: float):
        self.bridge.emit(SIGNAL_VALUE_CHANGED, name, value)

    def _on_sample(self, processed: float, max_scale: float):
        self.bridge.emit(SIGNAL_AMPLITUDE, processed, max_scale)

    # -------------------------------------------------------------------------
    # Input
    # -------------------------------------------------------------------------

    def handle_pointer_event(self, event_type: EventType, x: float, y: float, **kwargs) -> Optional[Widget]:
        return self.root.dispatch_pointer_event(event_type, x, y, **kwargs)

    def handle_double_click(self, x: float, y: float, pointer_type: str = "mouse") -> Optional[Widget]:
        target = self.root.dispatch_double_click(x, y, pointer_type=pointer_type)
        if isinstance(target, KnobWidget):
            self.bridge.emit(SIGNAL_KNOB_RESET, target.name, target.controller.default_value)
        return target

    def cancel_pointer(self) -> bool:
        """Focus or capture lost: end any drag in progress."""
        return self.root.cancel_capture()

    # -------------------------------------------------------------------------
    # Drawing
    # -------------------------------------------------------------------------

    def draw(self, ctx: DrawContext):
        ctx.draw_rect(Rect(0, 0, self.layout.width, self.layout.height), self.style.background)
        ctx.draw_text(self.layout.title, self.layout.width / 2, 15, self.style.title,
                      font_size=self.style.title_size, align="center")
        self.root.draw(ctx)
