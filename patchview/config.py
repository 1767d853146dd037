"""Configuration dataclasses for knobs, the amplitude meter and the panel."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Mapping


class DragMode(Enum):
    RELATIVE = "relative"   # vertical movement, scaled by sensitivity
    ABSOLUTE = "absolute"   # pointer angle around the knob centre


@dataclass
class KnobConfig:
    max_rotation: float = 135.0
    throttle_ms: float = 8.0
    sensitivity: float = 1.8
    fine_sensitivity: float = 0.3
    drag_mode: DragMode = DragMode.RELATIVE
    tick_steps: int = 24

    def __post_init__(self):
        if isinstance(self.drag_mode, str):
            self.drag_mode = DragMode(self.drag_mode)
        if self.max_rotation <= 0:
            raise ValueError(f"max_rotation must be positive, got {self.max_rotation}")
        if self.throttle_ms < 0:
            raise ValueError(f"throttle_ms must be >= 0, got {self.throttle_ms}")
        if self.tick_steps <= 0:
            raise ValueError(f"tick_steps must be positive, got {self.tick_steps}")


@dataclass
class TelemetryConfig:
    width: int = 280
    height: int = 140
    gain_boost: float = 1.2
    scale_update_interval: int = 30
    min_scale: float = 0.1
    device_pixel_ratio: float = 1.0

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"telemetry surface must be non-empty, got {self.width}x{self.height}")
        if self.scale_update_interval <= 0:
            raise ValueError("scale_update_interval must be positive")
        if self.device_pixel_ratio <= 0:
            raise ValueError("device_pixel_ratio must be positive")


@dataclass
class PanelConfig:
    """
    Panel-wide settings.

    enable_real_time_control=True trusts the host to echo every change back
    through attach_listener; False makes knobs repaint themselves locally.
    """
    enable_real_time_control: bool = True
    knob: KnobConfig = field(default_factory=KnobConfig)
    telemetry: TelemetryConfig = field(default_factory=TelemetryConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> PanelConfig:
        data = dict(data or {})
        if "enableRealTimeControl" in data:
            data.setdefault("enable_real_time_control", data.pop("enableRealTimeControl"))
        knob = _build(KnobConfig, data.get("knob"))
        telemetry = _build(TelemetryConfig, data.get("telemetry"))
        return cls(
            enable_real_time_control=bool(data.get("enable_real_time_control", True)),
            knob=knob,
            telemetry=telemetry,
        )


def _build(kind, raw):
    if raw is None:
        return kind()
    if isinstance(raw, kind):
        return raw
    known = {f.name for f in fields(kind)}
    unknown = set(raw) - known
    if unknown:
        raise ValueError(f"Unknown {kind.__name__} keys: {sorted(unknown)}")
    return kind(**dict(raw))
