"""
ValueAngleMapper - Parameter range ↔ knob rotation.

Angles are in degrees, 0 at twelve o'clock, clockwise positive, spanning
[-max_rotation, +max_rotation] for [min_value, max_value].
"""

from __future__ import annotations
from dataclasses import dataclass


def clamp(value: float, min_val: float, max_val: float) -> float:
    return max(min_val, min(value, max_val))


@dataclass(frozen=True)
class ValueAngleMapper:
    min_value: float = 0.0
    max_value: float = 1.0
    max_rotation: float = 135.0

    @property
    def degenerate(self) -> bool:
        return self.max_value == self.min_value

    def normalize(self, value: float) -> float:
        """Value to [-1, 1] (0 for a degenerate range)."""
        if self.degenerate:
            return 0.0
        return (value - self.min_value) / (self.max_value - self.min_value) * 2 - 1

    def to_angle(self, value: float) -> float:
        return self.normalize(value) * self.max_rotation

    def to_value(self, angle: float) -> float:
        normalized = angle / self.max_rotation
        return self.min_value + (normalized + 1) * 0.5 * (self.max_value - self.min_value)

    def clamp_angle(self, angle: float) -> float:
        return clamp(angle, -self.max_rotation, self.max_rotation)
