"""Rectangles for the panel's fixed control positions."""

from __future__ import annotations
from dataclasses import dataclass


@dataclass
class Rect:
    """Axis-aligned box; x/y is the top-left corner in parent coordinates."""
    x: float = 0.0
    y: float = 0.0
    w: float = 0.0
    h: float = 0.0

    def contains(self, px: float, py: float) -> bool:
        # Half-open so adjacent controls never both claim a pixel
        return self.x <= px < self.x + self.w and self.y <= py < self.y + self.h

    @property
    def center_x(self) -> float:
        return self.x + self.w / 2

    @property
    def center_y(self) -> float:
        return self.y + self.h / 2

    def resized(self, w: float, h: float) -> Rect:
        return Rect(self.x, self.y, w, h)
