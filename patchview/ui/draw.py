"""
Recording draw surface.

DrawContext writes every primitive into a DrawBatch; PanelRenderer (or a
test) consumes the batch afterwards. Two front ends share one batch:

- widget calls: draw_rect, draw_line, draw_circle, draw_text, draw_layer
- the canvas-like Surface calls the telemetry renderer uses: clear_rect,
  set_stroke_style, set_fill_style, begin_path/move_to/line_to/stroke,
  fill_circle

Coordinates are logical pixels; device_pixel_ratio only sizes the backing
store.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Protocol, Tuple, runtime_checkable

from patchview.ui.layout import Rect
from patchview.ui.style import Color, RGBA, color_rgba

Point = Tuple[float, float]


@runtime_checkable
class Surface(Protocol):
    """Fixed-size drawable the telemetry renderer paints on."""
    width: int
    height: int
    device_pixel_ratio: float

    def clear_rect(self, x: float, y: float, w: float, h: float) -> None: ...
    def set_stroke_style(self, color: Color, line_width: float = 1.0) -> None: ...
    def set_fill_style(self, color: Color) -> None: ...
    def begin_path(self) -> None: ...
    def move_to(self, x: float, y: float) -> None: ...
    def line_to(self, x: float, y: float) -> None: ...
    def stroke(self) -> None: ...
    def fill_circle(self, x: float, y: float, radius: float) -> None: ...


# Commands. z_index is the recording order within one batch.

@dataclass
class DrawQuad:
    x: float
    y: float
    w: float
    h: float
    color: RGBA
    z_index: int = 0

    def moved(self, dx: float, dy: float, z: int) -> DrawQuad:
        return DrawQuad(self.x + dx, self.y + dy, self.w, self.h, self.color, z)


@dataclass
class DrawLine:
    x0: float
    y0: float
    x1: float
    y1: float
    color: RGBA
    width: float = 1.0
    z_index: int = 0

    def moved(self, dx: float, dy: float, z: int) -> DrawLine:
        return DrawLine(self.x0 + dx, self.y0 + dy, self.x1 + dx, self.y1 + dy, self.color, self.width, z)


@dataclass
class DrawCircle:
    x: float
    y: float
    radius: float
    color: RGBA
    z_index: int = 0

    def moved(self, dx: float, dy: float, z: int) -> DrawCircle:
        return DrawCircle(self.x + dx, self.y + dy, self.radius, self.color, z)


@dataclass
class DrawText:
    text: str
    x: float
    y: float
    color: RGBA
    font_size: float = 14.0
    align: str = "left"
    z_index: int = 0

    def moved(self, dx: float, dy: float, z: int) -> DrawText:
        return DrawText(self.text, self.x + dx, self.y + dy, self.color, self.font_size, self.align, z)


@dataclass
class DrawBatch:
    quads: List[DrawQuad] = field(default_factory=list)
    lines: List[DrawLine] = field(default_factory=list)
    circles: List[DrawCircle] = field(default_factory=list)
    texts: List[DrawText] = field(default_factory=list)

    def _lists(self):
        return (self.quads, self.lines, self.circles, self.texts)

    def finalize(self):
        for commands in self._lists():
            commands.sort(key=lambda cmd: cmd.z_index)

    def clear(self):
        for commands in self._lists():
            commands.clear()

    @property
    def command_count(self) -> int:
        return sum(len(commands) for commands in self._lists())

    @property
    def empty(self) -> bool:
        return self.command_count == 0


class DrawContext:
    """
    Surface that records into self.batch.

    Offsets nest via push_offset/pop_offset. clear_rect over the whole
    surface with no offset pushed starts the batch over, so repeated full
    redraws keep the batch size constant.
    """

    def __init__(
        self,
        width: int,
        height: int,
        device_pixel_ratio: float = 1.0,
        clear_color: Color = (0.0, 0.0, 0.0, 0.0),
    ):
        self.width = width
        self.height = height
        self.device_pixel_ratio = device_pixel_ratio
        self.clear_color = clear_color
        self.batch = DrawBatch()

        self._origins: List[Point] = [(0.0, 0.0)]
        self._z = 0

        self._stroke: RGBA = (0.0, 0.0, 0.0, 1.0)
        self._line_width = 1.0
        self._fill: RGBA = (0.0, 0.0, 0.0, 1.0)
        self._subpaths: List[List[Point]] = []

    @property
    def pixel_width(self) -> int:
        return int(round(self.width * self.device_pixel_ratio))

    @property
    def pixel_height(self) -> int:
        return int(round(self.height * self.device_pixel_ratio))

    # offsets

    def push_offset(self, x: float, y: float):
        ox, oy = self._origins[-1]
        self._origins.append((ox + x, oy + y))

    def pop_offset(self):
        if len(self._origins) > 1:
            self._origins.pop()

    def _at(self, x: float, y: float) -> Point:
        ox, oy = self._origins[-1]
        return (x + ox, y + oy)

    def _next_z(self) -> int:
        self._z += 1
        return self._z - 1

    # widget calls

    def draw_rect(self, rect: Rect, color: Color):
        x, y = self._at(rect.x, rect.y)
        self.batch.quads.append(DrawQuad(x, y, rect.w, rect.h, color_rgba(color), self._next_z()))

    def draw_line(self, x0: float, y0: float, x1: float, y1: float, color: Color, width: float = 1.0):
        ax, ay = self._at(x0, y0)
        bx, by = self._at(x1, y1)
        self.batch.lines.append(DrawLine(ax, ay, bx, by, color_rgba(color), width, self._next_z()))

    def draw_circle(self, x: float, y: float, radius: float, color: Color):
        cx, cy = self._at(x, y)
        self.batch.circles.append(DrawCircle(cx, cy, radius, color_rgba(color), self._next_z()))

    def draw_text(self, text: str, x: float, y: float, color: Color,
                  font_size: float = 14.0, align: str = "left"):
        tx, ty = self._at(x, y)
        self.batch.texts.append(DrawText(text, tx, ty, color_rgba(color), font_size, align, self._next_z()))

    def draw_layer(self, layer: DrawContext, x: float = 0.0, y: float = 0.0):
        """Copy another context's recorded commands in, placed at (x, y)."""
        dx, dy = self._at(x, y)
        for source, target in zip(layer.batch._lists(), self.batch._lists()):
            target.extend(cmd.moved(dx, dy, self._next_z()) for cmd in source)

    # Surface calls

    def clear_rect(self, x: float, y: float, w: float, h: float):
        whole = x <= 0 and y <= 0 and x + w >= self.width and y + h >= self.height
        if whole and len(self._origins) == 1:
            self.batch.clear()
            self._z = 0
        self.draw_rect(Rect(x, y, w, h), self.clear_color)

    def set_stroke_style(self, color: Color, line_width: float = 1.0):
        self._stroke = color_rgba(color)
        self._line_width = line_width

    def set_fill_style(self, color: Color):
        self._fill = color_rgba(color)

    def begin_path(self):
        self._subpaths = []

    def move_to(self, x: float, y: float):
        self._subpaths.append([(x, y)])

    def line_to(self, x: float, y: float):
        if self._subpaths:
            self._subpaths[-1].append((x, y))
        else:
            self._subpaths.append([(x, y)])

    def stroke(self):
        for points in self._subpaths:
            for (x0, y0), (x1, y1) in zip(points, points[1:]):
                self.draw_line(x0, y0, x1, y1, self._stroke, self._line_width)

    def fill_circle(self, x: float, y: float, radius: float):
        self.draw_circle(x, y, radius, self._fill)

    # frame

    def finalize(self) -> DrawBatch:
        self.batch.finalize()
        return self.batch

    def clear(self):
        """Drop all commands and offsets before the next frame."""
        self.batch.clear()
        self._z = 0
        del self._origins[1:]
        self._subpaths = []
