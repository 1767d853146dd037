"""
PanelRenderer - moderngl presentation of a DrawBatch.

Commands are merged into draw runs in z order: adjacent fills share one
TRIANGLES draw, adjacent strokes of equal width one LINES draw, all through
a single position+colour program. Vertex packing is plain numpy so it can
be checked without a GL context.
"""

from __future__ import annotations
from typing import List, NamedTuple, Sequence, TYPE_CHECKING
import math
import numpy as np

if TYPE_CHECKING:
    import moderngl
    from patchview.ui.draw import DrawBatch, DrawContext, DrawQuad, DrawLine, DrawCircle

# pos(2f) + color(4f)
VERTEX_FLOATS = 6
VERTEX_BYTES = VERTEX_FLOATS * 4
CIRCLE_SEGMENTS = 24
MIN_CAPACITY = 256

# Corner order for the two triangles of a quad, as (use_right, use_bottom)
_QUAD_CORNERS = np.array([(0, 0), (1, 0), (1, 1), (0, 0), (1, 1), (0, 1)], dtype=np.float32)

VERTEX_SHADER = """
#version 330
in vec2 in_pos;
in vec4 in_color;
uniform vec2 u_viewport;
out vec4 v_color;

void main() {
    // logical pixels, origin top-left -> clip space
    vec2 clip = vec2(in_pos.x / u_viewport.x * 2.0 - 1.0,
                     1.0 - in_pos.y / u_viewport.y * 2.0);
    gl_Position = vec4(clip, 0.0, 1.0);
    v_color = in_color;
}
"""

FRAGMENT_SHADER = """
#version 330
in vec4 v_color;
out vec4 f_color;

void main() {
    f_color = v_color;
}
"""


def quad_vertices(quads: Sequence['DrawQuad']) -> np.ndarray:
    """Six vertices (two triangles) per quad."""
    if not quads:
        return np.zeros((0, VERTEX_FLOATS), dtype=np.float32)
    boxes = np.array([(q.x, q.y, q.w, q.h) for q in quads], dtype=np.float32)
    colors = np.array([q.color for q in quads], dtype=np.float32)
    vertices = np.empty((len(quads), 6, VERTEX_FLOATS), dtype=np.float32)
    vertices[:, :, 0] = boxes[:, None, 0] + _QUAD_CORNERS[None, :, 0] * boxes[:, None, 2]
    vertices[:, :, 1] = boxes[:, None, 1] + _QUAD_CORNERS[None, :, 1] * boxes[:, None, 3]
    vertices[:, :, 2:] = colors[:, None, :]
    return vertices.reshape(-1, VERTEX_FLOATS)


def circle_vertices(circles: Sequence['DrawCircle'], segments: int = CIRCLE_SEGMENTS) -> np.ndarray:
    """Fan of `segments` triangles per circle: centre, rim[i], rim[i+1]."""
    theta = np.linspace(0.0, 2.0 * math.pi, segments + 1)
    cos_t, sin_t = np.cos(theta), np.sin(theta)
    vertices = np.zeros((len(circles) * segments * 3, VERTEX_FLOATS), dtype=np.float32)
    for i, c in enumerate(circles):
        fan = vertices[i * segments * 3:(i + 1) * segments * 3]
        rim_x = c.x + c.radius * cos_t
        rim_y = c.y + c.radius * sin_t
        fan[0::3, 0], fan[0::3, 1] = c.x, c.y
        fan[1::3, 0], fan[1::3, 1] = rim_x[:-1], rim_y[:-1]
        fan[2::3, 0], fan[2::3, 1] = rim_x[1:], rim_y[1:]
        fan[:, 2:] = c.color
    return vertices


def line_vertices(lines: Sequence['DrawLine']) -> np.ndarray:
    if not lines:
        return np.zeros((0, VERTEX_FLOATS), dtype=np.float32)
    rows = []
    for ln in lines:
        rows.append((ln.x0, ln.y0, *ln.color))
        rows.append((ln.x1, ln.y1, *ln.color))
    return np.array(rows, dtype=np.float32)


class DrawRun(NamedTuple):
    """Consecutive commands sharing one GL draw call."""
    mode: str          # "triangles" or "lines"
    width: float       # line width in logical pixels, 0 for triangles
    vertices: np.ndarray


def draw_runs(batch: 'DrawBatch') -> List[DrawRun]:
    """
    Split a batch into draw calls in z order.

    Quads and circles merge into one triangles run while nothing else is
    between them; lines split wherever their width changes.
    """
    commands = sorted(
        [(q.z_index, "quad", q) for q in batch.quads]
        + [(c.z_index, "circle", c) for c in batch.circles]
        + [(ln.z_index, "line", ln) for ln in batch.lines],
        key=lambda entry: entry[0],
    )
    groups = []
    for _, kind, cmd in commands:
        mode = "lines" if kind == "line" else "triangles"
        width = cmd.width if kind == "line" else 0.0
        if groups and groups[-1][0] == mode and groups[-1][1] == width:
            groups[-1][2].append((kind, cmd))
        else:
            groups.append((mode, width, [(kind, cmd)]))

    runs = []
    for mode, width, members in groups:
        if mode == "lines":
            vertices = line_vertices([cmd for _, cmd in members])
        else:
            parts = [
                quad_vertices([cmd]) if kind == "quad" else circle_vertices([cmd])
                for kind, cmd in members
            ]
            vertices = np.concatenate(parts)
        runs.append(DrawRun(mode, width, vertices))
    return runs


class _Stream:
    """Growable dynamic VBO plus its VAO."""

    def __init__(self):
        self.vbo = None
        self.vao = None
        self.capacity = 0

    def upload(self, ctx: 'moderngl.Context', program, vertices: np.ndarray):
        count = len(vertices)
        if self.vbo is None or count > self.capacity:
            self.release()
            self.capacity = max(count, MIN_CAPACITY, self.capacity * 2)
            self.vbo = ctx.buffer(reserve=self.capacity * VERTEX_BYTES, dynamic=True)
            self.vao = ctx.vertex_array(program, [(self.vbo, "2f 4f", "in_pos", "in_color")])
        self.vbo.write(vertices.tobytes())

    def release(self):
        if self.vao is not None:
            self.vao.release()
        if self.vbo is not None:
            self.vbo.release()
        self.vao = self.vbo = None


class PanelRenderer:
    """
    Draws batches onto the current framebuffer.

        renderer = PanelRenderer(ctx)
        # per frame
        draw_ctx = DrawContext(w, h, device_pixel_ratio=pixel_ratio)
        panel.draw(draw_ctx)
        renderer.present(draw_ctx)

    Commands are drawn in z order, one draw call per DrawRun.
    Text commands are ignored; there is no glyph atlas.
    """

    def __init__(self, ctx: 'moderngl.Context'):
        self.ctx = ctx
        self._program = None
        self._stream = _Stream()

    def _program_or_build(self):
        if self._program is None:
            self._program = self.ctx.program(vertex_shader=VERTEX_SHADER, fragment_shader=FRAGMENT_SHADER)
        return self._program

    def present(self, draw_ctx: 'DrawContext'):
        """Finalize draw_ctx and draw it at its device pixel size."""
        self.ctx.viewport = (0, 0, draw_ctx.pixel_width, draw_ctx.pixel_height)
        self._draw(draw_ctx.finalize(), draw_ctx.width, draw_ctx.height, draw_ctx.device_pixel_ratio)

    def render(self, batch: 'DrawBatch', width: float, height: float, device_pixel_ratio: float = 1.0):
        self.ctx.viewport = (0, 0, int(width * device_pixel_ratio), int(height * device_pixel_ratio))
        self._draw(batch, width, height, device_pixel_ratio)

    def _draw(self, batch: 'DrawBatch', width: float, height: float, device_pixel_ratio: float):
        program = self._program_or_build()
        program["u_viewport"].value = (float(width), float(height))

        runs = draw_runs(batch)
        if not runs:
            return
        # One upload per frame; each run draws its own slice
        self._stream.upload(self.ctx, program, np.concatenate([run.vertices for run in runs]))
        first = 0
        for run in runs:
            count = len(run.vertices)
            if run.mode == "lines":
                self.ctx.line_width = run.width * device_pixel_ratio
                mode = self.ctx.LINES
            else:
                mode = self.ctx.TRIANGLES
            self._stream.vao.render(mode=mode, vertices=count, first=first)
            first += count

    def release(self):
        self._stream.release()
        self._stream.capacity = 0
        if self._program is not None:
            self._program.release()
            self._program = None
