import math

import pytest
from patchview.config import TelemetryConfig
from patchview.controls.telemetry import AmplitudeTelemetryBuffer
from patchview.ui.draw import DrawContext, Surface
from patchview.ui.style import MeterStyle, color_rgba
from patchview.ui.telemetry_renderer import (
    TelemetryRenderer, marker_position, sample_y, trace_points,
)


def make_renderer(width=280, height=140):
    buffer = AmplitudeTelemetryBuffer(TelemetryConfig(width=width, height=height))
    surface = DrawContext(width, height, clear_color=MeterStyle().background)
    return buffer, surface, TelemetryRenderer(buffer, surface)


def test_draw_context_is_a_surface():
    assert isinstance(DrawContext(10, 10), Surface)


def test_sample_y_margins():
    assert sample_y(0.0, 140) == 130
    assert sample_y(1.0, 140) == 20


def test_silent_trace_sits_on_bottom_margin():
    buffer = AmplitudeTelemetryBuffer(TelemetryConfig(width=5, height=140))

    points = trace_points(buffer, 140)

    assert points == [(0.5, 130.5), (1.5, 130.5), (2.5, 130.5), (3.5, 130.5), (4.5, 130.5)]


def test_marker_tracks_latest_sample():
    buffer = AmplitudeTelemetryBuffer(TelemetryConfig(width=280, height=140))

    assert marker_position(buffer, 280, 140) == (278.0, 130.0)

    buffer.push(1.0)
    expected_y = math.floor(140 - 10 - (1.2 / 1.32) * 110)
    assert marker_position(buffer, 280, 140) == (278.0, float(expected_y))


def test_render_draws_background_trace_and_marker():
    buffer, surface, renderer = make_renderer(width=20, height=140)

    renderer.render()
    batch = surface.batch

    assert len(batch.quads) == 1
    assert batch.quads[0].color == color_rgba(MeterStyle().background)
    assert len(batch.lines) == 19
    assert all(ln.width == 1.5 for ln in batch.lines)
    assert len(batch.circles) == 1
    marker = batch.circles[0]
    assert (marker.x, marker.y, marker.radius) == (18.0, 130.0, 2.0)


def test_every_render_is_a_full_redraw():
    buffer, surface, renderer = make_renderer(width=32)

    renderer.render()
    count = surface.batch.command_count
    for sample in (0.2, 0.8, 0.0, 1.5):
        buffer.push(sample)
        renderer.render()
        assert surface.batch.command_count == count

    assert renderer.frame_count == 5


def test_trace_follows_samples():
    buffer, surface, renderer = make_renderer(width=4, height=140)

    buffer.push(1.0)
    renderer.render()

    last_line = surface.batch.lines[-1]
    assert last_line.x1 == pytest.approx(3.5)
    assert last_line.y1 == pytest.approx(math.floor(sample_y(1.2 / 1.32, 140)) + 0.5)
    assert last_line.y0 == pytest.approx(130.5)


if __name__ == "__main__":
    test_sample_y_margins()
    test_silent_trace_sits_on_bottom_margin()
    test_render_draws_background_trace_and_marker()
