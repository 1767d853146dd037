import pytest
from patchview.bindings import ParameterBinding
from patchview.config import KnobConfig
from patchview.ui.layout import Rect
from patchview.ui.widget import Event, EventType, RootWidget, Widget
from patchview.ui.widgets.knob import KnobWidget, point_on_dial, tick_angles


def make_root():
    root = RootWidget(200, 100)
    child = Widget()
    child.layout(Rect(50, 10, 40, 40))
    root.add_child(child)
    return root, child


def test_hit_test_finds_child():
    root, child = make_root()

    assert root.hit_test(60, 20) is child
    assert root.hit_test(5, 5) is root
    assert root.hit_test(500, 5) is None


def test_pointer_capture_until_release():
    root, child = make_root()
    seen = []
    for kind in (EventType.POINTER_DOWN, EventType.POINTER_MOVE, EventType.POINTER_UP):
        child.on(kind, lambda e: seen.append((e.type, e.x, e.y)))

    root.dispatch_pointer_event(EventType.POINTER_DOWN, 60, 20)
    assert root.captured is child
    root.dispatch_pointer_event(EventType.POINTER_MOVE, 150, 90)
    root.dispatch_pointer_event(EventType.POINTER_UP, 150, 90)

    assert seen == [
        (EventType.POINTER_DOWN, 10, 10),
        (EventType.POINTER_MOVE, 100, 80),
        (EventType.POINTER_UP, 100, 80),
    ]
    assert root.captured is None


def test_cancel_capture_sends_cancel():
    root, child = make_root()
    cancelled = []
    child.on(EventType.POINTER_CANCEL, cancelled.append)

    assert not root.cancel_capture()
    root.dispatch_pointer_event(EventType.POINTER_DOWN, 60, 20)
    assert root.cancel_capture()

    assert len(cancelled) == 1
    assert root.captured is None


def test_events_bubble_until_stopped():
    root, child = make_root()
    order = []
    child.on(EventType.DOUBLE_CLICK, lambda e: order.append("child"))
    root.on(EventType.DOUBLE_CLICK, lambda e: order.append("root"))

    child.handle_event(Event(EventType.DOUBLE_CLICK))
    assert order == ["child", "root"]

    child.on(EventType.DOUBLE_CLICK, lambda e: e.stop_propagation())
    order.clear()
    child.handle_event(Event(EventType.DOUBLE_CLICK))
    assert order == ["child"]


def test_tick_angles_span_rotation():
    ticks = tick_angles(135.0, 24)

    assert len(ticks) == 49
    assert ticks[0] == -135.0
    assert ticks[-1] == pytest.approx(135.0)


def test_point_on_dial():
    x, y = point_on_dial(0, 0, 10, 0)
    assert (x, y) == pytest.approx((0, -10))
    x, y = point_on_dial(0, 0, 10, 90)
    assert (x, y) == pytest.approx((10, 0))


def test_knob_touch_uses_absolute_angle():
    calls = []
    binding = ParameterBinding(update_value=calls.append, default_value=0.5)
    knob = KnobWidget("filterFreq", binding, clock=lambda: 0.0)
    knob.layout(Rect(0, 0, 70, 70))

    knob.handle_event(Event(EventType.POINTER_DOWN, x=70, y=35, pointer_type="touch"))

    assert knob.controller.state.drag_angle == 90.0
    assert calls == [pytest.approx((90.0 / 135.0 + 1) / 2)]


def test_knob_blur_cancels_drag():
    ends = []
    binding = ParameterBinding(end_gesture=lambda: ends.append(1))
    knob = KnobWidget("filterFreq", binding, config=KnobConfig())
    knob.layout(Rect(0, 0, 70, 70))

    knob.handle_event(Event(EventType.POINTER_DOWN, x=35, y=35))
    knob.handle_event(Event(EventType.BLUR))

    assert ends == [1]
    assert not knob.controller.dragging


def test_knob_active_ticks_follow_angle():
    knob = KnobWidget("x", ParameterBinding(default_value=1.0), config=KnobConfig(tick_steps=4))

    assert len(knob.active_ticks()) == 9
    knob.update_display(0.0)
    assert knob.active_ticks() == [-135.0]
    assert knob.repaint_count == 2
