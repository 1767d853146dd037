import pytest
from patchview.bindings import ParameterBinding
from patchview.config import DragMode, KnobConfig
from patchview.controls.gesture import GestureController, GestureState, pointer_angle, round_half_up


class FakeClock:
    """Millisecond clock advanced by hand."""

    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float):
        self.now += ms


def make_binding(calls, min_value=0.0, max_value=1.0, default_value=0.5):
    return ParameterBinding(
        min_value=min_value,
        max_value=max_value,
        default_value=default_value,
        start_gesture=lambda: calls.append(("start",)),
        update_value=lambda v: calls.append(("update", v)),
        end_gesture=lambda: calls.append(("end",)),
    )


def test_default_value_sets_initial_angle():
    controller = GestureController(make_binding([]), KnobConfig(max_rotation=135.0))

    assert controller.angle == 0.0
    assert controller.gesture_state is GestureState.IDLE


def test_drag_accumulates_relative_movement():
    calls = []
    clock = FakeClock()
    controller = GestureController(make_binding(calls), clock=clock)

    controller.press()
    for _ in range(3):
        assert controller.move_by(-10)
        clock.advance(10)

    assert controller.state.drag_offset == pytest.approx(-54.0)
    assert controller.state.drag_angle == pytest.approx(54.0)
    updates = [c[1] for c in calls if c[0] == "update"]
    assert len(updates) == 3
    assert updates[-1] == pytest.approx(0.7)


def test_fine_drag_uses_lower_sensitivity():
    clock = FakeClock()
    controller = GestureController(make_binding([]), clock=clock)

    controller.press()
    controller.move_by(-10, fine=True)

    assert controller.state.drag_offset == pytest.approx(-3.0)
    assert controller.state.drag_angle == pytest.approx(3.0)


def test_drag_angle_is_clamped():
    calls = []
    clock = FakeClock()
    controller = GestureController(make_binding(calls), clock=clock)

    controller.press()
    controller.move_by(-1000)

    assert controller.state.drag_angle == 135.0
    assert calls[-1] == ("update", pytest.approx(1.0))


def test_moves_inside_throttle_window_are_dropped():
    calls = []
    clock = FakeClock(100.0)
    controller = GestureController(make_binding(calls), KnobConfig(throttle_ms=8), clock=clock)

    controller.press()
    assert controller.move_by(-1)
    clock.advance(5)
    assert not controller.move_by(-1)
    clock.advance(3)
    assert controller.move_by(-1)

    assert len([c for c in calls if c[0] == "update"]) == 2


def test_move_without_press_is_ignored():
    calls = []
    controller = GestureController(make_binding(calls), clock=FakeClock())

    assert not controller.move_by(-10)
    assert calls == []


def test_gesture_brackets_drag():
    calls = []
    clock = FakeClock()
    controller = GestureController(make_binding(calls), clock=clock)

    controller.press()
    assert controller.gesture_state is GestureState.DRAGGING
    controller.move_by(-5)
    assert controller.release()

    assert calls[0] == ("start",)
    assert calls[-1] == ("end",)
    assert controller.gesture_state is GestureState.IDLE
    assert not controller.release()


def test_cancel_ends_gesture_once():
    calls = []
    controller = GestureController(make_binding(calls), clock=FakeClock())

    controller.press()
    assert controller.cancel()
    assert not controller.cancel()

    assert calls == [("start",), ("end",)]
    assert not controller.dragging


def test_reset_sends_default_as_one_gesture():
    calls = []
    controller = GestureController(make_binding(calls, default_value=0.25), clock=FakeClock())

    controller.reset()

    assert calls == [("start",), ("update", 0.25), ("end",)]


def test_reset_mid_drag_finishes_drag_first():
    calls = []
    controller = GestureController(make_binding(calls), clock=FakeClock())

    controller.press()
    controller.reset()

    assert calls == [("start",), ("end",), ("start",), ("update", 0.5), ("end",)]
    assert not controller.dragging


def test_real_time_control_waits_for_host_echo():
    clock = FakeClock()
    controller = GestureController(make_binding([]), enable_real_time_control=True, clock=clock)

    controller.press()
    controller.move_by(-10)

    # Display only follows the listener
    assert controller.angle == 0.0
    controller.update_display(0.7)
    assert controller.angle == pytest.approx(54.0)


def test_passive_mode_repaints_locally():
    angles = []
    clock = FakeClock()
    controller = GestureController(
        make_binding([]), enable_real_time_control=False, on_display=angles.append, clock=clock
    )

    controller.press()
    controller.move_by(-10)

    assert controller.angle == pytest.approx(18.0)
    assert angles[-1] == pytest.approx(18.0)


def test_update_display_skips_unchanged_values():
    angles = []
    controller = GestureController(make_binding([]), on_display=angles.append)

    assert angles == [0.0]
    assert not controller.update_display(0.5)
    assert controller.update_display(0.5, force=True)
    assert controller.update_display(2.0)
    assert controller.angle == 135.0


def test_pointer_angle_directions():
    assert pointer_angle(50, 40, 50, 50) == 0
    assert pointer_angle(60, 50, 50, 50) == 90
    assert pointer_angle(40, 50, 50, 50) == -90
    assert pointer_angle(50, 60, 50, 50) == 180


def test_round_half_up_breaks_ties_upward():
    assert round_half_up(0.5) == 1
    assert round_half_up(2.5) == 3
    assert round_half_up(-0.5) == 0
    assert round_half_up(-1.5) == -1
    assert round_half_up(44.4) == 44


def test_absolute_press_applies_pointer_position():
    calls = []
    config = KnobConfig(drag_mode=DragMode.ABSOLUTE)
    controller = GestureController(make_binding(calls), config, clock=FakeClock())

    controller.press(60, 50, 50, 50)

    assert controller.state.drag_angle == 90.0
    assert calls[0] == ("start",)
    assert calls[1] == ("update", pytest.approx((90.0 / 135.0 + 1) / 2))


def test_destroy_mid_drag_ends_gesture():
    calls = []
    controller = GestureController(make_binding(calls), clock=FakeClock())

    controller.press()
    controller.destroy()
    controller.destroy()
    controller.press()

    assert calls == [("start",), ("end",)]


if __name__ == "__main__":
    test_default_value_sets_initial_angle()
    test_drag_accumulates_relative_movement()
    test_moves_inside_throttle_window_are_dropped()
    test_reset_sends_default_as_one_gesture()
