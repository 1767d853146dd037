import pytest
from patchview.host import (
    LoopbackPatchConnection, PatchView,
    create_amplitude_binding, create_bindings, create_parameter_binding,
)
from patchview.ui.widget import EventType

STATUS = {
    "details": {
        "inputs": [
            {"endpointID": "impulseLength", "annotation": {"min": 1, "max": 500, "init": 100}},
            {"endpointID": "filter", "annotation": {"min": 20, "max": 8000, "init": 1000}},
            {"endpointID": "feedback", "annotation": {"min": 0.8, "max": 0.999, "init": 0.99}},
        ],
        "outputs": [{"endpointID": "amplitude"}],
    }
}


class StepClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        self.now += 10.0
        return self.now


def test_parameter_binding_reads_annotation():
    conn = LoopbackPatchConnection(STATUS)

    binding = create_parameter_binding(conn, STATUS, "filter")

    assert (binding.min_value, binding.max_value, binding.default_value) == (20, 8000, 1000)


def test_missing_endpoint_gives_no_binding():
    conn = LoopbackPatchConnection(STATUS)

    assert create_parameter_binding(conn, STATUS, "resonance") is None
    assert create_amplitude_binding(conn, STATUS, "rms") is None
    assert create_amplitude_binding(conn, {}, "amplitude") is None


def test_unannotated_input_uses_defaults():
    status = {"details": {"inputs": [{"endpointID": "gain"}], "outputs": []}}
    binding = create_parameter_binding(LoopbackPatchConnection(status), status, "gain")

    assert (binding.min_value, binding.max_value, binding.default_value) == (0.0, 1.0, 0.0)


def test_attach_listener_pushes_current_value_and_detaches():
    conn = LoopbackPatchConnection(STATUS)
    binding = create_parameter_binding(conn, STATUS, "feedback")
    received = []

    remove = binding.attach_listener(received.append)
    assert received == [0.99]
    assert conn.listener_count() == 1

    remove()
    assert conn.listener_count() == 0


def test_binding_sends_gestures_and_values():
    conn = LoopbackPatchConnection(STATUS)
    binding = create_parameter_binding(conn, STATUS, "filter")

    binding.start_gesture()
    binding.update_value(440.0)
    binding.end_gesture()

    assert conn.gestures == [("filter", "start"), ("filter", "end")]
    assert conn.sent == [("filter", 440.0)]
    assert conn.values["filter"] == 440.0


def test_create_bindings_maps_control_names():
    conn = LoopbackPatchConnection(STATUS)

    bindings = create_bindings(conn, STATUS)

    assert sorted(bindings) == ["amplitude", "feedbackAmount", "filterFreq", "impulseLength"]
    assert all(b is not None for b in bindings.values())


def test_patch_view_builds_panel_on_status():
    conn = LoopbackPatchConnection(STATUS)
    panels = []
    view = PatchView(conn, on_panel=panels.append)

    view.open()

    assert len(panels) == 1
    assert sorted(view.panel.knobs) == ["feedbackAmount", "filterFreq", "impulseLength"]
    assert view.panel.knobs["filterFreq"].value == pytest.approx(1000)


def test_patch_view_rebuilds_and_releases():
    conn = LoopbackPatchConnection(STATUS)
    view = PatchView(conn)
    view.open()
    first = view.panel
    count = conn.listener_count()

    conn.request_status_update()

    assert view.panel is not first
    assert not first.attached
    assert conn.listener_count() == count

    view.close()
    assert view.panel is None
    assert conn.listener_count() == 0


def test_partial_patch_gets_partial_panel():
    status = {"details": {"inputs": [STATUS["details"]["inputs"][1]], "outputs": []}}
    view = PatchView(LoopbackPatchConnection(status))

    view.open()

    assert list(view.panel.knobs) == ["filterFreq"]
    assert view.panel.meter is None


def test_drag_round_trips_through_loopback():
    conn = LoopbackPatchConnection(STATUS)
    view = PatchView(conn, clock=StepClock())
    view.open()
    knob = view.panel.knobs["feedbackAmount"]
    cx, cy = knob.rect.center_x, knob.rect.center_y

    view.panel.handle_pointer_event(EventType.POINTER_DOWN, cx, cy)
    view.panel.handle_pointer_event(EventType.POINTER_MOVE, cx, cy, delta_y=20)
    view.panel.handle_pointer_event(EventType.POINTER_UP, cx, cy)

    assert conn.gestures == [("feedback", "start"), ("feedback", "end")]
    sent = conn.sent[-1][1]
    assert sent < 0.99
    # Echo moved the knob to the sent value
    assert knob.value == pytest.approx(sent)


def test_amplitude_stream_feeds_meter():
    conn = LoopbackPatchConnection(STATUS)
    view = PatchView(conn)
    view.open()

    for _ in range(5):
        conn.emit_endpoint("amplitude", 0.5)

    assert view.panel.meter.buffer.latest() == pytest.approx(0.5 ** 0.7 * 1.2)


if __name__ == "__main__":
    test_parameter_binding_reads_annotation()
    test_patch_view_builds_panel_on_status()
    test_patch_view_rebuilds_and_releases()
