import logging

import pytest
from patchview.bindings import AmplitudeBinding, ParameterBinding, Subscription
from patchview.registry import MAX_TEARDOWN_PASSES, ParameterBindingRegistry


class CountingSource:
    """attach_listener that counts attaches and host unsubscribes."""

    def __init__(self, initial=None):
        self.listeners = []
        self.attached = 0
        self.released = 0
        self.initial = initial

    def attach(self, listener):
        self.attached += 1
        self.listeners.append(listener)
        if self.initial is not None:
            listener(self.initial)

        def dispose():
            self.released += 1
            self.listeners.remove(listener)
        return dispose


def test_connect_pushes_initial_value():
    source = CountingSource(initial=0.25)
    received = []
    registry = ParameterBindingRegistry()

    subscription = registry.connect("filterFreq", ParameterBinding(attach_listener=source.attach), received.append)

    assert received == [0.25]
    assert subscription.active
    assert "filterFreq" in registry


def test_double_disconnect_unsubscribes_once():
    source = CountingSource()
    registry = ParameterBindingRegistry()
    registry.connect("amplitude", AmplitudeBinding(attach_listener=source.attach), lambda v: None)

    assert registry.disconnect("amplitude")
    assert not registry.disconnect("amplitude")

    assert source.released == 1
    assert len(registry) == 0


def test_reconnect_releases_previous_subscription():
    source = CountingSource()
    registry = ParameterBindingRegistry()
    binding = ParameterBinding(attach_listener=source.attach)

    registry.connect("filterFreq", binding, lambda v: None)
    registry.connect("filterFreq", binding, lambda v: None)

    assert source.attached == 2
    assert source.released == 1
    assert len(source.listeners) == 1


def test_missing_attach_listener_warns(caplog):
    registry = ParameterBindingRegistry()

    with caplog.at_level(logging.WARNING, logger="patchview.registry"):
        result = registry.connect("amplitude", AmplitudeBinding(), lambda v: None)

    assert result is None
    assert "amplitude" not in registry
    assert "no attach_listener" in caplog.text


def test_subscription_unsubscribes_at_most_once():
    calls = []
    subscription = Subscription(lambda: calls.append(1), name="x")

    subscription.unsubscribe()
    subscription.unsubscribe()

    assert calls == [1]
    assert not subscription.active


def test_subscription_failure_still_marks_released():
    def boom():
        raise RuntimeError("host gone")

    subscription = Subscription(boom)
    with pytest.raises(RuntimeError):
        subscription.unsubscribe()
    assert not subscription.active
    subscription.unsubscribe()


def test_teardown_releases_everything():
    sources = {name: CountingSource() for name in ("a", "b", "c")}
    registry = ParameterBindingRegistry()
    for name, source in sources.items():
        registry.connect(name, ParameterBinding(attach_listener=source.attach), lambda v: None)

    failures = registry.teardown()

    assert failures == []
    assert len(registry) == 0
    assert all(s.released == 1 for s in sources.values())
    assert registry.teardown() == []


def test_teardown_collects_failures(caplog):
    good = CountingSource()
    registry = ParameterBindingRegistry()

    def bad_attach(listener):
        def dispose():
            raise RuntimeError("host gone")
        return dispose

    registry.connect("bad", ParameterBinding(attach_listener=bad_attach), lambda v: None)
    registry.connect("good", ParameterBinding(attach_listener=good.attach), lambda v: None)

    with caplog.at_level(logging.ERROR, logger="patchview.registry"):
        failures = registry.teardown()

    assert [key for key, _ in failures] == ["bad"]
    assert isinstance(failures[0][1], RuntimeError)
    assert good.released == 1
    assert len(registry) == 0
    assert caplog.text.count("Host unsubscribe failed for 'bad'") == 1


def test_reconnect_during_teardown_is_released():
    registry = ParameterBindingRegistry()
    late = CountingSource()

    def reconnecting_attach(listener):
        def dispose():
            registry.connect("late", ParameterBinding(attach_listener=late.attach), lambda v: None)
        return dispose

    registry.connect("first", ParameterBinding(attach_listener=reconnecting_attach), lambda v: None)
    registry.teardown()

    assert len(registry) == 0
    assert late.attached == 1
    assert late.released == 1


def test_endless_reconnect_is_bounded(caplog):
    registry = ParameterBindingRegistry()
    attaches = []

    def attach(listener):
        attaches.append(listener)

        def dispose():
            registry.connect("loop", ParameterBinding(attach_listener=attach), lambda v: None)
        return dispose

    registry.connect("loop", ParameterBinding(attach_listener=attach), lambda v: None)
    with caplog.at_level(logging.ERROR, logger="patchview.registry"):
        registry.teardown()

    assert len(attaches) == MAX_TEARDOWN_PASSES + 1
    assert "kept reconnecting" in caplog.text


def test_reentrant_connect_during_attach_keeps_latest():
    registry = ParameterBindingRegistry()
    outer, inner = CountingSource(), CountingSource()
    inner_binding = ParameterBinding(attach_listener=inner.attach)

    def attach_and_reconnect(listener):
        dispose = outer.attach(listener)
        registry.connect("filterFreq", inner_binding, listener)
        return dispose

    kept = registry.connect("filterFreq", ParameterBinding(attach_listener=attach_and_reconnect), lambda v: None)

    assert outer.released == 1
    assert inner.released == 0
    assert kept.active
    assert len(registry) == 1

    registry.disconnect("filterFreq")
    assert inner.released == 1
    assert outer.released == 1


if __name__ == "__main__":
    test_double_disconnect_unsubscribes_once()
    test_reconnect_releases_previous_subscription()
    test_teardown_releases_everything()
