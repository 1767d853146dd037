"""
Binding types exchanged with the host.

A binding is how a control reads and writes one host parameter. The host
builds them (see patchview.host for the patch-connection flavour); the panel
only calls them.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Optional
import logging

logger = logging.getLogger(__name__)

Listener = Callable[[float], None]
Unsubscribe = Callable[[], None]
AttachListener = Callable[[Listener], Unsubscribe]


def _noop(*args):
    pass


@dataclass
class ParameterBinding:
    """
    Two-way binding to a numeric host parameter.

    attach_listener must push the current value to the callback right after
    registering, so a new control shows host state immediately.
    """
    min_value: float = 0.0
    max_value: float = 1.0
    default_value: Optional[float] = None
    start_gesture: Callable[[], None] = _noop
    update_value: Callable[[float], None] = _noop
    end_gesture: Callable[[], None] = _noop
    attach_listener: Optional[AttachListener] = None

    def __post_init__(self):
        if self.min_value is None:
            self.min_value = 0.0
        if self.max_value is None:
            self.max_value = 1.0
        if self.default_value is None:
            self.default_value = self.min_value
        self.start_gesture = self.start_gesture or _noop
        self.update_value = self.update_value or _noop
        self.end_gesture = self.end_gesture or _noop


@dataclass
class AmplitudeBinding:
    """Push-only binding for a telemetry stream."""
    attach_listener: Optional[AttachListener] = None


class Subscription:
    """
    Owns one host unsubscribe callable.

    unsubscribe() runs the callable at most once. A failure in the host
    callable still marks the subscription released, then propagates.
    """

    __slots__ = ("name", "_dispose")

    def __init__(self, dispose: Optional[Unsubscribe], name: str = ""):
        self.name = name
        self._dispose = dispose

    @property
    def active(self) -> bool:
        return self._dispose is not None

    def unsubscribe(self):
        dispose, self._dispose = self._dispose, None
        if dispose is not None:
            dispose()

    def __repr__(self) -> str:
        state = "active" if self.active else "released"
        return f"Subscription({self.name!r}, {state})"
