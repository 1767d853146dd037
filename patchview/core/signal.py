# patchview/core/signal.py
"""
SignalBridge - Panel events for the integrator.

A panel owns exactly one bridge; there is no shared instance. Handlers are
kept in per-signal slot lists. Disconnecting marks the slot dead so a
disconnect from inside a handler never disturbs the emit in progress; dead
slots are swept once no emit is running.
"""

from __future__ import annotations
from typing import Callable, Dict, List, Optional, Set
import logging

logger = logging.getLogger(__name__)

# Signal name            handler arguments
SIGNAL_GESTURE_START = 'gesture_start'      # (name,)
SIGNAL_GESTURE_END = 'gesture_end'          # (name,)
SIGNAL_VALUE_CHANGED = 'value_changed'      # (name, value)
SIGNAL_KNOB_RESET = 'knob_reset'            # (name, default_value)
SIGNAL_AMPLITUDE = 'amplitude'              # (processed_sample, max_scale)
SIGNAL_ATTACHED = 'attached'                # (control_names,)
SIGNAL_DETACHED = 'detached'                # ()


class _Slot:
    __slots__ = ("handler", "alive")

    def __init__(self, handler: Callable):
        self.handler = handler
        self.alive = True


class Connection:
    """Returned by SignalBridge.connect(). disconnect() may be called any number of times."""

    __slots__ = ("signal", "_slot", "_bridge")

    def __init__(self, signal: str, slot: _Slot, bridge: SignalBridge):
        self.signal = signal
        self._slot = slot
        self._bridge = bridge

    @property
    def connected(self) -> bool:
        return self._slot.alive

    def disconnect(self):
        if not self._slot.alive:
            return
        self._slot.alive = False
        self._bridge._sweep()


class SignalBridge:
    def __init__(self):
        self._slots: Dict[str, List[_Slot]] = {}
        self._blocked: Set[str] = set()
        self._emitting = 0

    def connect(self, signal: str, handler: Callable) -> Connection:
        slot = _Slot(handler)
        self._slots.setdefault(signal, []).append(slot)
        return Connection(signal, slot, self)

    def disconnect_all(self, signal: str = None):
        names = [signal] if signal else list(self._slots)
        for name in names:
            for slot in self._slots.get(name, ()):
                slot.alive = False
        self._sweep()

    def emit(self, signal: str, *args):
        """Call every live handler. A failing handler is logged and skipped."""
        if signal in self._blocked:
            return
        slots = self._slots.get(signal)
        if not slots:
            return

        self._emitting += 1
        try:
            for slot in tuple(slots):
                if not slot.alive:
                    continue
                try:
                    slot.handler(*args)
                except Exception:
                    logger.exception(f"Handler for '{signal}' failed")
        finally:
            self._emitting -= 1
        self._sweep()

    def block(self, signal: str):
        self._blocked.add(signal)

    def unblock(self, signal: str):
        self._blocked.discard(signal)

    def is_connected(self, signal: str) -> bool:
        return self.handler_count(signal) > 0

    def handler_count(self, signal: Optional[str] = None) -> int:
        names = [signal] if signal is not None else list(self._slots)
        return sum(1 for name in names for slot in self._slots.get(name, ()) if slot.alive)

    def _sweep(self):
        if self._emitting:
            return
        for name in list(self._slots):
            live = [slot for slot in self._slots[name] if slot.alive]
            if live:
                self._slots[name] = live
            else:
                del self._slots[name]
