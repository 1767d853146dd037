"""
ParameterBindingRegistry - Lifecycle of control ↔ binding subscriptions.

Guarantees:
- connect() always releases the previous subscription under the same key
- every host unsubscribe runs at most once
- teardown() releases subscriptions added by re-entrant connect() calls
  too, for up to MAX_TEARDOWN_PASSES passes
"""

from __future__ import annotations
from typing import Any, Dict, List, Optional, Tuple
import logging

from patchview.bindings import Listener, Subscription

logger = logging.getLogger(__name__)

# Passes over subscriptions added by listeners while tearing down.
MAX_TEARDOWN_PASSES = 8


class ParameterBindingRegistry:
    """Subscriptions owned by one panel, keyed by control name."""

    def __init__(self):
        self._subscriptions: Dict[str, Subscription] = {}
        self._tearing_down = False

    def __contains__(self, key: str) -> bool:
        return key in self._subscriptions

    def __len__(self) -> int:
        return len(self._subscriptions)

    @property
    def keys(self) -> List[str]:
        return list(self._subscriptions)

    def connect(self, key: str, binding: Any, listener: Listener) -> Optional[Subscription]:
        """
        Attach listener to binding and keep the returned unsubscribe.

        Returns None (after logging a warning) when the binding cannot be
        listened to. If attach re-enters connect() under the same key, the
        inner (later) subscription is kept and returned, and this call's own
        subscription is released.
        """
        self.disconnect(key)

        attach = getattr(binding, "attach_listener", None)
        if attach is None or not callable(attach):
            logger.warning(f"Binding for '{key}' has no attach_listener; control will not follow the host")
            return None

        dispose = attach(listener)
        if self._tearing_down:
            logger.debug(f"connect('{key}') during teardown, releasing on next pass")
        subscription = Subscription(dispose if callable(dispose) else None, name=key)
        newer = self._subscriptions.get(key)
        if newer is not None:
            # A listener re-entered connect() under this key during attach; latest call wins
            logger.debug(f"connect('{key}') superseded during attach")
            try:
                subscription.unsubscribe()
            except Exception:
                logger.exception(f"Host unsubscribe failed for '{key}'")
            return newer
        self._subscriptions[key] = subscription
        logger.debug(f"Connected '{key}'")
        return subscription

    def disconnect(self, key: str) -> bool:
        """Release the subscription under key. Returns False if there was none."""
        subscription = self._subscriptions.pop(key, None)
        if subscription is None:
            return False
        try:
            subscription.unsubscribe()
        except Exception:
            logger.exception(f"Host unsubscribe failed for '{key}'")
        return True

    def teardown(self) -> List[Tuple[str, BaseException]]:
        """
        Release every subscription. Returns (key, error) for each host
        unsubscribe that raised; each is logged once.
        """
        failures: List[Tuple[str, BaseException]] = []
        self._tearing_down = True
        try:
            passes = 0
            while self._subscriptions:
                if passes >= MAX_TEARDOWN_PASSES:
                    logger.error(
                        f"Listeners kept reconnecting during teardown: {sorted(self._subscriptions)}"
                    )
                    break
                passes += 1
                pending = list(self._subscriptions.items())
                self._subscriptions.clear()
                for key, subscription in pending:
                    try:
                        subscription.unsubscribe()
                    except Exception as e:
                        logger.exception(f"Host unsubscribe failed for '{key}'")
                        failures.append((key, e))
        finally:
            self._tearing_down = False
        return failures
