"""
Host glue - Bindings built from a patch connection's status.

The patch connection is whatever object the host uses to talk to the audio
engine. This module only needs the PatchConnection methods below; the
transport behind them belongs to the host.

Status format (as delivered to status listeners):

    {
        "details": {
            "inputs":  [{"endpointID": "filter",
                         "annotation": {"min": 20, "max": 8000, "init": 1000}}, ...],
            "outputs": [{"endpointID": "amplitude"}, ...],
        }
    }
"""

from __future__ import annotations
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, Tuple
import logging

from patchview.bindings import AmplitudeBinding, ParameterBinding
from patchview.config import PanelConfig
from patchview.panel import ControlPanel, KARPLUS_LAYOUT, PanelLayout

logger = logging.getLogger(__name__)

Status = Mapping[str, Any]
ValueCallback = Callable[[float], None]

# Panel control name -> engine endpoint ID
KARPLUS_PARAMETERS: Dict[str, str] = {
    "impulseLength": "impulseLength",
    "filterFreq": "filter",
    "feedbackAmount": "feedback",
}
KARPLUS_OUTPUTS: Dict[str, str] = {
    "amplitude": "amplitude",
}


class PatchConnection(Protocol):
    def send_parameter_gesture_start(self, endpoint_id: str) -> None: ...
    def send_event_or_value(self, endpoint_id: str, value: float) -> None: ...
    def send_parameter_gesture_end(self, endpoint_id: str) -> None: ...
    def add_parameter_listener(self, endpoint_id: str, callback: ValueCallback) -> None: ...
    def remove_parameter_listener(self, endpoint_id: str, callback: ValueCallback) -> None: ...
    def request_parameter_value(self, endpoint_id: str) -> None: ...
    def add_endpoint_listener(self, endpoint_id: str, callback: ValueCallback) -> None: ...
    def remove_endpoint_listener(self, endpoint_id: str, callback: ValueCallback) -> None: ...
    def add_status_listener(self, callback: Callable[[Status], None]) -> None: ...
    def remove_status_listener(self, callback: Callable[[Status], None]) -> None: ...
    def request_status_update(self) -> None: ...


def _find_endpoint(status: Optional[Status], direction: str, endpoint_id: str) -> Optional[Mapping]:
    details = (status or {}).get("details") or {}
    for endpoint in details.get(direction) or ():
        if endpoint.get("endpointID") == endpoint_id:
            return endpoint
    return None


def create_parameter_binding(
    connection: PatchConnection, status: Status, endpoint_id: str
) -> Optional[ParameterBinding]:
    """Binding for an input endpoint, or None if the patch has no such input."""
    endpoint = _find_endpoint(status, "inputs", endpoint_id)
    if endpoint is None:
        return None

    annotation = endpoint.get("annotation") or {}

    def attach_listener(callback: ValueCallback):
        connection.add_parameter_listener(endpoint_id, callback)
        connection.request_parameter_value(endpoint_id)
        return lambda: connection.remove_parameter_listener(endpoint_id, callback)

    return ParameterBinding(
        min_value=annotation.get("min"),
        max_value=annotation.get("max"),
        default_value=annotation.get("init"),
        start_gesture=lambda: connection.send_parameter_gesture_start(endpoint_id),
        update_value=lambda value: connection.send_event_or_value(endpoint_id, value),
        end_gesture=lambda: connection.send_parameter_gesture_end(endpoint_id),
        attach_listener=attach_listener,
    )


def create_amplitude_binding(
    connection: PatchConnection, status: Status, endpoint_id: str
) -> Optional[AmplitudeBinding]:
    """Binding for an output stream, or None if the patch has no such output."""
    if _find_endpoint(status, "outputs", endpoint_id) is None:
        return None

    def attach_listener(callback: ValueCallback):
        connection.add_endpoint_listener(endpoint_id, callback)
        return lambda: connection.remove_endpoint_listener(endpoint_id, callback)

    return AmplitudeBinding(attach_listener=attach_listener)


def create_bindings(
    connection: PatchConnection,
    status: Status,
    parameters: Mapping[str, str] = KARPLUS_PARAMETERS,
    outputs: Mapping[str, str] = KARPLUS_OUTPUTS,
) -> Dict[str, Any]:
    bindings: Dict[str, Any] = {}
    for name, endpoint_id in parameters.items():
        bindings[name] = create_parameter_binding(connection, status, endpoint_id)
    for name, endpoint_id in outputs.items():
        bindings[name] = create_amplitude_binding(connection, status, endpoint_id)
    return bindings


class PatchView:
    """
    Keeps one ControlPanel in sync with the connection's status.

    Every status update detaches the current panel and attaches a fresh one
    built from the new endpoint directory.
    """

    def __init__(
        self,
        connection: PatchConnection,
        config: PanelConfig = None,
        layout: PanelLayout = KARPLUS_LAYOUT,
        parameters: Mapping[str, str] = KARPLUS_PARAMETERS,
        outputs: Mapping[str, str] = KARPLUS_OUTPUTS,
        on_panel: Callable[[ControlPanel], None] = None,
        clock: Callable[[], float] = None,
    ):
        self.connection = connection
        self.config = config or PanelConfig()
        self.layout = layout
        self.parameters = parameters
        self.outputs = outputs
        self.panel: Optional[ControlPanel] = None
        self._on_panel = on_panel
        self._clock = clock
        self._open = False

    def open(self):
        if self._open:
            return
        self._open = True
        self.connection.add_status_listener(self._on_status)
        self.connection.request_status_update()

    def close(self):
        if not self._open:
            return
        self._open = False
        self.connection.remove_status_listener(self._on_status)
        self._drop_panel()

    def _drop_panel(self):
        panel, self.panel = self.panel, None
        if panel is not None:
            panel.detach()

    def _on_status(self, status: Status):
        self._drop_panel()
        bindings = create_bindings(self.connection, status, self.parameters, self.outputs)
        panel = ControlPanel(bindings, self.config, layout=self.layout, clock=self._clock)
        panel.attach()
        self.panel = panel
        logger.debug(f"PatchView rebuilt panel with {sorted(panel.knobs)}")
        if self._on_panel:
            self._on_panel(panel)


class LoopbackPatchConnection:
    """
    In-memory patch connection.

    Stores parameter values and echoes every change to its listeners, like a
    live engine would. Used by the demo and tests; amplitude values are
    pushed with emit_endpoint().
    """

    def __init__(self, status: Status = None):
        self.status: Dict[str, Any] = dict(status or {"details": {"inputs": [], "outputs": []}})
        self.values: Dict[str, float] = {}
        self.gestures: List[Tuple[str, str]] = []
        self.sent: List[Tuple[str, float]] = []
        self._parameter_listeners: Dict[str, List[ValueCallback]] = {}
        self._endpoint_listeners: Dict[str, List[ValueCallback]] = {}
        self._status_listeners: List[Callable[[Status], None]] = []

        for endpoint in self.status.get("details", {}).get("inputs", []):
            init = (endpoint.get("annotation") or {}).get("init")
            if init is not None:
                self.values[endpoint["endpointID"]] = init

    # Parameters

    def send_parameter_gesture_start(self, endpoint_id: str):
        self.gestures.append((endpoint_id, "start"))

    def send_parameter_gesture_end(self, endpoint_id: str):
        self.gestures.append((endpoint_id, "end"))

    def send_event_or_value(self, endpoint_id: str, value: float):
        self.sent.append((endpoint_id, value))
        self.values[endpoint_id] = value
        self._notify(self._parameter_listeners, endpoint_id, value)

    def add_parameter_listener(self, endpoint_id: str, callback: ValueCallback):
        self._parameter_listeners.setdefault(endpoint_id, []).append(callback)

    def remove_parameter_listener(self, endpoint_id: str, callback: ValueCallback):
        listeners = self._parameter_listeners.get(endpoint_id, [])
        if callback in listeners:
            listeners.remove(callback)

    def request_parameter_value(self, endpoint_id: str):
        if endpoint_id in self.values:
            self._notify(self._parameter_listeners, endpoint_id, self.values[endpoint_id])

    # Output endpoints

    def add_endpoint_listener(self, endpoint_id: str, callback: ValueCallback):
        self._endpoint_listeners.setdefault(endpoint_id, []).append(callback)

    def remove_endpoint_listener(self, endpoint_id: str, callback: ValueCallback):
        listeners = self._endpoint_listeners.get(endpoint_id, [])
        if callback in listeners:
            listeners.remove(callback)

    def emit_endpoint(self, endpoint_id: str, value: float):
        self._notify(self._endpoint_listeners, endpoint_id, value)

    # Status

    def add_status_listener(self, callback: Callable[[Status], None]):
        self._status_listeners.append(callback)

    def remove_status_listener(self, callback: Callable[[Status], None]):
        if callback in self._status_listeners:
            self._status_listeners.remove(callback)

    def request_status_update(self):
        for callback in list(self._status_listeners):
            callback(self.status)

    def listener_count(self) -> int:
        return (sum(len(v) for v in self._parameter_listeners.values())
                + sum(len(v) for v in self._endpoint_listeners.values()))

    @staticmethod
    def _notify(table: Dict[str, List[ValueCallback]], endpoint_id: str, value: float):
        for callback in list(table.get(endpoint_id, [])):
            callback(value)
