"""
Widgets and pointer routing.

A panel is a shallow tree: one RootWidget holding knobs and a meter at
fixed rects. The root routes pointer input:

- POINTER_DOWN on a control captures the pointer for that control
- MOVE/UP go to the capturing control, wherever the pointer is
- hover moves and stray releases over no control are dropped
- capture lost any other way goes through cancel_capture(), which sends
  POINTER_CANCEL so the control can end its gesture
"""

from __future__ import annotations
from collections import defaultdict
from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, DefaultDict, List, Optional, Tuple, TYPE_CHECKING

from patchview.ui.layout import Rect

if TYPE_CHECKING:
    from patchview.ui.draw import DrawContext


class EventType(Enum):
    POINTER_DOWN = auto()
    POINTER_UP = auto()
    POINTER_MOVE = auto()
    POINTER_CANCEL = auto()
    DOUBLE_CLICK = auto()
    BLUR = auto()


MOD_SHIFT = 0x1


@dataclass
class Event:
    """Input event; x/y are local to the widget currently handling it."""
    type: EventType
    x: float = 0.0
    y: float = 0.0
    button: int = 0
    delta_x: float = 0.0
    delta_y: float = 0.0
    modifiers: int = 0
    pointer_type: str = "mouse"  # or "touch"
    stopped: bool = False

    def stop_propagation(self):
        self.stopped = True

    @property
    def shift(self) -> bool:
        return bool(self.modifiers & MOD_SHIFT)


EventHandler = Callable[[Event], None]


class Widget:
    """Node with a rect in parent coordinates, handlers and children."""

    def __init__(self, rect: Rect = None):
        self.parent: Optional[Widget] = None
        self._rect = rect
        self._visible = True
        self._children: List[Widget] = []
        self._handlers: DefaultDict[EventType, List[EventHandler]] = defaultdict(list)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(rect={self._rect}, children={len(self._children)})"

    # tree

    @property
    def children(self) -> List[Widget]:
        return self._children

    def add_child(self, child: Widget):
        if child.parent is not None:
            child.parent.remove_child(child)
        self._children.append(child)
        child.parent = self

    def remove_child(self, child: Widget):
        if child in self._children:
            self._children.remove(child)
            child.parent = None

    def clear_children(self):
        children, self._children = self._children, []
        for child in children:
            child.parent = None

    # geometry

    @property
    def rect(self) -> Optional[Rect]:
        return self._rect

    def layout(self, rect: Rect):
        self._rect = rect

    @property
    def visible(self) -> bool:
        return self._visible

    def set_visible(self, visible: bool):
        self._visible = visible

    def origin(self) -> Tuple[float, float]:
        """Top-left corner in root coordinates."""
        x = y = 0.0
        node = self
        while node is not None and node.parent is not None and node._rect is not None:
            x += node._rect.x
            y += node._rect.y
            node = node.parent
        return x, y

    def hit_test(self, x: float, y: float) -> Optional[Widget]:
        """Deepest visible widget under (x, y), given in parent coordinates."""
        if not self._visible or self._rect is None or not self._rect.contains(x, y):
            return None
        lx, ly = x - self._rect.x, y - self._rect.y
        for child in reversed(self._children):
            found = child.hit_test(lx, ly)
            if found is not None:
                return found
        return self

    # events

    def on(self, event_type: EventType, handler: EventHandler):
        self._handlers[event_type].append(handler)

    def off(self, event_type: EventType, handler: EventHandler):
        handlers = self._handlers.get(event_type)
        if handlers and handler in handlers:
            handlers.remove(handler)

    def emit(self, event: Event):
        for handler in tuple(self._handlers.get(event.type, ())):
            handler(event)
            if event.stopped:
                return

    def handle_event(self, event: Event) -> bool:
        """Run handlers here, then in each ancestor until stopped. True if stopped."""
        node = self
        while node is not None:
            node.emit(event)
            if event.stopped:
                return True
            if node._rect is not None and node.parent is not None:
                event.x += node._rect.x
                event.y += node._rect.y
            node = node.parent
        return False

    def draw(self, ctx: DrawContext):
        if not self._visible or self._rect is None:
            return
        ctx.push_offset(self._rect.x, self._rect.y)
        try:
            for child in self._children:
                child.draw(ctx)
        finally:
            ctx.pop_offset()

    def destroy(self):
        for child in tuple(self._children):
            child.destroy()
        self._handlers.clear()


class RootWidget(Widget):
    """Panel root. Owns pointer capture."""

    def __init__(self, width: int = 280, height: int = 350):
        super().__init__(rect=Rect(0, 0, width, height))
        self._capture: Optional[Widget] = None

    @property
    def captured(self) -> Optional[Widget]:
        return self._capture

    def dispatch_pointer_event(
        self,
        event_type: EventType,
        x: float,
        y: float,
        button: int = 0,
        delta_x: float = 0.0,
        delta_y: float = 0.0,
        modifiers: int = 0,
        pointer_type: str = "mouse",
    ) -> Optional[Widget]:
        """Deliver a pointer event given in root coordinates. Returns the receiving widget."""
        target = self._capture
        if target is None:
            target = self.hit_test(x, y)
            if target is None or target is self:
                return None
            if event_type is EventType.POINTER_DOWN:
                self._capture = target
            elif event_type is not EventType.DOUBLE_CLICK:
                return None

        ox, oy = target.origin()
        target.handle_event(Event(
            event_type, x - ox, y - oy,
            button=button,
            delta_x=delta_x,
            delta_y=delta_y,
            modifiers=modifiers,
            pointer_type=pointer_type,
        ))
        if event_type is EventType.POINTER_UP:
            self._capture = None
        return target

    def dispatch_double_click(self, x: float, y: float, pointer_type: str = "mouse") -> Optional[Widget]:
        self.cancel_capture()
        return self.dispatch_pointer_event(EventType.DOUBLE_CLICK, x, y, pointer_type=pointer_type)

    def cancel_capture(self) -> bool:
        """Drop capture and send POINTER_CANCEL to the holder. False if nothing was captured."""
        holder, self._capture = self._capture, None
        if holder is None:
            return False
        holder.handle_event(Event(EventType.POINTER_CANCEL))
        return True

    def release_widget(self, widget: Widget):
        """Forget widget before it is destroyed; no cancel is sent."""
        if self._capture is widget:
            self._capture = None
