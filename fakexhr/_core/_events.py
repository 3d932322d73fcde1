from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple, Union

__all__ = (
    "Event",
    "ProgressEvent",
    "EventTarget",
    "ProgressEmitter",
    "Listener",
)

logger = logging.getLogger("fakexhr.core.events")


class EventHandler(Protocol):
    def handle_event(self, event: Event) -> Any: ...


Listener = Union[Callable[["Event"], Any], EventHandler]


@dataclass
class Event:
    type: str
    target: Any = None
    detail: Any = None
    bubbles: bool = False
    cancelable: bool = False
    default_prevented: bool = False
    current_target: Any = None

    @property
    def message(self) -> Optional[str]:
        """Text of the error carried in `detail`, if any."""
        if self.detail is None:
            return None
        return str(self.detail)

    def prevent_default(self) -> None:
        if self.cancelable:
            self.default_prevented = True


@dataclass
class ProgressEvent(Event):
    loaded: int = 0
    total: int = 0

    @property
    def length_computable(self) -> bool:
        return self.total > 0


class EventTarget:
    """
    Listener registry with DOM-style dispatch.

    Besides listeners added with `add_event_listener`, every name in
    `handler_names` gets a legacy `on<name>` slot. A callable stored in the
    slot runs before the listeners of that event type.

    Exceptions raised by handlers are logged and swallowed, so one broken
    handler never prevents the others (or the caller's state machine) from
    running.
    """

    handler_names: Tuple[str, ...] = ()

    def __init__(self) -> None:
        self.event_listeners: Dict[str, List[Listener]] = {}
        for name in self.handler_names:
            setattr(self, f"on{name}", None)

    def add_event_listener(self, type: str, listener: Listener) -> None:
        listeners = self.event_listeners.setdefault(type, [])
        if not any(existing is listener for existing in listeners):
            listeners.append(listener)

    def remove_event_listener(self, type: str, listener: Listener) -> None:
        listeners = self.event_listeners.get(type, [])
        for index, existing in enumerate(listeners):
            if existing is listener:
                del listeners[index]
                return

    def dispatch_event(self, event: Event) -> bool:
        if event.target is None:
            event.target = self
        event.current_target = self

        if event.type in self.handler_names:
            handler = getattr(self, f"on{event.type}", None)
            if callable(handler):
                invoke_handler(handler, event)

        for listener in list(self.event_listeners.get(event.type, [])):
            invoke_handler(listener, event)

        return not event.default_prevented


def invoke_handler(handler: Listener, event: Event) -> None:
    try:
        if callable(handler):
            handler(event)
        else:
            handler.handle_event(event)
    except Exception:
        logger.error("Error in %r handler", event.type, exc_info=True)


class ProgressEmitter:
    """
    Emits the progress family of events (loadstart, progress,
    load/abort/error, loadend) on a single target.
    """

    def __init__(self, target: EventTarget) -> None:
        self.target = target

    def emit(self, type: str, loaded: int = 0, total: int = 0, detail: Any = None) -> ProgressEvent:
        event = ProgressEvent(type=type, target=self.target, detail=detail, loaded=loaded, total=total)
        self.target.dispatch_event(event)
        return event

    def loadstart(self) -> ProgressEvent:
        return self.emit("loadstart")

    def progress(self, loaded: int, total: int) -> ProgressEvent:
        return self.emit("progress", loaded=loaded, total=total)

    def error(self, error: Any) -> ProgressEvent:
        return self.emit("error", detail=error)

    def finish(self, outcome: str, loaded: int = 0, total: int = 0) -> None:
        """
        Runs the terminal sequence: progress, then `outcome` ("load",
        "abort" or "error"), then loadend, all with the same counters.
        """
        self.emit("progress", loaded=loaded, total=total)
        self.emit(outcome, loaded=loaded, total=total)
        self.emit("loadend", loaded=loaded, total=total)
