from __future__ import annotations

import abc
import logging
from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    Optional,
    Protocol,
    Sequence,
    Tuple,
    Union,
    runtime_checkable,
)

from fakexhr._core._events import Event, invoke_handler
from fakexhr._core.models import ReadyState

if TYPE_CHECKING:
    from fakexhr._core._request import FakeRequest

__all__ = (
    "BaseFilter",
    "FunctionFilter",
    "Filter",
    "RealTransport",
    "OpenArgs",
    "PROXIED_METHODS",
    "FORWARDED_ATTRIBUTES",
    "apply_filter",
    "defake",
)

logger = logging.getLogger("fakexhr.filters")

OpenArgs = Tuple[str, str, bool, Optional[str], Optional[str]]

PROXIED_METHODS = (
    "open",
    "set_request_header",
    "send",
    "abort",
    "get_response_header",
    "get_all_response_headers",
    "add_event_listener",
    "remove_event_listener",
    "override_mime_type",
)

FORWARDED_ATTRIBUTES = ("response_type", "timeout", "with_credentials")


class BaseFilter(abc.ABC):
    """
    Decides whether a request should bypass the fake and reach a real
    transport. Receives the arguments the request was opened with.
    """

    @abc.abstractmethod
    def apply(
        self,
        method: str,
        url: str,
        is_async: bool,
        username: Optional[str],
        password: Optional[str],
    ) -> bool:
        pass


class FunctionFilter(BaseFilter):
    def __init__(self, predicate: Callable[..., Any]) -> None:
        self.predicate = predicate

    def apply(
        self,
        method: str,
        url: str,
        is_async: bool,
        username: Optional[str],
        password: Optional[str],
    ) -> bool:
        return bool(self.predicate(method, url, is_async, username, password))


Filter = Union[BaseFilter, Callable[..., Any]]


def apply_filter(filter: Filter, args: OpenArgs) -> bool:
    if isinstance(filter, BaseFilter):
        return filter.apply(*args)
    return bool(filter(*args))


@runtime_checkable
class RealTransport(Protocol):
    """
    What a real transport must offer to stand in for a defaked request.

    Readiness notifications are delivered to listeners registered for
    "readystatechange". The transport's state attributes are read after
    each notification.
    """

    ready_state: int
    status: int
    status_text: str
    response_text: Any
    response: Any
    response_xml: Any
    response_type: Any
    timeout: int
    with_credentials: bool

    def open(
        self,
        method: str,
        url: str,
        is_async: bool = True,
        username: Optional[str] = None,
        password: Optional[str] = None,
    ) -> None: ...

    def set_request_header(self, name: str, value: str) -> None: ...

    def send(self, body: Any = None) -> None: ...

    def abort(self) -> None: ...

    def get_response_header(self, name: str) -> Optional[str]: ...

    def get_all_response_headers(self) -> str: ...

    def add_event_listener(self, type: str, listener: Callable[..., Any]) -> None: ...

    def remove_event_listener(self, type: str, listener: Callable[..., Any]) -> None: ...

    def override_mime_type(self, mime_type: str) -> None: ...


def defake(request: FakeRequest, args: Sequence[Any]) -> RealTransport:
    """
    Hand a fake request over to a real transport.

    The transport comes from the request's registry. From then on the
    methods listed in `PROXIED_METHODS` are forwarded to it, and every
    readiness notification it emits is mirrored onto the fake: the ready
    state always, status fields from HEADERS_RECEIVED, body fields from
    LOADING and the parsed document at DONE. The fake's
    `onreadystatechange` slot is then called with the fake as the event
    target.

    The attributes in `FORWARDED_ATTRIBUTES` and the listeners added to the
    fake before the hand-over are copied to the transport. Finally the
    transport is opened with `args`.
    """
    transport = request.registry.create_transport()
    logger.debug("Delegating request to %s", type(transport).__name__)

    def mirror_state(event: Optional[Event] = None) -> None:
        state = ReadyState(transport.ready_state)
        request.ready_state = state
        if state >= ReadyState.HEADERS_RECEIVED:
            request.status = transport.status
            request.status_text = transport.status_text
        if state >= ReadyState.LOADING:
            request.response_text = transport.response_text
            request.response = transport.response
        if state == ReadyState.DONE:
            request.response_xml = transport.response_xml

        handler = request.onreadystatechange
        if callable(handler):
            invoke_handler(handler, Event(type="readystatechange", target=request, current_target=request))

    for name in FORWARDED_ATTRIBUTES:
        setattr(transport, name, getattr(request, name))

    for event_type, listeners in request.event_listeners.items():
        for listener in listeners:
            transport.add_event_listener(event_type, listener)
    transport.add_event_listener("readystatechange", mirror_state)

    request.delegate = transport
    transport.open(*args)
    return transport
