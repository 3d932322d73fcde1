from __future__ import annotations

import functools
import logging
from typing import (
    Any,
    Callable,
    Mapping,
    Optional,
    Tuple,
    TypeVar,
    Union,
    cast,
)

from fakexhr._core._codecs import initial_response
from fakexhr._core._events import (
    Event,
    EventTarget,
    Listener,
    ProgressEmitter,
    invoke_handler,
)
from fakexhr._core._headers import (
    Headers,
    is_forbidden_request_header,
    is_hidden_response_header,
    with_utf8_charset,
)
from fakexhr._core._streaming import ResponseStreamer
from fakexhr._core.models import (
    FormData,
    ReadyState,
    RequestBody,
    ResponseType,
    get_status_text,
)
from fakexhr._exceptions import (
    InvalidBodyError,
    InvalidStateError,
    ProtocolError,
    SecurityError,
)
from fakexhr._filters import RealTransport, defake
from fakexhr._registry import Registry, registry as default_registry

__all__ = ("FakeRequest", "FakeUpload")

logger = logging.getLogger("fakexhr.core.request")

F = TypeVar("F", bound=Callable[..., Any])

PROGRESS_EVENTS = ("loadstart", "progress", "abort", "error", "load", "timeout", "loadend")

DEFAULT_CONTENT_TYPE = "text/plain;charset=utf-8"


def proxied(method: F) -> F:
    """Forward the call to the real transport once the request is defaked."""

    @functools.wraps(method)
    def wrapper(self: FakeRequest, *args: Any, **kwargs: Any) -> Any:
        if self.delegate is not None:
            return getattr(self.delegate, method.__name__)(*args, **kwargs)
        return method(self, *args, **kwargs)

    return cast(F, wrapper)


class forwarded_attribute:
    """
    Plain attribute whose writes are repeated on the real transport of a
    defaked request.
    """

    def __init__(self, default: Any, convert: Optional[Callable[[Any], Any]] = None) -> None:
        self.default = default
        self.convert = convert

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name

    def __get__(self, instance: Any, owner: Optional[type] = None) -> Any:
        if instance is None:
            return self
        return instance.__dict__.get(self.name, self.default)

    def __set__(self, instance: Any, value: Any) -> None:
        if self.convert is not None:
            value = self.convert(value)
        instance.__dict__[self.name] = value
        delegate = instance.__dict__.get("delegate")
        if delegate is not None:
            setattr(delegate, self.name, value)


def _progress_counters(progress: Optional[Mapping[str, int]], overrides: Mapping[str, int]) -> Tuple[int, int]:
    values = {**(progress or {}), **overrides}
    return int(values.get("loaded", 0)), int(values.get("total", 0))


class FakeUpload(EventTarget):
    """
    The `upload` side of a request. It has no ready state, its events are
    driven by the owning request.
    """

    handler_names = PROGRESS_EVENTS


class FakeRequest(EventTarget):
    """
    Scriptable stand-in for an XMLHttpRequest-style object.

    Code under test opens and sends the request as usual. Test code then
    plays the server by calling `respond`, or `set_response_headers` and
    `set_response_body` for finer control, and may interrupt with `abort`
    or `error`. Everything happens synchronously inside those calls.

    Example:
        ```python
        request = FakeRequest()
        request.open("GET", "/users/1")
        request.send()
        request.respond(200, {"Content-Type": "application/json"}, '{"id": 1}')
        assert request.response_text == '{"id": 1}'
        ```
    """

    UNSENT = ReadyState.UNSENT
    OPENED = ReadyState.OPENED
    HEADERS_RECEIVED = ReadyState.HEADERS_RECEIVED
    LOADING = ReadyState.LOADING
    DONE = ReadyState.DONE

    handler_names = PROGRESS_EVENTS

    response_type = forwarded_attribute(ResponseType.DEFAULT, convert=ResponseType)
    timeout = forwarded_attribute(0)
    with_credentials = forwarded_attribute(False)

    def __init__(self, registry: Optional[Registry] = None) -> None:
        self.delegate: Optional[RealTransport] = None
        super().__init__()
        self.registry = registry if registry is not None else default_registry
        self.upload = FakeUpload()
        self.progress_emitter = ProgressEmitter(self)
        self.upload_progress_emitter = ProgressEmitter(self.upload)

        self.ready_state = ReadyState.UNSENT
        self.method: Optional[str] = None
        self.url: Optional[str] = None
        self.is_async = True
        self.username: Optional[str] = None
        self.password: Optional[str] = None

        self.request_headers = Headers()
        self.request_body: RequestBody = None
        self.response_headers: Optional[Headers] = None
        self.response: Any = ""
        self.response_text = ""
        self.response_xml: Any = None
        self.status = 0
        self.status_text = ""

        self.send_flag = False
        self.error_flag = False
        self.aborted = False
        self.chunk_size: Optional[int] = None
        self.received_length = 0
        self.cycle = 0
        self.headers_set = False
        self.body_set = False
        self.mime_type_override: Optional[str] = None

        self.on_send: Optional[Callable[[FakeRequest], Any]] = None
        self.onreadystatechange: Optional[Listener] = None

        if self.registry.on_create is not None:
            self.registry.on_create(self)

    def __repr__(self) -> str:
        return f"<FakeRequest {self.method} {self.url} [{self.ready_state.name}]>"

    @property
    def content_type(self) -> Optional[str]:
        """The overridden MIME type if any, else the response Content-Type."""
        if self.mime_type_override is not None:
            return self.mime_type_override
        return self.get_response_header("Content-Type")

    # Lifecycle

    @proxied
    def open(
        self,
        method: str,
        url: str,
        is_async: bool = True,
        username: Optional[str] = None,
        password: Optional[str] = None,
    ) -> None:
        self.cycle += 1
        self.method = method
        self.url = url
        self.is_async = is_async
        self.username = username
        self.password = password

        self.response_text = ""
        self.response = initial_response(self.response_type)
        self.response_xml = None
        self.request_headers = Headers()
        self.request_body = None
        self.response_headers = None
        self.status = 0
        self.status_text = ""
        self.received_length = 0
        self.headers_set = False
        self.body_set = False
        self.error_flag = False
        self.aborted = False
        self.ready_state = ReadyState.OPENED
        self.send_flag = False

        if self.registry.use_filters:
            args = (method, url, is_async, username, password)
            if self.registry.find_filter(args) is not None:
                defake(self, args)
                return

        self.ready_state_change(ReadyState.OPENED)

    @proxied
    def set_request_header(self, name: str, value: str) -> None:
        self._verify_open_and_unsent()
        if is_forbidden_request_header(name):
            raise SecurityError(f'Refused to set unsafe header "{name}"')
        self.request_headers.append(name, value)

    @proxied
    def send(self, body: RequestBody = None) -> None:
        self._verify_open_and_unsent()

        if cast(str, self.method).upper() in ("GET", "HEAD"):
            self.request_body = None
        else:
            if body is not None and not isinstance(body, FormData):
                existing = self.request_headers.find("Content-Type")
                if existing is not None:
                    self.request_headers[existing] = with_utf8_charset(self.request_headers[existing])
                else:
                    self.request_headers["Content-Type"] = DEFAULT_CONTENT_TYPE
            self.request_body = body

        self.error_flag = False
        self.send_flag = self.is_async
        self._clear_response()
        logger.debug("Sending %s %s", self.method, self.url)
        self.ready_state_change(ReadyState.OPENED)

        self.progress_emitter.loadstart()
        if self.request_body is not None:
            self.upload_progress_emitter.loadstart()

        if callable(self.on_send):
            self.on_send(self)

    @proxied
    def abort(self) -> None:
        self.cycle += 1
        self.aborted = True
        self._request_error_steps()
        self.send_flag = False
        self.ready_state = ReadyState.UNSENT

    def error(self) -> None:
        """
        Complete the request as if the network had failed.

        Unlike `abort`, this also ends synchronous requests (for example
        from inside `on_send`) and leaves the request in the DONE state.
        """
        self.cycle += 1
        self.status = 0
        self.status_text = ""
        self._request_error_steps(in_flight_only=False)

    def ready_state_change(self, state: Union[ReadyState, int]) -> None:
        """
        Move to `state` and notify observers.

        The `onreadystatechange` slot runs first. On DONE the upload and
        the request then emit their terminal progress sequence (load, abort
        or error, depending on how the request ended), and finally the
        readystatechange listeners run.
        """
        self.ready_state = ReadyState(state)
        logger.debug("Ready state changed: %s", self.ready_state.name)
        event = Event(type="readystatechange", target=self, current_target=self)

        if callable(self.onreadystatechange):
            invoke_handler(self.onreadystatechange, event)

        if self.ready_state == ReadyState.DONE:
            if self.error_flag:
                outcome = "abort" if self.aborted else "error"
                loaded = 0
            else:
                outcome = "load"
                loaded = self.received_length
            self.upload_progress_emitter.finish(outcome, loaded, loaded)
            self.progress_emitter.finish(outcome, loaded, loaded)

        self.dispatch_event(event)

    # Response side

    def set_response_headers(self, headers: Mapping[str, Any]) -> None:
        if self.headers_set:
            raise ProtocolError("Response headers already set")
        if self.ready_state != ReadyState.OPENED:
            raise InvalidStateError(f"Cannot set response headers in state {self.ready_state.name}")

        self.headers_set = True
        self.response_headers = Headers(headers)
        if self.is_async:
            self.ready_state_change(ReadyState.HEADERS_RECEIVED)
        else:
            self.ready_state = ReadyState.HEADERS_RECEIVED

    def set_response_body(self, body: str) -> None:
        if self.body_set:
            raise ProtocolError("Response body already delivered")
        if self.ready_state != ReadyState.HEADERS_RECEIVED:
            raise InvalidStateError(f"Cannot set response body in state {self.ready_state.name}")
        if not isinstance(body, str):
            raise InvalidBodyError(f"Response body must be a string, got {type(body).__name__}")

        self.body_set = True
        ResponseStreamer(self).deliver(body)

    def respond(
        self,
        status: int = 200,
        headers: Optional[Mapping[str, Any]] = None,
        body: str = "",
    ) -> None:
        self.status = status
        self.status_text = get_status_text(status)
        self.set_response_headers(headers if headers is not None else {})
        self.set_response_body(body)

    @proxied
    def get_response_header(self, name: str) -> Optional[str]:
        if self.ready_state < ReadyState.HEADERS_RECEIVED or self.response_headers is None:
            return None
        if is_hidden_response_header(name):
            return None
        return self.response_headers.get(name)

    @proxied
    def get_all_response_headers(self) -> str:
        if self.ready_state < ReadyState.HEADERS_RECEIVED or self.response_headers is None:
            return ""
        return self.response_headers.serialize()

    @proxied
    def override_mime_type(self, mime_type: str) -> None:
        self.mime_type_override = mime_type

    # Progress

    def download_progress(self, progress: Optional[Mapping[str, int]] = None, **counters: int) -> None:
        loaded, total = _progress_counters(progress, counters)
        self.progress_emitter.progress(loaded, total)

    def upload_progress(self, progress: Optional[Mapping[str, int]] = None, **counters: int) -> None:
        loaded, total = _progress_counters(progress, counters)
        self.upload_progress_emitter.progress(loaded, total)

    def upload_error(self, error: BaseException) -> None:
        self.upload_progress_emitter.error(error)

    # Listeners

    @proxied
    def add_event_listener(self, type: str, listener: Listener) -> None:
        super().add_event_listener(type, listener)

    @proxied
    def remove_event_listener(self, type: str, listener: Listener) -> None:
        super().remove_event_listener(type, listener)

    # Helpers

    def _verify_open_and_unsent(self) -> None:
        if self.ready_state != ReadyState.OPENED:
            raise InvalidStateError(f"Request is not opened (state {self.ready_state.name})")
        if self.send_flag:
            raise InvalidStateError("Request was already sent")

    def _clear_response(self) -> None:
        self.response_text = ""
        self.response = initial_response(self.response_type)
        self.response_xml = None

    def _request_error_steps(self, in_flight_only: bool = True) -> None:
        self._clear_response()
        self.error_flag = True
        self.request_headers = Headers()
        self.response_headers = Headers()
        if self.ready_state in (ReadyState.UNSENT, ReadyState.DONE):
            return
        if in_flight_only and not self.send_flag:
            return
        self.ready_state_change(ReadyState.DONE)
        self.send_flag = False
