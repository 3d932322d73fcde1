from __future__ import annotations

import codecs
import logging
import typing as t
from typing import Any, Optional, Union

import httpx

from fakexhr._core._codecs import convert_response_body, parse_xml
from fakexhr._core._events import Event, EventTarget, ProgressEvent
from fakexhr._core._headers import (
    Headers,
    is_forbidden_request_header,
    is_hidden_response_header,
    is_xml_content_type,
)
from fakexhr._core.models import Blob, FormData, ReadyState, ResponseType
from fakexhr._exceptions import SecurityError

__all__ = ("HTTPXTransport",)

logger = logging.getLogger("fakexhr.httpx")


class HTTPXTransport(EventTarget):
    """
    Real transport for defaked requests, backed by an `httpx.Client`.

    The request is performed inside `send()`. Readiness is reported the
    same way a browser request reports it: a "readystatechange" event for
    OPENED, HEADERS_RECEIVED, every received chunk (LOADING) and DONE,
    followed by the progress/load/loadend events. Transport failures end
    the request at DONE with status 0 and an "error" event.

    Example:
        ```python
        registry.transport_factory = lambda: HTTPXTransport(
            client=httpx.Client(transport=httpx.MockTransport(handler))
        )
        ```
    """

    handler_names = (
        "readystatechange",
        "loadstart",
        "progress",
        "abort",
        "error",
        "load",
        "timeout",
        "loadend",
    )

    def __init__(self, client: Optional[httpx.Client] = None, chunk_size: Optional[int] = None) -> None:
        super().__init__()
        self.client: Optional[httpx.Client] = client
        self.chunk_size = chunk_size

        self.ready_state = ReadyState.UNSENT
        self.method: Optional[str] = None
        self.url: Optional[str] = None
        self.is_async = True
        self.username: Optional[str] = None
        self.password: Optional[str] = None

        self.request_headers = Headers()
        self.response_headers = Headers()
        self.status = 0
        self.status_text = ""
        self.response: Any = ""
        self.response_text = ""
        self.response_xml: Any = None

        self.response_type: Union[ResponseType, str] = ResponseType.DEFAULT
        self.timeout = 0
        self.with_credentials = False
        self.mime_type_override: Optional[str] = None
        self.aborted = False
        self.send_flag = False

    def open(
        self,
        method: str,
        url: str,
        is_async: bool = True,
        username: Optional[str] = None,
        password: Optional[str] = None,
    ) -> None:
        self.method = method
        self.url = url
        self.is_async = is_async
        self.username = username
        self.password = password
        self.request_headers = Headers()
        self.response_headers = Headers()
        self.status = 0
        self.status_text = ""
        self.response_text = ""
        self.response = "" if ResponseType(self.response_type).is_text else None
        self.response_xml = None
        self.aborted = False
        self._change(ReadyState.OPENED)

    def set_request_header(self, name: str, value: str) -> None:
        if is_forbidden_request_header(name):
            raise SecurityError(f'Refused to set unsafe header "{name}"')
        self.request_headers.append(name, value)

    def send(self, body: Any = None) -> None:
        """
        Perform the request. Without a client passed to the constructor a
        client is created for this request and closed once it completes.
        """
        logger.debug("Sending %s %s through httpx", self.method, self.url)
        self.aborted = False
        self.send_flag = True
        self.dispatch_event(ProgressEvent(type="loadstart", target=self))

        try:
            if self.client is not None:
                self._perform(self.client, body)
            else:
                with httpx.Client() as client:
                    self._perform(client, body)
        finally:
            self.send_flag = False

    def _perform(self, client: httpx.Client, body: Any) -> None:
        try:
            with client.stream(
                t.cast(str, self.method),
                t.cast(str, self.url),
                headers=dict(self.request_headers.items()),
                auth=self._auth(),
                timeout=self.timeout / 1000 if self.timeout else httpx.USE_CLIENT_DEFAULT,
                **self._body_arguments(body),
            ) as response:
                data = self._receive(response)
        except httpx.HTTPError as exc:
            logger.debug("Request to %s failed: %s", self.url, exc)
            self.status = 0
            self.status_text = ""
            self._finish("error", 0)
            return

        if self.aborted:
            self.status = 0
            self.status_text = ""
            self.response_text = ""
            self.response = "" if ResponseType(self.response_type).is_text else None
            self._finish("abort", 0)
            self.ready_state = ReadyState.UNSENT
            return

        response_type = ResponseType(self.response_type)
        content_type = self.mime_type_override or self.response_headers.get("Content-Type")
        if response_type is ResponseType.ARRAYBUFFER:
            self.response = data
        elif response_type is ResponseType.BLOB:
            self.response = Blob(data=data, type=content_type or "")
        else:
            self.response = convert_response_body(response_type, content_type, self.response_text)

        if response_type is ResponseType.DOCUMENT:
            self.response_xml = self.response
        elif response_type is ResponseType.DEFAULT and is_xml_content_type(content_type):
            self.response_xml = parse_xml(self.response_text)

        self._finish("load", len(data))

    def abort(self) -> None:
        # Only a request in flight can be interrupted; it stops after the current chunk.
        if self.send_flag:
            self.aborted = True
        else:
            self.ready_state = ReadyState.UNSENT

    def get_response_header(self, name: str) -> Optional[str]:
        if self.ready_state < ReadyState.HEADERS_RECEIVED or is_hidden_response_header(name):
            return None
        return self.response_headers.get(name)

    def get_all_response_headers(self) -> str:
        if self.ready_state < ReadyState.HEADERS_RECEIVED:
            return ""
        return self.response_headers.serialize()

    def override_mime_type(self, mime_type: str) -> None:
        self.mime_type_override = mime_type

    def close(self) -> None:
        if self.client is not None:
            self.client.close()

    def _receive(self, response: httpx.Response) -> bytes:
        self.status = response.status_code
        self.status_text = response.reason_phrase
        headers = Headers()
        for key, value in response.headers.raw:
            headers.append(key.decode("latin-1"), value.decode("latin-1"), separator=", ")
        self.response_headers = headers
        self._change(ReadyState.HEADERS_RECEIVED)

        is_text = ResponseType(self.response_type).is_text
        decoder = codecs.getincrementaldecoder(response.encoding or "utf-8")(errors="replace")
        received: t.List[bytes] = []
        for chunk in response.iter_bytes(chunk_size=self.chunk_size):
            received.append(chunk)
            self.response_text += decoder.decode(chunk)
            if is_text:
                self.response = self.response_text
            self._change(ReadyState.LOADING)
            if self.aborted:
                break

        self.response_text += decoder.decode(b"", final=True)
        return b"".join(received)

    def _auth(self) -> Optional[t.Tuple[str, str]]:
        if self.username is None:
            return None
        return (self.username, self.password or "")

    def _body_arguments(self, body: Any) -> t.Dict[str, Any]:
        if body is None or t.cast(str, self.method).upper() in ("GET", "HEAD"):
            return {}
        if isinstance(body, FormData):
            data: t.Dict[str, Any] = {}
            for name, value in body.fields:
                data.setdefault(name, []).append(value)
            return {"data": {name: values[0] if len(values) == 1 else values for name, values in data.items()}}
        return {"content": body}

    def _change(self, state: ReadyState) -> None:
        self.ready_state = state
        self.dispatch_event(Event(type="readystatechange", target=self))

    def _finish(self, outcome: str, loaded: int) -> None:
        self._change(ReadyState.DONE)
        for event_type in ("progress", outcome, "loadend"):
            self.dispatch_event(ProgressEvent(type=event_type, target=self, loaded=loaded, total=loaded))
