from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterator, Optional

from fakexhr._core._codecs import convert_response_body, parse_xml
from fakexhr._core._headers import is_xml_content_type
from fakexhr._core.models import ReadyState, ResponseType

if TYPE_CHECKING:
    from fakexhr._core._request import FakeRequest

__all__ = ("split_chunks", "ResponseStreamer")

logger = logging.getLogger("fakexhr.core.streaming")


def split_chunks(body: str, chunk_size: Optional[int] = None) -> Iterator[str]:
    """
    Split a body into consecutive pieces of `chunk_size` characters.

    The last piece may be shorter. Without a positive chunk size the whole
    body is a single piece, and an empty body still yields one (empty)
    piece, so delivering it enters the LOADING state once.

    Examples:
        >>> list(split_chunks("Some text goes in here ok?", 10))
        ['Some text ', 'goes in he', 're ok?']
        >>> list(split_chunks("abc"))
        ['abc']
        >>> list(split_chunks(""))
        ['']
    """
    size = chunk_size if chunk_size is not None and chunk_size > 0 else len(body)
    if not body or size == 0:
        yield body
        return
    for index in range(0, len(body), size):
        yield body[index : index + size]


class ResponseStreamer:
    """
    Delivers a response body to a request in the HEADERS_RECEIVED state
    and carries it through LOADING to DONE.

    Asynchronous requests get one LOADING notification per chunk. Each
    notification observes the text delivered before it, then the chunk is
    appended, so `response_text` only ever grows by whole chunks and equals
    the full body once DONE is announced. Synchronous requests skip the
    intermediate notifications and announce DONE once. The send flag is
    cleared before DONE is announced.
    """

    def __init__(self, request: FakeRequest) -> None:
        self.request = request

    def deliver(self, body: str) -> None:
        request = self.request
        response_type = ResponseType(request.response_type)
        content_type = request.content_type
        cycle = request.cycle

        request.response_text = ""
        request.response = "" if response_type.is_text else None
        request.response_xml = None

        if request.is_async:
            for chunk in split_chunks(body, request.chunk_size):
                request.ready_state_change(ReadyState.LOADING)
                if request.cycle != cycle:
                    logger.debug("Request was reset while loading, dropping the rest of the body")
                    return
                if response_type.is_text:
                    request.response_text += chunk
                    request.response = request.response_text

        request.response = convert_response_body(response_type, content_type, body)
        if response_type.is_text:
            request.response_text = request.response

        if response_type is ResponseType.DOCUMENT:
            request.response_xml = request.response
        elif response_type is ResponseType.DEFAULT and is_xml_content_type(content_type):
            request.response_xml = parse_xml(body)

        request.received_length = len(body)
        request.send_flag = False
        request.ready_state_change(ReadyState.DONE)
