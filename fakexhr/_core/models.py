from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, List, Tuple, Union

import httpx


class ReadyState(IntEnum):
    UNSENT = 0
    OPENED = 1
    HEADERS_RECEIVED = 2
    LOADING = 3
    DONE = 4


class ResponseType(str, Enum):
    DEFAULT = ""
    TEXT = "text"
    JSON = "json"
    DOCUMENT = "document"
    ARRAYBUFFER = "arraybuffer"
    BLOB = "blob"

    @property
    def is_text(self) -> bool:
        return self in (ResponseType.DEFAULT, ResponseType.TEXT)


@dataclass
class Blob:
    """
    Immutable binary payload, the value of `response` for `response_type="blob"`.
    """

    data: bytes = b""
    type: str = ""

    @property
    def size(self) -> int:
        return len(self.data)

    def read(self) -> bytes:
        return self.data

    def text(self, encoding: str = "latin-1") -> str:
        return self.data.decode(encoding)


@dataclass
class FormData:
    """
    Multipart form payload. Sending one never adds a Content-Type header,
    the boundary is left for the transport to choose.
    """

    fields: List[Tuple[str, Any]] = field(default_factory=list)

    def append(self, name: str, value: Any) -> None:
        self.fields.append((name, value))

    def get(self, name: str) -> Any:
        for key, value in self.fields:
            if key == name:
                return value
        return None

    def get_all(self, name: str) -> List[Any]:
        return [value for key, value in self.fields if key == name]


RequestBody = Union[str, bytes, FormData, None]


def get_status_text(status: int) -> str:
    """
    Returns the standard reason phrase for a status code, or an empty
    string for unknown codes.

    Examples:
        >>> get_status_text(201)
        'Created'
        >>> get_status_text(599)
        ''
    """
    return httpx.codes.get_reason_phrase(status)
