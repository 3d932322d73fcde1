from __future__ import annotations

import re
from typing import (
    Any,
    Iterable,
    Iterator,
    Mapping,
    MutableMapping,
    Optional,
    Tuple,
)

__all__ = (
    "Headers",
    "FORBIDDEN_REQUEST_HEADERS",
    "is_forbidden_request_header",
    "is_hidden_response_header",
    "with_utf8_charset",
    "is_xml_content_type",
)

FORBIDDEN_REQUEST_HEADERS = frozenset(
    {
        "accept-charset",
        "accept-encoding",
        "connection",
        "content-length",
        "cookie",
        "cookie2",
        "content-transfer-encoding",
        "date",
        "expect",
        "host",
        "keep-alive",
        "referer",
        "te",
        "trailer",
        "transfer-encoding",
        "upgrade",
        "user-agent",
        "via",
    }
)
FORBIDDEN_REQUEST_HEADER_PREFIXES = ("proxy-", "sec-")

HIDDEN_RESPONSE_HEADERS = frozenset({"set-cookie", "set-cookie2"})

UTF8_CHARSET = "charset=utf-8"

_XML_CONTENT_TYPE_RE = re.compile(r"(text/xml)|(application/xml)|(\+xml)")


def is_forbidden_request_header(name: str) -> bool:
    """
    Check whether a header name may not be set by client code.

    Examples:
        >>> is_forbidden_request_header("User-Agent")
        True
        >>> is_forbidden_request_header("proxy-authorization")
        True
        >>> is_forbidden_request_header("X-Requested-With")
        False
    """
    lowered = name.lower()
    return lowered in FORBIDDEN_REQUEST_HEADERS or lowered.startswith(FORBIDDEN_REQUEST_HEADER_PREFIXES)


def is_hidden_response_header(name: str) -> bool:
    return name.lower() in HIDDEN_RESPONSE_HEADERS


def with_utf8_charset(content_type: str) -> str:
    """
    Force the charset parameter of a Content-Type value to UTF-8.

    Other parameters are kept in their original order, an existing charset
    parameter is replaced.

    Examples:
        >>> with_utf8_charset("text/html")
        'text/html;charset=utf-8'
        >>> with_utf8_charset("text/html; charset=latin-1")
        'text/html;charset=utf-8'
        >>> with_utf8_charset("multipart/mixed; boundary=xyz")
        'multipart/mixed; boundary=xyz;charset=utf-8'
    """
    media_type, *params = content_type.split(";")
    kept = [param for param in params if not param.strip().lower().startswith("charset=")]
    return ";".join([media_type.rstrip(), *kept, UTF8_CHARSET])


def is_xml_content_type(content_type: Optional[str]) -> bool:
    """A missing Content-Type counts as XML, so the body is sniffed."""
    if not content_type:
        return True
    return _XML_CONTENT_TYPE_RE.search(content_type) is not None


class Headers(MutableMapping[str, Any]):
    """
    Header map with case-insensitive access that remembers the casing each
    name was first stored under.

    Iteration, `repr` and equality use the stored casing, so a `Headers`
    compares equal to the plain dict it was built from.
    """

    def __init__(self, headers: Optional[Mapping[str, Any]] = None) -> None:
        self._headers: dict[str, Tuple[str, Any]] = {}
        for key, value in (headers or {}).items():
            self[key] = value

    def find(self, key: str) -> Optional[str]:
        """Returns the stored casing of `key`, or None if it is not present."""
        entry = self._headers.get(key.lower())
        return entry[0] if entry is not None else None

    def append(self, key: str, value: Any, separator: str = ",") -> None:
        existing = self._headers.get(key.lower())
        if existing is None:
            self[key] = value
        else:
            self[key] = f"{existing[1]}{separator}{value}"

    def serialize(self, exclude: Iterable[str] = HIDDEN_RESPONSE_HEADERS) -> str:
        excluded = {name.lower() for name in exclude}
        return "".join(f"{name}: {value}\r\n" for name, value in self.items() if name.lower() not in excluded)

    def __getitem__(self, key: str) -> Any:
        return self._headers[key.lower()][1]

    def __setitem__(self, key: str, value: Any) -> None:
        name = self.find(key) or key
        self._headers[key.lower()] = (name, value)

    def __delitem__(self, key: str) -> None:
        del self._headers[key.lower()]

    def __iter__(self) -> Iterator[str]:
        return iter([name for name, _ in self._headers.values()])

    def __len__(self) -> int:
        return len(self._headers)

    def __repr__(self) -> str:
        return repr(dict(self.items()))

    def __str__(self) -> str:
        return str(dict(self.items()))

    def __eq__(self, other_headers: Any) -> bool:
        if not isinstance(other_headers, Mapping):
            return NotImplemented
        return dict(self.items()) == dict(other_headers.items())
