from __future__ import annotations

import json
import xml.etree.ElementTree as ET
from typing import Any, Callable, Dict, Optional, Union

from fakexhr._core.models import Blob, ResponseType

__all__ = (
    "convert_response_body",
    "initial_response",
    "parse_xml",
    "to_bytes",
)

Codec = Callable[[str, Optional[str]], Any]


def to_bytes(body: str) -> bytes:
    """
    Encode one byte per character code, keeping only the low eight bits.

    Bodies are handed to the fake as strings even for binary response
    types, so "\\xff" becomes the single byte 0xFF.
    """
    return bytes(ord(char) & 0xFF for char in body)


def parse_xml(text: str) -> Optional[ET.ElementTree]:
    if not text:
        return None
    try:
        return ET.ElementTree(ET.fromstring(text))
    except ET.ParseError:
        return None


def _decode_text(body: str, content_type: Optional[str]) -> str:
    return body


def _decode_json(body: str, content_type: Optional[str]) -> Any:
    try:
        return json.loads(body)
    except ValueError:
        return None


def _decode_document(body: str, content_type: Optional[str]) -> Optional[ET.ElementTree]:
    return parse_xml(body)


def _decode_arraybuffer(body: str, content_type: Optional[str]) -> bytes:
    return to_bytes(body)


def _decode_blob(body: str, content_type: Optional[str]) -> Blob:
    return Blob(data=to_bytes(body), type=content_type or "")


CODECS: Dict[ResponseType, Codec] = {
    ResponseType.DEFAULT: _decode_text,
    ResponseType.TEXT: _decode_text,
    ResponseType.JSON: _decode_json,
    ResponseType.DOCUMENT: _decode_document,
    ResponseType.ARRAYBUFFER: _decode_arraybuffer,
    ResponseType.BLOB: _decode_blob,
}


def convert_response_body(
    response_type: Union[ResponseType, str],
    content_type: Optional[str],
    body: str,
) -> Any:
    return CODECS[ResponseType(response_type)](body, content_type)


def initial_response(response_type: Union[ResponseType, str]) -> Optional[str]:
    """Value of `response` before any body arrives."""
    return "" if ResponseType(response_type).is_text else None
