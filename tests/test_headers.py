import pytest

from fakexhr import Headers
from fakexhr._core._headers import (
    is_forbidden_request_header,
    is_hidden_response_header,
    is_xml_content_type,
    with_utf8_charset,
)


class TestHeaders:
    """Case handling of the header map."""

    def test_lookup_is_case_insensitive(self):
        headers = Headers({"Content-Type": "text/html"})
        assert headers["content-type"] == "text/html"
        assert headers.get("CONTENT-TYPE") == "text/html"
        assert "content-TYPE" in headers

    def test_first_casing_is_kept(self):
        headers = Headers()
        headers["content-type"] = "application/json"
        headers["Content-Type"] = "text/html"

        assert list(headers) == ["content-type"]
        assert headers.find("CONTENT-TYPE") == "content-type"
        assert headers == {"content-type": "text/html"}

    def test_find_missing_header(self):
        assert Headers().find("X-Missing") is None

    def test_append_joins_with_comma(self):
        headers = Headers()
        headers.append("X-Fake", "Oh")
        headers.append("x-fake", "yeah!")

        assert headers == {"X-Fake": "Oh,yeah!"}

    def test_append_with_custom_separator(self):
        headers = Headers({"Accept": "text/html"})
        headers.append("accept", "application/json", separator=", ")

        assert headers["Accept"] == "text/html, application/json"

    def test_equality_with_plain_dict(self):
        assert Headers({"id": 42}) == {"id": 42}
        assert Headers({"a": "1"}) != {"A": "1"}
        assert Headers() == {}

    def test_delete(self):
        headers = Headers({"X-One": "1", "X-Two": "2"})
        del headers["x-one"]

        assert headers == {"X-Two": "2"}
        assert len(headers) == 1

    def test_serialize_keeps_insertion_order(self):
        headers = Headers(
            {
                "Content-Type": "text/html",
                "Set-Cookie2": "There",
                "Content-Length": "32",
            }
        )

        assert headers.serialize() == "Content-Type: text/html\r\nContent-Length: 32\r\n"

    def test_serialize_without_visible_headers(self):
        headers = Headers({"Set-Cookie": "Hey", "set-cookie2": "There"})
        assert headers.serialize() == ""

    def test_repr(self):
        assert repr(Headers({"X-Fake": "1"})) == "{'X-Fake': '1'}"


@pytest.mark.parametrize(
    "name",
    [
        "Accept-Charset",
        "Accept-Encoding",
        "Connection",
        "Content-Length",
        "Cookie",
        "Cookie2",
        "Content-Transfer-Encoding",
        "Date",
        "Expect",
        "Host",
        "Keep-Alive",
        "Referer",
        "TE",
        "Trailer",
        "Transfer-Encoding",
        "Upgrade",
        "User-Agent",
        "Via",
        "Proxy-Oops",
        "Sec-Oops",
        "user-agent",
        "proxy-authorization",
        "SEC-FETCH-MODE",
    ],
)
def test_forbidden_request_headers(name: str) -> None:
    assert is_forbidden_request_header(name)


@pytest.mark.parametrize("name", ["X-Fake", "Content-Type", "Accept", "Authorization", "Proxied"])
def test_allowed_request_headers(name: str) -> None:
    assert not is_forbidden_request_header(name)


def test_hidden_response_headers() -> None:
    assert is_hidden_response_header("Set-Cookie")
    assert is_hidden_response_header("set-cookie2")
    assert not is_hidden_response_header("Set-Cookie3")


@pytest.mark.parametrize(
    "content_type, expected",
    [
        ("text/html", "text/html;charset=utf-8"),
        ("application/json", "application/json;charset=utf-8"),
        ("text/html; charset=iso-8859-1", "text/html;charset=utf-8"),
        ("text/plain;charset=utf-8", "text/plain;charset=utf-8"),
        ("multipart/mixed; boundary=xyz", "multipart/mixed; boundary=xyz;charset=utf-8"),
    ],
)
def test_with_utf8_charset(content_type: str, expected: str) -> None:
    assert with_utf8_charset(content_type) == expected


@pytest.mark.parametrize(
    "content_type, expected",
    [
        (None, True),
        ("", True),
        ("text/xml", True),
        ("application/xml", True),
        ("application/text+xml", True),
        ("application/atom+xml; charset=utf-8", True),
        ("text/plain", False),
        ("application/json", False),
    ],
)
def test_is_xml_content_type(content_type, expected) -> None:
    assert is_xml_content_type(content_type) is expected
