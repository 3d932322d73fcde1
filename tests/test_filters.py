from typing import Any, List, Optional
from unittest import mock

import pytest

from fakexhr import (
    BaseFilter,
    Event,
    EventTarget,
    FakeRequest,
    FunctionFilter,
    RealTransport,
    Registry,
    ReadyState,
    add_filter,
    defake,
    registry,
)
from fakexhr._filters import PROXIED_METHODS, apply_filter


class StubTransport(EventTarget):
    """Records what the fake forwards and lets tests drive readiness."""

    def __init__(self) -> None:
        super().__init__()
        self.ready_state = ReadyState.UNSENT
        self.status = 0
        self.status_text = ""
        self.response_text = ""
        self.response: Any = ""
        self.response_xml: Any = None
        self.response_type: Any = ""
        self.timeout = 0
        self.with_credentials = False
        self.calls: List[Any] = []

    def change(self, state: ReadyState) -> None:
        self.ready_state = state
        self.dispatch_event(Event(type="readystatechange"))

    def open(self, *args: Any) -> None:
        self.calls.append(("open", args))
        self.change(ReadyState.OPENED)

    def set_request_header(self, name: str, value: str) -> None:
        self.calls.append(("set_request_header", (name, value)))

    def send(self, body: Any = None) -> None:
        self.calls.append(("send", (body,)))

    def abort(self) -> None:
        self.calls.append(("abort", ()))

    def get_response_header(self, name: str) -> Optional[str]:
        self.calls.append(("get_response_header", (name,)))
        return "from transport"

    def get_all_response_headers(self) -> str:
        self.calls.append(("get_all_response_headers", ()))
        return "X-Real: 1\r\n"

    def override_mime_type(self, mime_type: str) -> None:
        self.calls.append(("override_mime_type", (mime_type,)))


@pytest.fixture
def stub_registry() -> Registry:
    return Registry(use_filters=True, filters=[lambda *args: True], transport_factory=StubTransport)


@pytest.fixture
def defaked(stub_registry: Registry) -> FakeRequest:
    request = FakeRequest(registry=stub_registry)
    request.open("GET", "http://example.com", True)
    return request


def test_stub_satisfies_real_transport() -> None:
    assert isinstance(StubTransport(), RealTransport)


class TestFiltering:
    def test_unmatched_filter_keeps_the_fake(self) -> None:
        registry.use_filters = True
        add_filter(lambda *args: False)
        listener = mock.Mock()
        request = FakeRequest()
        request.add_event_listener("readystatechange", listener)

        with mock.patch("fakexhr._core._request.defake") as patched:
            request.open("GET", "http://example.com", True)

        patched.assert_not_called()
        listener.assert_called_once()
        assert request.delegate is None
        assert request.ready_state == FakeRequest.OPENED

    def test_matched_filter_defakes(self) -> None:
        registry.use_filters = True
        add_filter(lambda *args: True)
        request = FakeRequest()

        with mock.patch("fakexhr._core._request.defake") as patched:
            request.open("GET", "http://example.com")

        patched.assert_called_once_with(request, ("GET", "http://example.com", True, None, None))

    def test_filters_ignored_unless_enabled(self) -> None:
        add_filter(lambda *args: True)
        request = FakeRequest()

        with mock.patch("fakexhr._core._request.defake") as patched:
            request.open("GET", "http://example.com")

        patched.assert_not_called()

    def test_filter_receives_open_arguments(self) -> None:
        predicate = mock.Mock(return_value=False)
        registry.use_filters = True
        add_filter(predicate)

        FakeRequest().open("POST", "/login", False, "user", "secret")

        predicate.assert_called_once_with("POST", "/login", False, "user", "secret")

    def test_first_matching_filter_wins(self) -> None:
        second = mock.Mock(return_value=True)
        filters = Registry(filters=[lambda *args: True, second])

        assert filters.find_filter(("GET", "/", True, None, None)) is filters.filters[0]
        second.assert_not_called()

    def test_base_filter_subclass(self) -> None:
        class SameOrigin(BaseFilter):
            def apply(
                self,
                method: str,
                url: str,
                is_async: bool,
                username: Optional[str],
                password: Optional[str],
            ) -> bool:
                return url.startswith("/")

        args = ("GET", "/local", True, None, None)
        assert apply_filter(SameOrigin(), args) is True
        assert apply_filter(SameOrigin(), ("GET", "http://example.com", True, None, None)) is False

    def test_function_filter(self) -> None:
        only_get = FunctionFilter(lambda method, *rest: method == "GET")

        assert only_get.apply("GET", "/", True, None, None) is True
        assert only_get.apply("POST", "/", True, None, None) is False


class TestDefake:
    def test_opens_transport_with_arguments(self, defaked: FakeRequest) -> None:
        transport = defaked.delegate
        assert isinstance(transport, StubTransport)
        assert transport.calls == [("open", ("GET", "http://example.com", True, None, None))]

    def test_mirrors_ready_state(self, defaked: FakeRequest) -> None:
        assert defaked.ready_state == FakeRequest.OPENED

    def test_updates_attributes_when_ready_state_changes(self, defaked: FakeRequest) -> None:
        transport = defaked.delegate
        assert isinstance(transport, StubTransport)
        transport.status = 200
        transport.status_text = "This is the status text of the real request"
        transport.response_text = "body"
        transport.response = "body"
        transport.response_xml = "document"

        transport.change(ReadyState.DONE)

        assert defaked.ready_state == FakeRequest.DONE
        assert defaked.status_text == "This is the status text of the real request"
        assert defaked.status == 200
        assert defaked.response_text == "body"
        assert defaked.response == "body"
        assert defaked.response_xml == "document"

    def test_mirrors_status_only_from_headers_received(self, defaked: FakeRequest) -> None:
        transport = defaked.delegate
        assert isinstance(transport, StubTransport)
        transport.status = 200
        transport.response_text = "partial"

        transport.change(ReadyState.OPENED)
        assert defaked.status == 0

        transport.change(ReadyState.HEADERS_RECEIVED)
        assert defaked.status == 200
        assert defaked.response_text == ""

        transport.change(ReadyState.LOADING)
        assert defaked.response_text == "partial"
        assert defaked.response_xml is None

    def test_calls_onreadystatechange_with_fake_as_target(self, defaked: FakeRequest) -> None:
        transport = defaked.delegate
        assert isinstance(transport, StubTransport)
        defaked.onreadystatechange = handler = mock.Mock()

        transport.change(ReadyState.LOADING)

        handler.assert_called_once()
        event = handler.call_args[0][0]
        assert isinstance(event, Event)
        assert event.target is defaked

    def test_copies_existing_listeners(self, stub_registry: Registry) -> None:
        request = FakeRequest(registry=stub_registry)
        listener = mock.Mock()
        request.add_event_listener("load", listener)

        request.open("GET", "/")
        transport = request.delegate
        assert isinstance(transport, StubTransport)
        transport.dispatch_event(Event(type="load"))

        listener.assert_called_once()

    @pytest.mark.parametrize(
        "method, args, expected",
        [
            ("set_request_header", ("X-Real", "1"), None),
            ("send", ("payload",), None),
            ("abort", (), None),
            ("get_response_header", ("X-Real",), "from transport"),
            ("get_all_response_headers", (), "X-Real: 1\r\n"),
            ("override_mime_type", ("text/plain",), None),
        ],
    )
    def test_passes_on_methods(self, defaked: FakeRequest, method: str, args: Any, expected: Any) -> None:
        transport = defaked.delegate
        assert isinstance(transport, StubTransport)

        assert getattr(defaked, method)(*args) == expected
        assert transport.calls[-1] == (method, args)

    def test_passes_on_open(self, defaked: FakeRequest) -> None:
        transport = defaked.delegate
        assert isinstance(transport, StubTransport)

        defaked.open("POST", "/other")

        assert transport.calls[-1] == ("open", ("POST", "/other"))

    def test_passes_on_listener_registration(self, defaked: FakeRequest) -> None:
        transport = defaked.delegate
        assert isinstance(transport, StubTransport)
        listener = mock.Mock()

        defaked.add_event_listener("load", listener)
        assert transport.event_listeners["load"] == [listener]

        defaked.remove_event_listener("load", listener)
        assert transport.event_listeners["load"] == []
        assert "load" not in defaked.event_listeners

    def test_proxied_method_names(self) -> None:
        for name in PROXIED_METHODS:
            assert callable(getattr(FakeRequest, name))

    def test_forwards_attribute_writes(self, defaked: FakeRequest) -> None:
        transport = defaked.delegate
        assert isinstance(transport, StubTransport)

        defaked.response_type = "json"
        defaked.timeout = 500
        defaked.with_credentials = True

        assert transport.response_type == "json"
        assert transport.timeout == 500
        assert transport.with_credentials is True

    def test_copies_attributes_at_hand_over(self, stub_registry: Registry) -> None:
        request = FakeRequest(registry=stub_registry)
        request.response_type = "blob"
        request.timeout = 1000

        request.open("GET", "/")
        transport = request.delegate
        assert isinstance(transport, StubTransport)

        assert transport.response_type == "blob"
        assert transport.timeout == 1000
        assert transport.with_credentials is False

    def test_defake_directly(self) -> None:
        request = FakeRequest(registry=Registry(transport_factory=StubTransport))

        transport = defake(request, [])

        assert request.delegate is transport
        assert isinstance(transport, StubTransport)
        assert transport.calls == [("open", ())]
