from typing import Iterator

import pytest

from fakexhr import FakeRequest, registry


@pytest.fixture(autouse=True)
def restore_registry() -> Iterator[None]:
    yield
    registry.restore()
    registry.transport_factory = None


@pytest.fixture
def fake() -> FakeRequest:
    return FakeRequest()


@pytest.fixture
def opened() -> FakeRequest:
    """An asynchronous GET request that was opened but not sent."""
    request = FakeRequest()
    request.open("GET", "/my/url")
    return request


@pytest.fixture
def sent() -> FakeRequest:
    """An asynchronous GET request waiting for its response."""
    request = FakeRequest()
    request.open("GET", "/my/url")
    request.send()
    return request
