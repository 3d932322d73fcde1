from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Iterator, List, Optional

from fakexhr._filters import Filter, OpenArgs, RealTransport, apply_filter

if TYPE_CHECKING:
    from fakexhr._core._request import FakeRequest

__all__ = ("Registry", "registry", "add_filter", "use_fake_requests")

logger = logging.getLogger("fakexhr.registry")


@dataclass
class Registry:
    """
    Process-wide settings shared by every fake request.

    Attributes:
    ----------
    on_create : Callable[[FakeRequest], Any] | None
        Called with each new `FakeRequest`, right after construction.
        Tests use it to collect the requests made by the code under test.

    filters : list
        Predicates over `(method, url, is_async, username, password)`.
        Checked in order when a request is opened; the first one that
        returns True sends the request to a real transport.

    use_filters : bool
        Filters are ignored unless this is True.

    transport_factory : Callable[[], RealTransport] | None
        Builds the real transport for defaked requests. Defaults to
        `fakexhr.httpx.HTTPXTransport`.
    """

    on_create: Optional[Callable[[FakeRequest], Any]] = None
    filters: List[Filter] = field(default_factory=list)
    use_filters: bool = False
    transport_factory: Optional[Callable[[], RealTransport]] = None

    def add_filter(self, filter: Filter) -> None:
        self.filters.append(filter)

    def find_filter(self, args: OpenArgs) -> Optional[Filter]:
        for filter in self.filters:
            if apply_filter(filter, args):
                return filter
        return None

    def create_transport(self) -> RealTransport:
        if self.transport_factory is not None:
            return self.transport_factory()

        from fakexhr._httpx import HTTPXTransport

        return HTTPXTransport()

    def activate(self, use_filters: bool = False) -> None:
        logger.debug("Activating fake requests")
        self.filters = []
        self.use_filters = use_filters

    def restore(self, keep_on_create: bool = False) -> None:
        logger.debug("Restoring fake request registry")
        self.filters = []
        self.use_filters = False
        if not keep_on_create:
            self.on_create = None


registry = Registry()


def add_filter(filter: Filter) -> None:
    registry.add_filter(filter)


@contextmanager
def use_fake_requests(
    on_create: Optional[Callable[[FakeRequest], Any]] = None,
    use_filters: bool = False,
) -> Iterator[Registry]:
    """
    Activate the default registry for the duration of a block.

    Example:
        ```python
        requests = []
        with use_fake_requests(on_create=requests.append):
            run_code_under_test()
        requests[0].respond(200, {}, "ok")
        ```
    """
    registry.activate(use_filters=use_filters)
    if on_create is not None:
        registry.on_create = on_create
    try:
        yield registry
    finally:
        registry.restore()
