__all__ = (
    "FakeRequestError",
    "InvalidStateError",
    "SecurityError",
    "ProtocolError",
    "InvalidBodyError",
)


class FakeRequestError(Exception): ...


class InvalidStateError(FakeRequestError):
    """The operation is not allowed in the request's current ready state."""


class SecurityError(FakeRequestError):
    """A forbidden request header was set."""


class ProtocolError(InvalidStateError):
    """Response headers or body were delivered twice in one request cycle."""


class InvalidBodyError(FakeRequestError):
    """The response body is not a string."""
