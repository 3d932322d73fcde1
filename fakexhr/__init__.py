from fakexhr._core._events import (
    Event as Event,
    EventTarget as EventTarget,
    ProgressEvent as ProgressEvent,
)
from fakexhr._core._headers import Headers as Headers
from fakexhr._core._request import FakeRequest as FakeRequest, FakeUpload as FakeUpload
from fakexhr._core.models import (
    Blob as Blob,
    FormData as FormData,
    ReadyState as ReadyState,
    ResponseType as ResponseType,
)
from fakexhr._exceptions import (
    FakeRequestError as FakeRequestError,
    InvalidBodyError as InvalidBodyError,
    InvalidStateError as InvalidStateError,
    ProtocolError as ProtocolError,
    SecurityError as SecurityError,
)
from fakexhr._filters import (
    BaseFilter as BaseFilter,
    FunctionFilter as FunctionFilter,
    RealTransport as RealTransport,
    defake as defake,
)
from fakexhr._registry import (
    Registry as Registry,
    add_filter as add_filter,
    registry as registry,
    use_fake_requests as use_fake_requests,
)

__all__ = (
    ## Request
    "FakeRequest",
    "FakeUpload",
    "ReadyState",
    "ResponseType",
    ## Events
    "Event",
    "EventTarget",
    "ProgressEvent",
    ## Models
    "Blob",
    "FormData",
    "Headers",
    ## Errors
    "FakeRequestError",
    "InvalidStateError",
    "SecurityError",
    "ProtocolError",
    "InvalidBodyError",
    ## Registry and filters
    "Registry",
    "registry",
    "add_filter",
    "use_fake_requests",
    "BaseFilter",
    "FunctionFilter",
    "RealTransport",
    "defake",
)
