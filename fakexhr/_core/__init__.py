from fakexhr._core._events import (
    Event as Event,
    EventTarget as EventTarget,
    ProgressEmitter as ProgressEmitter,
    ProgressEvent as ProgressEvent,
)
from fakexhr._core._headers import Headers as Headers
from fakexhr._core._request import FakeRequest as FakeRequest, FakeUpload as FakeUpload
from fakexhr._core._streaming import ResponseStreamer as ResponseStreamer, split_chunks as split_chunks
from fakexhr._core.models import (
    Blob as Blob,
    FormData as FormData,
    ReadyState as ReadyState,
    ResponseType as ResponseType,
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
    "ProgressEmitter",
    "ProgressEvent",
    ## Streaming
    "ResponseStreamer",
    "split_chunks",
    ## Models
    "Blob",
    "FormData",
    "Headers",
)
