from ._httpx import HTTPXTransport as HTTPXTransport

__all__ = ("HTTPXTransport",)
