"""HTTP server side of the relay: ASGI response and uvicorn runner."""

from .response import RelayStreamingResponse
from .serve import BoundAddress, ListenNotifier, NotifyingServer, create_server, serve


__all__ = [
    "BoundAddress",
    "ListenNotifier",
    "NotifyingServer",
    "RelayStreamingResponse",
    "create_server",
    "serve",
]
