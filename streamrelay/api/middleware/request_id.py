"""Request ID middleware for generating and tracking request IDs."""

import uuid

import structlog
from starlette.datastructures import Headers, MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from streamrelay.core.logging import get_logger


logger = get_logger(__name__)


class RequestIDMiddleware:
    """Attach a request ID to every HTTP request.

    The ID comes from the ``x-request-id`` request header or is generated,
    is bound into the structlog context for the lifetime of the request and
    is echoed back in the response headers. Implemented as plain ASGI so
    streamed bodies pass through without being wrapped.
    """

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request_id = Headers(scope=scope).get("x-request-id") or str(uuid.uuid4())
        scope.setdefault("extensions", {})["request_id"] = request_id

        async def send_wrapper(message: Message) -> None:
            if message["type"] == "http.response.start":
                MutableHeaders(scope=message)["x-request-id"] = request_id
                logger.info(
                    "response_started",
                    method=scope.get("method"),
                    path=scope.get("path"),
                    status_code=message.get("status"),
                )
            await send(message)

        with structlog.contextvars.bound_contextvars(request_id=request_id):
            await self.app(scope, receive, send_wrapper)
