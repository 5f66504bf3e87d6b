"""Error handling for the streamrelay API."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from streamrelay.core.errors import (
    ConfigurationError,
    ProducerExhaustedEarly,
    RenderFailure,
    StreamRelayError,
    TransportFailure,
)
from streamrelay.core.logging import get_logger


logger = get_logger(__name__)


ERROR_MAPPINGS: dict[type[StreamRelayError], tuple[int | None, str]] = {
    StreamRelayError: (None, "stream_relay_error"),  # Uses exc.status_code
    ProducerExhaustedEarly: (500, "producer_missing_error"),
    RenderFailure: (500, "render_error"),
    TransportFailure: (499, "transport_error"),
    ConfigurationError: (500, "configuration_error"),
}


def _error_body(error_type: str, message: str) -> dict[str, dict[str, str]]:
    return {"error": {"type": error_type, "message": message}}


def error_status(exc: StreamRelayError) -> tuple[int, str]:
    """Status code and error type for ``exc``, most specific mapping first."""
    for cls in type(exc).__mro__:
        if cls in ERROR_MAPPINGS:
            status_code, error_type = ERROR_MAPPINGS[cls]
            return status_code or exc.status_code, error_type
    return exc.status_code, exc.error_type


class StreamRelayErrorMiddleware:
    """Answer relay errors with a JSON error while nothing has been sent.

    Once a response has started, for instance a streamed page whose renderer
    fails midway, the error is re-raised unchanged and the ASGI server aborts
    the connection. Relay errors must not get FastAPI exception handlers:
    Starlette turns a handled exception raised after the response started
    into a ``RuntimeError``.
    """

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response_started = False

        async def send_wrapper(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except StreamRelayError as exc:
            status_code, error_type = error_status(exc)
            if response_started:
                logger.error(
                    "response_aborted",
                    error_type=error_type,
                    error_message=str(exc),
                    request_method=scope.get("method"),
                    request_url=scope.get("path"),
                )
                raise

            logger.error(
                "request_failed",
                error_type=error_type,
                error_message=str(exc),
                status_code=status_code,
                request_method=scope.get("method"),
                request_url=scope.get("path"),
            )
            response = JSONResponse(
                status_code=status_code, content=_error_body(error_type, str(exc))
            )
            await response(scope, receive, send)


def setup_error_handlers(app: FastAPI) -> None:
    """Register JSON error handling on ``app``.

    Call before adding other middleware so request IDs and server headers
    are applied to error responses too.
    """
    app.add_middleware(StreamRelayErrorMiddleware)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        log_func = logger.debug if exc.status_code == 404 else logger.warning
        log_func(
            "http_error",
            status_code=exc.status_code,
            error_message=exc.detail,
            request_method=request.method,
            request_url=str(request.url.path),
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(f"http_{exc.status_code}", str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    logger.debug("error_handlers_setup_completed", mapped_errors=len(ERROR_MAPPINGS))
