"""Error taxonomy for the streaming relay.

Every error carries the same fields so the API layer can turn any of them
into a JSON error body when nothing has been written to the client yet.
Once a streamed body has started, these errors only propagate.
"""

from typing import Any


__all__ = [
    "StreamRelayError",
    "ProducerExhaustedEarly",
    "RenderFailure",
    "TransportFailure",
    "ConfigurationError",
]


class StreamRelayError(Exception):
    """Base exception for streamrelay errors."""

    def __init__(
        self,
        message: str,
        error_type: str = "internal_server_error",
        status_code: int = 500,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_type = error_type
        self.status_code = status_code
        self.details = details or {}


class ProducerExhaustedEarly(StreamRelayError):
    """Raised when a relay is asked to wrap a missing body producer."""

    def __init__(self, message: str = "No body producer was supplied") -> None:
        super().__init__(
            message=message, error_type="producer_missing_error", status_code=500
        )


class RenderFailure(StreamRelayError):
    """The renderer could not produce (further) chunks."""

    def __init__(
        self, message: str = "Rendering failed", details: dict[str, Any] | None = None
    ) -> None:
        super().__init__(
            message=message,
            error_type="render_error",
            status_code=500,
            details=details,
        )


class TransportFailure(StreamRelayError):
    """The client connection went away while a body was being streamed."""

    def __init__(self, message: str = "Client disconnected") -> None:
        # 499 follows the nginx convention for "client closed request"
        super().__init__(
            message=message, error_type="transport_error", status_code=499
        )


class ConfigurationError(StreamRelayError):
    """Raised when configuration loading or validation fails."""

    def __init__(
        self, message: str, details: dict[str, Any] | None = None
    ) -> None:
        super().__init__(
            message=message,
            error_type="configuration_error",
            status_code=500,
            details=details,
        )
