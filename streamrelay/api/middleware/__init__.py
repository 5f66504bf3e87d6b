from .errors import StreamRelayErrorMiddleware, setup_error_handlers
from .request_id import RequestIDMiddleware
from .server_header import ServerHeaderMiddleware


__all__ = [
    "RequestIDMiddleware",
    "ServerHeaderMiddleware",
    "StreamRelayErrorMiddleware",
    "setup_error_handlers",
]
