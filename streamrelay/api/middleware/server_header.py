"""Default ``server`` and ``date`` response headers."""

from email.utils import formatdate

from starlette.datastructures import MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send


class ServerHeaderMiddleware:
    """Stamp ``server`` and ``date`` on every HTTP response.

    A value set by the route wins; a streamed page that names its own server
    keeps it.
    """

    def __init__(self, app: ASGIApp, server_name: str = "streamrelay"):
        self.app = app
        self.server_name = server_name

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_defaults(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                headers.setdefault("server", self.server_name)
                headers.setdefault("date", formatdate(usegmt=True))
            await send(message)

        await self.app(scope, receive, send_with_defaults)
