"""Run an ASGI app under uvicorn and report the address it bound."""

import asyncio
import socket
from collections.abc import Callable
from typing import Any, NamedTuple

import uvicorn
from starlette.types import ASGIApp

from streamrelay.config.settings import Settings
from streamrelay.core.errors import ConfigurationError
from streamrelay.core.logging import get_logger


logger = get_logger(__name__)


class BoundAddress(NamedTuple):
    host: str
    port: int

    @property
    def url(self) -> str:
        host = f"[{self.host}]" if ":" in self.host else self.host
        return f"http://{host}:{self.port}"

    def __str__(self) -> str:
        return f"{self.host}:{self.port}"


ListenCallback = Callable[[BoundAddress], Any]


class ListenNotifier:
    """Single-shot notification of the bound listener address.

    :meth:`wait` resolves once the server is listening; an optional
    callback runs exactly once at the same moment.
    """

    def __init__(self, callback: ListenCallback | None = None) -> None:
        self._callback = callback
        self._future: asyncio.Future[BoundAddress] | None = None
        self._resolved: BoundAddress | None = None
        self._error: BaseException | None = None

    def _get_future(self) -> "asyncio.Future[BoundAddress]":
        if self._future is None:
            self._future = asyncio.get_running_loop().create_future()
            if self._resolved is not None:
                self._future.set_result(self._resolved)
            elif self._error is not None:
                self._future.set_exception(self._error)
        return self._future

    @property
    def resolved(self) -> BoundAddress | None:
        return self._resolved

    async def wait(self) -> BoundAddress:
        return await self._get_future()

    def resolve(self, address: BoundAddress) -> None:
        if self._resolved is not None:
            raise RuntimeError("Listen notification has already been delivered")
        self._resolved = address
        if self._future is not None and not self._future.done():
            self._future.set_result(address)
        if self._callback is not None:
            self._callback(address)

    def fail(self, error: BaseException) -> None:
        """Wake waiters when the server could not start."""
        if self._resolved is not None or self._error is not None:
            return
        self._error = error
        if self._future is not None and not self._future.done():
            self._future.set_exception(error)


class NotifyingServer(uvicorn.Server):
    """uvicorn server that resolves a :class:`ListenNotifier` after startup."""

    def __init__(self, config: uvicorn.Config, notifier: ListenNotifier) -> None:
        super().__init__(config)
        self.notifier = notifier

    async def startup(self, sockets: list[socket.socket] | None = None) -> None:
        await super().startup(sockets=sockets)
        if self.should_exit:
            self.notifier.fail(ConfigurationError("Server failed to start listening"))
            return
        self.notifier.resolve(self.bound_address())

    def bound_address(self) -> BoundAddress:
        for server in self.servers:
            for sock in server.sockets:
                host, port = sock.getsockname()[:2]
                return BoundAddress(host, port)
        return BoundAddress(self.config.host, self.config.port)


def log_listening(address: BoundAddress) -> None:
    logger.info("server_listening", address=str(address), url=address.url)


def create_server(
    app: ASGIApp | str,
    settings: Settings,
    on_listen: ListenCallback | None = log_listening,
    **config_kwargs: Any,
) -> NotifyingServer:
    """Build a uvicorn server for ``app`` from ``settings``."""
    config = uvicorn.Config(
        app,
        host=settings.server.host,
        port=settings.server.port,
        log_level=settings.server.log_level,
        log_config=None,
        **config_kwargs,
    )
    return NotifyingServer(config, ListenNotifier(on_listen))


def serve(
    app: ASGIApp | str,
    settings: Settings,
    on_listen: ListenCallback | None = log_listening,
) -> None:
    """Serve ``app`` until interrupted."""
    if settings.server.reload:
        if not isinstance(app, str):
            raise ConfigurationError("Auto-reload needs the app as an import string")
        # The reloader runs the app in a subprocess and owns the socket there
        uvicorn.run(
            app,
            host=settings.server.host,
            port=settings.server.port,
            log_level=settings.server.log_level,
            reload=True,
            factory=True,
            log_config=None,
        )
        return

    server = create_server(app, settings, on_listen=on_listen)
    server.run()
