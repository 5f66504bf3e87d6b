"""Shared dependencies for the streamrelay API."""

from typing import Annotated

from fastapi import Depends, Request

from streamrelay.config.settings import Settings
from streamrelay.rendering import StreamingRenderer
from streamrelay.streaming import StreamingResponseRelay


def get_cached_settings(request: Request) -> Settings:
    """Get settings stored on the app at creation time."""
    settings: Settings = request.app.state.settings
    return settings


def get_renderer(request: Request) -> StreamingRenderer:
    renderer: StreamingRenderer = request.app.state.renderer
    return renderer


def get_relay(request: Request) -> StreamingResponseRelay:
    relay: StreamingResponseRelay = request.app.state.relay
    return relay


SettingsDep = Annotated[Settings, Depends(get_cached_settings)]
RendererDep = Annotated[StreamingRenderer, Depends(get_renderer)]
RelayDep = Annotated[StreamingResponseRelay, Depends(get_relay)]
