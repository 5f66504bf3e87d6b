"""Streaming HTML rendering."""

from .elements import Element, h
from .renderer import Renderable, RenderRequest, StreamingRenderer
from .templates import TemplateRenderable, create_environment


__all__ = [
    "Element",
    "Renderable",
    "RenderRequest",
    "StreamingRenderer",
    "TemplateRenderable",
    "create_environment",
    "h",
]
