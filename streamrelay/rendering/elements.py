"""Minimal element tree that streams itself as HTML.

``h("h1", "Hello")`` builds an element; streaming it yields the opening tag,
each child and the closing tag as separate chunks, so a consumer sees the
first bytes of a page before the last child has been produced.
"""

import re
from collections.abc import AsyncIterator
from typing import Any

from markupsafe import Markup, escape


__all__ = ["Element", "h", "VOID_ELEMENTS"]


VOID_ELEMENTS = frozenset(
    {
        "area",
        "base",
        "br",
        "col",
        "embed",
        "hr",
        "img",
        "input",
        "link",
        "meta",
        "source",
        "track",
        "wbr",
    }
)

_TAG_NAME = re.compile(r"^[A-Za-z][A-Za-z0-9-]*$")
_ATTR_NAME = re.compile(r"^[^\s\"'>/=]+$")


class Element:
    """An HTML element with attributes and children."""

    __slots__ = ("tag", "attrs", "children")

    def __init__(
        self,
        tag: str,
        attrs: dict[str, Any] | None = None,
        children: list[Any] | None = None,
    ) -> None:
        if not _TAG_NAME.match(tag):
            raise ValueError(f"Invalid tag name: {tag!r}")
        self.tag = tag.lower()
        self.attrs = dict(attrs or {})
        for name in self.attrs:
            if not _ATTR_NAME.match(name):
                raise ValueError(f"Invalid attribute name: {name!r}")
        self.children = list(children or [])
        if self.is_void and self.children:
            raise ValueError(f"<{self.tag}> is a void element and cannot have children")

    @property
    def is_void(self) -> bool:
        return self.tag in VOID_ELEMENTS

    def __repr__(self) -> str:
        return f"Element({self.tag!r}, attrs={self.attrs!r}, children={len(self.children)})"

    def open_tag(self) -> str:
        parts = [self.tag]
        for name, value in self.attrs.items():
            if value is None or value is False:
                continue
            if value is True:
                parts.append(name)
            else:
                parts.append(f'{name}="{escape(value)}"')
        return f"<{' '.join(parts)}>"

    async def stream(self) -> AsyncIterator[str]:
        yield self.open_tag()
        if self.is_void:
            return
        for child in self.children:
            if child is None or child is False:
                continue
            stream = getattr(child, "stream", None)
            if stream is not None:
                async for part in stream():
                    yield part
            elif isinstance(child, Markup):
                yield str(child)
            else:
                yield str(escape(child))
        yield f"</{self.tag}>"


def h(tag: str, *children: Any, **attrs: Any) -> Element:
    """Build an element; ``class_`` maps to ``class`` and ``data_x`` to ``data-x``."""
    normalized = {
        name.rstrip("_").replace("_", "-"): value for name, value in attrs.items()
    }
    return Element(tag, normalized, list(children))
