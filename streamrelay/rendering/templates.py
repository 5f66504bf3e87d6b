"""Jinja2 templates as streaming renderables."""

from collections.abc import AsyncIterator, Mapping
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, Template, select_autoescape


__all__ = ["TemplateRenderable", "create_environment"]


def create_environment(directory: str | Path | None = None) -> Environment:
    """Create an async-enabled, autoescaping Jinja2 environment."""
    loader = FileSystemLoader(str(directory)) if directory is not None else None
    return Environment(
        loader=loader,
        autoescape=select_autoescape(default_for_string=True, default=True),
        enable_async=True,
    )


class TemplateRenderable:
    """Stream a template's output as Jinja2 generates it."""

    def __init__(self, template: Template, context: Mapping[str, Any] | None = None):
        if not template.environment.is_async:
            raise ValueError("Streaming templates need an environment with enable_async=True")
        self.template = template
        self.context = dict(context or {})

    @classmethod
    def from_string(cls, source: str, **context: Any) -> "TemplateRenderable":
        return cls(create_environment().from_string(source), context)

    @classmethod
    def from_file(
        cls, directory: str | Path, name: str, **context: Any
    ) -> "TemplateRenderable":
        return cls(create_environment(directory).get_template(name), context)

    async def stream(self) -> AsyncIterator[str]:
        async for part in self.template.generate_async(**self.context):
            yield part
