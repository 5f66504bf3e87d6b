"""CLI helper utilities for streamrelay."""

from pathlib import Path

from click import get_current_context
from rich_toolkit import RichToolkit, RichToolkitTheme
from rich_toolkit.styles import TaggedStyle


def get_rich_toolkit() -> RichToolkit:
    theme = RichToolkitTheme(
        style=TaggedStyle(tag_width=11),
        theme={
            "tag.title": "white on #009485",
            "tag": "white on #007166",
            "placeholder": "grey85",
            "text": "white",
            "selected": "#007166",
            "result": "grey85",
            "progress": "on #007166",
            # Status tags
            "error": "bold red",
            "success": "bold green",
            "warning": "bold yellow",
            "info": "blue",
            # CLI specific tags
            "version": "cyan",
            "config": "cyan",
            "server": "green",
        },
    )

    return RichToolkit(theme=theme)


def get_config_path_from_context() -> Path | None:
    """Get config path from typer context if available."""
    try:
        ctx = get_current_context()
    except RuntimeError:
        return None
    root = ctx.find_root()
    if root.obj and root.obj.get("config_path") is not None:
        return Path(root.obj["config_path"])
    return None
