"""Command line entry point for streamrelay."""

import asyncio
import sys
from pathlib import Path
from typing import BinaryIO

import typer

from streamrelay import __version__
from streamrelay.api.routes.pages import index_page
from streamrelay.config.settings import ConfigurationError, Settings
from streamrelay.core.errors import RenderFailure
from streamrelay.core.logging import get_logger, setup_logging
from streamrelay.rendering import StreamingRenderer
from streamrelay.server.serve import BoundAddress, serve as run_server
from streamrelay.streaming import ChunkStream, StreamingResponseRelay

from .helpers import get_config_path_from_context, get_rich_toolkit


APP_IMPORT_STRING = "streamrelay.api.app:create_app"

app = typer.Typer(
    rich_markup_mode="rich",
    add_completion=False,
    no_args_is_help=True,
    pretty_exceptions_enable=False,
)

logger = get_logger(__name__)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        toolkit = get_rich_toolkit()
        toolkit.print(f"streamrelay {__version__}", tag="version")
        raise typer.Exit()


@app.callback()
def app_main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    config: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to a TOML configuration file",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
) -> None:
    """Stream server-rendered HTML over HTTP."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config


def _load_settings(**overrides: object) -> Settings:
    try:
        return Settings.from_config(
            config_path=get_config_path_from_context(), **overrides
        )
    except ConfigurationError as e:
        toolkit = get_rich_toolkit()
        toolkit.print(f"Configuration error: {e}", tag="error")
        raise typer.Exit(1) from e


def serve_command(
    host: str | None = typer.Option(None, "--host", "-h", help="Host to bind to"),
    port: int | None = typer.Option(
        None, "--port", "-p", help="Port to bind to (0 picks a free port)"
    ),
    log_level: str | None = typer.Option(
        None, "--log-level", help="Log level (DEBUG, INFO, WARNING, ERROR)"
    ),
    reload: bool | None = typer.Option(
        None, "--reload/--no-reload", help="Enable auto-reload"
    ),
) -> None:
    """Run the HTTP server."""
    overrides: dict[str, dict[str, object]] = {
        "server": {"host": host, "port": port, "reload": reload},
        "logging": {"level": log_level},
    }
    if log_level is not None:
        overrides["server"]["log_level"] = log_level
    settings = _load_settings(**overrides)

    setup_logging(
        json_logs=settings.logging.use_json(sys.stderr.isatty()),
        log_level_name=settings.logging.level,
        log_file=settings.logging.file,
    )

    toolkit = get_rich_toolkit()

    def on_listen(address: BoundAddress) -> None:
        logger.info("server_listening", address=str(address), url=address.url)
        toolkit.print(f"Listening on {address}", tag="server")

    if settings.server.reload:
        run_server(APP_IMPORT_STRING, settings, on_listen=on_listen)
        return

    from streamrelay.api.app import create_app

    run_server(create_app(settings), settings, on_listen=on_listen)


app.command(name="serve")(serve_command)


async def _write_stream(chunks: ChunkStream, out: BinaryIO) -> None:
    try:
        async for chunk in chunks:
            out.write(chunk)
            out.flush()
    finally:
        await chunks.aclose()


@app.command()
def render(
    heading: str | None = typer.Option(
        None, "--heading", help="Override the heading of the index page"
    ),
    show_headers: bool = typer.Option(
        False, "--headers", help="Print status and headers before the body"
    ),
) -> None:
    """Render the index page to stdout, chunk by chunk."""
    settings = _load_settings(page={"heading": heading})
    # stdout carries the body; logs must stay on stderr
    setup_logging(
        json_logs=settings.logging.use_json(sys.stderr.isatty()),
        log_level_name=settings.logging.level,
        log_file=settings.logging.file,
    )

    relay = StreamingResponseRelay(
        default_headers=settings.relay.default_headers,
        media_type=settings.relay.media_type,
    )
    producer = StreamingRenderer().render(index_page(settings))
    envelope = relay.relay(producer, headers={"content-type": settings.relay.media_type})

    if show_headers:
        typer.echo(f"HTTP {envelope.status_code}")
        for name, value in envelope.headers.items():
            typer.echo(f"{name}: {value}")
        typer.echo("")

    out = sys.stdout.buffer
    try:
        asyncio.run(_write_stream(ChunkStream(envelope.take_body()), out))
    except RenderFailure as e:
        toolkit = get_rich_toolkit()
        toolkit.print(f"Render failed: {e}", tag="error")
        raise typer.Exit(1) from e
    typer.echo("")


def main() -> None:
    """Entry point for the CLI application."""
    app()


if __name__ == "__main__":
    main()
