"""Structured logging setup for streamrelay.

Application code logs through structlog with event-style names
(``logger.info("stream_started", chunks=3)``). Standard library loggers,
uvicorn's included, are routed through the same processor chain so a run
produces one consistent stream of console or JSON lines.
"""

import logging
import sys
from pathlib import Path
from typing import Any

import structlog
from rich.console import Console
from rich.traceback import install as install_rich_traceback
from structlog.stdlib import BoundLogger
from structlog.typing import Processor


__all__ = ["setup_logging", "get_logger"]


_NOISY_LOGGERS = ("httpx", "httpcore", "asyncio", "watchfiles")
_UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


def _shared_processors() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]


def setup_logging(
    json_logs: bool = False,
    log_level_name: str = "INFO",
    log_file: str | Path | None = None,
) -> BoundLogger:
    """Configure structlog and the standard library logging tree.

    Args:
        json_logs: Render JSON lines on the console instead of the dev renderer
        log_level_name: Level name applied to the root logger
        log_file: Optional path receiving JSON lines regardless of console format

    Returns:
        A logger bound to the ``streamrelay`` namespace
    """
    level = logging.getLevelName(log_level_name.upper())
    if not isinstance(level, int):
        level = logging.INFO

    shared = _shared_processors()

    structlog.configure(
        processors=[
            *shared,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    console_renderer: Processor
    if json_logs:
        console_renderer = structlog.processors.JSONRenderer()
    else:
        install_rich_traceback(show_locals=False, suppress=[structlog])
        console_renderer = structlog.dev.ConsoleRenderer(
            colors=Console(file=sys.stderr).is_terminal,
        )

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                *([structlog.processors.format_exc_info] if json_logs else []),
                console_renderer,
            ],
        )
    )
    handlers: list[logging.Handler] = [console_handler]

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding="utf-8")
        file_handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                foreign_pre_chain=shared,
                processors=[
                    structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                    structlog.processors.format_exc_info,
                    structlog.processors.JSONRenderer(),
                ],
            )
        )
        handlers.append(file_handler)

    root = logging.getLogger()
    root.handlers = handlers
    root.setLevel(level)

    # uvicorn installs its own handlers; hand its records to the root instead
    for name in _UVICORN_LOGGERS:
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers = []
        uvicorn_logger.propagate = True

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    return get_logger("streamrelay")


def get_logger(name: str | None = None, **initial_values: Any) -> BoundLogger:
    """Get a structlog logger, optionally bound to initial values."""
    logger: BoundLogger = structlog.get_logger(name)
    if initial_values:
        logger = logger.bind(**initial_values)
    return logger
