"""Turn a content description into a lazy sequence of byte chunks."""

import time
from collections.abc import AsyncIterable, AsyncIterator, Iterable
from contextlib import aclosing, nullcontext
from typing import Any, Protocol, runtime_checkable

from streamrelay.core.errors import RenderFailure
from streamrelay.core.logging import get_logger


__all__ = ["Renderable", "RenderRequest", "StreamingRenderer"]


logger = get_logger(__name__)


@runtime_checkable
class Renderable(Protocol):
    """Anything that can stream itself as text or bytes."""

    def stream(self) -> AsyncIterator[str | bytes]: ...


RenderRequest = Renderable | str | bytes | AsyncIterable[Any] | Iterable[Any]


class StreamingRenderer:
    """Render content descriptions into async byte producers.

    ``render`` validates the content eagerly, so an unsupported description
    fails before any response exists. Faults raised while chunks are being
    produced surface as :class:`RenderFailure` from the producer itself.
    """

    def render(self, content: RenderRequest) -> AsyncIterator[bytes]:
        source = self._source_for(content)
        return self._produce(source, type(content).__name__)

    def _source_for(self, content: Any) -> AsyncIterator[Any]:
        if isinstance(content, Renderable):
            return content.stream()
        if isinstance(content, str | bytes | bytearray):
            return _single(content)
        if isinstance(content, AsyncIterable):
            return content.__aiter__()
        if isinstance(content, Iterable):
            return _from_sync(content)
        raise RenderFailure(
            f"Cannot render content of type {type(content).__name__}",
            details={"content_type": type(content).__name__},
        )

    async def _produce(
        self, source: AsyncIterator[Any], content_type: str
    ) -> AsyncIterator[bytes]:
        started = time.perf_counter()
        chunks = 0
        total_bytes = 0

        closing = aclosing(source) if hasattr(source, "aclose") else nullcontext(source)
        async with closing:
            try:
                async for part in source:
                    data = _encode(part)
                    if not data:
                        continue
                    chunks += 1
                    total_bytes += len(data)
                    yield data
            except RenderFailure:
                raise
            except Exception as e:
                logger.error(
                    "render_failed",
                    content_type=content_type,
                    chunks=chunks,
                    error=str(e),
                    exc_info=e,
                )
                raise RenderFailure(
                    f"Rendering {content_type} failed: {e}",
                    details={"chunks": chunks},
                ) from e

        logger.debug(
            "render_completed",
            content_type=content_type,
            chunks=chunks,
            bytes=total_bytes,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )


async def _single(content: str | bytes | bytearray) -> AsyncIterator[str | bytes]:
    yield bytes(content) if isinstance(content, bytearray) else content


async def _from_sync(content: Iterable[Any]) -> AsyncIterator[Any]:
    for part in content:
        yield part


def _encode(part: Any) -> bytes:
    if isinstance(part, bytes):
        return part
    if isinstance(part, str):
        return part.encode("utf-8")
    if isinstance(part, bytearray | memoryview):
        return bytes(part)
    raise TypeError(f"Renderables must produce str or bytes, got {type(part).__name__}")
