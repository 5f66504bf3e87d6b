"""Single-pass async iteration over a body producer."""

import threading
from collections.abc import AsyncIterator, Iterator
from typing import Any

from starlette.concurrency import run_in_threadpool

from streamrelay.core.logging import get_logger

from .envelope import BodyProducer


logger = get_logger(__name__)


_EXHAUSTED = object()


class ChunkStream:
    """Pull chunks from a producer one at a time, as bytes.

    Nothing is read ahead: every ``__anext__`` asks the producer for exactly
    one chunk. Synchronous producers are advanced in the threadpool so they
    cannot block the event loop. Once :meth:`cancel` has been called the
    producer is never asked for another chunk, and a chunk that arrives
    after that is dropped.

    Closing a synchronous producer while a worker thread is still inside
    ``next()`` is deferred: the worker closes it as soon as that pull
    returns.
    """

    def __init__(self, producer: BodyProducer) -> None:
        self._producer = producer
        self._iterator: AsyncIterator[Any] | Iterator[Any] | None = None
        self._is_async = hasattr(producer, "__aiter__")
        self._cancelled = False
        self._closed = False
        self._lock = threading.Lock()
        self._pulling = False
        self._close_deferred = False
        self.chunks_sent = 0
        self.bytes_sent = 0

    @property
    def started(self) -> bool:
        return self._iterator is not None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        """Stop pulling from the producer; pending and future reads end the stream."""
        if not self._cancelled:
            self._cancelled = True
            logger.debug(
                "chunk_stream_cancelled",
                chunks_sent=self.chunks_sent,
                bytes_sent=self.bytes_sent,
            )

    def __aiter__(self) -> "ChunkStream":
        return self

    async def __anext__(self) -> bytes:
        if self._cancelled or self._closed:
            raise StopAsyncIteration

        if self._iterator is None:
            if self._is_async:
                self._iterator = self._producer.__aiter__()  # type: ignore[union-attr]
            else:
                self._iterator = iter(self._producer)  # type: ignore[arg-type]

        if self._is_async:
            chunk = await self._iterator.__anext__()  # type: ignore[union-attr]
        else:
            chunk = await run_in_threadpool(self._pull_sync)
            if chunk is _EXHAUSTED:
                raise StopAsyncIteration

        if self._cancelled or self._closed:
            raise StopAsyncIteration

        data = _to_bytes(chunk)
        self.chunks_sent += 1
        self.bytes_sent += len(data)
        return data

    def _pull_sync(self) -> Any:
        # Runs on a worker thread; StopIteration cannot cross a coroutine
        # boundary, so exhaustion is reported with a sentinel
        with self._lock:
            if self._closed:
                return _EXHAUSTED
            self._pulling = True
        try:
            return next(self._iterator, _EXHAUSTED)  # type: ignore[call-overload]
        finally:
            with self._lock:
                self._pulling = False
                close_now = self._close_deferred
            if close_now:
                self._close_sync()

    def _close_sync(self) -> None:
        close = getattr(self._iterator, "close", None)
        if close is None:
            return
        try:
            close()
        except Exception as e:
            # Nobody awaits this pull any more; report instead of raising
            logger.warning("producer_close_failed", error=str(e), exc_info=e)
        else:
            logger.debug("producer_closed_after_pull")

    async def aclose(self) -> None:
        """Close the underlying producer so it can release its resources."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            if self._pulling:
                self._close_deferred = True
                logger.debug("producer_close_deferred", chunks_sent=self.chunks_sent)
                return

        iterator = self._iterator
        if iterator is None:
            # Never started: close the producer itself if it is a generator
            iterator = self._producer  # type: ignore[assignment]

        aclose = getattr(iterator, "aclose", None)
        if aclose is not None:
            await aclose()
            return
        close = getattr(iterator, "close", None)
        if close is not None:
            close()


def _to_bytes(chunk: Any) -> bytes:
    if isinstance(chunk, bytes):
        return chunk
    if isinstance(chunk, str):
        return chunk.encode("utf-8")
    if isinstance(chunk, bytearray | memoryview):
        return bytes(chunk)
    raise TypeError(
        f"Body producers must yield bytes or str, got {type(chunk).__name__}"
    )
