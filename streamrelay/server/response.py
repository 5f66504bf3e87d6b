"""ASGI response that writes a relayed envelope to the client."""

import asyncio
import time
from typing import Any

from starlette.background import BackgroundTask
from starlette.responses import StreamingResponse
from starlette.types import Receive, Scope, Send

from streamrelay.core.errors import TransportFailure
from streamrelay.core.logging import get_logger
from streamrelay.streaming import ChunkStream, ResponseEnvelope


logger = get_logger(__name__)


class RelayStreamingResponse(StreamingResponse):
    """Stream a :class:`ResponseEnvelope` chunk by chunk.

    Headers go out before the first chunk is requested and no content length
    is announced, so the server frames the body with chunked encoding. A
    client disconnect cancels the chunk stream: the producer is not asked
    for another chunk and is closed. Errors raised by the producer after the
    headers were sent propagate to the ASGI server, which aborts the
    connection; the body is left truncated on purpose.
    """

    def __init__(
        self, envelope: ResponseEnvelope, background: BackgroundTask | None = None
    ) -> None:
        self.envelope = envelope
        self.chunks = ChunkStream(envelope.take_body())
        self.body_iterator = self.chunks
        self.status_code = envelope.status_code
        self.media_type = envelope.media_type
        self.background = background
        self.raw_headers = envelope.raw_headers()
        self.body_complete = False

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        started = time.perf_counter()
        stream_task = asyncio.create_task(self._stream_body(send))
        disconnect_task = asyncio.create_task(self._listen_for_disconnect(receive))
        tasks = {stream_task, disconnect_task}

        try:
            await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()
            await asyncio.wait(tasks)
            await self.chunks.aclose()

        log_kwargs: dict[str, Any] = {
            "status_code": self.status_code,
            "chunks": self.chunks.chunks_sent,
            "bytes": self.chunks.bytes_sent,
            "duration_ms": round((time.perf_counter() - started) * 1000, 2),
        }

        if not stream_task.cancelled() and stream_task.exception() is not None:
            logger.error(
                "stream_aborted",
                error=str(stream_task.exception()),
                **log_kwargs,
            )
            stream_task.result()

        if self.chunks.cancelled:
            logger.info("stream_cancelled_by_client", **log_kwargs)
            return

        logger.debug("stream_completed", **log_kwargs)

        if self.background is not None:
            await self.background()

    async def _stream_body(self, send: Send) -> None:
        try:
            await send(
                {
                    "type": "http.response.start",
                    "status": self.status_code,
                    "headers": self.raw_headers,
                }
            )
            async for chunk in self.chunks:
                await send(
                    {"type": "http.response.body", "body": chunk, "more_body": True}
                )
            if self.chunks.cancelled:
                return
            await send({"type": "http.response.body", "body": b"", "more_body": False})
            self.body_complete = True
        except OSError as e:
            self.chunks.cancel()
            raise TransportFailure(f"Connection lost while streaming: {e}") from e

    async def _listen_for_disconnect(self, receive: Receive) -> None:
        while True:
            message = await receive()
            if message["type"] == "http.disconnect":
                # Flag first so the producer is never advanced again
                if not self.body_complete:
                    self.chunks.cancel()
                break
