"""Streaming response relay.

This package turns lazily produced byte sequences into response envelopes
and iterates them one chunk at a time without buffering.
"""

from .envelope import BodyProducer, Chunk, ResponseEnvelope
from .relay import StreamingResponseRelay, relay
from .stream import ChunkStream


__all__ = [
    "BodyProducer",
    "Chunk",
    "ChunkStream",
    "ResponseEnvelope",
    "StreamingResponseRelay",
    "relay",
]
