"""Bridge a lazy byte producer to an HTTP response envelope."""

from collections.abc import Mapping

from streamrelay.core.errors import ProducerExhaustedEarly
from streamrelay.core.logging import get_logger

from .envelope import BodyProducer, ResponseEnvelope, normalize_headers


logger = get_logger(__name__)


# Framing headers a streamed body cannot honour; the server picks the framing
HOP_BY_HOP_HEADERS = frozenset({"content-length", "transfer-encoding", "connection"})


class StreamingResponseRelay:
    """Wrap body producers into response envelopes without touching them.

    The relay is stateless: it never iterates the producer, performs no I/O
    and does not catch errors raised later by the producer.
    """

    def __init__(
        self,
        default_headers: Mapping[str, str] | None = None,
        media_type: str = "text/html",
    ) -> None:
        self.default_headers: dict[str, str] = {"content-type": media_type}
        self.default_headers.update(
            normalize_headers(default_headers or {}, source="default_headers")
        )

    def relay(
        self,
        producer: BodyProducer | None,
        headers: Mapping[str, str] | None = None,
        status: int = 200,
    ) -> ResponseEnvelope:
        """Build an envelope around ``producer``.

        Args:
            producer: Lazy, single-pass sequence of chunks
            headers: Response headers; they take precedence over the defaults
            status: HTTP status code

        Returns:
            Envelope holding the producer unchanged

        Raises:
            ProducerExhaustedEarly: If no producer was supplied
            ValueError: If the status is not a valid HTTP status or header
                names collide case-insensitively
        """
        if producer is None:
            raise ProducerExhaustedEarly()
        if isinstance(status, bool) or not 100 <= int(status) <= 599:
            raise ValueError(f"Invalid HTTP status code: {status!r}")

        merged = dict(self.default_headers)
        merged.update(normalize_headers(headers or {}, source="headers"))

        dropped = HOP_BY_HOP_HEADERS.intersection(merged)
        for name in dropped:
            del merged[name]
        if dropped:
            logger.debug("relay_dropped_framing_headers", headers=sorted(dropped))

        return ResponseEnvelope(status_code=int(status), headers=merged, _body=producer)


_default_relay = StreamingResponseRelay()


def relay(
    producer: BodyProducer | None,
    headers: Mapping[str, str] | None = None,
    status: int = 200,
) -> ResponseEnvelope:
    """Relay ``producer`` with the module default settings."""
    return _default_relay.relay(producer, headers=headers, status=status)
