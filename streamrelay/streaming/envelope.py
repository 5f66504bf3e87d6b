"""Transport-agnostic container for one streamed response."""

from collections.abc import AsyncIterable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Union

from starlette.datastructures import Headers


Chunk = Union[bytes, bytearray, memoryview, str]
BodyProducer = Union[AsyncIterable[Chunk], Iterable[Chunk]]


def normalize_headers(
    headers: Mapping[str, str], source: str = "headers"
) -> dict[str, str]:
    """Lower-case header names, rejecting names that only differ in case."""
    normalized: dict[str, str] = {}
    for name, value in headers.items():
        key = name.lower()
        if key in normalized:
            raise ValueError(f"Duplicate header {name!r} in {source}")
        normalized[key] = str(value)
    return normalized


@dataclass(eq=False)
class ResponseEnvelope:
    """Status, headers and the body producer of a single response.

    Headers are stored as read-only :class:`~starlette.datastructures.Headers`
    with lower-cased names, so ``envelope.headers["Content-Type"]`` and
    ``envelope.headers["content-type"]`` are the same lookup. The producer is
    handed over exactly once through :meth:`take_body`; an envelope is never
    reused.
    """

    status_code: int
    headers: Mapping[str, str]
    _body: BodyProducer | None = field(repr=False)

    def __post_init__(self) -> None:
        if not isinstance(self.headers, Headers):
            self.headers = Headers(headers=normalize_headers(self.headers))

    @property
    def media_type(self) -> str | None:
        return self.headers.get("content-type")

    @property
    def body_taken(self) -> bool:
        return self._body is None

    def take_body(self) -> BodyProducer:
        """Move the body producer out of the envelope."""
        if self._body is None:
            raise RuntimeError("Response envelope body has already been taken")
        body, self._body = self._body, None
        return body

    def raw_headers(self) -> list[tuple[bytes, bytes]]:
        """Headers encoded for an ASGI ``http.response.start`` message."""
        return list(self.headers.raw)  # type: ignore[attr-defined]
