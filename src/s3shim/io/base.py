"""Base protocols and shared types for I/O layer."""

from typing import Protocol, runtime_checkable

from ..core.model import ObjectId, RangeResponse


CHUNK_SIZE = 1024 * 1024  # 1 MiB


@runtime_checkable
class RangeFetcher(Protocol):
    """Protocol for synchronous range fetchers."""

    bytes_fetched: int  # running total

    def fetch_range(self, object_id: ObjectId, start: int, end: int) -> RangeResponse:
        """Request bytes ``start..end`` (inclusive) of an object.

        `end` is an upper bound; the returned content_range is authoritative
        for the bytes actually delivered and the total object length.
        """
        ...


@runtime_checkable
class AsyncRangeFetcher(Protocol):
    """Protocol for asynchronous range fetchers."""

    bytes_fetched: int  # running total

    async def fetch_range(self, object_id: ObjectId, start: int, end: int) -> RangeResponse:
        """Request bytes ``start..end`` (inclusive) of an object."""
        ...


@runtime_checkable
class Sink(Protocol):
    """Destination for downloaded chunks.

    Chunks arrive in increasing offset order. Exactly one of finalize()
    or discard() is called once per download.
    """

    def write(self, data: bytes) -> None:
        ...

    def finalize(self) -> None:
        """Flush and close; the artifact is complete."""
        ...

    def discard(self) -> None:
        """Remove any partial artifact."""
        ...
