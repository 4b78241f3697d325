"""Chunked range downloader.

Pulls an object of unknown size into a sink through sequential byte-range
requests. The total length is learned from the first content-range reply and
the loop ends once the last fetched byte is ``length - 1``. An empty object
takes a single fetch answered with ``*/0``, which parses to end = -1,
length = 0 and so satisfies the same check without writing anything.
"""

from __future__ import annotations

import asyncio
import logging

from ..io.base import CHUNK_SIZE, AsyncRangeFetcher, RangeFetcher, Sink
from ..logging import log_exception, log_with_context
from .content_range import parse_content_range
from .model import (
    ContentRange,
    DownloadError,
    ObjectId,
    ProtocolViolation,
    RangeProgress,
    RangeResponse,
    RangeWindow,
    SinkFailure,
    TransportFailure,
)

_logger = logging.getLogger(__name__)


async def _in_thread(func, *args):
    """Run a blocking sink call in a worker thread.

    If the awaiting task is cancelled, wait for the call to return before
    re-raising so the sink is never discarded while the thread still uses it.
    """
    call = asyncio.ensure_future(asyncio.to_thread(func, *args))
    try:
        return await asyncio.shield(call)
    except asyncio.CancelledError:
        await asyncio.wait({call})
        if not call.cancelled():
            call.exception()
        raise


class _RangeDownloadBase:
    def __init__(self, fetcher, *, chunk_size: int = CHUNK_SIZE, logger: logging.Logger | None = None):
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self.fetcher = fetcher
        self.chunk_size = chunk_size
        self.logger = logger or _logger

    @staticmethod
    def _describe(object_id: ObjectId, sink) -> str:
        return f"'{object_id}' to {sink!r}"

    def _check_response(self, object_id: ObjectId, sink, window: RangeWindow,
                        response: RangeResponse) -> ContentRange:
        """Parse the reply's content-range and make sure it fits the request."""
        where = self._describe(object_id, sink)
        try:
            content_range = parse_content_range(response.content_range)
        except ValueError as e:
            raise ProtocolViolation(
                f"failed downloading {where}: {e}",
                object_id=object_id, sink=sink, cause=e,
            ) from e

        if content_range.start != window.start or content_range.end > window.end:
            raise ProtocolViolation(
                f"failed downloading {where}: asked for {window.start}-{window.end}, "
                f"got {response.content_range!r}",
                object_id=object_id, sink=sink,
            )
        if len(response.body) != content_range.size:
            raise ProtocolViolation(
                f"failed downloading {where}: content-range {response.content_range!r} "
                f"announces {content_range.size} bytes but body has {len(response.body)}",
                object_id=object_id, sink=sink,
            )
        return content_range

    def _discard(self, object_id: ObjectId, sink) -> None:
        try:
            sink.discard()
        except Exception as e:
            log_exception(self.logger, e, "failed to discard partial download",
                          level=logging.WARNING, object=str(object_id), sink=repr(sink))

    def _log_start(self, object_id: ObjectId, sink) -> None:
        log_with_context(self.logger, logging.INFO, f"downloading {self._describe(object_id, sink)}",
                         object=str(object_id), sink=repr(sink), chunk_size=self.chunk_size)

    def _log_chunk(self, object_id: ObjectId, content_range: ContentRange) -> None:
        log_with_context(self.logger, logging.DEBUG, "fetched chunk",
                         object=str(object_id), start=content_range.start,
                         end=content_range.end, length=content_range.length)

    def _log_done(self, object_id: ObjectId, sink, fetches: int, written: int) -> None:
        log_with_context(self.logger, logging.INFO,
                         f"successfully downloaded {self._describe(object_id, sink)}",
                         object=str(object_id), sink=repr(sink),
                         fetches=fetches, bytes_written=written)

    def _log_failure(self, error: DownloadError) -> None:
        log_exception(self.logger, error, str(error), include_traceback=False,
                      kind=error.kind, object=str(error.object_id), sink=repr(error.sink))


class ChunkedRangeDownloader(_RangeDownloadBase):
    """Sequential ranged download through a synchronous RangeFetcher."""

    fetcher: RangeFetcher

    def download(self, object_id: ObjectId, sink: Sink) -> None:
        """Download ``object_id`` into ``sink``.

        The sink is finalized on success and discarded on any failure before
        a DownloadError (TransportFailure, ProtocolViolation or SinkFailure)
        is raised. Nothing is retried.
        """
        self._log_start(object_id, sink)
        where = self._describe(object_id, sink)
        progress = RangeProgress()
        fetches = written = 0

        try:
            while not progress.is_complete:
                window = progress.next_window(self.chunk_size)
                try:
                    response = self.fetcher.fetch_range(object_id, window.start, window.end)
                except Exception as e:
                    raise TransportFailure(f"failed downloading {where}: {e}",
                                           object_id=object_id, sink=sink, cause=e) from e
                fetches += 1

                content_range = self._check_response(object_id, sink, window, response)
                if response.body:
                    try:
                        sink.write(response.body)
                    except Exception as e:
                        raise SinkFailure(f"failed downloading {where}: {e}",
                                          object_id=object_id, sink=sink, cause=e) from e
                    written += len(response.body)
                self._log_chunk(object_id, content_range)

                progress = RangeProgress(content_range.end, content_range.length)

            try:
                sink.finalize()
            except Exception as e:
                raise SinkFailure(f"failed finalizing {where}: {e}",
                                  object_id=object_id, sink=sink, cause=e) from e
        except DownloadError as e:
            self._discard(object_id, sink)
            self._log_failure(e)
            raise
        except BaseException:
            # KeyboardInterrupt and friends: clean up, propagate unchanged
            self._discard(object_id, sink)
            raise

        self._log_done(object_id, sink, fetches, written)


class AsyncChunkedRangeDownloader(_RangeDownloadBase):
    """Sequential ranged download through an AsyncRangeFetcher.

    Each fetch and each sink write is awaited before the next window is
    requested, so only one chunk is ever in flight.
    """

    fetcher: AsyncRangeFetcher

    async def download(self, object_id: ObjectId, sink: Sink) -> None:
        """Download ``object_id`` into ``sink``; see ChunkedRangeDownloader.download."""
        self._log_start(object_id, sink)
        where = self._describe(object_id, sink)
        progress = RangeProgress()
        fetches = written = 0

        try:
            while not progress.is_complete:
                window = progress.next_window(self.chunk_size)
                try:
                    response = await self.fetcher.fetch_range(object_id, window.start, window.end)
                except Exception as e:
                    raise TransportFailure(f"failed downloading {where}: {e}",
                                           object_id=object_id, sink=sink, cause=e) from e
                fetches += 1

                content_range = self._check_response(object_id, sink, window, response)
                if response.body:
                    try:
                        await _in_thread(sink.write, response.body)
                    except Exception as e:
                        raise SinkFailure(f"failed downloading {where}: {e}",
                                          object_id=object_id, sink=sink, cause=e) from e
                    written += len(response.body)
                self._log_chunk(object_id, content_range)

                progress = RangeProgress(content_range.end, content_range.length)

            try:
                await _in_thread(sink.finalize)
            except Exception as e:
                raise SinkFailure(f"failed finalizing {where}: {e}",
                                  object_id=object_id, sink=sink, cause=e) from e
        except DownloadError as e:
            self._discard(object_id, sink)
            self._log_failure(e)
            raise
        except BaseException:
            # Cancellation: no sink call is in flight here, discard synchronously
            self._discard(object_id, sink)
            raise

        self._log_done(object_id, sink, fetches, written)
