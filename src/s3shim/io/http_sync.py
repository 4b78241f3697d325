"""Synchronous HTTP range fetcher using requests."""

import requests

from ..core.content_range import format_content_range
from ..core.model import ObjectId, RangeResponse, RangeWindow
from .base import RangeFetcher


# Module-level session for connection pooling
_session = None


def _get_session():
    """Get or create the global requests session."""
    global _session
    if _session is None:
        _session = requests.Session()
    return _session


_READ_SIZE = 64 * 1024


def _read_capped(chunks, size: int) -> bytes:
    """Join ``chunks`` but stop one byte past ``size``.

    The extra byte is enough for the downloader to see an oversized body.
    """
    buf = bytearray()
    for chunk in chunks:
        buf += chunk
        if len(buf) > size:
            del buf[size + 1:]
            break
    return bytes(buf)


def _empty_object_range(response) -> bool:
    """True for a 416 reply that reports a zero-length object."""
    content_range = response.headers.get('content-range', '')
    return response.status_code == 416 and content_range.replace(' ', '').endswith('*/0')


class HTTPRangeFetcher:
    """Synchronous range fetcher for plain or presigned HTTP(S) URLs.

    The object identifier's key is the URL.
    """

    def __init__(self, timeout: float = 30):
        self.bytes_fetched = 0
        self.requests_made = 0
        self.timeout = timeout
        self._session = _get_session()

    def fetch_range(self, object_id: ObjectId, start: int, end: int) -> RangeResponse:
        """Fetch bytes ``start..end`` of the URL; the server may return fewer."""
        window = RangeWindow(start, end)
        headers = {'Range': window.header}

        self.requests_made += 1
        try:
            with self._session.get(object_id.key, headers=headers, timeout=self.timeout,
                                   stream=True) as response:
                if _empty_object_range(response):
                    return RangeResponse(body=b'', content_range=format_content_range(0, -1, 0))

                if response.status_code >= 400:
                    raise IOError(f"Range request failed with status {response.status_code}")

                if response.status_code != 206:
                    # Range was ignored and the body is the whole object: leave it unread
                    return RangeResponse(body=b'', content_range=None)

                data = _read_capped(response.iter_content(chunk_size=_READ_SIZE), window.size)
        except requests.RequestException as e:
            raise IOError(f"Range request failed: {e}") from e

        self.bytes_fetched += len(data)
        return RangeResponse(body=data, content_range=response.headers.get('content-range'))

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        # Session is shared, don't close it here
        pass


def open_http_fetcher(timeout: float = 30) -> HTTPRangeFetcher:
    """Create a synchronous HTTP range fetcher."""
    return HTTPRangeFetcher(timeout=timeout)
