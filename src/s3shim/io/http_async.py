"""Asynchronous HTTP range fetcher using httpx."""

import httpx
from typing import Optional
from contextlib import asynccontextmanager

from ..core.content_range import format_content_range
from ..core.model import ObjectId, RangeResponse, RangeWindow
from .base import AsyncRangeFetcher


# Global async client
_client: Optional[httpx.AsyncClient] = None


@asynccontextmanager
async def _get_client():
    """Get or create the global httpx AsyncClient."""
    global _client
    if _client is None:
        _client = httpx.AsyncClient(timeout=60.0)

    try:
        yield _client
    finally:
        # Don't close the client here - it's shared
        pass


@asynccontextmanager
async def _use_client(client: httpx.AsyncClient):
    yield client


async def _read_capped(response: httpx.Response, size: int) -> bytes:
    """Read the body but stop one byte past ``size``."""
    buf = bytearray()
    async for chunk in response.aiter_bytes():
        buf += chunk
        if len(buf) > size:
            del buf[size + 1:]
            break
    return bytes(buf)


def _empty_object_range(response: httpx.Response) -> bool:
    """True for a 416 reply that reports a zero-length object."""
    content_range = response.headers.get('content-range', '')
    return response.status_code == 416 and content_range.replace(' ', '').endswith('*/0')


class HTTPAsyncRangeFetcher:
    """Asynchronous range fetcher for plain or presigned HTTP(S) URLs."""

    def __init__(self, client: Optional[httpx.AsyncClient] = None):
        self.bytes_fetched = 0
        self.requests_made = 0
        self._own_client = client

    async def fetch_range(self, object_id: ObjectId, start: int, end: int) -> RangeResponse:
        """Fetch bytes ``start..end`` of the URL; the server may return fewer."""
        window = RangeWindow(start, end)
        headers = {'Range': window.header}

        self.requests_made += 1
        async with self._client() as client:
            try:
                async with client.stream("GET", object_id.key, headers=headers) as response:
                    if _empty_object_range(response):
                        return RangeResponse(body=b'', content_range=format_content_range(0, -1, 0))

                    if response.status_code >= 400:
                        raise IOError(f"Range request failed with status {response.status_code}")

                    if response.status_code != 206:
                        # Range was ignored and the body is the whole object: leave it unread
                        return RangeResponse(body=b'', content_range=None)

                    data = await _read_capped(response, window.size)
            except httpx.RequestError as e:
                raise IOError(f"Range request failed: {e}") from e

        self.bytes_fetched += len(data)
        return RangeResponse(body=data, content_range=response.headers.get('content-range'))

    def _client(self):
        if self._own_client is not None:
            return _use_client(self._own_client)
        return _get_client()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        # Client is shared, don't close it here
        pass


async def open_http_fetcher_async(client: Optional[httpx.AsyncClient] = None) -> HTTPAsyncRangeFetcher:
    """Create an asynchronous HTTP range fetcher."""
    return HTTPAsyncRangeFetcher(client)


async def close_global_client():
    """Close the global httpx client. Call this at application shutdown."""
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None
