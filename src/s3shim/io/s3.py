"""S3 range fetchers backed by boto3.

Works with AWS S3, MinIO, and other S3-compatible services.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

from ..core.content_range import format_content_range
from ..core.model import ObjectId, RangeResponse, RangeWindow

if TYPE_CHECKING:
    from ..config import Settings


def build_client(settings: "Settings") -> Any:
    """Create a boto3 S3 client from settings."""
    addressing_style = (settings.S3_ADDRESSING_STYLE or "path").strip().lower()
    config = Config(
        s3={"addressing_style": addressing_style},
        connect_timeout=settings.S3_CONNECT_TIMEOUT,
        read_timeout=settings.S3_READ_TIMEOUT,
    )

    return boto3.client(
        "s3",
        endpoint_url=settings.S3_ENDPOINT_URL,
        region_name=settings.S3_REGION,
        aws_access_key_id=settings.S3_ACCESS_KEY_ID,
        aws_secret_access_key=settings.S3_SECRET_ACCESS_KEY,
        use_ssl=bool(settings.S3_USE_SSL),
        config=config,
    )


def _is_empty_object_error(exc: ClientError) -> bool:
    """S3 answers a range request on a zero-length object with InvalidRange."""
    error = exc.response.get("Error", {})
    if error.get("Code") != "InvalidRange":
        return False
    if str(error.get("ActualObjectSize", "")) == "0":
        return True
    headers = exc.response.get("ResponseMetadata", {}).get("HTTPHeaders", {})
    return headers.get("content-range", "").replace(" ", "").endswith("*/0")


class S3RangeFetcher:
    """Synchronous range fetcher issuing ``GetObject`` with a ``Range``."""

    def __init__(self, client: Any):
        self._client = client
        self.bytes_fetched = 0
        self.requests_made = 0

    def fetch_range(self, object_id: ObjectId, start: int, end: int) -> RangeResponse:
        window = RangeWindow(start, end)
        self.requests_made += 1
        try:
            response = self._client.get_object(
                Bucket=object_id.bucket,
                Key=object_id.key,
                Range=window.header,
            )
        except ClientError as exc:
            if _is_empty_object_error(exc):
                return RangeResponse(body=b"", content_range=format_content_range(0, -1, 0))
            raise

        body = response.get("Body")
        try:
            data = body.read() if body is not None else b""
        finally:
            if body is not None:
                body.close()
        self.bytes_fetched += len(data)
        return RangeResponse(body=data, content_range=response.get("ContentRange"))


class AsyncS3RangeFetcher:
    """Asynchronous range fetcher - thin wrapper around the sync fetcher."""

    def __init__(self, client: Any):
        self._sync_fetcher = S3RangeFetcher(client)

    @property
    def bytes_fetched(self) -> int:
        return self._sync_fetcher.bytes_fetched

    @property
    def requests_made(self) -> int:
        return self._sync_fetcher.requests_made

    async def fetch_range(self, object_id: ObjectId, start: int, end: int) -> RangeResponse:
        return await asyncio.to_thread(self._sync_fetcher.fetch_range, object_id, start, end)


def open_s3_fetcher(client: Any | None = None, *, settings: "Settings | None" = None) -> S3RangeFetcher:
    """Create a synchronous S3 range fetcher, building a client when none is given."""
    if client is None:
        from ..config import get_settings
        client = build_client(settings or get_settings())
    return S3RangeFetcher(client)


async def open_s3_fetcher_async(client: Any | None = None, *, settings: "Settings | None" = None) -> AsyncS3RangeFetcher:
    """Create an asynchronous S3 range fetcher."""
    if client is None:
        from ..config import get_settings
        client = build_client(settings or get_settings())
    return AsyncS3RangeFetcher(client)
