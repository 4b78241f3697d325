"""s3shim - simplified S3 operations with chunked ranged downloads."""

from .core.model import (                                             # re-export
    ObjectId, ObjectHead, RangeResponse,
    S3ShimError, StorageError, EmptyObjectError,
    DownloadError, TransportFailure, ProtocolViolation, SinkFailure,
)
from .core.downloader import ChunkedRangeDownloader, AsyncChunkedRangeDownloader
from .io import open_fetcher, open_fetcher_async, FileSink, MemorySink, CHUNK_SIZE
from .client import S3, StorageClass
from .config import Settings, get_settings


async def download(source, destination, *, chunk_size: int | None = None, client=None) -> None:
    """Download ``source`` (s3://bucket/key or an HTTP(S) URL) to a local path asynchronously."""
    object_id = ObjectId.parse(str(source))
    fetcher = await open_fetcher_async(source, client=client)
    downloader = AsyncChunkedRangeDownloader(fetcher, chunk_size=chunk_size or get_settings().S3_CHUNK_SIZE)
    await downloader.download(object_id, FileSink(destination))


def download_sync(source, destination, *, chunk_size: int | None = None, client=None) -> None:
    """Download ``source`` (s3://bucket/key or an HTTP(S) URL) to a local path."""
    object_id = ObjectId.parse(str(source))
    fetcher = open_fetcher(source, client=client)
    downloader = ChunkedRangeDownloader(fetcher, chunk_size=chunk_size or get_settings().S3_CHUNK_SIZE)
    downloader.download(object_id, FileSink(destination))


__all__ = [
    "download", "download_sync",
    "S3", "StorageClass", "Settings", "get_settings",
    "ChunkedRangeDownloader", "AsyncChunkedRangeDownloader",
    "FileSink", "MemorySink", "CHUNK_SIZE",
    "ObjectId", "ObjectHead", "RangeResponse",
    "S3ShimError", "StorageError", "EmptyObjectError",
    "DownloadError", "TransportFailure", "ProtocolViolation", "SinkFailure",
]
