"""I/O layer for s3shim - range fetchers and download sinks."""

# Re-export these for import convenience
from .base import CHUNK_SIZE, RangeFetcher, AsyncRangeFetcher, Sink
from .sinks import FileSink, MemorySink, SinkClosedError, open_file_sink
from .s3 import S3RangeFetcher, AsyncS3RangeFetcher, open_s3_fetcher, open_s3_fetcher_async
from .http_sync import HTTPRangeFetcher, open_http_fetcher
from .http_async import HTTPAsyncRangeFetcher, open_http_fetcher_async

def open_fetcher(source, *, client=None, settings=None):
    """Factory function to create the RangeFetcher matching a source."""
    source_str = str(source)
    if source_str.startswith(('http://', 'https://')):
        return open_http_fetcher()
    else:
        return open_s3_fetcher(client, settings=settings)

async def open_fetcher_async(source, *, client=None, settings=None):
    """Factory function to create the AsyncRangeFetcher matching a source."""
    source_str = str(source)
    if source_str.startswith(('http://', 'https://')):
        return await open_http_fetcher_async()
    else:
        return await open_s3_fetcher_async(client, settings=settings)
