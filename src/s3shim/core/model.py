from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict


@dataclass(frozen=True, slots=True)
class ObjectId:
    """Bucket/key pair naming a remote object.

    For plain HTTP sources the bucket is empty and the key holds the URL.
    """
    bucket: str
    key: str

    @classmethod
    def parse(cls, uri: str) -> "ObjectId":
        if uri.startswith(("http://", "https://")):
            return cls(bucket="", key=uri)
        if not uri.startswith("s3://"):
            raise ValueError(f"Not an s3:// URI: {uri!r}")
        bucket, _, key = uri[len("s3://"):].partition("/")
        if not bucket or not key:
            raise ValueError(f"s3:// URI needs both bucket and key: {uri!r}")
        return cls(bucket=bucket, key=key)

    def __str__(self) -> str:
        if not self.bucket:
            return self.key
        return f"s3://{self.bucket}/{self.key}"


@dataclass(frozen=True, slots=True)
class RangeWindow:
    start: int
    end: int           # inclusive

    def __post_init__(self):
        if self.start < 0 or self.end < self.start:
            raise ValueError(f"Invalid range window {self.start}-{self.end}")

    @property
    def header(self) -> str:
        return f"bytes={self.start}-{self.end}"

    @property
    def size(self) -> int:
        return self.end - self.start + 1


@dataclass(frozen=True, slots=True)
class RangeProgress:
    last_fetched_end: int = -1     # -1: nothing fetched
    total_length: int = -1         # -1: unknown

    @property
    def is_complete(self) -> bool:
        return self.last_fetched_end == self.total_length - 1

    def next_window(self, chunk_size: int) -> RangeWindow:
        start = self.last_fetched_end + 1
        return RangeWindow(start, start + chunk_size - 1)


@dataclass(frozen=True, slots=True)
class ContentRange:
    start: int
    end: int
    length: int

    @property
    def size(self) -> int:
        return self.end - self.start + 1


@dataclass(slots=True)
class RangeResponse:
    body: bytes
    content_range: str | None


@dataclass(slots=True)
class ObjectHead:
    size_bytes: int
    etag: str | None
    content_type: str | None
    metadata: Dict[str, str] = field(default_factory=dict)
    storage_class: str | None = None
    last_modified: datetime | None = None

    @classmethod
    def from_response(cls, response: Dict[str, Any]) -> "ObjectHead":
        size = response.get("ContentLength")
        return cls(
            size_bytes=int(size) if size is not None else 0,
            etag=response.get("ETag"),
            content_type=response.get("ContentType"),
            metadata=dict(response.get("Metadata") or {}),
            storage_class=response.get("StorageClass"),
            last_modified=response.get("LastModified"),
        )


class S3ShimError(RuntimeError):
    """Base class for every error raised by s3shim."""
    pass


class StorageError(S3ShimError):
    """Raised when a single-shot storage operation fails."""

    def __init__(self, message: str, *, cause: BaseException | None = None, code: str | None = None):
        super().__init__(message)
        self.cause = cause
        self.code = code


class EmptyObjectError(StorageError):
    """Raised when an object has no body or a zero content length."""
    pass


class DownloadError(S3ShimError):
    """Raised when a ranged download fails. ``kind`` is stable across releases."""

    kind: str = "download"

    def __init__(self, message: str, *, object_id: ObjectId | None = None,
                 sink: Any = None, cause: BaseException | None = None):
        super().__init__(message)
        self.object_id = object_id
        self.sink = sink
        self.cause = cause


class TransportFailure(DownloadError):
    """The range fetch itself failed (network, auth, not found)."""
    kind = "transport"


class ProtocolViolation(DownloadError):
    """A fetch succeeded but its content-range was missing or unusable."""
    kind = "protocol"


class SinkFailure(DownloadError):
    """Writing to or finalizing the sink failed."""
    kind = "sink"
