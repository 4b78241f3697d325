"""Convenience wrapper around a boto3 S3 client.

Every operation logs before and after the service call and turns failures
into StorageError (or DownloadError for ranged downloads) with a message
naming the bucket and key. The original exception stays reachable as
``__cause__`` and ``.cause``.
"""

from __future__ import annotations

import enum
import logging
from pathlib import Path
from typing import Any, Dict, Mapping

from botocore.exceptions import BotoCoreError, ClientError

from .config import Settings, get_settings
from .core.downloader import ChunkedRangeDownloader
from .core.model import EmptyObjectError, ObjectHead, ObjectId, StorageError
from .io.base import Sink
from .io.s3 import S3RangeFetcher, build_client
from .io.sinks import FileSink
from .logging import log_exception

_logger = logging.getLogger(__name__)


class StorageClass(str, enum.Enum):
    STANDARD = "STANDARD"
    REDUCED_REDUNDANCY = "REDUCED_REDUNDANCY"
    STANDARD_IA = "STANDARD_IA"
    ONEZONE_IA = "ONEZONE_IA"
    INTELLIGENT_TIERING = "INTELLIGENT_TIERING"
    GLACIER = "GLACIER"
    DEEP_ARCHIVE = "DEEP_ARCHIVE"
    OUTPOSTS = "OUTPOSTS"
    GLACIER_IR = "GLACIER_IR"
    EXPRESS_ONEZONE = "EXPRESS_ONEZONE"


class S3:
    """Simplified S3 operations with logging and normalized errors."""

    def __init__(
        self,
        client: Any | None = None,
        *,
        settings: Settings | None = None,
        logger: logging.Logger | None = None,
        chunk_size: int | None = None,
    ) -> None:
        settings = settings or get_settings()
        self._client = client if client is not None else build_client(settings)
        self.logger = logger or _logger
        self.chunk_size = chunk_size or settings.S3_CHUNK_SIZE

    @property
    def client(self) -> Any:
        return self._client

    def head_object(self, bucket: str, key: str) -> Dict[str, Any]:
        self.logger.info("retrieving head of '%s' in bucket '%s'", key, bucket)
        try:
            response = self._client.head_object(Bucket=bucket, Key=key)
        except Exception as exc:
            raise self._handle_error(
                exc, f"failed to retrieve head of key '{key}' in bucket '{bucket}'"
            ) from exc
        self.logger.info("successfully retrieved head of '%s' in bucket '%s'", key, bucket)
        return response

    def describe_object(self, bucket: str, key: str) -> ObjectHead:
        """HEAD the object and summarize the response."""
        return ObjectHead.from_response(self.head_object(bucket, key))

    def get_object(self, bucket: str, key: str) -> Dict[str, Any]:
        self.logger.info("getting key '%s' from bucket '%s'", key, bucket)
        try:
            response = self._client.get_object(Bucket=bucket, Key=key)
        except Exception as exc:
            raise self._handle_error(
                exc, f"failed to get key '{key}' from bucket '{bucket}'"
            ) from exc
        self.logger.info("successfully got key '%s' from bucket '%s'", key, bucket)
        return response

    def get_object_string(self, bucket: str, key: str, encoding: str = "utf-8") -> str:
        return self._read_body(bucket, key).decode(encoding)

    def get_byte_array(self, bucket: str, key: str) -> bytes:
        return self._read_body(bucket, key)

    def _read_body(self, bucket: str, key: str) -> bytes:
        response = self.get_object(bucket, key)
        body = response.get("Body")
        if body is None or not response.get("ContentLength"):
            if body is not None:
                body.close()
            raise EmptyObjectError(f"object body of key '{key}' in bucket '{bucket}' was undefined")
        try:
            return body.read()
        except Exception as exc:
            raise self._handle_error(
                exc, f"failed to read body of key '{key}' from bucket '{bucket}'"
            ) from exc
        finally:
            body.close()

    def download_to_sink(self, bucket: str, key: str, sink: Sink) -> None:
        """Ranged download of an object into any Sink; raises DownloadError."""
        downloader = ChunkedRangeDownloader(
            S3RangeFetcher(self._client), chunk_size=self.chunk_size, logger=self.logger
        )
        downloader.download(ObjectId(bucket, key), sink)

    def download_object(self, bucket: str, key: str, filename: str | Path) -> None:
        """Ranged download of an object to a local file.

        On failure the partial file is removed before DownloadError propagates.
        """
        self.download_to_sink(bucket, key, FileSink(filename))

    def update_object_metadata(self, bucket: str, key: str, metadata: Mapping[str, str]) -> None:
        """Replace the object's user metadata by copying it onto itself."""
        self.logger.info("updating metadata for key '%s' in bucket '%s'", key, bucket)
        try:
            self._client.copy_object(
                Bucket=bucket,
                Key=key,
                CopySource={"Bucket": bucket, "Key": key},
                MetadataDirective="REPLACE",
                Metadata=dict(metadata),
            )
        except Exception as exc:
            raise self._handle_error(
                exc, f"failed to update metadata for key '{key}' in bucket '{bucket}'"
            ) from exc
        self.logger.info("successfully updated metadata for key '%s' in bucket '%s'", key, bucket)

    def put_object(
        self,
        bucket: str,
        key: str,
        body: str | bytes,
        *,
        storage_class: StorageClass | str | None = None,
        content_type: str | None = None,
        metadata: Mapping[str, str] | None = None,
    ) -> None:
        params: Dict[str, Any] = {
            "Bucket": bucket,
            "Key": key,
            "Body": body.encode("utf-8") if isinstance(body, str) else body,
        }
        if storage_class is not None:
            params["StorageClass"] = StorageClass(storage_class).value
        if content_type:
            params["ContentType"] = content_type
        if metadata:
            params["Metadata"] = dict(metadata)

        self.logger.info("putting key '%s' in bucket '%s'", key, bucket)
        try:
            self._client.put_object(**params)
        except Exception as exc:
            raise self._handle_error(
                exc, f"failed to put key '{key}' in bucket '{bucket}'"
            ) from exc
        self.logger.info("successfully put key '%s' in bucket '%s'", key, bucket)

    def _handle_error(self, exc: Exception, message: str) -> StorageError:
        """Wrap ``exc`` in a StorageError and log it.

        Service errors keep their code; anything else becomes a generic
        failure with the same message.
        """
        if isinstance(exc, ClientError):
            code = exc.response.get("Error", {}).get("Code")
            log_exception(self.logger, exc, message, s3_error=str(exc))
            return StorageError(message, cause=exc, code=code)
        if isinstance(exc, BotoCoreError):
            log_exception(self.logger, exc, message, s3_error=str(exc))
            return StorageError(message, cause=exc)

        self.logger.error(message)
        return StorageError(message, cause=exc)
