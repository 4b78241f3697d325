"""Tests for the boto3-backed range fetchers."""

import io
from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError

from s3shim.config import Settings
from s3shim.core.downloader import AsyncChunkedRangeDownloader, ChunkedRangeDownloader
from s3shim.core.model import ObjectId, TransportFailure
from s3shim.io.s3 import AsyncS3RangeFetcher, S3RangeFetcher, build_client, open_s3_fetcher
from s3shim.io.sinks import MemorySink

OBJ = ObjectId("test-bucket", "test/key")


def _client_error(code: str, status: int = 400, **extra) -> ClientError:
    return ClientError(
        {
            "Error": {"Code": code, "Message": code, **extra},
            "ResponseMetadata": {"HTTPStatusCode": status, "HTTPHeaders": {}},
        },
        "GetObject",
    )


def _serve(data: bytes):
    """side_effect emulating S3 GetObject with a Range parameter."""

    def get_object(Bucket, Key, Range):
        start, end = map(int, Range.replace("bytes=", "").split("-"))
        if not data:
            raise _client_error("InvalidRange", 416, ActualObjectSize="0", RangeRequested=Range)
        end = min(end, len(data) - 1)
        return {
            "Body": io.BytesIO(data[start:end + 1]),
            "ContentRange": f"bytes {start}-{end}/{len(data)}",
            "ContentLength": end - start + 1,
        }

    return get_object


class TestS3RangeFetcher:
    """Test S3RangeFetcher against a mocked boto3 client."""

    @pytest.fixture
    def mock_s3(self):
        return MagicMock()

    def test_fetch_range(self, mock_s3):
        mock_s3.get_object.side_effect = _serve(b"0123456789")
        fetcher = S3RangeFetcher(mock_s3)

        response = fetcher.fetch_range(OBJ, 2, 5)

        assert response.body == b"2345"
        assert response.content_range == "bytes 2-5/10"
        mock_s3.get_object.assert_called_once_with(Bucket="test-bucket", Key="test/key", Range="bytes=2-5")
        assert fetcher.bytes_fetched == 4
        assert fetcher.requests_made == 1

    def test_empty_object_invalid_range(self, mock_s3):
        mock_s3.get_object.side_effect = _serve(b"")

        response = S3RangeFetcher(mock_s3).fetch_range(OBJ, 0, 1023)

        assert response.body == b""
        assert response.content_range == "bytes */0"

    def test_empty_object_from_content_range_header(self, mock_s3):
        error = _client_error("InvalidRange", 416)
        error.response["ResponseMetadata"]["HTTPHeaders"]["content-range"] = "bytes */0"
        mock_s3.get_object.side_effect = error

        assert S3RangeFetcher(mock_s3).fetch_range(OBJ, 0, 10).content_range == "bytes */0"

    def test_other_client_errors_propagate(self, mock_s3):
        mock_s3.get_object.side_effect = _client_error("NoSuchKey", 404)

        with pytest.raises(ClientError):
            S3RangeFetcher(mock_s3).fetch_range(OBJ, 0, 10)

    def test_invalid_range_on_non_empty_object_propagates(self, mock_s3):
        mock_s3.get_object.side_effect = _client_error("InvalidRange", 416, ActualObjectSize="10")

        with pytest.raises(ClientError):
            S3RangeFetcher(mock_s3).fetch_range(OBJ, 20, 30)

    def test_missing_content_range(self, mock_s3):
        mock_s3.get_object.return_value = {"Body": io.BytesIO(b"abc")}

        response = S3RangeFetcher(mock_s3).fetch_range(OBJ, 0, 10)

        assert response.body == b"abc"
        assert response.content_range is None

    def test_chunked_download(self, mock_s3):
        data = bytes(range(200))
        mock_s3.get_object.side_effect = _serve(data)
        sink = MemorySink()

        ChunkedRangeDownloader(S3RangeFetcher(mock_s3), chunk_size=64).download(OBJ, sink)

        assert sink.getvalue() == data
        ranges = [c.kwargs["Range"] for c in mock_s3.get_object.call_args_list]
        assert ranges == ["bytes=0-63", "bytes=64-127", "bytes=128-191", "bytes=192-255"]

    def test_no_such_key_download(self, mock_s3):
        mock_s3.get_object.side_effect = _client_error("NoSuchKey", 404)
        sink = MemorySink()

        with pytest.raises(TransportFailure) as exc_info:
            ChunkedRangeDownloader(S3RangeFetcher(mock_s3)).download(OBJ, sink)

        assert isinstance(exc_info.value.cause, ClientError)
        assert sink.discarded


class TestAsyncS3RangeFetcher:

    @pytest.mark.asyncio
    async def test_chunked_download(self):
        mock_s3 = MagicMock()
        data = b"abcdefghij" * 7
        mock_s3.get_object.side_effect = _serve(data)
        fetcher = AsyncS3RangeFetcher(mock_s3)
        sink = MemorySink()

        await AsyncChunkedRangeDownloader(fetcher, chunk_size=32).download(OBJ, sink)

        assert sink.getvalue() == data
        assert fetcher.requests_made == 3
        assert fetcher.bytes_fetched == 70

    @pytest.mark.asyncio
    async def test_empty_object(self):
        mock_s3 = MagicMock()
        mock_s3.get_object.side_effect = _serve(b"")
        sink = MemorySink()

        await AsyncChunkedRangeDownloader(AsyncS3RangeFetcher(mock_s3)).download(OBJ, sink)

        assert sink.getvalue() == b""


class TestBuildClient:

    def test_build_client_from_settings(self):
        settings = Settings(
            S3_ENDPOINT_URL="http://localhost:9000",
            S3_ACCESS_KEY_ID="test-key",
            S3_SECRET_ACCESS_KEY="test-secret",
            S3_USE_SSL=False,
        )
        with patch("s3shim.io.s3.boto3.client") as mock_client:
            build_client(settings)

        args, kwargs = mock_client.call_args
        assert args == ("s3",)
        assert kwargs["endpoint_url"] == "http://localhost:9000"
        assert kwargs["region_name"] == "us-east-1"
        assert kwargs["aws_access_key_id"] == "test-key"
        assert kwargs["use_ssl"] is False
        assert kwargs["config"].s3 == {"addressing_style": "path"}
        assert kwargs["config"].connect_timeout == 10.0
        assert kwargs["config"].read_timeout == 60.0

    def test_open_s3_fetcher_builds_client(self):
        with patch("s3shim.io.s3.build_client", return_value=MagicMock()) as mock_build:
            fetcher = open_s3_fetcher(settings=Settings())
        assert isinstance(fetcher, S3RangeFetcher)
        mock_build.assert_called_once()
