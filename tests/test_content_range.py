"""Tests for content-range parsing and range bookkeeping."""

import pytest

from s3shim.core.content_range import format_content_range, parse_content_range
from s3shim.core.model import ContentRange, ObjectId, RangeProgress, RangeWindow


class TestParseContentRange:

    @pytest.mark.parametrize("descriptor, expected", [
        ("bytes 0-9/100", ContentRange(0, 9, 100)),
        ("0-9/100", ContentRange(0, 9, 100)),
        ("bytes 99-99/100", ContentRange(99, 99, 100)),
        ("  bytes 10-19/20 ", ContentRange(10, 19, 20)),
        ("bytes */0", ContentRange(0, -1, 0)),
        ("*/0", ContentRange(0, -1, 0)),
    ])
    def test_valid(self, descriptor, expected):
        assert parse_content_range(descriptor) == expected

    @pytest.mark.parametrize("descriptor", [
        "",
        "garbage",
        "bytes 0-9",
        "bytes 0-9/*",
        "bytes -1-9/100",
        "bytes 9-0/100",
        "bytes 0-100/100",
        "bytes */100",
        "items 0-9/100",
    ])
    def test_malformed(self, descriptor):
        with pytest.raises(ValueError):
            parse_content_range(descriptor)

    def test_missing(self):
        with pytest.raises(ValueError, match="missing"):
            parse_content_range(None)

    def test_size(self):
        assert parse_content_range("bytes 0-9/100").size == 10
        assert parse_content_range("bytes */0").size == 0

    def test_format(self):
        assert format_content_range(0, 9, 100) == "bytes 0-9/100"
        assert format_content_range(0, -1, 0) == "bytes */0"
        assert parse_content_range(format_content_range(5, 7, 8)) == ContentRange(5, 7, 8)


class TestRangeProgress:

    def test_initial_state_is_not_complete(self):
        progress = RangeProgress()
        assert progress.last_fetched_end == -1
        assert progress.total_length == -1
        assert not progress.is_complete

    def test_first_window(self):
        assert RangeProgress().next_window(1024) == RangeWindow(0, 1023)

    def test_next_window_follows_last_end(self):
        assert RangeProgress(1023, 5000).next_window(1024) == RangeWindow(1024, 2047)

    def test_complete_when_last_byte_fetched(self):
        assert RangeProgress(99, 100).is_complete
        assert not RangeProgress(98, 100).is_complete

    def test_empty_object_is_complete(self):
        assert RangeProgress(-1, 0).is_complete


class TestRangeWindow:

    def test_header(self):
        assert RangeWindow(0, 1048575).header == "bytes=0-1048575"

    @pytest.mark.parametrize("start, end", [(-1, 5), (5, 4)])
    def test_invalid(self, start, end):
        with pytest.raises(ValueError):
            RangeWindow(start, end)


class TestObjectId:

    def test_parse_s3_uri(self):
        assert ObjectId.parse("s3://bucket/a/b/c.txt") == ObjectId("bucket", "a/b/c.txt")

    def test_parse_http_url(self):
        obj = ObjectId.parse("https://example.com/file.bin")
        assert obj.bucket == ""
        assert str(obj) == "https://example.com/file.bin"

    def test_str(self):
        assert str(ObjectId("bucket", "key")) == "s3://bucket/key"

    @pytest.mark.parametrize("uri", ["bucket/key", "s3://bucket", "s3:///key", "ftp://host/file"])
    def test_invalid(self, uri):
        with pytest.raises(ValueError):
            ObjectId.parse(uri)
