from __future__ import annotations
import re

from .model import ContentRange

# "[bytes ]<start>-<end>/<length>" or "[bytes ]*/0"
_CONTENT_RANGE_RE = re.compile(
    r"^\s*(?:bytes\s+)?(?:(?P<start>\d+)-(?P<end>\d+)|(?P<unsatisfied>\*))/(?P<length>\d+)\s*$"
)


def parse_content_range(descriptor: str | None) -> ContentRange:
    """Parse a content-range descriptor into its start, end and total length.

    The unsatisfied form ``*/0`` is what servers send for a range request
    against an empty object; it parses as an empty range (end = -1) so the
    completion check ``end == length - 1`` holds. Anything else that does not
    describe a non-empty span inside the object raises ValueError.
    """
    if descriptor is None:
        raise ValueError("content-range descriptor is missing")
    m = _CONTENT_RANGE_RE.match(descriptor)
    if m is None:
        raise ValueError(f"malformed content-range descriptor {descriptor!r}")

    length = int(m.group("length"))
    if m.group("unsatisfied"):
        if length != 0:
            raise ValueError(f"unsatisfied range for a {length} byte object: {descriptor!r}")
        return ContentRange(start=0, end=-1, length=0)

    start, end = int(m.group("start")), int(m.group("end"))
    if end < start or end >= length:
        raise ValueError(f"content-range {descriptor!r} is out of bounds")
    return ContentRange(start=start, end=end, length=length)


def format_content_range(start: int, end: int, length: int) -> str:
    if length == 0:
        return "bytes */0"
    return f"bytes {start}-{end}/{length}"
