from __future__ import annotations
from typing import Any, Dict, Iterable

from .model import ObjectHead


def head_asdict(head: ObjectHead, *, fields: Iterable[str] | None = None) -> Dict[str, Any]:
    """Return a JSON-serialisable dict (skip None) optionally filtered."""
    payload = {
        "size_bytes": head.size_bytes,
        "etag": head.etag,
        "content_type": head.content_type,
        "storage_class": head.storage_class,
        "last_modified": head.last_modified.isoformat() if head.last_modified else None,
        "metadata": head.metadata or None,
    }
    payload = {k: v for k, v in payload.items() if v is not None}
    if fields:
        wanted = set(fields)
        payload = {k: v for k, v in payload.items() if k in wanted}
    return payload
