
"""CLI implementation for s3shim."""

import asyncio
import json
import sys
from pathlib import Path
from typing import Optional

import typer

from . import download, download_sync
from .client import S3, StorageClass
from .config import get_settings
from .core.model import ObjectId, S3ShimError
from .core.util import head_asdict
from .io.http_async import close_global_client
from .logging import setup_logging

app = typer.Typer(add_completion=False, help="Simplified S3 operations with chunked ranged downloads.")


def _parse_s3(uri: str) -> ObjectId:
    try:
        object_id = ObjectId.parse(uri)
    except ValueError as e:
        raise typer.BadParameter(str(e))
    if not object_id.bucket:
        raise typer.BadParameter(f"expected an s3://bucket/key URI, got {uri!r}")
    return object_id


async def _download_async(source: str, destination: Path, chunk_size: Optional[int]):
    try:
        await download(source, destination, chunk_size=chunk_size)
    finally:
        await close_global_client()


def _fail(e: Exception):
    typer.echo(f"error: {e}", err=True)
    raise typer.Exit(code=1)


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Logging level (default from S3SHIM_LOG_LEVEL)"),
    plain_logs: bool = typer.Option(False, "--plain-logs", help="Human readable logs instead of JSON"),
):
    """Configure logging for every command."""
    setup_logging(level=(log_level or get_settings().LOG_LEVEL).upper(), json_output=not plain_logs)


@app.command()
def head(
    uri: str = typer.Argument(..., help="s3://bucket/key"),
    fields: Optional[str] = typer.Option(None, "--fields", help="Comma-separated subset of keys to emit"),
):
    """Print object metadata as JSON."""
    object_id = _parse_s3(uri)
    try:
        obj = S3().describe_object(object_id.bucket, object_id.key)
    except S3ShimError as e:
        _fail(e)
    sel_fields = set(fields.split(",")) if fields else None
    json.dump(head_asdict(obj, fields=sel_fields), sys.stdout, indent=2)
    sys.stdout.write("\n")


@app.command()
def get(
    uri: str = typer.Argument(..., help="s3://bucket/key"),
    output: Optional[Path] = typer.Option(None, "-o", "--output", help="Write to PATH instead of stdout"),
):
    """Fetch a whole object in a single request."""
    object_id = _parse_s3(uri)
    try:
        data = S3().get_byte_array(object_id.bucket, object_id.key)
    except S3ShimError as e:
        _fail(e)
    if output:
        output.write_bytes(data)
    else:
        sys.stdout.buffer.write(data)
        sys.stdout.flush()


@app.command("download")
def download_cmd(
    source: str = typer.Argument(..., help="s3://bucket/key or an http(s) URL"),
    destination: Path = typer.Argument(..., help="Local file to write"),
    chunk_size: Optional[int] = typer.Option(None, "--chunk-size", min=1, help="Bytes per range request"),
    sync: bool = typer.Option(False, "--sync", help="Force synchronous I/O"),
):
    """Download an object through sequential range requests."""
    try:
        ObjectId.parse(source)
    except ValueError as e:
        raise typer.BadParameter(str(e))

    try:
        if sync:
            download_sync(source, destination, chunk_size=chunk_size)
        else:
            asyncio.run(_download_async(source, destination, chunk_size))
    except S3ShimError as e:
        _fail(e)


@app.command()
def put(
    uri: str = typer.Argument(..., help="s3://bucket/key"),
    source: Path = typer.Argument(..., exists=True, dir_okay=False, help="Local file to upload"),
    storage_class: Optional[StorageClass] = typer.Option(None, "--storage-class", case_sensitive=False),
    content_type: Optional[str] = typer.Option(None, "--content-type"),
):
    """Upload a local file in a single request."""
    object_id = _parse_s3(uri)
    try:
        S3().put_object(
            object_id.bucket, object_id.key, source.read_bytes(),
            storage_class=storage_class, content_type=content_type,
        )
    except S3ShimError as e:
        _fail(e)


@app.command("set-metadata")
def set_metadata(
    uri: str = typer.Argument(..., help="s3://bucket/key"),
    pairs: list[str] = typer.Argument(..., help="KEY=VALUE metadata entries"),
):
    """Replace an object's user metadata."""
    object_id = _parse_s3(uri)
    metadata = {}
    for pair in pairs:
        name, sep, value = pair.partition("=")
        if not sep or not name:
            raise typer.BadParameter(f"expected KEY=VALUE, got {pair!r}")
        metadata[name] = value
    try:
        S3().update_object_metadata(object_id.bucket, object_id.key, metadata)
    except S3ShimError as e:
        _fail(e)


if __name__ == "__main__":
    app()
