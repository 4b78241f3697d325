"""Local sinks for downloaded chunks."""

import logging
from pathlib import Path
from typing import BinaryIO, List, Optional, Union

logger = logging.getLogger(__name__)


class SinkClosedError(IOError):
    """Raised when a sink is used after finalize() or discard()."""


class FileSink:
    """Writes chunks to a local file, removing it again on discard."""

    def __init__(self, path: Union[Path, str]):
        self.path = Path(path)
        self.bytes_written = 0
        self._file: Optional[BinaryIO] = None
        self._closed = False

    def _ensure_open(self):
        """Open the target on first use so an empty object still yields a file."""
        if self._closed:
            raise SinkClosedError(f"Sink for {self.path} is already closed")
        if self._file is None:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._file = open(self.path, 'wb')

    def write(self, data: bytes) -> None:
        self._ensure_open()
        self._file.write(data)
        self.bytes_written += len(data)

    def finalize(self) -> None:
        self._ensure_open()
        try:
            self._file.flush()
        finally:
            self._file.close()
            self._file = None
            self._closed = True

    def discard(self) -> None:
        """Truncate and remove the partial file. Cleanup errors are only logged."""
        if self._file is not None:
            try:
                self._file.close()
            except OSError as e:
                logger.warning("Failed to close %s: %s", self.path, e)
            self._file = None
        self._closed = True

        try:
            if self.path.exists():
                with open(self.path, 'wb'):
                    pass  # truncate
                self.path.unlink()
        except OSError as e:
            logger.warning("Failed to remove partial download %s: %s", self.path, e)

    def __repr__(self) -> str:
        return f"FileSink({str(self.path)!r})"


class MemorySink:
    """Collects chunks in memory."""

    def __init__(self):
        self._chunks: List[bytes] = []
        self.bytes_written = 0
        self.finalized = False
        self.discarded = False

    def write(self, data: bytes) -> None:
        if self.finalized or self.discarded:
            raise SinkClosedError("Memory sink is already closed")
        self._chunks.append(data)
        self.bytes_written += len(data)

    def finalize(self) -> None:
        if self.finalized or self.discarded:
            raise SinkClosedError("Memory sink is already closed")
        self.finalized = True

    def discard(self) -> None:
        self._chunks.clear()
        self.bytes_written = 0
        self.discarded = True

    def getvalue(self) -> bytes:
        """Return the collected bytes once the sink has been finalized."""
        if not self.finalized:
            raise IOError("Memory sink has not been finalized")
        return b"".join(self._chunks)

    def __repr__(self) -> str:
        return "MemorySink()"


def open_file_sink(path: Union[Path, str]) -> FileSink:
    """Create a sink writing to a local file."""
    return FileSink(path)
