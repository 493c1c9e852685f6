"""
Output sinks for subprocess output.

A sink is anything with a ``write(bytes)`` method. Three are provided:
- FileSink: append-only log file (clone, update and fetch)
- ConsoleSink: the terminal's stdout (status)
- BufferSink: in-memory capture of short git queries (list)

All serialize writers with a lock so chunks from concurrently running
subprocesses never interleave inside one write.
"""

import threading
from pathlib import Path
from typing import BinaryIO, Optional
import logging

import click

logger = logging.getLogger(__name__)


class OutputSink:
    """Destination for subprocess output chunks."""

    def __init__(self):
        self._lock = threading.Lock()

    def write(self, data: bytes) -> None:
        with self._lock:
            self._write(data)

    def write_line(self, text: str) -> None:
        """Write one line of engine text (e.g. a per-repo header)."""
        self.write(text.encode('utf-8') + b"\n")

    def _write(self, data: bytes) -> None:
        raise NotImplementedError

    def close(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


class FileSink(OutputSink):
    """
    Append-only log file.

    The file and its parent directory are created on first write. The file
    is never truncated or rotated.
    """

    def __init__(self, path):
        super().__init__()
        self.path = Path(path).expanduser()
        self._handle: Optional[BinaryIO] = None

    def _write(self, data: bytes) -> None:
        if self._handle is None:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._handle = open(self.path, 'ab')
            logger.debug(f"Opened log file {self.path}")
        self._handle.write(data)
        self._handle.flush()

    def close(self) -> None:
        with self._lock:
            if self._handle is not None:
                self._handle.close()
                self._handle = None


class ConsoleSink(OutputSink):
    """Writes raw chunks to stdout (or the given binary stream)."""

    def __init__(self, stream: Optional[BinaryIO] = None):
        super().__init__()
        self._stream = stream

    @property
    def stream(self) -> BinaryIO:
        if self._stream is None:
            self._stream = click.get_binary_stream('stdout')
        return self._stream

    def _write(self, data: bytes) -> None:
        self.stream.write(data)
        self.stream.flush()


class BufferSink(OutputSink):
    """Collects output in memory for commands whose answer is parsed."""

    def __init__(self):
        super().__init__()
        self._chunks = []

    def _write(self, data: bytes) -> None:
        self._chunks.append(data)

    def getvalue(self) -> bytes:
        with self._lock:
            return b"".join(self._chunks)

    def text(self) -> str:
        return self.getvalue().decode('utf-8', errors='replace')
