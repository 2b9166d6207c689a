"""exporter.py - Pluggable destinations for rendered trace and report text.

A TraceExporter receives one block of rendered lines at a time: the timeline
of one finished trace, or one rendered error report. Three implementations
are provided:

    StreamExporter  - writes each block to a writable stream (default: stderr).
    FileExporter    - appends each block to a file on disk, with optional rotation.
    BufferExporter  - keeps blocks in memory (tests, embedding).

Each block starts with a header naming the channel, e.g. ``===== TRACE =====``,
so trace and report output stay easy to tell apart when they share a stream.

Typical usage::

    from tracekit import Debugger, DebugConfig
    from tracekit.exporter import FileExporter

    debugger = Debugger(DebugConfig(trace_output=FileExporter("/var/log/traces.log")))
"""

import io
import os
import sys
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import List


def _header(title: str, timestamp: str = "") -> str:
    if timestamp:
        return f"===== {title} [{timestamp}] ====="
    return f"===== {title} ====="


def _now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class TraceExporter(ABC):
    """Abstract base class for all output destinations.

    Any custom exporter must subclass this and implement ``export()``. Errors
    raised by ``export()`` are caught and logged by the Debugger; they never
    reach the traced program.

    Example:
        >>> class ListExporter(TraceExporter):
        ...     def __init__(self):
        ...         self.blocks = []
        ...     def export(self, lines):
        ...         self.blocks.append(list(lines))
    """

    @abstractmethod
    def export(self, lines: List[str]) -> None:
        """Write one block of rendered lines to the destination.

        Args:
            lines: Rendered lines without trailing newlines. May be empty.
        """


class StreamExporter(TraceExporter):
    """Export blocks to a writable stream (default: ``sys.stderr``).

    Output format::

        ===== TRACE =====
        > One         ├──────────────┤   500ms
        |   Two          ├──────┤        200ms

    Attributes:
        _stream: The writable file-like object to write to.
        _title: Channel name shown in the block header.
        _show_timestamp: If True, a UTC timestamp is added to each header.
    """

    def __init__(self, stream=None, title: str = "TRACE", show_timestamp: bool = False) -> None:
        """Initialise the stream exporter.

        Args:
            stream: A writable file-like object. Defaults to ``sys.stderr``.
            title: Channel name for the block header.
            show_timestamp: If True, prepend an ISO-8601 UTC timestamp to each
                block header.
        """
        self._stream = stream or sys.stderr
        self._title = title
        self._show_timestamp = show_timestamp

    def export(self, lines: List[str]) -> None:
        """Write the block to the configured stream in a single call."""
        timestamp = _now() if self._show_timestamp else ""
        block = "\n".join([_header(self._title, timestamp), *lines]) + "\n"
        self._stream.write(block)
        self._stream.flush()


class FileExporter(TraceExporter):
    """Export blocks by appending to a file on disk.

    The file and any missing parent directories are created on first export.
    Every block header carries a UTC timestamp.

    Attributes:
        _path (str): Absolute or relative path to the output file.
        _title (str): Channel name shown in the block header.
        _max_bytes (int): Soft size limit before the file is rotated.
            0 means no rotation.
        _encoding (str): File encoding. Defaults to ``"utf-8"``.

    Example:
        >>> exporter = FileExporter("./traces.log", max_bytes=5 * 1024 * 1024)
    """

    def __init__(
        self,
        path: str,
        title: str = "TRACE",
        max_bytes: int = 0,
        encoding: str = "utf-8",
    ) -> None:
        """Initialise the file exporter.

        Args:
            path: Path to the output file. Parent directories are created
                automatically if they do not exist.
            title: Channel name for the block header.
            max_bytes: Soft maximum file size in bytes. When the file exceeds
                this size, it is renamed to ``<path>.bak`` (overwriting any
                previous backup) and a new file is started. 0 disables rotation.
            encoding: Character encoding for the output file.

        Raises:
            ValueError: If ``max_bytes`` is negative.
        """
        if max_bytes < 0:
            raise ValueError(f"max_bytes must be >= 0, got {max_bytes}")
        self._path = path
        self._title = title
        self._max_bytes = max_bytes
        self._encoding = encoding
        self._lock = threading.Lock()

    def export(self, lines: List[str]) -> None:
        """Append the block to the configured file."""
        block = "\n".join([_header(self._title, _now()), *lines]) + "\n"

        with self._lock:
            self._ensure_dir()
            if self._max_bytes > 0:
                self._rotate_if_needed()
            with open(self._path, "a", encoding=self._encoding) as f:
                f.write(block)

    # ---------------------------------------------------------------------- #
    # Private helpers
    # ---------------------------------------------------------------------- #

    def _ensure_dir(self) -> None:
        """Create parent directories for the file if they do not exist."""
        parent = os.path.dirname(os.path.abspath(self._path))
        os.makedirs(parent, exist_ok=True)

    def _rotate_if_needed(self) -> None:
        """Move the file to ``<path>.bak`` once it exceeds ``_max_bytes``."""
        try:
            if os.path.getsize(self._path) >= self._max_bytes:
                os.replace(self._path, self._path + ".bak")
        except FileNotFoundError:
            pass  # nothing written yet


class BufferExporter(TraceExporter):
    """Keep exported blocks in memory.

    Attributes:
        blocks: Each element is the list of lines of one exported block.
    """

    def __init__(self, title: str = "TRACE") -> None:
        self.blocks: List[List[str]] = []
        self._title = title
        self._lock = threading.Lock()

    def export(self, lines: List[str]) -> None:
        with self._lock:
            self.blocks.append(list(lines))

    def getvalue(self) -> str:
        """Return every block rendered as StreamExporter would write it."""
        out = io.StringIO()
        with self._lock:
            for lines in self.blocks:
                out.write("\n".join([_header(self._title), *lines]) + "\n")
        return out.getvalue()

    def clear(self) -> None:
        with self._lock:
            self.blocks.clear()
