"""test_exporter.py - Unit tests for the output destinations.

Covers:
    - TraceExporter cannot be instantiated without export()
    - StreamExporter header, titles, timestamps and the stderr default
    - FileExporter append, directory creation, rotation and validation
    - BufferExporter blocks and text rendering
"""

import io
import re

import pytest

from tracekit.exporter import BufferExporter, FileExporter, StreamExporter, TraceExporter


# ---------------------------------------------------------------------------
# TraceExporter
# ---------------------------------------------------------------------------


class TestTraceExporter:
    def test_abstract_base_requires_export(self):
        class Incomplete(TraceExporter):
            pass

        with pytest.raises(TypeError):
            Incomplete()

    def test_custom_exporter(self):
        class ListExporter(TraceExporter):
            def __init__(self):
                self.blocks = []

            def export(self, lines):
                self.blocks.append(list(lines))

        exporter = ListExporter()
        exporter.export(["a"])
        assert exporter.blocks == [["a"]]


# ---------------------------------------------------------------------------
# StreamExporter
# ---------------------------------------------------------------------------


class TestStreamExporter:
    def test_writes_header_and_lines(self):
        stream = io.StringIO()
        StreamExporter(stream).export(["> One", "|   Two"])
        assert stream.getvalue() == "===== TRACE =====\n> One\n|   Two\n"

    def test_custom_title(self):
        stream = io.StringIO()
        StreamExporter(stream, title="REPORT").export(["ERROR"])
        assert stream.getvalue().startswith("===== REPORT =====\n")

    def test_empty_block_writes_header_only(self):
        stream = io.StringIO()
        StreamExporter(stream).export([])
        assert stream.getvalue() == "===== TRACE =====\n"

    def test_timestamp_in_header(self):
        stream = io.StringIO()
        StreamExporter(stream, show_timestamp=True).export(["x"])
        header = stream.getvalue().split("\n")[0]
        assert re.fullmatch(
            r"===== TRACE \[\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}Z\] =====", header
        )

    def test_defaults_to_stderr(self, capsys):
        StreamExporter().export(["to stderr"])
        captured = capsys.readouterr()
        assert "to stderr" in captured.err
        assert captured.out == ""


# ---------------------------------------------------------------------------
# FileExporter
# ---------------------------------------------------------------------------


class TestFileExporter:
    def test_appends_blocks(self, tmp_path):
        path = tmp_path / "trace.log"
        exporter = FileExporter(str(path))
        exporter.export(["first"])
        exporter.export(["second"])

        content = path.read_text(encoding="utf-8")
        assert content.count("===== TRACE [") == 2
        assert content.index("first") < content.index("second")

    def test_creates_parent_directories(self, tmp_path):
        path = tmp_path / "nested" / "dir" / "trace.log"
        FileExporter(str(path)).export(["x"])
        assert path.exists()

    def test_rotates_when_size_exceeded(self, tmp_path):
        path = tmp_path / "trace.log"
        exporter = FileExporter(str(path), max_bytes=10)
        exporter.export(["first block"])
        exporter.export(["second block"])

        backup = tmp_path / "trace.log.bak"
        assert backup.exists()
        assert "first block" in backup.read_text(encoding="utf-8")
        assert "first block" not in path.read_text(encoding="utf-8")
        assert "second block" in path.read_text(encoding="utf-8")

    def test_no_rotation_by_default(self, tmp_path):
        path = tmp_path / "trace.log"
        exporter = FileExporter(str(path))
        for i in range(50):
            exporter.export([f"block {i}"])
        assert not (tmp_path / "trace.log.bak").exists()

    def test_negative_max_bytes_rejected(self, tmp_path):
        with pytest.raises(ValueError):
            FileExporter(str(tmp_path / "trace.log"), max_bytes=-1)


# ---------------------------------------------------------------------------
# BufferExporter
# ---------------------------------------------------------------------------


class TestBufferExporter:
    def test_keeps_blocks(self):
        exporter = BufferExporter()
        exporter.export(["a", "b"])
        exporter.export(["c"])
        assert exporter.blocks == [["a", "b"], ["c"]]

    def test_getvalue_matches_stream_output(self):
        exporter = BufferExporter(title="REPORT")
        stream = io.StringIO()
        for exp in (exporter, StreamExporter(stream, title="REPORT")):
            exp.export(["ERROR", "> bad (ValueError)"])
        assert exporter.getvalue() == stream.getvalue()

    def test_clear(self):
        exporter = BufferExporter()
        exporter.export(["a"])
        exporter.clear()
        assert exporter.blocks == []
        assert exporter.getvalue() == ""
