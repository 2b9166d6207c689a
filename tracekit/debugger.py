"""debugger.py - Development collector printing traces and reports as text.

The Debugger is the integration point between the code emitting spans and
reports and the text renderers:

    finished span ──> SpanBuffer ──(root arrives)──> build_traces
                                                        │
                                   trace exporter <── render_timeline

    error report ──> render_report ──> report exporter

Rendering is diagnostic output only. A failing renderer or exporter is reported
through this module's logger and otherwise ignored, so losing a block never
disturbs the program being observed.

Typical usage::

    from tracekit import Debugger, DebugConfig, Span, MILLISECOND

    debugger = Debugger(DebugConfig(trace_resolution=MILLISECOND))
    with Span("request", collector=debugger) as span:
        ...
"""

import dataclasses
import logging
from typing import List, Optional

from .buffer import SpanBuffer
from .collector import Collector
from .config import DebugConfig
from .exporter import TraceExporter
from .report import Report, render_report
from .span import SpanRecord
from .timeline import render_timeline
from .tree import build_traces

logger = logging.getLogger(__name__)


class Debugger(Collector):
    """Collector that assembles finished traces and prints them.

    Thread-safety:
        ``collect_span`` may be called from any thread. The span buffer holds
        its lock only while inserting or draining; assembly and rendering work
        on the drained private copy.

    Attributes:
        config (DebugConfig): Effective settings, defaults filled in.
    """

    def __init__(self, config: Optional[DebugConfig] = None) -> None:
        """Initialise the debugger.

        Args:
            config: Output and rendering settings. The debugger keeps its own
                copy with unset values defaulted via ``DebugConfig.ensure()``;
                ``config`` itself is left untouched.
        """
        self.config = dataclasses.replace(config or DebugConfig()).ensure()
        self._buffer = SpanBuffer()

    # ---------------------------------------------------------------------- #
    # Collector interface
    # ---------------------------------------------------------------------- #

    def collect_span(self, record: SpanRecord) -> None:
        """Buffer a finished span and print its trace once the root arrives."""
        spans = self._buffer.add(record)
        if spans is None:
            return

        logger.debug("flushing trace %s with %d spans", record.trace_id, len(spans))

        try:
            lines = render_timeline(
                build_traces(spans),
                width=self.config.trace_width,
                resolution=self.config.trace_resolution,
                attributes=self.config.trace_attributes,
            )
        except Exception:
            logger.exception("failed to render trace %s", record.trace_id)
            return
        self._write(self.config.trace_output, lines)

    def collect_report(self, report: Report) -> None:
        """Render an error report and print it."""
        try:
            lines = render_report(
                report,
                context=self.config.report_context,
                file_paths=self.config.report_file_paths,
                line_numbers=self.config.report_line_numbers,
            )
        except Exception:
            logger.exception("failed to render report %s", report.id)
            return
        self._write(self.config.report_output, lines)

    # ---------------------------------------------------------------------- #
    # Private helpers
    # ---------------------------------------------------------------------- #

    @property
    def pending(self) -> int:
        """Number of finished spans still waiting for their root span."""
        return len(self._buffer)

    def _write(self, exporter: TraceExporter, lines: List[str]) -> None:
        try:
            exporter.export(lines)
        except Exception:
            logger.exception("failed to write %d lines to %r", len(lines), exporter)
