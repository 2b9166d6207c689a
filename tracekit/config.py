"""config.py - Settings consumed by the Debugger."""

import sys
from dataclasses import dataclass
from typing import Optional

from .exporter import StreamExporter, TraceExporter
from .span import NANOSECOND
from .timeline import DEFAULT_WIDTH


@dataclass
class DebugConfig:
    """Output and rendering settings for a Debugger.

    Attributes:
        trace_output: Receives one block of timeline lines per finished trace.
            Default: ``StreamExporter(sys.stdout, title="TRACE")``.
        trace_resolution: Durations are rounded to this many nanoseconds.
            Default: 1ns.
        trace_width: Width of the timeline axis in characters. Default: 80.
        trace_attributes: Whether timeline lines include attributes.
        report_output: Receives one block per error report.
            Default: ``StreamExporter(sys.stderr, title="REPORT")``.
        report_context: Whether reports include context entries.
        report_file_paths: Whether reports show full file paths.
        report_line_numbers: Whether reports show line numbers.
    """

    trace_output: Optional[TraceExporter] = None
    trace_resolution: int = 0
    trace_width: int = 0
    trace_attributes: bool = False
    report_output: Optional[TraceExporter] = None
    report_context: bool = True
    report_file_paths: bool = True
    report_line_numbers: bool = True

    def ensure(self) -> "DebugConfig":
        """Fill in defaults for unset values and validate the rest.

        Raises:
            ValueError: If the width or resolution is negative.
        """
        if self.trace_width < 0:
            raise ValueError(f"trace_width must be >= 0, got {self.trace_width}")
        if self.trace_resolution < 0:
            raise ValueError(
                f"trace_resolution must be >= 0, got {self.trace_resolution}"
            )

        if self.trace_output is None:
            self.trace_output = StreamExporter(sys.stdout, title="TRACE")
        if self.trace_resolution == 0:
            self.trace_resolution = NANOSECOND
        if self.trace_width == 0:
            self.trace_width = DEFAULT_WIDTH
        if self.report_output is None:
            self.report_output = StreamExporter(sys.stderr, title="REPORT")

        return self
