"""tracekit/__init__.py - Public API for the tracekit package.

tracekit is a development-time observability toolkit. It captures where
errors were created and passed through, measures units of work as spans and
prints each finished trace as a proportional text timeline:

    > One         ├──────────────────────────────────────────────────────────┤   500ms
    |   Two                       ├──────────────────────┤                       200ms
    |   :log                      •                                              100ms
    |     Three                                   ├──────┤                       100ms

Quick start:
    from tracekit import Debugger, DebugConfig, Tracer, errorf, wrap, MILLISECOND

    # 1. Create a collector (or rely on default_collector(), which prints to
    #    stdout and stderr)
    debugger = Debugger(DebugConfig(trace_resolution=MILLISECOND))

    # 2. Trace work with an explicit span stack
    tracer = Tracer.start("import", collector=debugger)
    tracer.push("read")
    tracer.log("reading %s", "rows.csv")
    tracer.pop()
    tracer.end()                 # prints the timeline of the whole trace

    # 3. Create and wrap errors that remember their call sites
    def load():
        raise errorf("missing column %r", "id")

    try:
        load()
    except Exception as exc:
        print(format(wrap(exc), "+v"))

Exported names:
    capture, Caller, Frame:       Call-stack capture.
    ChainError, SafeError:        Errors carrying a message, a cause and a caller.
    errorf, wrap, wrapf, ...:     Creating, wrapping and inspecting error chains.
    recover, catch, abort, resume: Converting and short-circuiting failures.
    Span, Tracer:                 Span handles and the explicit span stack.
    run, traced, SpanLogHandler:  Instrumentation helpers.
    Collector, Debugger:          Where spans and reports go.
    DebugConfig:                  Debugger settings.
    StreamExporter, FileExporter: Output destinations for rendered text.
    report_error, reporter:       Structured error reports.
"""

from .buffer import SpanBuffer
from .caller import Caller, Frame, capture
from .collector import Collector, default_collector
from .config import DebugConfig
from .debugger import Debugger
from .errors import (
    ChainError,
    SafeError,
    as_safe,
    chain,
    drop,
    errorf,
    is_safe,
    mark_safe,
    matches,
    safef,
    wrap,
    wrap_skip,
    wrapf,
)
from .exporter import BufferExporter, FileExporter, StreamExporter, TraceExporter
from .handler import SpanLogHandler
from .instrument import RunContext, run, traced
from .report import Report, build_report, render_report, report_error, reporter
from .span import (
    HOUR,
    MICROSECOND,
    MILLISECOND,
    MINUTE,
    NANOSECOND,
    SECOND,
    Attribute,
    AttrKind,
    SpanEvent,
    SpanRecord,
    convert_value,
)
from .stack import PANIC, Abort, abort, abort_if, catch, recover, resume
from .timeline import build_bar, build_dot, render_timeline
from .tracer import Span, Tracer
from .tree import TraceNode, build_traces

__all__ = [
    "Caller",
    "Frame",
    "capture",
    "ChainError",
    "SafeError",
    "errorf",
    "wrap",
    "wrap_skip",
    "wrapf",
    "drop",
    "safef",
    "mark_safe",
    "as_safe",
    "is_safe",
    "chain",
    "matches",
    "PANIC",
    "recover",
    "catch",
    "Abort",
    "abort",
    "abort_if",
    "resume",
    "NANOSECOND",
    "MICROSECOND",
    "MILLISECOND",
    "SECOND",
    "MINUTE",
    "HOUR",
    "AttrKind",
    "Attribute",
    "convert_value",
    "SpanEvent",
    "SpanRecord",
    "SpanBuffer",
    "TraceNode",
    "build_traces",
    "build_bar",
    "build_dot",
    "render_timeline",
    "Report",
    "build_report",
    "render_report",
    "report_error",
    "reporter",
    "TraceExporter",
    "StreamExporter",
    "FileExporter",
    "BufferExporter",
    "DebugConfig",
    "Collector",
    "default_collector",
    "Debugger",
    "Span",
    "Tracer",
    "RunContext",
    "run",
    "traced",
    "SpanLogHandler",
]
__version__ = "0.1.0"
