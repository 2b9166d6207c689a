"""report.py - Structured error reports and their text rendering.

A Report is the collector-facing description of one captured error: a level,
optional context and tags, and one ReportException per link of the error
chain, each with its frames. ``build_report`` derives it from an exception;
``render_report`` turns it into the lines a debugger prints::

    ERROR
    • component: billing
    > division by zero (ZeroDivisionError)
    |   compute (app.billing): /srv/app/billing.py:42
    > PANIC: division by zero (ChainError)
    |   compute (app.billing): /srv/app/billing.py:42
    |   handle (app.api): /srv/app/api.py:17
"""

import os
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional

from .caller import Frame
from .collector import Collector, default_collector
from .errors import ChainError, chain, wrap_skip
from .span import encode_json


@dataclass
class ReportFrame:
    function: str
    module: str
    file: str
    path: str
    line: int


@dataclass
class ReportException:
    type: str
    value: str
    module: str
    frames: List[ReportFrame] = field(default_factory=list)


@dataclass
class Report:
    """One captured error.

    Attributes:
        id: Random hex id.
        level: Severity, e.g. ``"error"``.
        time: UTC time of capture, ``None`` in reduced copies.
        context: Named groups of structured data.
        tags: Flat string tags.
        exceptions: One entry per link of the error chain, original cause first.
    """

    id: str
    level: str
    time: Optional[datetime]
    context: Dict[str, Any] = field(default_factory=dict)
    tags: Dict[str, str] = field(default_factory=dict)
    exceptions: List[ReportException] = field(default_factory=list)


def _report_frame(frame: Frame) -> ReportFrame:
    return ReportFrame(
        function=frame.function,
        module=frame.module,
        file=os.path.basename(frame.file),
        path=frame.file,
        line=frame.line,
    )


def _traceback_frames(exc: BaseException) -> List[Frame]:
    frames = []
    tb = exc.__traceback__
    while tb is not None:
        frames.append(Frame.of_traceback(tb))
        tb = tb.tb_next
    frames.reverse()
    return frames


def _exception(exc: BaseException) -> ReportException:
    if isinstance(exc, ChainError):
        frames = exc.caller.stack
    else:
        frames = _traceback_frames(exc)
    return ReportException(
        type=type(exc).__qualname__,
        value=str(exc),
        module=type(exc).__module__,
        frames=[_report_frame(frame) for frame in frames],
    )


def build_report(
    err: BaseException,
    level: str = "error",
    tags: Optional[Mapping[str, Any]] = None,
    context: Optional[Mapping[str, Any]] = None,
) -> Report:
    """Describe ``err`` and its chain as a Report.

    Chain errors contribute the frames of their caller, other exceptions the
    frames of their traceback. Frames are listed innermost first.
    """
    links = list(chain(err))
    links.reverse()
    return Report(
        id=uuid.uuid4().hex,
        level=level,
        time=datetime.now(timezone.utc),
        context=dict(context or {}),
        tags={str(key): str(value) for key, value in (tags or {}).items()},
        exceptions=[_exception(link) for link in links],
    )


def render_report(
    report: Report,
    context: bool = True,
    file_paths: bool = True,
    line_numbers: bool = True,
) -> List[str]:
    """Render a report as text lines.

    Args:
        report: The report to render.
        context: Whether to include context entries.
        file_paths: Whether to show full paths instead of base file names.
        line_numbers: Whether to append ``:line`` to frame locations.
    """
    lines = [report.level.upper()]

    if context:
        for key in sorted(report.context):
            value = encode_json(report.context[key])
            lines.append(f"• {key}: {value}")

    for key in sorted(report.tags):
        lines.append(f"• {key}: {report.tags[key]}")

    for exc in report.exceptions:
        lines.append(f"> {exc.value} ({exc.type})")
        for frame in exc.frames:
            location = frame.path if file_paths else frame.file
            if line_numbers:
                location = f"{location}:{frame.line}"
            lines.append(f"|   {frame.function} ({frame.module}): {location}")

    return lines


def report_error(
    err: BaseException,
    collector: Optional[Collector] = None,
    level: str = "error",
    tags: Optional[Mapping[str, Any]] = None,
    context: Optional[Mapping[str, Any]] = None,
) -> Report:
    """Build a report for ``err`` and hand it to the collector.

    An error that is not a ChainError is first wrapped at the call site so the
    report always carries the location it was reported from.

    Returns:
        The report that was collected.
    """
    if not isinstance(err, ChainError):
        err = wrap_skip(err, 1)
    report = build_report(err, level=level, tags=tags, context=context)
    (collector or default_collector()).collect_report(report)
    return report


def reporter(
    tags: Mapping[str, Any],
    collector: Optional[Collector] = None,
) -> Callable[[BaseException], Report]:
    """Return a function reporting errors with ``tags`` attached.

    Example:
        >>> report = reporter({"component": "billing"}, collector=tester)
        >>> report(errorf("declined"))
    """
    fixed = dict(tags)

    def report(err: BaseException) -> Report:
        if not isinstance(err, ChainError):
            err = wrap_skip(err, 1)
        built = build_report(err, tags=fixed)
        (collector or default_collector()).collect_report(built)
        return built

    return report
