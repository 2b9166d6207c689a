"""testing.py - An in-memory collector for tests.

Tester records every span and report it receives. Raw records contain random
ids, wall-clock timestamps and line numbers, so tests compare reduced copies
instead::

    from tracekit import Span, MILLISECOND
    from tracekit.testing import Tester

    def test_checkout():
        tester = Tester()
        with Span("checkout", collector=tester):
            ...
        assert [s.name for s in tester.reduced_spans(MILLISECOND)] == ["checkout"]

Reducing the same records twice gives equal results, and ``render()`` gives
the same lines whatever order the spans arrived in.
"""

import dataclasses
import threading
from typing import List

from .collector import Collector
from .report import Report
from .span import NANOSECOND, SpanRecord
from .timeline import DEFAULT_WIDTH, render_timeline, round_duration
from .tree import build_traces

# context groups that describe the machine rather than the error
_ENVIRONMENT_CONTEXT = ("device", "os", "runtime")


class Tester(Collector):
    """Collector keeping every span and report in memory.

    Attributes:
        spans: Finished spans in the order they ended.
        reports: Collected reports in the order they were sent.
    """

    def __init__(self) -> None:
        self.spans: List[SpanRecord] = []
        self.reports: List[Report] = []
        self._lock = threading.Lock()

    def collect_span(self, record: SpanRecord) -> None:
        with self._lock:
            self.spans.append(record)

    def collect_report(self, report: Report) -> None:
        with self._lock:
            self.reports.append(report)

    def reduced_spans(self, resolution: int) -> List[SpanRecord]:
        """Return copies of the spans with only comparable information.

        Start and end are rounded to ``resolution`` to derive the duration
        (zero when ``resolution`` is zero); ids and timestamps are blanked.
        """
        with self._lock:
            spans = list(self.spans)

        reduced = []
        for span in spans:
            if resolution > 0:
                duration = (
                    round_duration(span.end, resolution)
                    - round_duration(span.start, resolution)
                )
            else:
                duration = 0

            reduced.append(dataclasses.replace(
                span,
                id="",
                trace_id="",
                parent_id="",
                start=0,
                end=0,
                duration=duration,
                attributes=dict(span.attributes),
                events=[dataclasses.replace(event, time=0) for event in span.events],
            ))

        return reduced

    def reduced_reports(self) -> List[Report]:
        """Return copies of the reports without ids, times and line numbers."""
        with self._lock:
            reports = list(self.reports)

        reduced = []
        for report in reports:
            context = {
                key: value
                for key, value in report.context.items()
                if key not in _ENVIRONMENT_CONTEXT
            }
            exceptions = [
                dataclasses.replace(
                    exc,
                    frames=[dataclasses.replace(frame, line=0) for frame in exc.frames],
                )
                for exc in report.exceptions
            ]
            reduced.append(dataclasses.replace(
                report,
                id="",
                time=None,
                context=context,
                tags=dict(report.tags),
                exceptions=exceptions,
            ))

        return reduced

    def render(self, resolution: int = NANOSECOND, width: int = DEFAULT_WIDTH) -> List[str]:
        """Assemble every collected span into trees and render them."""
        with self._lock:
            spans = list(self.spans)
        return render_timeline(build_traces(spans), width=width, resolution=resolution)

    def reset(self) -> None:
        """Forget every collected span and report."""
        with self._lock:
            self.spans.clear()
            self.reports.clear()
