"""collector.py - Where finished spans and error reports are delivered.

Every API that emits spans or reports takes an explicit ``collector``
argument. When it is omitted, the process-wide default returned by
``default_collector()`` is used: a Debugger printing traces to stdout and
reports to stderr, created on first use. Tests pass their own collector (for
example ``tracekit.testing.Tester``) instead of replacing the default.
"""

import threading
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:  # pragma: no cover
    from .report import Report
    from .span import SpanRecord


class Collector(ABC):
    """Receiver of finished spans and error reports.

    Implementations must accept calls from any thread.

    Example:
        >>> class CountingCollector(Collector):
        ...     def __init__(self):
        ...         self.spans = 0
        ...     def collect_span(self, record):
        ...         self.spans += 1
        ...     def collect_report(self, report):
        ...         pass
    """

    @abstractmethod
    def collect_span(self, record: "SpanRecord") -> None:
        """Receive one finished span. Called once per span."""

    @abstractmethod
    def collect_report(self, report: "Report") -> None:
        """Receive one error report."""


_default: Optional[Collector] = None
_default_lock = threading.Lock()


def default_collector() -> Collector:
    """Return the process-wide collector, creating a Debugger on first use."""
    global _default
    with _default_lock:
        if _default is None:
            from .debugger import Debugger

            _default = Debugger()
        return _default
