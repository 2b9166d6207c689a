"""tracer.py - Span handles and an explicit span stack.

A Span measures one unit of work. It starts when it is created and ends with
``end()`` (or when its ``with`` block exits), at which point one SpanRecord is
handed to the collector. Child spans share the trace id of their parent.

A Tracer owns a root span and a stack of pushed spans. Code that threads one
tracer through a call chain pushes a span on entry and pops it on exit instead
of passing a new span to every function; ``tag``, ``log`` and friends always
apply to the innermost span.

Typical usage::

    from tracekit import Tracer

    tracer = Tracer.start("import")
    for path in paths:
        tracer.push("read")
        tracer.tag("path", path)
        ...
        tracer.pop()
    tracer.end()
"""

import threading
import time
import uuid
from typing import Any, Callable, Dict, List, Mapping, Optional

from .caller import capture
from .collector import Collector, default_collector
from .span import Attribute, SpanEvent, SpanRecord, convert_attributes, convert_value


def new_trace_id() -> str:
    return uuid.uuid4().hex


def new_span_id() -> str:
    return uuid.uuid4().hex[:16]


class Span:
    """A running span.

    Spans are safe to annotate from several threads. Annotations made after
    ``end()`` are ignored.

    Attributes:
        id (str): 16 hex characters.
        trace_id (str): 32 hex characters, shared with every span of the trace.
        parent_id (str): Id of the parent span, ``""`` for a root span.
        name (str): Display name, see ``rename()``.
        start (int): Start time in nanoseconds.

    Example:
        >>> with Span("checkout", collector=tester) as span:
        ...     span.tag("items", 3)
        ...     with span.child("charge") as charge:
        ...         charge.log("charging %d cents", 1250)
    """

    def __init__(
        self,
        name: str,
        collector: Optional[Collector] = None,
        trace_id: Optional[str] = None,
        parent_id: str = "",
        clock: Callable[[], int] = time.time_ns,
    ) -> None:
        """Start a span.

        Args:
            name: Display name.
            collector: Receives the record when the span ends. Defaults to
                ``default_collector()``.
            trace_id: Trace to join. A new trace is started when omitted.
            parent_id: Id of the parent span within that trace.
            clock: Returns the current time in nanoseconds.
        """
        self.id = new_span_id()
        self.trace_id = trace_id or new_trace_id()
        self.parent_id = parent_id
        self.name = name
        self._collector = collector
        self._clock = clock
        self._attributes: Dict[str, Attribute] = {}
        self._events: List[SpanEvent] = []
        self._lock = threading.Lock()
        self._ended = False
        self.start = clock()

    @property
    def ended(self) -> bool:
        return self._ended

    def child(self, name: str) -> "Span":
        """Start a span nested in this one."""
        return Span(
            name,
            collector=self._collector,
            trace_id=self.trace_id,
            parent_id=self.id,
            clock=self._clock,
        )

    def rename(self, name: str) -> None:
        with self._lock:
            if not self._ended:
                self.name = name

    def tag(self, key: str, value: Any) -> None:
        """Set an attribute. Values are converted once, here."""
        attribute = convert_value(value)
        with self._lock:
            if not self._ended:
                self._attributes[key] = attribute

    def attach(self, event: str, attributes: Optional[Mapping[str, Any]] = None) -> None:
        """Add a point event with optional attributes."""
        record = SpanEvent(event, self._clock(), convert_attributes(attributes))
        with self._lock:
            if not self._ended:
                self._events.append(record)

    def log(self, message: str, *args) -> None:
        """Add a ``log`` event. ``args`` are applied ``%``-style."""
        if args:
            message = message % args
        self.attach("log", {"message": message})

    def record(self, err: Optional[BaseException]) -> None:
        """Add an ``error`` event describing ``err``. ``None`` is ignored."""
        if err is None:
            return
        self.attach("error", {
            "error.type": type(err).__qualname__,
            "error.message": str(err),
        })

    def end(self) -> None:
        """End the span and hand its record to the collector.

        Only the first call has an effect.
        """
        end = self._clock()
        with self._lock:
            if self._ended:
                return
            self._ended = True
            record = SpanRecord(
                id=self.id,
                trace_id=self.trace_id,
                parent_id=self.parent_id,
                name=self.name,
                start=self.start,
                end=end,
                attributes=dict(self._attributes),
                events=list(self._events),
            )
        (self._collector or default_collector()).collect_span(record)

    def __enter__(self) -> "Span":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc is not None:
            self.record(exc)
        self.end()
        return False

    def __repr__(self) -> str:
        return f"Span({self.name!r}, id={self.id!r})"


class Tracer:
    """A root span plus a stack of pushed spans.

    Every pushed span is a child of the span below it. A tracer is meant to be
    used by one flow of execution at a time.

    Attributes:
        root (Span): The span the stack starts from.
    """

    def __init__(self, root: Span) -> None:
        self.root = root
        self._stack: List[Span] = []

    @classmethod
    def start(cls, name: str, collector: Optional[Collector] = None) -> "Tracer":
        """Start a new trace and return a tracer rooted at it."""
        return cls(Span(name, collector=collector))

    def push(self, name: str) -> Span:
        """Start a child of the tail span and make it the new tail."""
        span = self.tail().child(name)
        self._stack.append(span)
        return span

    def smart_push(self) -> Span:
        """Push a span named after the calling function."""
        return self.push(capture(1).short)

    def pop(self) -> None:
        """End and remove the tail span. The root is never popped."""
        if not self._stack:
            return
        self._stack.pop().end()

    def tail(self) -> Span:
        """Return the innermost pushed span, or the root."""
        if self._stack:
            return self._stack[-1]
        return self.root

    def rename(self, name: str) -> None:
        self.tail().rename(name)

    def tag(self, key: str, value: Any) -> None:
        self.tail().tag(key, value)

    def attach(self, event: str, attributes: Optional[Mapping[str, Any]] = None) -> None:
        self.tail().attach(event, attributes)

    def log(self, message: str, *args) -> None:
        self.tail().log(message, *args)

    def record(self, err: Optional[BaseException]) -> None:
        self.tail().record(err)

    def end(self) -> None:
        """End every pushed span, innermost first, then the root."""
        while self._stack:
            self._stack.pop().end()
        self.root.end()

    def __len__(self) -> int:
        return len(self._stack)
