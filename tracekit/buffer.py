"""buffer.py - Holding finished spans until their trace is complete.

Spans finish bottom-up: children usually end before their parent, and the root
span of a trace ends last. SpanBuffer keeps every finished non-root span until
the root of the same trace arrives, then hands the whole trace over in one
piece so it can be assembled and rendered.

Design decisions:
    - Spans are stored per trace id, then per span id. A flush pops one trace
      without scanning spans of other traces.
    - A single ``threading.Lock`` guards the whole insert-or-flush step, so a
      flush never observes a sibling that is only half inserted.
    - The list returned by a flush is a private copy; callers assemble and
      render it after the lock has been released.
    - Spans whose root never arrives stay buffered. Nothing evicts them; the
      loss on process exit is accepted.
"""

import threading
from typing import Dict, List, Optional

from .span import SpanRecord


class SpanBuffer:
    """Thread-safe store of non-root spans, drained when a root span arrives.

    Example:
        >>> buf = SpanBuffer()
        >>> buf.add(child) is None        # buffered
        True
        >>> [s.name for s in buf.add(root)]
        ['child', 'root']
        >>> len(buf)
        0
    """

    def __init__(self) -> None:
        self._spans: Dict[str, Dict[str, SpanRecord]] = {}
        self._lock = threading.Lock()

    def add(self, record: SpanRecord) -> Optional[List[SpanRecord]]:
        """Buffer a span, or flush its trace if it is a root span.

        Args:
            record: A finished span.

        Returns:
            ``None`` if the span was buffered. For a root span, every buffered
            span of the same trace in arrival order followed by the root. A span
            whose id is already buffered replaces the earlier one.
        """
        with self._lock:
            if not record.is_root:
                self._spans.setdefault(record.trace_id, {})[record.id] = record
                return None

            pending = self._spans.pop(record.trace_id, {})

        spans = list(pending.values())
        spans.append(record)
        return spans

    def pending(self, trace_id: Optional[str] = None) -> List[SpanRecord]:
        """Return a copy of the buffered spans, optionally of one trace only."""
        with self._lock:
            if trace_id is not None:
                return list(self._spans.get(trace_id, {}).values())
            return [span for spans in self._spans.values() for span in spans.values()]

    def clear(self) -> None:
        """Discard every buffered span."""
        with self._lock:
            self._spans.clear()

    def __len__(self) -> int:
        """Return the number of buffered spans across all traces."""
        with self._lock:
            return sum(len(spans) for spans in self._spans.values())
