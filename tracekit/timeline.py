"""timeline.py - Rendering span trees as proportional text timelines.

Each trace is drawn against the time axis of its root span, ``width``
characters wide. Every span gets one line with a bar covering the part of the
axis during which it ran; every point event gets one line with a dot at the
moment it happened::

    > One         ├──────────────────────────────────────────────────────────┤   500ms
    |   Two                       ├──────────────────────┤                       200ms
    |   :log                      •                                              100ms
    |     Three                                   ├──────┤                       100ms

Span lines end with the span's duration, event lines with the event's offset
from the root start; both are rounded to the render resolution and then
shortened to three significant digits.

All layout arithmetic is integer arithmetic on nanoseconds.
"""

from typing import Dict, List

from .span import (
    HOUR,
    MICROSECOND,
    MILLISECOND,
    MINUTE,
    NANOSECOND,
    SECOND,
    Attribute,
)
from .tree import TraceNode, walk

DEFAULT_WIDTH = 80
PRECISION = 3
GAP = "   "


# ---------------------------------------------------------------------------
# Durations
# ---------------------------------------------------------------------------


def round_duration(duration: int, resolution: int) -> int:
    """Round ``duration`` to a multiple of ``resolution``, halves away from zero.

    A resolution of zero or less leaves the duration unchanged.
    """
    if resolution <= 0:
        return duration
    if duration < 0:
        return -round_duration(-duration, resolution)
    return (duration + resolution // 2) // resolution * resolution


def auto_truncate(duration: int, precision: int = PRECISION) -> int:
    """Truncate ``duration`` to ``precision`` significant digits.

    Example:
        >>> auto_truncate(1_234_567_891)   # 1.234567891s
        1230000000
    """
    digits = len(str(abs(duration))) if duration else 0
    if digits <= precision:
        return duration
    unit = 10 ** (digits - precision)
    if duration < 0:
        return -(-duration // unit * unit)
    return duration // unit * unit


def _fraction(value: int, unit: int) -> str:
    whole, rest = divmod(value, unit)
    if not rest:
        return str(whole)
    digits = len(str(unit)) - 1
    return f"{whole}.{str(rest).rjust(digits, '0').rstrip('0')}"


def format_duration(duration: int) -> str:
    """Format nanoseconds compactly, e.g. ``500ms``, ``1.5s`` or ``2m3s``."""
    if duration == 0:
        return "0s"
    if duration < 0:
        return "-" + format_duration(-duration)
    if duration < MICROSECOND:
        return f"{duration}ns"
    if duration < MILLISECOND:
        return _fraction(duration, MICROSECOND) + "µs"
    if duration < SECOND:
        return _fraction(duration, MILLISECOND) + "ms"

    hours, rest = divmod(duration, HOUR)
    minutes, rest = divmod(rest, MINUTE)
    out = ""
    if hours:
        out += f"{hours}h"
    if hours or minutes:
        out += f"{minutes}m"
    return out + _fraction(rest, SECOND) + "s"


def rescale(duration: int, resolution: int = NANOSECOND) -> str:
    """Round, truncate and format a duration for display."""
    return format_duration(auto_truncate(round_duration(duration, resolution)))


# ---------------------------------------------------------------------------
# Bars and dots
# ---------------------------------------------------------------------------


def build_bar(before: int, span: int, after: int, width: int = DEFAULT_WIDTH) -> str:
    """Lay out a span bar on a ``width`` character axis.

    The axis covers ``before + span + after``. The bar always occupies at least
    one column: a zero-width bar extends forward, or backward when it sits on
    the right edge.

    Args:
        before: Time between the axis start and the span start.
        span: The span's own duration.
        after: Time between the span end and the axis end.
        width: Axis width in characters.

    Returns:
        A string of exactly ``width`` characters.
    """
    before, span, after = max(before, 0), max(span, 0), max(after, 0)
    total = before + span + after

    if total > 0:
        start = before * width // total
        end = (before + span) * width // total
    else:
        start = end = 0

    if end - start == 0:
        if end < width:
            end += 1
        else:
            start -= 1

    length = end - start
    if length == 1:
        bar = "│"
    elif length == 2:
        bar = "├┤"
    else:
        bar = "├" + "─" * (length - 2) + "┤"

    return " " * start + bar + " " * (width - end)


def build_dot(before: int, after: int, width: int = DEFAULT_WIDTH) -> str:
    """Place an event marker on a ``width`` character axis.

    Returns:
        A string of exactly ``width`` characters containing one ``•``.
    """
    before, after = max(before, 0), max(after, 0)
    total = before + after

    position = before * width // total if total > 0 else 0
    if position >= width:
        position = width - 1

    return " " * position + "•" + " " * (width - position - 1)


# ---------------------------------------------------------------------------
# Trace rendering
# ---------------------------------------------------------------------------


def format_attributes(attributes: Dict[str, Attribute]) -> str:
    """Render attributes as sorted ``key:value`` pairs separated by spaces."""
    return " ".join(f"{key}:{attributes[key].render()}" for key in sorted(attributes))


def span_label(node: TraceNode) -> str:
    if node.parent is None:
        return "> " + node.span.name
    return "| " + "  " * node.depth + node.span.name


def event_label(node: TraceNode, name: str) -> str:
    return "| " + "  " * node.depth + ":" + name


def _line(label: str, column: int, graphic: str, value: str, attributes: str) -> str:
    line = label.ljust(column) + graphic + GAP + value
    if attributes:
        line += GAP + attributes
    return line


def render_timeline(
    roots: List[TraceNode],
    width: int = DEFAULT_WIDTH,
    resolution: int = NANOSECOND,
    attributes: bool = False,
) -> List[str]:
    """Render one or more span trees as timeline lines.

    Args:
        roots: Trees as returned by ``build_traces``.
        width: Width of the time axis in characters.
        resolution: Durations are rounded to this many nanoseconds.
        attributes: Whether to append span and event attributes.

    Returns:
        The rendered lines, without trailing newlines. Every bar and dot of
        the batch starts at the same column.
    """
    labels = [0]
    for root in roots:
        for node in walk(root):
            labels.append(len(span_label(node)))
            for event in node.span.events:
                labels.append(len(event_label(node, event.name)))
    column = max(labels) + len(GAP)

    lines = []
    for root in roots:
        axis_start = root.span.start
        axis_end = root.span.end

        for node in walk(root):
            span = node.span
            bar = build_bar(
                span.start - axis_start,
                span.end - span.start,
                axis_end - span.end,
                width,
            )
            lines.append(_line(
                span_label(node),
                column,
                bar,
                rescale(span.duration, resolution),
                format_attributes(span.attributes) if attributes else "",
            ))

            for event in span.events:
                dot = build_dot(event.time - axis_start, axis_end - event.time, width)
                lines.append(_line(
                    event_label(node, event.name),
                    column,
                    dot,
                    rescale(event.time - axis_start, resolution),
                    format_attributes(event.attributes) if attributes else "",
                ))

    return lines
