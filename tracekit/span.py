"""span.py - Records of finished spans and their attribute values.

Span records are what the tracing side hands to a collector once a unit of
work has finished. They are plain immutable values: the buffer stores them,
the tree assembly links them and the timeline renderer reads them.

Times are integer nanoseconds (``time.time_ns()``), so all layout arithmetic
stays in integers. The duration constants below mirror the units used when
configuring a render resolution, e.g. ``100 * MILLISECOND``.

Attribute values are restricted to a small closed set of kinds. Any other
value is converted to JSON text once, when it is attached, so rendering never
has to inspect arbitrary objects.
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, NamedTuple, Optional

NANOSECOND = 1
MICROSECOND = 1_000 * NANOSECOND
MILLISECOND = 1_000 * MICROSECOND
SECOND = 1_000 * MILLISECOND
MINUTE = 60 * SECOND
HOUR = 60 * MINUTE


class AttrKind(Enum):
    BOOL = "bool"
    INT = "int"
    FLOAT = "float"
    STRING = "string"
    JSON = "json"


class Attribute(NamedTuple):
    """A converted attribute value.

    Attributes:
        kind: Which variant ``value`` holds.
        value: A ``bool``, ``int``, ``float`` or ``str``; for ``JSON`` the
            already serialised text.
    """

    kind: AttrKind
    value: Any

    def render(self) -> str:
        """Render the value the way timeline attribute dumps show it."""
        if self.kind is AttrKind.STRING:
            return json.dumps(self.value, ensure_ascii=False)
        if self.kind is AttrKind.BOOL:
            return "true" if self.value else "false"
        return str(self.value)


def convert_value(value: Any) -> Attribute:
    """Convert an arbitrary value into an Attribute.

    ``bool`` is checked before ``int`` since it is a subclass of it. Values of
    any other type are serialised as JSON; objects ``json`` cannot handle are
    serialised through ``str``. Conversion never fails, see
    ``encode_json``.

    Example:
        >>> convert_value(42)
        Attribute(kind=<AttrKind.INT: 'int'>, value=42)
        >>> convert_value({"b": 1}).value
        '{"b": 1}'
    """
    if isinstance(value, Attribute):
        return value
    if isinstance(value, bool):
        return Attribute(AttrKind.BOOL, value)
    if isinstance(value, int):
        return Attribute(AttrKind.INT, value)
    if isinstance(value, float):
        return Attribute(AttrKind.FLOAT, value)
    if isinstance(value, str):
        return Attribute(AttrKind.STRING, value)
    return Attribute(AttrKind.JSON, encode_json(value))


def encode_json(value: Any) -> str:
    """Serialise ``value`` as JSON text without ever raising.

    Keys are sorted where they compare. Values ``json`` rejects outright, such
    as dicts with tuple keys or self-referencing containers, are encoded as
    the JSON string of their ``repr``. If even that fails only the type
    name is kept.
    """
    try:
        return json.dumps(value, default=str, sort_keys=True)
    except Exception:
        pass
    try:
        # mixed key types do not sort
        return json.dumps(value, default=str)
    except Exception:
        pass
    try:
        return json.dumps(repr(value))
    except Exception:
        return json.dumps(f"<{type(value).__name__}>")


def convert_attributes(attributes: Optional[Mapping[str, Any]]) -> Dict[str, Attribute]:
    """Convert every value of a mapping. ``None`` yields an empty dict."""
    if not attributes:
        return {}
    return {str(key): convert_value(value) for key, value in attributes.items()}


@dataclass(frozen=True)
class SpanEvent:
    """A named instant attached to a span, e.g. a log line or an error."""

    name: str
    time: int
    attributes: Dict[str, Attribute] = field(default_factory=dict)


@dataclass(frozen=True)
class SpanRecord:
    """One finished unit of traced work.

    Attributes:
        id: Span id, unique within its trace.
        trace_id: Id shared by every span of the trace.
        parent_id: Id of the parent span, or ``""`` for a root span.
        name: Display name.
        start: Start time in nanoseconds.
        end: End time in nanoseconds.
        duration: ``end - start`` unless given explicitly (reduced copies
            carry a rounded duration with zeroed timestamps).
        attributes: Converted attribute values.
        events: Point events in the order they were attached.
    """

    id: str
    trace_id: str
    parent_id: str
    name: str
    start: int
    end: int
    duration: Optional[int] = None
    attributes: Dict[str, Attribute] = field(default_factory=dict)
    events: List[SpanEvent] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.duration is None:
            object.__setattr__(self, "duration", self.end - self.start)

    @property
    def is_root(self) -> bool:
        return not self.parent_id
