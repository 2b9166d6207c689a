"""tree.py - Assembling flat span lists into ordered trees."""

from typing import Dict, Iterator, List, Optional

from .span import SpanRecord


class TraceNode:
    """A span with its position in the trace tree.

    Attributes:
        span: The span record.
        parent: The parent node, or ``None`` for a root.
        children: Child nodes ordered by start time.
        depth: Number of ancestors; roots have depth 0.
    """

    __slots__ = ("span", "parent", "children", "depth")

    def __init__(self, span: SpanRecord) -> None:
        self.span = span
        self.parent: Optional[TraceNode] = None
        self.children: List[TraceNode] = []
        self.depth = 0

    def __repr__(self) -> str:  # pragma: no cover
        return f"TraceNode({self.span.name!r}, depth={self.depth})"


def _reaches(node: TraceNode, target: TraceNode) -> bool:
    while node is not None:
        if node is target:
            return True
        node = node.parent
    return False


def build_traces(spans: List[SpanRecord]) -> List[TraceNode]:
    """Link a flat list of spans into trees.

    Parent links are resolved by span id. A span whose parent is missing from
    the list, or whose link would close a loop, becomes an additional root
    instead of raising. When two spans share an id, the later one wins.

    Children are sorted by start time at every level; spans starting at the
    same time keep the order in which they appear in ``spans``. Roots are
    ordered the same way.

    Args:
        spans: Spans of one trace, in any order.

    Returns:
        The root nodes.
    """
    nodes: Dict[str, TraceNode] = {}
    for span in spans:
        if span.id in nodes:
            del nodes[span.id]
        nodes[span.id] = TraceNode(span)

    roots = []
    for node in nodes.values():
        parent = nodes.get(node.span.parent_id) if node.span.parent_id else None
        if parent is None or _reaches(parent, node):
            roots.append(node)
            continue
        node.parent = parent
        parent.children.append(node)

    sort_nodes(roots)

    for node in nodes.values():
        depth = 0
        ancestor = node.parent
        while ancestor is not None:
            depth += 1
            ancestor = ancestor.parent
        node.depth = depth

    return roots


def sort_nodes(nodes: List[TraceNode]) -> None:
    """Sort nodes and, recursively, their children by start time (stable)."""
    nodes.sort(key=lambda node: node.span.start)
    for node in nodes:
        sort_nodes(node.children)


def walk(node: TraceNode) -> Iterator[TraceNode]:
    """Yield ``node`` and its descendants depth-first, children in order."""
    yield node
    for child in node.children:
        yield from walk(child)
