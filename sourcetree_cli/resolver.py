"""Result-set chain resolution.

Ranges rarely carry ``textDocument/*`` edges themselves.  Instead they point
through one or more ``next`` edges at shared result sets, and the request
edge hangs off one of those.  :func:`resolve` walks that chain.
"""

from __future__ import annotations

from typing import List, Optional, Set

from .errors import CycleDetectedError
from .models import Vertex
from .storage import IndexedGraph

NEXT = "next"
HOVER = "textDocument/hover"
DEFINITION = "textDocument/definition"
REFERENCES = "textDocument/references"


def resolve(graph: IndexedGraph, start_id: str, label: str) -> Optional[Vertex]:
    """Return the vertex reached by the first *label* edge along the chain.

    Every step first looks for an outgoing *label* edge and otherwise follows
    the first ``next`` edge.

    Args:
        graph:    The indexed dump.
        start_id: Id of the range (or result set) to start from.
        label:    Request edge label, e.g. ``"textDocument/hover"``.

    Returns:
        The target vertex of the first matching edge, or ``None`` when the
        chain ends without one.

    Raises:
        CycleDetectedError: The ``next`` chain revisits a vertex.
    """
    chain: List[str] = []
    visited: Set[str] = set()
    current: Optional[str] = start_id

    while current is not None:
        if current in visited:
            raise CycleDetectedError(chain + [current], label)
        visited.add(current)
        chain.append(current)

        follow: Optional[str] = None
        for edge in graph.outgoing(current):
            if edge.label == label:
                return graph.get(edge.in_v, f"{label} edge {edge.id}")
            if edge.label == NEXT and follow is None:
                follow = edge.in_v
        current = follow

    return None
