"""In-memory graph store for LSIF dumps.

Architecture:
- A single linear pass over the decoded elements builds an id→element map
  plus two adjacency indices: outgoing edges keyed by ``outV`` and incoming
  edges keyed by every ``inV``/``inVs`` target.
- After construction the store is read-only and may be shared between
  worker threads without locking.

Lookups come in two flavours.  :meth:`IndexedGraph.get` is for ids that an
edge promises exist, so absence raises
:class:`~sourcetree_cli.errors.MissingElementError`.  :meth:`IndexedGraph.find`
is a plain query and returns ``None`` when nothing matches.
"""

from __future__ import annotations

import logging
from collections import Counter
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple, Type, TypeVar

from .errors import DuplicateElementError, MalformedDumpError, MissingElementError, StructuralError
from .models import Document, Edge, GraphElement, MetaData, Range
from .parser import parse_dump_lines

logger = logging.getLogger(__name__)

T = TypeVar("T")

CONTAINS = "contains"


class IndexedGraph:
    """Immutable, randomly addressable LSIF graph."""

    def __init__(self, elements: Iterable[GraphElement]) -> None:
        self._elements: Dict[str, GraphElement] = {}
        outgoing: Dict[str, List[Edge]] = {}
        incoming: Dict[str, List[Edge]] = {}
        documents: List[Document] = []
        meta: List[MetaData] = []

        for element in elements:
            if element.id in self._elements:
                raise DuplicateElementError(element.id)
            self._elements[element.id] = element
            if isinstance(element, Edge):
                outgoing.setdefault(element.out_v, []).append(element)
                for target in element.in_vs:
                    incoming.setdefault(target, []).append(element)
            elif isinstance(element, Document):
                documents.append(element)
            elif isinstance(element, MetaData):
                meta.append(element)

        self._outgoing: Dict[str, Tuple[Edge, ...]] = {k: tuple(v) for k, v in outgoing.items()}
        self._incoming: Dict[str, Tuple[Edge, ...]] = {k: tuple(v) for k, v in incoming.items()}
        self._documents: Tuple[Document, ...] = tuple(documents)
        self._meta: Tuple[MetaData, ...] = tuple(meta)
        logger.debug(
            "Indexed %d elements (%d documents)", len(self._elements), len(self._documents)
        )

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------

    @classmethod
    def from_lines(cls, lines: Iterable[str]) -> "IndexedGraph":
        return cls(parse_dump_lines(lines))

    @classmethod
    def load(cls, dump_path: Path) -> "IndexedGraph":
        """Read a line-delimited LSIF dump from disk."""
        with open(dump_path, "r", encoding="utf-8") as handle:
            graph = cls.from_lines(handle)
        logger.info("Loaded %s: %d elements", dump_path, len(graph))
        return graph

    def __len__(self) -> int:
        return len(self._elements)

    def __contains__(self, element_id: object) -> bool:
        return element_id in self._elements

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get(self, element_id: str, context: str = "") -> GraphElement:
        """Look up an element that must exist.

        Args:
            element_id: Normalised element id.
            context:    Where the id came from, added to the error message.

        Returns:
            The vertex or edge with that id.

        Raises:
            MissingElementError: No element has that id.
        """
        try:
            return self._elements[element_id]
        except KeyError:
            raise MissingElementError(element_id, context) from None

    def find(self, element_id: str) -> Optional[GraphElement]:
        return self._elements.get(element_id)

    def expect(self, element_id: str, kind: Type[T], context: str = "") -> T:
        """Like :meth:`get`, but also require a particular element type."""
        element = self.get(element_id, context)
        if not isinstance(element, kind):
            raise StructuralError(
                f"Element '{element_id}' is a {element.label!r}, expected {kind.__name__}"
                + (f" ({context})" if context else "")
            )
        return element

    def outgoing(self, element_id: str) -> Tuple[Edge, ...]:
        return self._outgoing.get(element_id, ())

    def incoming(self, element_id: str) -> Tuple[Edge, ...]:
        return self._incoming.get(element_id, ())

    # ------------------------------------------------------------------
    # Project-level views
    # ------------------------------------------------------------------

    @property
    def meta_data(self) -> MetaData:
        if len(self._meta) != 1:
            raise MalformedDumpError(
                f"Expected exactly one metaData vertex, found {len(self._meta)}"
            )
        return self._meta[0]

    @property
    def project_root(self) -> str:
        return self.meta_data.project_root

    @property
    def documents(self) -> Tuple[Document, ...]:
        return self._documents

    def contained_ranges(self, document_id: str) -> List[Range]:
        """Ranges a document ``contains``, in edge order."""
        ranges: List[Range] = []
        for edge in self.outgoing(document_id):
            if edge.label != CONTAINS:
                continue
            for target in edge.in_vs:
                ranges.append(
                    self.expect(target, Range, f"contains edge {edge.id} of document {document_id}")
                )
        return ranges

    def owning_document(self, range_id: str, hint: Optional[str] = None) -> Document:
        """Document that contains *range_id*.

        *hint* is the ``document``/``shard`` id carried by an item edge and is
        used only when no ``contains`` edge reaches the range.
        """
        for edge in self.incoming(range_id):
            if edge.label != CONTAINS:
                continue
            owner = self.get(edge.out_v, f"contains edge {edge.id}")
            if isinstance(owner, Document):
                return owner
        if hint is not None:
            return self.expect(hint, Document, f"document of range {range_id}")
        raise StructuralError(f"Range '{range_id}' is not contained in any document")

    def stats(self) -> Dict[str, Counter]:
        """Element counts per label, split into vertices and edges."""
        vertices: Counter = Counter()
        edges: Counter = Counter()
        for element in self._elements.values():
            if isinstance(element, Edge):
                edges[element.label] += 1
            else:
                vertices[element.label] += 1
        return {"vertices": vertices, "edges": edges}
