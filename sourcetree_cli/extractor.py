"""Per-document semantic extraction.

For every non-empty range of a document the extractor resolves hover,
definition and references through :func:`~sourcetree_cli.resolver.resolve`,
then turns what it found into wrapper insertions for the merger and into the
``.hover.json`` sidecar payload.  Hover rendering, definition targets,
reference sets and source files are shared between many ranges and many
documents, so each is computed once per run through a :class:`MemoTable`.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from typing import Callable, Dict, Generic, Hashable, List, Optional, Tuple, TypeVar

from .highlight import HoverRenderer
from .models import (
    AnnotationInsertion,
    DefinitionResult,
    Document,
    DocumentAnnotations,
    Edge,
    HoverResult,
    Location,
    Position,
    Range,
    ReferenceResult,
    ReferenceSet,
    ResolvedOccurrence,
)
from .paths import PathMapper
from .resolver import DEFINITION, HOVER, REFERENCES, resolve
from .storage import IndexedGraph

logger = logging.getLogger(__name__)

V = TypeVar("V")

Targets = List[Tuple[Range, Optional[str]]]

ITEM = "item"
DEFINITIONS_PROPERTY = "definitions"
UTF16 = "utf-16"


def utf16_to_codepoint(line: str, column: int) -> int:
    """Convert a UTF-16 code-unit column of *line* to a code-point column.

    Columns past the end of the line keep their overshoot so they stay
    unreachable for the merger.
    """
    units = 0
    for index, ch in enumerate(line):
        if units >= column:
            return index
        units += 2 if ord(ch) > 0xFFFF else 1
    return len(line) + max(0, column - units)


class MemoTable(Generic[V]):
    """Insert-if-absent table whose factory runs at most once per key.

    Concurrent callers asking for a key that is being computed wait for the
    first caller's result (or exception) instead of computing it again.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: Dict[Hashable, "Future[V]"] = {}

    def get_or_create(self, key: Hashable, factory: Callable[[], V]) -> V:
        with self._lock:
            future = self._entries.get(key)
            owner = future is None
            if owner:
                future = Future()
                self._entries[key] = future
        if owner:
            try:
                future.set_result(factory())
            except BaseException as exc:
                future.set_exception(exc)
                raise
        return future.result()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries


class SourceCache:
    """Reads document sources once and keeps them split into lines."""

    def __init__(self) -> None:
        self._texts: MemoTable[str] = MemoTable()

    def text(self, document: Document) -> str:
        return self._texts.get_or_create(document.uri, lambda: self._read(document))

    def lines(self, document: Document) -> List[str]:
        return self.text(document).split("\n")

    @staticmethod
    def _read(document: Document) -> str:
        path = PathMapper.source_path(document.uri)
        text = path.read_text(encoding="utf-8", errors="replace")
        if text.startswith("\ufeff"):
            text = text[1:]
        return text.replace("\r\n", "\n").replace("\r", "\n")


class SemanticExtractor:
    """Resolves occurrences of one graph against one output layout."""

    def __init__(
        self,
        graph: IndexedGraph,
        mapper: PathMapper,
        renderer: Optional[HoverRenderer] = None,
        sources: Optional[SourceCache] = None,
    ) -> None:
        self.graph = graph
        self.mapper = mapper
        self.renderer = renderer or HoverRenderer()
        self.sources = sources or SourceCache()
        self._hover_html: MemoTable[str] = MemoTable()
        self._definition_targets: MemoTable[Optional[Tuple[str, Optional[Location]]]] = MemoTable()
        self._reference_sets: MemoTable[Optional[ReferenceSet]] = MemoTable()

    # ------------------------------------------------------------------
    # Locations
    # ------------------------------------------------------------------

    def location(self, target: Range, document_hint: Optional[str] = None) -> Optional[Location]:
        """Display record for *target*, or ``None`` if its document is not in the site."""
        document = self.graph.owning_document(target.id, document_hint)
        relative = self.mapper.relative_path(document.uri)
        if relative is None:
            return None
        lines = self.sources.lines(document)
        text = lines[target.start.line] if target.start.line < len(lines) else ""
        line = target.start.line + 1
        return Location(
            path=relative,
            url=self.mapper.page_url(relative, line),
            line=line,
            text=text.strip(),
        )

    # ------------------------------------------------------------------
    # Hover
    # ------------------------------------------------------------------

    def hover_html(self, hover: HoverResult) -> str:
        return self._hover_html.get_or_create(
            hover.id, lambda: self.renderer.render(hover.id, hover.contents)
        )

    # ------------------------------------------------------------------
    # Definition
    # ------------------------------------------------------------------

    def _item_edges(self, result_id: str) -> List[Edge]:
        return [edge for edge in self.graph.outgoing(result_id) if edge.label == ITEM]

    def _definition_target(self, result: DefinitionResult) -> Optional[Tuple[str, Optional[Location]]]:
        items = self._item_edges(result.id)
        if not items:
            return None
        edge = items[0]
        target = self.graph.expect(edge.in_vs[0], Range, f"item edge {edge.id}")
        return target.id, self.location(target, edge.document)

    def definition(self, current: Range, result: DefinitionResult) -> Optional[Location]:
        """Definition of *current*, or ``None`` when absent or self-referencing."""
        resolved = self._definition_targets.get_or_create(
            result.id, lambda: self._definition_target(result)
        )
        if resolved is None:
            return None
        target_id, location = resolved
        if target_id == current.id:
            return None
        return location

    # ------------------------------------------------------------------
    # References
    # ------------------------------------------------------------------

    def split_references(self, result: ReferenceResult) -> Optional[Tuple[Targets, Targets]]:
        """Partition the result's item targets into definitions and references.

        Targets keep edge discovery order and come paired with the edge's
        document hint.  ``None`` means no ``definitions`` item edge exists.
        """
        definitions: Targets = []
        references: Targets = []
        has_definitions = False
        for edge in self._item_edges(result.id):
            is_definition = edge.property == DEFINITIONS_PROPERTY
            has_definitions = has_definitions or is_definition
            bucket = definitions if is_definition else references
            for target_id in edge.in_vs:
                target = self.graph.get(target_id, f"item edge {edge.id}")
                if not isinstance(target, Range):
                    # e.g. ``referenceResults`` items pointing at other result vertices
                    logger.debug("Skipping non-range item target %s of edge %s", target_id, edge.id)
                    continue
                bucket.append((target, edge.document))
        if not has_definitions:
            return None
        return definitions, references

    def _build_reference_set(self, result: ReferenceResult) -> Optional[ReferenceSet]:
        split = self.split_references(result)
        if split is None:
            return None
        definitions, references = split
        reference_set = ReferenceSet()
        for target, hint in definitions:
            location = self.location(target, hint)
            if location is not None:
                reference_set.definitions.append(location)
        for target, hint in references:
            location = self.location(target, hint)
            if location is not None:
                reference_set.references.append(location)
        return reference_set

    def reference_set(self, result: ReferenceResult) -> Optional[ReferenceSet]:
        return self._reference_sets.get_or_create(
            result.id, lambda: self._build_reference_set(result)
        )

    # ------------------------------------------------------------------
    # Occurrences and documents
    # ------------------------------------------------------------------

    def resolve_occurrence(self, target: Range) -> ResolvedOccurrence:
        occurrence = ResolvedOccurrence(range=target)

        hover = resolve(self.graph, target.id, HOVER)
        if isinstance(hover, HoverResult):
            occurrence.hover_id = hover.id

        definition = resolve(self.graph, target.id, DEFINITION)
        if isinstance(definition, DefinitionResult):
            location = self.definition(target, definition)
            if location is not None:
                occurrence.definition_id = definition.id
                occurrence.definition = location

        references = resolve(self.graph, target.id, REFERENCES)
        if isinstance(references, ReferenceResult) and self.reference_set(references) is not None:
            occurrence.reference_id = references.id

        return occurrence

    def _column(self, lines: List[str], position: Position) -> int:
        if self.graph.meta_data.position_encoding.lower() != UTF16:
            return position.character
        if position.line >= len(lines):
            return position.character
        return utf16_to_codepoint(lines[position.line], position.character)

    def extract(self, document: Document, relative_path: str) -> DocumentAnnotations:
        """Resolve every range of *document* into insertions and sidecar data.

        Args:
            document:      Document vertex to annotate.
            relative_path: Output-relative path of the document's page.

        Returns:
            The document's insertions (in code-point columns), hover sidecar
            entries and the reference-result ids it needs written.
        """
        annotations = DocumentAnnotations(
            document=document,
            relative_path=relative_path,
            source=self.sources.text(document),
        )
        lines = self.sources.lines(document)
        seen_references = set()

        ranges = sorted(
            self.graph.contained_ranges(document.id),
            key=lambda r: (r.start.line, r.start.character, -r.end.line, -r.end.character),
        )
        for target in ranges:
            if target.is_empty:
                continue
            occurrence = self.resolve_occurrence(target)
            if not occurrence.found:
                continue

            annotations.insertions.append(AnnotationInsertion(
                target.start.line, self._column(lines, target.start), f'<span id="lsif{target.id}">'
            ))
            annotations.insertions.append(AnnotationInsertion(
                target.end.line, self._column(lines, target.end), "</span>"
            ))
            annotations.hovers[f"x{target.id}"] = occurrence.summary()

            if occurrence.hover_id is not None:
                hover = self.graph.expect(occurrence.hover_id, HoverResult)
                annotations.data[hover.id] = self.hover_html(hover)
            if occurrence.definition is not None:
                annotations.data[occurrence.definition_id] = occurrence.definition.url
            if occurrence.reference_id is not None and occurrence.reference_id not in seen_references:
                seen_references.add(occurrence.reference_id)
                annotations.reference_ids.append(occurrence.reference_id)

        logger.debug(
            "%s: %d annotated ranges", relative_path, len(annotations.hovers)
        )
        return annotations

