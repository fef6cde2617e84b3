"""Decoding of LSIF records into typed graph elements.

Each non-empty line of a dump is one JSON object.  Vertices whose labels the
site generator interprets become dedicated dataclasses; the rest of the LSIF
vocabulary decodes to :class:`~sourcetree_cli.models.OtherVertex` so nothing
in a valid dump is lost.  Labels outside the vocabulary are rejected.
"""

from __future__ import annotations

import json
from typing import Any, Callable, Dict, FrozenSet, Iterable, Iterator

from .errors import MalformedDumpError, UnknownLabelError
from .models import (
    DefinitionResult,
    Document,
    Edge,
    GraphElement,
    HoverResult,
    MetaData,
    Moniker,
    OtherVertex,
    Position,
    Range,
    ReferenceResult,
    ResultSet,
    Vertex,
)

# ---------------------------------------------------------------------------
# LSIF vocabulary
# ---------------------------------------------------------------------------
OPAQUE_VERTEX_LABELS: FrozenSet[str] = frozenset({
    "$event",
    "source",
    "capabilities",
    "project",
    "location",
    "packageInformation",
    "documentSymbolResult",
    "foldingRangeResult",
    "documentLinkResult",
    "diagnosticResult",
    "declarationResult",
    "typeDefinitionResult",
    "implementationResult",
})

EDGE_LABELS: FrozenSet[str] = frozenset({
    "contains",
    "item",
    "next",
    "moniker",
    "nextMoniker",
    "packageInformation",
    "attach",
    "belongsTo",
    "textDocument/documentSymbol",
    "textDocument/foldingRange",
    "textDocument/documentLink",
    "textDocument/diagnostic",
    "textDocument/definition",
    "textDocument/declaration",
    "textDocument/typeDefinition",
    "textDocument/hover",
    "textDocument/references",
    "textDocument/implementation",
})


def normalize_id(raw: Any) -> str:
    """LSIF ids may be numbers or strings; both address the same element."""
    if isinstance(raw, bool) or not isinstance(raw, (int, str)):
        raise MalformedDumpError(f"Invalid element id {raw!r}")
    return str(raw)


def _position(raw: Any, element_id: str) -> Position:
    try:
        return Position(line=int(raw["line"]), character=int(raw["character"]))
    except (KeyError, TypeError, ValueError) as exc:
        raise MalformedDumpError(f"Range '{element_id}' has an invalid position: {raw!r}") from exc


# ---------------------------------------------------------------------------
# Vertex decoders
# ---------------------------------------------------------------------------

def _meta_data(element_id: str, record: Dict[str, Any]) -> MetaData:
    return MetaData(
        id=element_id,
        project_root=record["projectRoot"],
        version=str(record.get("version", "")),
        position_encoding=record.get("positionEncoding", "utf-16"),
    )


def _document(element_id: str, record: Dict[str, Any]) -> Document:
    return Document(id=element_id, uri=record["uri"], language_id=record.get("languageId", ""))


def _range(element_id: str, record: Dict[str, Any]) -> Range:
    return Range(
        id=element_id,
        start=_position(record.get("start"), element_id),
        end=_position(record.get("end"), element_id),
        tag=record.get("tag"),
    )


def _hover_result(element_id: str, record: Dict[str, Any]) -> HoverResult:
    return HoverResult(id=element_id, contents=record["result"]["contents"])


def _moniker(element_id: str, record: Dict[str, Any]) -> Moniker:
    return Moniker(
        id=element_id,
        scheme=record["scheme"],
        identifier=record["identifier"],
        kind=record.get("kind", ""),
    )


_VERTEX_DECODERS: Dict[str, Callable[[str, Dict[str, Any]], Vertex]] = {
    "metaData": _meta_data,
    "document": _document,
    "range": _range,
    "resultSet": lambda element_id, _record: ResultSet(id=element_id),
    "hoverResult": _hover_result,
    "definitionResult": lambda element_id, _record: DefinitionResult(id=element_id),
    "referenceResult": lambda element_id, _record: ReferenceResult(id=element_id),
    "moniker": _moniker,
}


def _decode_vertex(element_id: str, label: str, record: Dict[str, Any]) -> Vertex:
    decoder = _VERTEX_DECODERS.get(label)
    if decoder is not None:
        try:
            return decoder(element_id, record)
        except (KeyError, TypeError) as exc:
            raise MalformedDumpError(
                f"Vertex '{element_id}' ({label}) is missing required data: {exc}"
            ) from exc
    if label in OPAQUE_VERTEX_LABELS:
        payload = {k: v for k, v in record.items() if k not in ("id", "type", "label")}
        return OtherVertex(id=element_id, label=label, payload=payload)
    raise UnknownLabelError("vertex", label, element_id)


# ---------------------------------------------------------------------------
# Edge decoder
# ---------------------------------------------------------------------------

def _decode_edge(element_id: str, label: str, record: Dict[str, Any]) -> Edge:
    if label not in EDGE_LABELS:
        raise UnknownLabelError("edge", label, element_id)
    if "outV" not in record:
        raise MalformedDumpError(f"Edge '{element_id}' ({label}) has no outV")

    if "inVs" in record:
        raw_targets = record["inVs"]
        if not isinstance(raw_targets, list):
            raise MalformedDumpError(f"Edge '{element_id}' ({label}) has a non-list inVs")
    elif "inV" in record:
        raw_targets = [record["inV"]]
    else:
        raw_targets = []
    if not raw_targets:
        raise MalformedDumpError(f"Edge '{element_id}' ({label}) has no target")

    # LSIF 0.6 renamed ``document`` to ``shard`` on item edges.
    document = record.get("document", record.get("shard"))
    return Edge(
        id=element_id,
        label=label,
        out_v=normalize_id(record["outV"]),
        in_vs=tuple(normalize_id(t) for t in raw_targets),
        document=normalize_id(document) if document is not None else None,
        property=record.get("property"),
    )


def decode_element(record: Any) -> GraphElement:
    """Decode one JSON object into a vertex or edge."""
    if not isinstance(record, dict):
        raise MalformedDumpError(f"Expected a JSON object, got {type(record).__name__}")
    if "id" not in record:
        raise MalformedDumpError(f"Element without an id: {record!r:.120}")

    element_id = normalize_id(record["id"])
    kind = record.get("type")
    label = record.get("label")
    if kind == "vertex":
        return _decode_vertex(element_id, label, record)
    if kind == "edge":
        return _decode_edge(element_id, label, record)
    raise MalformedDumpError(f"Element '{element_id}' has unknown type {kind!r}")


def parse_dump_lines(lines: Iterable[str]) -> Iterator[GraphElement]:
    """Yield decoded elements from line-delimited JSON, skipping blank lines."""
    for line_no, line in enumerate(lines, start=1):
        text = line.strip()
        if not text:
            continue
        try:
            record = json.loads(text)
        except json.JSONDecodeError as exc:
            raise MalformedDumpError(f"Line {line_no} is not valid JSON: {exc.msg}") from exc
        yield decode_element(record)

