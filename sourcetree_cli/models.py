"""Core data models shared by the graph store, resolver, extractor and writer."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union


# ===================================================================
# Graph elements
# ===================================================================

@dataclass(frozen=True)
class Position:
    line: int
    character: int


@dataclass(frozen=True)
class MetaData:
    id: str
    project_root: str
    version: str = ""
    position_encoding: str = "utf-16"
    label: str = "metaData"


@dataclass(frozen=True)
class Document:
    id: str
    uri: str
    language_id: str
    label: str = "document"


@dataclass(frozen=True)
class Range:
    id: str
    start: Position
    end: Position
    tag: Optional[Dict[str, Any]] = field(default=None, compare=False)
    label: str = "range"

    @property
    def is_empty(self) -> bool:
        return self.start == self.end


@dataclass(frozen=True)
class ResultSet:
    id: str
    label: str = "resultSet"


@dataclass(frozen=True)
class HoverResult:
    id: str
    contents: Any = field(compare=False)
    label: str = "hoverResult"


@dataclass(frozen=True)
class DefinitionResult:
    id: str
    label: str = "definitionResult"


@dataclass(frozen=True)
class ReferenceResult:
    id: str
    label: str = "referenceResult"


@dataclass(frozen=True)
class Moniker:
    id: str
    scheme: str
    identifier: str
    kind: str = ""
    label: str = "moniker"


@dataclass(frozen=True)
class OtherVertex:
    """A vertex whose label is part of LSIF but not interpreted here."""

    id: str
    label: str
    payload: Dict[str, Any] = field(default_factory=dict, compare=False)


Vertex = Union[
    MetaData,
    Document,
    Range,
    ResultSet,
    HoverResult,
    DefinitionResult,
    ReferenceResult,
    Moniker,
    OtherVertex,
]


@dataclass(frozen=True)
class Edge:
    # defined before the fields: the ``property`` field shadows the builtin below
    @property
    def in_v(self) -> str:
        return self.in_vs[0]

    id: str
    label: str
    out_v: str
    in_vs: Tuple[str, ...]
    document: Optional[str] = None
    property: Optional[str] = None


GraphElement = Union[Vertex, Edge]


# ===================================================================
# Resolution results
# ===================================================================

@dataclass(frozen=True)
class Location:
    path: str
    url: str
    line: int
    text: str

    def to_dict(self) -> Dict[str, Any]:
        return {"url": self.url, "path": self.path, "line": self.line, "text": self.text}


@dataclass
class ReferenceSet:
    definitions: List[Location] = field(default_factory=list)
    references: List[Location] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "definitions": [loc.to_dict() for loc in self.definitions],
            "references": [loc.to_dict() for loc in self.references],
        }


@dataclass
class ResolvedOccurrence:
    range: Range
    hover_id: Optional[str] = None
    definition_id: Optional[str] = None
    definition: Optional[Location] = None
    reference_id: Optional[str] = None

    @property
    def found(self) -> bool:
        return bool(self.hover_id or self.definition_id or self.reference_id)

    def summary(self) -> Dict[str, str]:
        entry: Dict[str, str] = {}
        if self.hover_id is not None:
            entry["content"] = self.hover_id
        if self.definition_id is not None:
            entry["definition"] = self.definition_id
        if self.reference_id is not None:
            entry["references"] = self.reference_id
        return entry


@dataclass(frozen=True)
class AnnotationInsertion:
    line: int
    character: int
    text: str


@dataclass
class DocumentAnnotations:
    """Everything the writer needs for one document, produced once."""

    document: Document
    relative_path: str
    source: str
    insertions: List[AnnotationInsertion] = field(default_factory=list)
    hovers: Dict[str, Dict[str, str]] = field(default_factory=dict)
    data: Dict[str, str] = field(default_factory=dict)
    reference_ids: List[str] = field(default_factory=list)

    def sidecar(self) -> Dict[str, Any]:
        return {"hovers": self.hovers, "data": self.data}


# ===================================================================
# Navigation tree
# ===================================================================

@dataclass
class FileNode:
    name: str
    kind: str = "file"


@dataclass
class FolderNode:
    name: str
    children: List["TreeNode"] = field(default_factory=list)
    kind: str = "folder"


TreeNode = Union[FileNode, FolderNode]
