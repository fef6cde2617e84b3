"""Exception hierarchy for dump loading, resolution and site generation.

Structural errors mean the dump (or the document layout derived from it) is
malformed and the run must stop.  A resolution cycle is reported separately
because it is a graph-shape problem rather than a missing piece of data.
"""

from __future__ import annotations

from typing import Any, Dict, List, Sequence


class SourceTreeError(Exception):
    """Base class for every error raised by sourcetree_cli."""


# ===================================================================
# Structural defects
# ===================================================================

class StructuralError(SourceTreeError):
    """The input graph is not well-formed."""


class MissingElementError(StructuralError):
    def __init__(self, element_id: str, context: str = "") -> None:
        self.element_id = element_id
        self.context = context
        message = f"Element '{element_id}' does not exist in the dump"
        if context:
            message += f" ({context})"
        super().__init__(message)


class DuplicateElementError(StructuralError):
    def __init__(self, element_id: str) -> None:
        self.element_id = element_id
        super().__init__(f"Element id '{element_id}' is used more than once")


class UnknownLabelError(StructuralError):
    def __init__(self, kind: str, label: Any, element_id: Any = None) -> None:
        self.kind = kind
        self.label = label
        self.element_id = element_id
        super().__init__(f"Unknown {kind} label {label!r} on element {element_id!r}")


class MalformedDumpError(StructuralError):
    """A record could not be decoded into a graph element."""


class UnrecognizedHoverError(StructuralError):
    def __init__(self, hover_id: str, contents: Any) -> None:
        self.hover_id = hover_id
        self.contents = contents
        super().__init__(
            f"Hover result '{hover_id}' has unrecognized contents of type "
            f"{type(contents).__name__}"
        )


class TreeConflictError(StructuralError):
    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"'{path}' is used as both a file and a folder")


# ===================================================================
# Resolution
# ===================================================================

class CycleDetectedError(SourceTreeError):
    def __init__(self, chain: Sequence[str], label: str) -> None:
        self.chain = list(chain)
        self.label = label
        super().__init__(
            f"Cycle while resolving '{label}': " + " -> ".join(self.chain)
        )


# ===================================================================
# Post-generation checks
# ===================================================================

class ValidationFailure(SourceTreeError):
    """A generated file failed the optional structural HTML check."""

    def __init__(self, file_path: str, problems: List[Dict[str, Any]]) -> None:
        self.file_path = file_path
        self.problems = problems
        first = problems[0]["error"] if problems else "invalid HTML"
        super().__init__(f"{file_path}: {first}")
