"""Pytest configuration and fixtures for sourcetree tests."""

import json
import shutil
import tempfile
from pathlib import Path
from typing import Dict, Generator, List, Optional, Sequence, Tuple

import pytest

from sourcetree_cli.storage import IndexedGraph


class DumpBuilder:
    """Small helper for writing LSIF dumps by hand."""

    def __init__(self, project_root: str = "file:///project") -> None:
        self.project_root = project_root
        self.elements: List[dict] = []
        self._next_id = 1
        self.vertex("metaData", version="0.5.0", projectRoot=project_root, positionEncoding="utf-16")

    def _new_id(self) -> int:
        element_id = self._next_id
        self._next_id += 1
        return element_id

    def vertex(self, label: str, **fields) -> str:
        element_id = self._new_id()
        self.elements.append({"id": element_id, "type": "vertex", "label": label, **fields})
        return str(element_id)

    def edge(self, label: str, out_v: str, in_v: Optional[str] = None, in_vs: Optional[Sequence[str]] = None, **fields) -> str:
        element_id = self._new_id()
        record = {"id": element_id, "type": "edge", "label": label, "outV": int(out_v)}
        if in_v is not None:
            record["inV"] = int(in_v)
        if in_vs is not None:
            record["inVs"] = [int(v) for v in in_vs]
        record.update(fields)
        self.elements.append(record)
        return str(element_id)

    # -- vertices ---------------------------------------------------------

    def document(self, relative_path: str, language_id: str = "python") -> str:
        return self.vertex("document", uri=f"{self.project_root}/{relative_path}", languageId=language_id)

    def range(self, start: Tuple[int, int], end: Tuple[int, int]) -> str:
        return self.vertex(
            "range",
            start={"line": start[0], "character": start[1]},
            end={"line": end[0], "character": end[1]},
        )

    def result_set(self) -> str:
        return self.vertex("resultSet")

    # -- edges ------------------------------------------------------------

    def contains(self, document_id: str, range_ids: Sequence[str]) -> str:
        return self.edge("contains", document_id, in_vs=range_ids)

    def next(self, source: str, target: str) -> str:
        return self.edge("next", source, in_v=target)

    def hover(self, source: str, contents) -> str:
        hover_id = self.vertex("hoverResult", result={"contents": contents})
        self.edge("textDocument/hover", source, in_v=hover_id)
        return hover_id

    def definition(self, source: str, target_ranges: Sequence[str], document_id: str) -> str:
        result_id = self.vertex("definitionResult")
        self.edge("textDocument/definition", source, in_v=result_id)
        self.edge("item", result_id, in_vs=target_ranges, document=int(document_id))
        return result_id

    def references(
        self,
        source: str,
        definitions: Sequence[Tuple[str, Sequence[str]]],
        references: Sequence[Tuple[str, Sequence[str]]],
    ) -> str:
        """*definitions*/*references* are ``(document_id, range_ids)`` pairs."""
        result_id = self.vertex("referenceResult")
        self.edge("textDocument/references", source, in_v=result_id)
        for document_id, ranges in definitions:
            self.edge("item", result_id, in_vs=ranges, document=int(document_id), property="definitions")
        for document_id, ranges in references:
            self.edge("item", result_id, in_vs=ranges, document=int(document_id), property="references")
        return result_id

    # -- output -----------------------------------------------------------

    def lines(self) -> List[str]:
        return [json.dumps(element) for element in self.elements]

    def graph(self) -> IndexedGraph:
        return IndexedGraph.from_lines(self.lines())

    def write(self, path: Path) -> Path:
        path.write_text("\n".join(self.lines()) + "\n", encoding="utf-8")
        return path


UTIL_SOURCE = '''def greet(name):
    return "Hello, " + name
'''

MAIN_SOURCE = '''from util import greet

message = greet("world")
print(message)
'''


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    tmp = Path(tempfile.mkdtemp())
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def dump_builder() -> DumpBuilder:
    return DumpBuilder()


@pytest.fixture
def sample_project(temp_dir: Path) -> Dict[str, object]:
    """A two-file project on disk plus a hand-written dump describing it.

    ``greet`` is defined in ``src/util.py`` and used twice in
    ``src/main.py``; the usage in ``message = greet(...)`` reaches the shared
    result set through an extra ``next`` hop.
    """
    project = temp_dir / "project"
    (project / "src").mkdir(parents=True)
    (project / "src" / "util.py").write_text(UTIL_SOURCE, encoding="utf-8")
    (project / "src" / "main.py").write_text(MAIN_SOURCE, encoding="utf-8")

    b = DumpBuilder(project.as_uri())
    util = b.document("src/util.py")
    main = b.document("src/main.py")

    greet_def = b.range((0, 4), (0, 9))
    name_param = b.range((0, 10), (0, 14))
    empty = b.range((1, 4), (1, 4))
    greet_import = b.range((0, 17), (0, 22))
    message_def = b.range((2, 0), (2, 7))
    greet_call = b.range((2, 10), (2, 15))
    message_use = b.range((3, 6), (3, 13))
    b.contains(util, [greet_def, name_param, empty])
    b.contains(main, [greet_import, message_def, greet_call, message_use])

    greet_rs = b.result_set()
    greet_hover = b.hover(greet_rs, [{"language": "python", "value": "def greet(name)"}, "Say hello."])
    greet_definition = b.definition(greet_rs, [greet_def], util)
    greet_refs = b.references(greet_rs, [(util, [greet_def])], [(main, [greet_import, greet_call])])
    b.next(greet_def, greet_rs)
    b.next(greet_import, greet_rs)
    local_rs = b.result_set()
    b.next(greet_call, local_rs)
    b.next(local_rs, greet_rs)

    message_rs = b.result_set()
    message_hover = b.hover(message_rs, {"kind": "markdown", "value": "`message: str`"})
    message_definition = b.definition(message_rs, [message_def], main)
    b.references(message_rs, [], [(main, [message_def, message_use])])
    b.next(message_def, message_rs)
    b.next(message_use, message_rs)

    dump = b.write(temp_dir / "dump.lsif")
    return {
        "project": project,
        "dump": dump,
        "builder": b,
        "ids": {
            "util": util,
            "main": main,
            "greet_def": greet_def,
            "name_param": name_param,
            "empty": empty,
            "greet_import": greet_import,
            "message_def": message_def,
            "greet_call": greet_call,
            "message_use": message_use,
            "greet_hover": greet_hover,
            "greet_definition": greet_definition,
            "greet_refs": greet_refs,
            "message_hover": message_hover,
            "message_definition": message_definition,
        },
    }
