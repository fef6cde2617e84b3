"""Tests for LSIF record decoding."""

import json

import pytest

from sourcetree_cli.errors import MalformedDumpError, UnknownLabelError
from sourcetree_cli.models import Document, Edge, HoverResult, MetaData, OtherVertex, Position, Range, ResultSet
from sourcetree_cli.parser import decode_element, normalize_id, parse_dump_lines


def test_normalize_id_accepts_numbers_and_strings():
    """Numeric and string ids address the same element."""
    assert normalize_id(7) == "7"
    assert normalize_id("7") == "7"
    assert normalize_id("abc") == "abc"


@pytest.mark.parametrize("raw", [True, None, 1.5, [1], {"id": 1}])
def test_normalize_id_rejects_other_types(raw):
    """Booleans, floats and containers are not valid ids."""
    with pytest.raises(MalformedDumpError):
        normalize_id(raw)


def test_decode_meta_data():
    """metaData keeps its project root and encoding."""
    element = decode_element({
        "id": 1, "type": "vertex", "label": "metaData",
        "version": "0.4.3", "projectRoot": "file:///repo", "positionEncoding": "utf-16",
    })
    assert isinstance(element, MetaData)
    assert element.id == "1"
    assert element.project_root == "file:///repo"
    assert element.version == "0.4.3"


def test_decode_document_and_range():
    """Documents and ranges decode to their typed models."""
    document = decode_element({
        "id": "d", "type": "vertex", "label": "document",
        "uri": "file:///repo/a.go", "languageId": "go",
    })
    assert isinstance(document, Document)
    assert document.language_id == "go"

    rng = decode_element({
        "id": 3, "type": "vertex", "label": "range",
        "start": {"line": 1, "character": 2}, "end": {"line": 1, "character": 6},
        "tag": {"type": "definition", "text": "main"},
    })
    assert isinstance(rng, Range)
    assert rng.start == Position(1, 2)
    assert rng.end == Position(1, 6)
    assert rng.tag["text"] == "main"
    assert not rng.is_empty


def test_decode_range_with_bad_position():
    """A range without usable coordinates is malformed."""
    with pytest.raises(MalformedDumpError):
        decode_element({"id": 3, "type": "vertex", "label": "range", "start": {"line": 1}, "end": {}})


def test_decode_hover_result_keeps_contents():
    """Hover contents are carried through untouched."""
    contents = [{"language": "go", "value": "func main()"}, "Entry point."]
    hover = decode_element({
        "id": 9, "type": "vertex", "label": "hoverResult", "result": {"contents": contents},
    })
    assert isinstance(hover, HoverResult)
    assert hover.contents == contents


def test_decode_opaque_vertex():
    """Known LSIF labels the generator does not interpret are kept as opaque vertices."""
    element = decode_element({
        "id": 4, "type": "vertex", "label": "foldingRangeResult", "result": [],
    })
    assert isinstance(element, OtherVertex)
    assert element.label == "foldingRangeResult"
    assert element.payload == {"result": []}


def test_decode_result_set():
    element = decode_element({"id": 5, "type": "vertex", "label": "resultSet"})
    assert element == ResultSet(id="5")


def test_decode_edge_with_single_target():
    """inV is normalised into a one-element target tuple."""
    edge = decode_element({"id": 10, "type": "edge", "label": "next", "outV": 3, "inV": 5})
    assert isinstance(edge, Edge)
    assert edge.out_v == "3"
    assert edge.in_vs == ("5",)
    assert edge.in_v == "5"


def test_decode_item_edge():
    """item edges keep their document and property."""
    edge = decode_element({
        "id": 11, "type": "edge", "label": "item", "outV": 8, "inVs": [3, "4"],
        "document": 2, "property": "references",
    })
    assert edge.in_vs == ("3", "4")
    assert edge.document == "2"
    assert edge.property == "references"


def test_decode_item_edge_with_shard():
    """Newer dumps name the document ``shard``."""
    edge = decode_element({
        "id": 11, "type": "edge", "label": "item", "outV": 8, "inVs": [3], "shard": 2,
    })
    assert edge.document == "2"


def test_decode_edge_without_target():
    with pytest.raises(MalformedDumpError):
        decode_element({"id": 12, "type": "edge", "label": "contains", "outV": 1, "inVs": []})


def test_decode_edge_without_out_v():
    with pytest.raises(MalformedDumpError):
        decode_element({"id": 12, "type": "edge", "label": "next", "inV": 1})


def test_unknown_labels_are_rejected():
    """Labels outside the LSIF vocabulary fail loudly."""
    with pytest.raises(UnknownLabelError) as excinfo:
        decode_element({"id": 1, "type": "vertex", "label": "mystery"})
    assert excinfo.value.label == "mystery"

    with pytest.raises(UnknownLabelError):
        decode_element({"id": 2, "type": "edge", "label": "textDocument/mystery", "outV": 1, "inV": 3})


def test_unknown_element_type():
    with pytest.raises(MalformedDumpError):
        decode_element({"id": 1, "type": "hyperedge", "label": "next"})


def test_parse_dump_lines_skips_blank_lines():
    """Blank lines between records are ignored."""
    lines = [
        json.dumps({"id": 1, "type": "vertex", "label": "resultSet"}),
        "",
        "   ",
        json.dumps({"id": 2, "type": "vertex", "label": "resultSet"}),
    ]
    elements = list(parse_dump_lines(lines))
    assert [e.id for e in elements] == ["1", "2"]


def test_parse_dump_lines_reports_line_number():
    """Invalid JSON is reported with its 1-based line number."""
    lines = [json.dumps({"id": 1, "type": "vertex", "label": "resultSet"}), "{not json"]
    with pytest.raises(MalformedDumpError, match="Line 2"):
        list(parse_dump_lines(lines))
