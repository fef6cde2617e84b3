"""Tests for the navigation tree."""

import pytest

from sourcetree_cli.errors import TreeConflictError
from sourcetree_cli.models import FileNode, FolderNode
from sourcetree_cli.tree import build_tree, iter_files, render_tree_html


def test_build_nested_tree():
    tree = build_tree(["a/b.go", "a/c.go", "d.go"])

    assert tree == [
        FolderNode(name="a", children=[FileNode(name="b.go"), FileNode(name="c.go")]),
        FileNode(name="d.go"),
    ]


def test_duplicate_paths_collapse():
    tree = build_tree(["a/b.go", "a/b.go"])
    assert iter_files(tree) == ["a/b.go"]


def test_file_then_folder_conflict():
    with pytest.raises(TreeConflictError) as excinfo:
        build_tree(["x", "x/y"])
    assert excinfo.value.path == "x"


def test_folder_then_file_conflict():
    with pytest.raises(TreeConflictError):
        build_tree(["x/y", "x"])


def test_iter_files_is_depth_first():
    tree = build_tree(["src/pkg/a.py", "README.md", "src/b.py"])
    assert iter_files(tree) == ["src/pkg/a.py", "src/b.py", "README.md"]


def test_render_marks_current_file():
    """The current file and the folders leading to it are highlighted."""
    tree = build_tree(["src/main.py", "src/util.py", "setup.py"])
    markup = render_tree_html(tree, "src/main.py", "../")

    assert '<li class="open"><span class="folder">src</span>' in markup
    assert '<li class="current-file"><a href="../src/main.py.html">main.py</a></li>' in markup
    assert '<li><a href="../src/util.py.html">util.py</a></li>' in markup
    assert '<li><a href="../setup.py.html">setup.py</a></li>' in markup


def test_render_escapes_names():
    tree = build_tree(["a<b>.txt"])
    markup = render_tree_html(tree)

    assert "a&lt;b&gt;.txt</a>" in markup
    assert "<b>" not in markup


def test_render_quotes_link_targets():
    tree = build_tree(["docs/a#b.txt", "docs/100%.md"])
    markup = render_tree_html(tree)

    assert 'href="./docs/a%23b.txt.html"' in markup
    assert 'href="./docs/100%25.md.html"' in markup
    assert ">a#b.txt</a>" in markup
