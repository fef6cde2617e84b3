"""Navigation tree built from output-relative document paths."""

from __future__ import annotations

import html
from typing import Iterable, List, Optional
from urllib.parse import quote

from .errors import TreeConflictError
from .models import FileNode, FolderNode, TreeNode


def build_tree(paths: Iterable[str]) -> List[TreeNode]:
    """Nest slash-separated *paths* into folders and files, in input order."""
    tree: List[TreeNode] = []

    for path in paths:
        parts = [p for p in path.split("/") if p]
        if not parts:
            continue
        children = tree
        for depth, part in enumerate(parts[:-1]):
            node = _find(children, part)
            if node is None:
                node = FolderNode(name=part)
                children.append(node)
            elif isinstance(node, FileNode):
                raise TreeConflictError("/".join(parts[:depth + 1]))
            children = node.children

        leaf = _find(children, parts[-1])
        if isinstance(leaf, FolderNode):
            raise TreeConflictError("/".join(parts))
        if leaf is None:
            children.append(FileNode(name=parts[-1]))

    return tree


def _find(children: List[TreeNode], name: str) -> Optional[TreeNode]:
    for child in children:
        if child.name == name:
            return child
    return None


def iter_files(tree: List[TreeNode], prefix: str = "") -> List[str]:
    """Depth-first listing of file paths in *tree*."""
    files: List[str] = []
    for node in tree:
        path = f"{prefix}{node.name}"
        if isinstance(node, FolderNode):
            files.extend(iter_files(node.children, path + "/"))
        else:
            files.append(path)
    return files


def render_tree_html(tree: List[TreeNode], current_path: str = "", root_prefix: str = "./") -> str:
    """Render *tree* as nested ``<ul>`` lists linking to the generated pages.

    *root_prefix* leads from the current page back to the output root and
    *current_path* marks the page being rendered.
    """
    current = current_path.split("/") if current_path else []

    def render(nodes: List[TreeNode], trail: List[str], base: str) -> str:
        items = []
        for node in nodes:
            name = html.escape(node.name)
            href = f"{base}{quote(node.name)}"
            on_trail = bool(trail) and trail[0] == node.name
            if isinstance(node, FolderNode):
                inner = render(node.children, trail[1:] if on_trail else [], href + "/")
                css = ' class="open"' if on_trail else ""
                items.append(f"<li{css}><span class=\"folder\">{name}</span><ul>{inner}</ul></li>")
            else:
                css = ' class="current-file"' if on_trail and len(trail) == 1 else ""
                link = html.escape(f"{root_prefix}{href}.html", quote=True)
                items.append(f'<li{css}><a href="{link}">{name}</a></li>')
        return "".join(items)

    return f"<ul>{render(tree, current, '')}</ul>"
