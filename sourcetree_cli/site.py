"""Page templating and output writing for the generated site.

Templates are plain HTML files shipped in ``templates/`` with ``{{ NAME }}``
placeholders.  Substitution is a single pass, so placeholder-like text inside
substituted source code is never expanded a second time.
"""

from __future__ import annotations

import html
import json
import logging
import re
import shutil
from pathlib import Path
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from .config import DIST_DIR, DIST_FOLDER, REFS_FOLDER, TEMPLATE_DIR
from .errors import SourceTreeError
from .highlight import Highlighter
from .merger import merge
from .models import DocumentAnnotations, ReferenceSet, TreeNode
from .paths import PathMapper
from .tree import render_tree_html

logger = logging.getLogger(__name__)

_PLACEHOLDER_RE = re.compile(r"\{\{\s*([A-Z_]+)\s*\}\}")


def fill_template(template: str, values: Dict[str, str]) -> str:
    """Replace ``{{ NAME }}`` placeholders; unknown names are left as-is."""
    return _PLACEHOLDER_RE.sub(lambda m: values.get(m.group(1), m.group(0)), template)


def line_gutter(source: str) -> str:
    count = source.count("\n")
    if not source.endswith("\n"):
        count += 1
    return "\n".join(f'<a id="L{n}" href="#{n}">{n}</a>' for n in range(1, count + 1))


def write_text(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def write_json(path: Path, payload: Any) -> None:
    write_text(path, json.dumps(payload, separators=(",", ":"), ensure_ascii=False))


class SiteTemplates:
    """The source page and welcome page templates."""

    def __init__(self, template_dir: Path = TEMPLATE_DIR) -> None:
        self.source = (template_dir / "source.html").read_text(encoding="utf-8")
        self.welcome = (template_dir / "welcome.html").read_text(encoding="utf-8")

    def source_page(
        self,
        source_html: str,
        tree_html: str,
        asset_path: str,
        filename: str,
        root_path: str = "./",
        gutter: str = "",
        sidecar: str = "",
    ) -> str:
        return fill_template(self.source, {
            "SOURCE": source_html,
            "TREE": tree_html,
            "ASSET_PATH": html.escape(asset_path),
            "FILENAME": html.escape(filename),
            "ROOT_PATH": html.escape(root_path),
            "GUTTER": gutter,
            "SIDECAR": html.escape(sidecar),
        })

    def welcome_page(self, tree_html: str, asset_path: str = f"./{DIST_FOLDER}/") -> str:
        return fill_template(self.welcome, {
            "TREE": tree_html,
            "ASSET_PATH": html.escape(asset_path),
        })


class SiteWriter:
    """Writes pages, sidecars and shared files below one output folder."""

    def __init__(
        self,
        output: Path,
        tree: List[TreeNode],
        highlighter: Optional[Highlighter] = None,
        templates: Optional[SiteTemplates] = None,
    ) -> None:
        self.output = output
        self.tree = tree
        self.highlighter = highlighter or Highlighter()
        self.templates = templates or SiteTemplates()

    # ------------------------------------------------------------------
    # Site skeleton
    # ------------------------------------------------------------------

    def prepare(self, dist: Optional[Path] = None) -> None:
        """Recreate the output folder with the welcome page and static assets."""
        if self.output.exists():
            resolved = self.output.resolve()
            if resolved == Path.cwd().resolve() or resolved in Path.cwd().resolve().parents:
                raise SourceTreeError(f"Refusing to clear output folder {self.output}")
            shutil.rmtree(self.output)
        self.output.mkdir(parents=True)

        write_text(
            self.output / "index.html",
            self.templates.welcome_page(render_tree_html(self.tree, "", "./")),
        )
        write_text(self.output / ".nojekyll", "")

        assets = self.output / DIST_FOLDER
        shutil.copytree(dist or DIST_DIR, assets)
        write_text(assets / "highlight.css", self.highlighter.stylesheet())
        logger.info("Prepared %s", self.output)

    # ------------------------------------------------------------------
    # Per-document output
    # ------------------------------------------------------------------

    def render_document(self, annotations: DocumentAnnotations) -> str:
        rel = annotations.relative_path
        filename = rel.rsplit("/", 1)[-1]
        highlighted = self.highlighter.highlight(
            annotations.source, annotations.document.language_id, filename
        )
        root = PathMapper.root_prefix(rel)
        return self.templates.source_page(
            source_html=merge(highlighted, annotations.insertions),
            tree_html=render_tree_html(self.tree, rel, root),
            asset_path=f"{root}{DIST_FOLDER}/",
            filename=filename,
            root_path=root,
            gutter=line_gutter(annotations.source),
            sidecar=quote(f"{filename}.hover.json"),
        )

    def write_document(self, annotations: DocumentAnnotations) -> Path:
        destination = self.output / annotations.relative_path
        page = destination.with_name(destination.name + ".html")
        write_text(page, self.render_document(annotations))
        write_json(destination.with_name(destination.name + ".hover.json"), annotations.sidecar())
        return page

    def write_reference_set(self, reference_id: str, reference_set: ReferenceSet) -> Path:
        path = self.output / REFS_FOLDER / f"{reference_id}.json"
        write_json(path, reference_set.to_dict())
        return path
