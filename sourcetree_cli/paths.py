"""Mapping from document URIs to output-relative paths."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional
from urllib.parse import quote, unquote, urlparse
from urllib.request import url2pathname

from .errors import StructuralError


class PathMapper:
    """Decides where each document lands in the generated site.

    A URI map entry (``URI prefix -> output prefix``) wins over the project
    root; among map entries the longest matching prefix is used.  Documents
    matched by neither are not part of the site and map to ``None``.
    """

    def __init__(self, project_root: str, uri_map: Optional[Dict[str, str]] = None) -> None:
        self.project_root = project_root.rstrip("/")
        self.uri_map = dict(uri_map or {})
        self._prefixes = sorted(self.uri_map, key=len, reverse=True)

    def relative_path(self, uri: str) -> Optional[str]:
        for prefix in self._prefixes:
            if uri.startswith(prefix):
                rest = unquote(uri[len(prefix):]).lstrip("/")
                target = self.uri_map[prefix].strip("/")
                return "/".join(p for p in (target, rest) if p) or None
        if uri.startswith(self.project_root + "/"):
            return unquote(uri[len(self.project_root) + 1:]) or None
        return None

    def page_url(self, relative_path: str, line: Optional[int] = None) -> str:
        """Root-relative URL of a generated page, optionally at a 1-based line."""
        url = quote(f"{relative_path}.html")
        if line is not None:
            url += f"#{line}"
        return url

    @staticmethod
    def root_prefix(relative_path: str) -> str:
        """Relative path from the page for *relative_path* back to the output root."""
        depth = relative_path.count("/")
        return "../" * depth if depth else "./"

    @staticmethod
    def source_path(uri: str) -> Path:
        """On-disk path of a ``file://`` document URI."""
        parsed = urlparse(uri)
        if parsed.scheme not in ("", "file"):
            raise StructuralError(f"Cannot read documents with scheme '{parsed.scheme}': {uri}")
        return Path(url2pathname(parsed.path))
