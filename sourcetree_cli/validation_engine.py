"""ValidationEngine for checking the structure of generated HTML pages."""

from __future__ import annotations

from html.parser import HTMLParser
from pathlib import Path
from typing import List, Tuple

from .errors import ValidationFailure

VOID_ELEMENTS = {
    "area", "base", "br", "col", "embed", "hr", "img", "input",
    "link", "meta", "source", "track", "wbr",
}


class _TagBalanceParser(HTMLParser):
    """Tracks open elements and records every mismatch it sees."""

    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.stack: List[Tuple[str, Tuple[int, int]]] = []
        self.errors: List[dict] = []

    def _error(self, message: str, position: Tuple[int, int]) -> None:
        self.errors.append({
            "line": position[0],
            "column": position[1],
            "error": message,
        })

    def handle_starttag(self, tag, attrs):
        if tag not in VOID_ELEMENTS:
            self.stack.append((tag, self.getpos()))

    def handle_startendtag(self, tag, attrs):
        # ``<meta />`` and friends open and close in one step
        return

    def handle_endtag(self, tag):
        if tag in VOID_ELEMENTS:
            self._error(f"End tag for void element <{tag}>", self.getpos())
            return
        if self.stack and self.stack[-1][0] == tag:
            self.stack.pop()
            return
        open_tags = [name for name, _ in self.stack]
        if tag not in open_tags:
            self._error(f"Unexpected </{tag}>", self.getpos())
            return
        # close everything above the matching element
        while self.stack:
            name, pos = self.stack.pop()
            if name == tag:
                break
            self._error(f"<{name}> closed implicitly by </{tag}>", pos)

    def close(self):
        super().close()
        for name, pos in self.stack:
            self._error(f"Unclosed <{name}>", pos)
        self.stack.clear()


class ValidationEngine:
    """Checks generated pages for balanced, well-nested tags."""

    def check_markup(self, markup: str) -> List[dict]:
        """Return a list of problems (empty when the markup is balanced).

        Each problem is a dict with ``line``, ``column`` and ``error``.
        """
        parser = _TagBalanceParser()
        parser.feed(markup)
        parser.close()
        return parser.errors

    def check_file(self, file_path: Path) -> List[dict]:
        errors = self.check_markup(file_path.read_text(encoding="utf-8"))
        for error in errors:
            error["file"] = str(file_path)
        return errors

    def validate_site(self, output_dir: Path) -> int:
        """Check every generated page, stopping at the first invalid one.

        Returns the number of files checked; raises
        :class:`~sourcetree_cli.errors.ValidationFailure` on the first failure.
        """
        checked = 0
        for page in sorted(output_dir.rglob("*.html")):
            errors = self.check_file(page)
            if errors:
                raise ValidationFailure(str(page), errors)
            checked += 1
        return checked
