"""Syntax highlighting and hover rendering.

Both are thin wrappers: Pygments turns a whole source file into HTML and
Python-Markdown turns hover contents into HTML.  The only contract the rest
of the pipeline relies on is that :meth:`Highlighter.highlight` keeps the
line count and the visible characters of every line, which is why the lexer
is created with ``stripnl``/``ensurenl`` disabled.
"""

from __future__ import annotations

import html
import logging
import re
from typing import Any, Dict, List, Tuple

import markdown
from pygments import highlight as pygments_highlight
from pygments.formatters import HtmlFormatter
from pygments.lexer import Lexer
from pygments.lexers import TextLexer, get_lexer_by_name, get_lexer_for_filename
from pygments.util import ClassNotFound

from .errors import UnrecognizedHoverError

logger = logging.getLogger(__name__)

# LSIF language ids (VS Code identifiers) that Pygments knows under another alias
LANGUAGE_ALIASES: Dict[str, str] = {
    "typescriptreact": "tsx",
    "javascriptreact": "jsx",
    "shellscript": "bash",
    "objective-cpp": "objective-c++",
    "dockerfile": "docker",
    "jsonc": "json",
    "plaintext": "text",
}

HOVER_SEPARATOR = "\n\n---\n\n"

_LEXER_OPTIONS = {"stripnl": False, "ensurenl": False, "stripall": False}
_BACKTICKS_RE = re.compile(r"`{3,}")


class Highlighter:
    """Pygments-backed highlighter producing bare (unwrapped) HTML."""

    def __init__(self, style: str = "default", css_class: str = "highlight") -> None:
        self.style = style
        self.css_class = css_class

    def lexer_for(self, language_id: str, filename: str = "") -> Lexer:
        name = LANGUAGE_ALIASES.get(language_id, language_id)
        if name:
            try:
                return get_lexer_by_name(name, **_LEXER_OPTIONS)
            except ClassNotFound:
                logger.debug("No lexer registered for language id '%s'", language_id)
        if filename:
            try:
                return get_lexer_for_filename(filename, **_LEXER_OPTIONS)
            except ClassNotFound:
                logger.debug("No lexer matches file name '%s'", filename)
        return TextLexer(**_LEXER_OPTIONS)

    def highlight(self, source: str, language_id: str, filename: str = "") -> str:
        formatter = HtmlFormatter(nowrap=True, style=self.style)
        return pygments_highlight(source, self.lexer_for(language_id, filename), formatter)

    def stylesheet(self) -> str:
        return HtmlFormatter(style=self.style).get_style_defs(f".{self.css_class}")


# ===================================================================
# Hover contents
# ===================================================================

def _fence(language: str, value: str) -> str:
    longest = max((len(m) for m in _BACKTICKS_RE.findall(value)), default=2)
    fence = "`" * (longest + 1)
    return f"{fence}{language}\n{value}\n{fence}"


def _marked_string(hover_id: str, item: Any) -> str:
    if isinstance(item, str):
        return item
    if isinstance(item, dict) and isinstance(item.get("value"), str) and "language" in item:
        return _fence(item.get("language") or "", item["value"])
    raise UnrecognizedHoverError(hover_id, item)


def hover_to_text(hover_id: str, contents: Any) -> Tuple[str, str]:
    """Normalise LSIF hover contents to ``(text, kind)``.

    *kind* is ``"markdown"`` or ``"plaintext"``.  Accepted shapes are a
    string, a ``{language, value}`` marked string, a list of those, or a
    ``{kind, value}`` markup-content object.
    """
    if isinstance(contents, dict) and "kind" in contents:
        kind = contents.get("kind")
        value = contents.get("value")
        if kind in ("markdown", "plaintext") and isinstance(value, str):
            return value, kind
        raise UnrecognizedHoverError(hover_id, contents)
    if isinstance(contents, list):
        parts: List[str] = [_marked_string(hover_id, item) for item in contents]
        return HOVER_SEPARATOR.join(parts), "markdown"
    return _marked_string(hover_id, contents), "markdown"


class HoverRenderer:
    """Render hover contents to HTML with Python-Markdown."""

    extensions = ["fenced_code", "codehilite"]

    def __init__(self, css_class: str = "highlight") -> None:
        self.extension_configs = {
            "codehilite": {"css_class": css_class, "guess_lang": False},
        }

    def render_text(self, text: str, kind: str = "markdown") -> str:
        if kind == "plaintext":
            return f"<pre>{html.escape(text)}</pre>"
        # markdown.markdown builds a fresh Markdown instance, so this is thread-safe
        return markdown.markdown(
            text,
            extensions=self.extensions,
            extension_configs=self.extension_configs,
        )

    def render(self, hover_id: str, contents: Any) -> str:
        text, kind = hover_to_text(hover_id, contents)
        return self.render_text(text, kind)
