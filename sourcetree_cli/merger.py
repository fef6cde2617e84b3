"""Splice annotation markers into highlighted HTML.

The highlighter output keeps the plain text's lines and visible characters
but wraps them in tags and escapes some of them as entities.  Insertions are
addressed in plain-text ``(line, character)`` coordinates, so the merge walks
the markup once while counting only visible units:

* a tag (``<...>``) is copied through and counts as nothing;
* an entity (``&...;``) is copied through and counts as one character;
* every other character counts as one.

Insertions anchored at a coordinate are emitted, in submission order, right
before the visible unit at that coordinate (or before the newline / end of
text when the coordinate is the end of a line).
"""

from __future__ import annotations

import logging
import re
from typing import Dict, Iterable, List, Tuple

from .models import AnnotationInsertion

logger = logging.getLogger(__name__)

_ENTITY_RE = re.compile(r"&(?:#[0-9]+|#[xX][0-9a-fA-F]+|[A-Za-z][A-Za-z0-9]*);")


def _group(insertions: Iterable[AnnotationInsertion]) -> Dict[Tuple[int, int], List[str]]:
    pending: Dict[Tuple[int, int], List[str]] = {}
    for ins in insertions:
        pending.setdefault((ins.line, ins.character), []).append(ins.text)
    return pending


def merge(markup: str, insertions: Iterable[AnnotationInsertion]) -> str:
    """Return *markup* with every reachable insertion applied.

    Args:
        markup:     Highlighted HTML of one whole source file.
        insertions: Texts anchored at plain-text ``(line, character)``
                    coordinates, in submission order.

    Returns:
        The merged markup.  Insertions whose coordinates lie outside the
        text are dropped.
    """
    pending = _group(insertions)
    if not pending:
        return markup

    out: List[str] = []
    line = col = 0
    i = 0
    size = len(markup)

    def flush() -> None:
        texts = pending.pop((line, col), None)
        if texts:
            out.append("".join(texts))

    while i < size:
        ch = markup[i]

        if ch == "<":
            close = markup.find(">", i + 1)
            if close != -1:
                out.append(markup[i:close + 1])
                i = close + 1
                continue

        if ch == "\n":
            flush()
            out.append(ch)
            line += 1
            col = 0
            i += 1
            continue

        flush()
        if ch == "&":
            entity = _ENTITY_RE.match(markup, i)
            if entity is not None:
                out.append(entity.group(0))
                i = entity.end()
                col += 1
                continue

        out.append(ch)
        col += 1
        i += 1

    flush()
    if pending:
        logger.debug("Dropped %d insertion point(s) outside the text", len(pending))
    return "".join(out)
