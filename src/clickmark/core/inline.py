"""Inline Markdown rendering for the preview form of a single line.

This is a substitution chain, not a tokenizer. Order matters: inline code is
replaced first, then emphasis, strikethrough, images and finally links.
Overlapping markers can render oddly; that behaviour is kept on purpose.
"""

import html
import re
from dataclasses import dataclass

from .classify import (
    BLOCKQUOTE_RE,
    BULLET_RE,
    HEADING_KINDS,
    NUMBERED_RE,
    LineKind,
    classify,
)

BULLET_GLYPH = "• "
EMPTY_HTML = "<br>"

_SUBSTITUTIONS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"`([^`\n]+)`"), r'<span class="ic">\1</span>'),
    (re.compile(r"\*\*\*(.+?)\*\*\*"), r"<strong><em>\1</em></strong>"),
    (re.compile(r"\*\*(.+?)\*\*"), r"<strong>\1</strong>"),
    (re.compile(r"__(.+?)__"), r"<strong>\1</strong>"),
    (re.compile(r"\*([^*\n]+)\*"), r"<em>\1</em>"),
    (re.compile(r"_([^_\n]+)_"), r"<em>\1</em>"),
    (re.compile(r"~~(.+?)~~"), r"<del>\1</del>"),
    # images before links, "![a](b)" contains a link pattern
    (re.compile(r"!\[([^\]]*)\]\(([^)]+)\)"), r'<img src="\2" alt="\1" loading="lazy">'),
    (re.compile(r"\[([^\]]+)\]\(([^)]+)\)"), r'<a href="\2" target="_blank" rel="noopener">\1</a>'),
]

_HEADING_PREFIX_RE = re.compile(r"^#+\s")


def inline_render(raw: str) -> str:
    """Escape ``raw`` and apply the inline substitutions in fixed order."""
    s = html.escape(raw, quote=False)
    for pattern, replacement in _SUBSTITUTIONS:
        s = pattern.sub(replacement, s)
    return s


@dataclass(frozen=True)
class RenderedLine:
    """Preview form of a text line."""
    kind: LineKind
    html: str


def render_line(text: str) -> RenderedLine:
    """Render a full line, stripping its block-level prefix by kind."""
    kind = classify(text)

    if kind in HEADING_KINDS:
        body = inline_render(_HEADING_PREFIX_RE.sub("", text, count=1)) or EMPTY_HTML
    elif kind == "hr":
        body = ""
    elif kind == "blockquote":
        body = inline_render(BLOCKQUOTE_RE.sub("", text, count=1)) or EMPTY_HTML
    elif kind == "bullet":
        body = BULLET_GLYPH + inline_render(BULLET_RE.sub("", text, count=1))
    elif kind == "numbered":
        m = NUMBERED_RE.match(text)
        body = f"{m.group(1)}. " + inline_render(text[m.end():]) if m else inline_render(text)
    elif kind == "empty":
        body = EMPTY_HTML
    else:
        body = inline_render(text) or EMPTY_HTML

    return RenderedLine(kind=kind, html=body)
