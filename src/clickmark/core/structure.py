"""Canonical Markdown string -> Document."""

import re

from .codeblock import CodeBlock
from .model import Document, TextLine

FENCE_OPEN_RE = re.compile(r"^(`{3,}|~{3,})(.*)")
FENCE_CLOSE_RE = re.compile(r"^(`{3,}|~{3,})\s*$")


def normalize_newlines(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def split_lines(text: str) -> list[str]:
    return normalize_newlines(text).split("\n")


def parse(text: str) -> Document:
    """Split ``text`` into text lines and fenced code blocks.

    Lines outside a fence become one rendered TextLine each, verbatim. A fence
    that is never closed swallows the rest of the input. Empty input gives a
    document with a single empty line.
    """
    doc = Document()
    if not text:
        doc.ensure_not_empty()
        return doc

    lines = split_lines(text)
    i = 0
    while i < len(lines):
        line = lines[i]
        fence = FENCE_OPEN_RE.match(line)
        if fence is None:
            doc.append(TextLine(line))
            i += 1
            continue

        language = fence.group(2).strip()
        code_lines: list[str] = []
        i += 1
        while i < len(lines):
            if FENCE_CLOSE_RE.match(lines[i]):
                i += 1
                break
            code_lines.append(lines[i])
            i += 1
        doc.append(CodeBlock(language=language, code="\n".join(code_lines)))

    return doc
