"""Line classification for the structured-markup dialect."""

import re
from typing import Literal

LineKind = Literal[
    "h1", "h2", "h3", "h4", "h5", "h6",
    "hr",
    "blockquote",
    "bullet",
    "numbered",
    "empty",
    "paragraph",
]

HEADING_KINDS: tuple[LineKind, ...] = ("h1", "h2", "h3", "h4", "h5", "h6")

# Longest run of '#' first so "## x" is never taken for h1.
_HEADING_RES = [
    (f"h{level}", re.compile(rf"^#{{{level}}} "))
    for level in range(6, 0, -1)
]
HR_RE = re.compile(r"^(---+|\*\*\*+)\s*$")
BLOCKQUOTE_RE = re.compile(r"^> ?")
BULLET_RE = re.compile(r"^[-*+] ")
NUMBERED_RE = re.compile(r"^(\d+)\. ")


def classify(text: str) -> LineKind:
    """Map one line of Markdown source to its line kind.

    Patterns are tried in a fixed priority order and the first match wins:
    headings (h6 down to h1), horizontal rule, blockquote, bullet item,
    numbered item, empty, and finally paragraph.

    Examples:
        >>> classify("## Section")
        'h2'
        >>> classify("- item")
        'bullet'
        >>> classify("plain words")
        'paragraph'
    """
    for kind, pattern in _HEADING_RES:
        if pattern.match(text):
            return kind  # type: ignore[return-value]
    if HR_RE.match(text):
        return "hr"
    if BLOCKQUOTE_RE.match(text):
        return "blockquote"
    if BULLET_RE.match(text):
        return "bullet"
    if NUMBERED_RE.match(text):
        return "numbered"
    if text.strip() == "":
        return "empty"
    return "paragraph"


def heading_level(kind: str) -> int | None:
    """Return 1-6 for heading kinds, None otherwise."""
    if kind in HEADING_KINDS:
        return int(kind[1])
    return None
