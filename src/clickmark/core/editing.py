"""Rendered/Editing state machine for text lines.

A line keeps ``raw_text`` as the source of truth. Entering edit mode copies
it into ``display``; every exit path (blur, escape, delete, merge,
navigation, canonicalization) goes through :func:`commit`, which reads the
display back and regenerates the rendered form.
"""

from .codeblock import CodeBlock
from .inline import render_line
from .model import CARET_END, Block, Document, TextLine


def clamp_caret(caret: int, length: int) -> int:
    if caret == CARET_END:
        return length
    return max(0, min(caret, length))


def enter_edit(line: TextLine, caret: int = CARET_END) -> None:
    """Rendered -> Editing, with the caret at ``caret``."""
    if not line.editing:
        line.display = line.raw_text
        line.edit_state = "editing"
    line.caret = clamp_caret(caret, len(line.text))
    line.selection = None


def capture(line: TextLine) -> bool:
    """Copy the displayed source of an editing line into raw_text.

    The line stays in editing state.
    """
    if line.editing and line.display is not None:
        line.raw_text = line.display
        return True
    return False


def commit(line: TextLine) -> bool:
    """Editing -> Rendered. Returns False if the line was not editing."""
    if not line.editing:
        return False
    capture(line)
    line.display = None
    line.edit_state = "rendered"
    line.selection = None
    line.rendered = render_line(line.raw_text).html
    return True


def type_text(line: TextLine, text: str, caret: int | None = None) -> None:
    """Replace the displayed source of an editing line."""
    if not line.editing:
        enter_edit(line)
    line.display = text
    line.caret = len(text) if caret is None else clamp_caret(caret, len(text))


def blur(doc: Document) -> TextLine | None:
    """Commit whichever line is editing and return it."""
    current = doc.editing()
    if current is not None:
        commit(current)
    return current


def focus(doc: Document, block: Block, caret: int = CARET_END) -> Block:
    """Move focus to ``block``.

    Any other editing line is committed first so a document never has more
    than one line in editing state.
    """
    doc.index(block)
    current = doc.editing()
    if current is not None and current is not block:
        commit(current)

    if isinstance(block, CodeBlock):
        block.caret = clamp_caret(caret, len(block.code))
        block.selection = None
        return block

    enter_edit(block, caret)
    return block
