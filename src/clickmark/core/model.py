from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Literal, Union

from ..errors import DetachedBlockError
from .classify import LineKind, classify
from .codeblock import CodeBlock
from .inline import render_line

EditState = Literal["rendered", "editing"]

CARET_START = 0
CARET_END = -1  # sentinel: after the last character


@dataclass(eq=False)
class TextLine:
    raw_text: str = ""  # authoritative source, whatever the edit state
    edit_state: EditState = "rendered"
    display: str | None = None  # raw text currently shown while editing
    caret: int = 0
    selection: tuple[int, int] | None = None
    rendered: str = field(default="", repr=False)

    def __post_init__(self) -> None:
        if not self.rendered:
            self.rendered = render_line(self.raw_text).html

    @property
    def kind(self) -> LineKind:
        return classify(self.raw_text)

    @property
    def editing(self) -> bool:
        return self.edit_state == "editing"

    @property
    def text(self) -> str:
        """What the user currently sees as source text."""
        if self.editing and self.display is not None:
            return self.display
        return self.raw_text


Block = Union[TextLine, CodeBlock]


class Document:
    """Ordered, owning sequence of blocks."""

    def __init__(self, blocks: Iterable[Block] | None = None):
        self._blocks: list[Block] = list(blocks or [])

    def __iter__(self) -> Iterator[Block]:
        return iter(list(self._blocks))

    def __len__(self) -> int:
        return len(self._blocks)

    def __getitem__(self, i: int) -> Block:
        return self._blocks[i]

    @property
    def blocks(self) -> tuple[Block, ...]:
        return tuple(self._blocks)

    def index(self, block: Block) -> int:
        # blocks compare by identity (eq=False)
        try:
            return self._blocks.index(block)
        except ValueError:
            raise DetachedBlockError(f"{type(block).__name__} is not attached") from None

    def __contains__(self, block: object) -> bool:
        return any(b is block for b in self._blocks)

    def append(self, block: Block) -> Block:
        self._blocks.append(block)
        return block

    def insert_after(self, ref: Block | None, block: Block) -> Block:
        """Insert ``block`` right after ``ref``; ``None`` appends."""
        if ref is None:
            return self.append(block)
        self._blocks.insert(self.index(ref) + 1, block)
        return block

    def remove(self, block: Block) -> None:
        del self._blocks[self.index(block)]

    def set_text(self, line: TextLine, text: str) -> None:
        """Set a line's source text; its edit state is left alone."""
        self.index(line)
        line.raw_text = text
        if line.editing:
            line.display = text
            line.caret = min(line.caret, len(text))
        else:
            line.rendered = render_line(text).html

    def previous_navigable(self, block: Block) -> Block | None:
        i = self.index(block)
        return self._blocks[i - 1] if i > 0 else None

    def next_navigable(self, block: Block) -> Block | None:
        i = self.index(block)
        return self._blocks[i + 1] if i + 1 < len(self._blocks) else None

    def editing(self) -> TextLine | None:
        """The line in editing state, if any."""
        for block in self._blocks:
            if isinstance(block, TextLine) and block.editing:
                return block
        return None

    def text_lines(self) -> list[TextLine]:
        return [b for b in self._blocks if isinstance(b, TextLine)]

    def code_blocks(self) -> list[CodeBlock]:
        return [b for b in self._blocks if isinstance(b, CodeBlock)]

    def ensure_not_empty(self) -> TextLine | None:
        """Add one empty line to an empty document; return it if added."""
        if self._blocks:
            return None
        line = TextLine("")
        self._blocks.append(line)
        return line


def describe_block(block: Block) -> dict:
    """Plain-data view of a block for JSON output."""
    if isinstance(block, CodeBlock):
        return {"type": "code", "language": block.language, "code": block.code}
    return {
        "type": "text",
        "kind": block.kind,
        "raw": block.raw_text,
        "state": block.edit_state,
        "html": block.rendered,
    }
