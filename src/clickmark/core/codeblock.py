"""Code-block unit: an always-editable fenced code region."""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Literal

from .ports import Clipboard

TAB = "  "

# Clicks on these parts of the block never move focus into the code.
HEADER_REGIONS = frozenset({"header", "language", "copy"})


@dataclass(frozen=True)
class Navigation:
    """Request to move focus out of a code block."""
    direction: Literal["up", "down"]
    edge: Literal["start", "end"]  # where the caret lands in the target


@dataclass(eq=False)
class CodeBlock:
    language: str = ""
    code: str = ""
    caret: int = 0
    selection: tuple[int, int] | None = None
    on_change: Callable[["CodeBlock"], None] | None = field(default=None, repr=False)

    @property
    def label(self) -> str:
        return self.language or "code"

    def _changed(self) -> None:
        if self.on_change is not None:
            self.on_change(self)

    def set_code(self, text: str) -> None:
        """Replace the code text, keeping the caret inside the new bounds."""
        self.code = text
        self.caret = min(self.caret, len(text))
        self.selection = None
        self._changed()

    def insert_tab(self) -> None:
        """Insert two spaces at the caret, replacing any selection."""
        start, end = self.selection or (self.caret, self.caret)
        self.code = self.code[:start] + TAB + self.code[end:]
        self.caret = start + len(TAB)
        self.selection = None
        self._changed()

    def key_up(self) -> Navigation | None:
        if self.caret == 0:
            return Navigation("up", "end")
        return None

    def key_down(self) -> Navigation | None:
        if self.caret == len(self.code):
            return Navigation("down", "start")
        return None

    def copy(self, clipboard: Clipboard) -> str:
        """Put the code on the clipboard verbatim and return it."""
        clipboard.write_text(self.code)
        return self.code

    def click(self, region: str = "body") -> bool:
        """Return True when a click on ``region`` should focus the code."""
        return region not in HEADER_REGIONS
