"""Editor session: one document, its history and its pending timers.

The session is the adapter-facing surface of the engine. A presentation layer
forwards clicks, keys, input and paste here and reads blocks back from
``session.document``. The canonical Markdown string is the single source of
truth: every edit ends in :meth:`EditorSession.sync`, which serializes the
document, records the previous string in the undo history and notifies
``change`` listeners. Load, undo, redo and clear rebuild the document from a
string with the structural parser.
"""

import logging
import re
from collections.abc import Callable
from typing import Any

from .core import editing
from .core.canonical import canonicalize
from .core.classify import BLOCKQUOTE_RE, BULLET_RE, NUMBERED_RE, classify
from .core.codeblock import CodeBlock
from .core.editing import clamp_caret, commit, type_text
from .core.history import DEFAULT_LIMIT, History
from .core.model import CARET_END, CARET_START, Block, Document, TextLine
from .core.ports import Clipboard, Clock, Renderer, RichParser
from .core.scheduler import Debouncer
from .core.structure import FENCE_OPEN_RE, normalize_newlines, parse
from .errors import SessionClosedError, UnknownCommandError

logger = logging.getLogger(__name__)

EVENTS = ("change", "save", "autosave")
MODES = ("live", "source", "preview")

SYNC = "sync"
AUTOSAVE = "autosave"

TAB = "  "
DEFAULT_PLACEHOLDER = "Start writing… type / for commands"

SNIPPETS = {
    "h1": "# Heading",
    "h2": "## Heading",
    "h3": "### Heading",
    "bold": "**bold**",
    "italic": "*italic*",
    "strike": "~~text~~",
    "link": "[text](https://)",
    "image": "![alt](https://)",
    "inlinecode": "`code`",
    "codeblock": "```javascript\n// code here\n```",
    "quote": "> Blockquote",
    "ul": "- Item",
    "ol": "1. Item",
    "table": "| Col 1 | Col 2 |\n| --- | --- |\n| Cell | Cell |",
    "hr": "---",
}

TABLE_ROWS = ["| Column 1 | Column 2 |", "| --- | --- |", "| Cell | Cell |"]

HEADING_PREFIXES = {"h1": "# ", "h2": "## ", "h3": "### "}
WRAP_MARKERS = {"bold": "**", "italic": "*", "strike": "~~", "inlinecode": "`"}
LINE_PREFIXES = {"quote": "> ", "ul": "- ", "ol": "1. "}

_HEADING_STRIP_RE = re.compile(r"^#+\s*")
_PREFIX_STRIP_RE = re.compile(r"^#+\s*|^> ?|^[-*+] |^\d+\. ")
_WORD_FENCE_RE = re.compile(r"```[\s\S]*?```")
_WORD_MARKUP_RE = re.compile(r"[#*`>_~\[\]!|]")

Handler = Callable[[str, str], Any]


class EditorSession:
    def __init__(
        self,
        renderer: Renderer,
        converter: RichParser,
        clipboard: Clipboard | None = None,
        clock: Clock | None = None,
        sync_ms: int = 80,
        autosave_ms: int = 2000,
        history_limit: int = DEFAULT_LIMIT,
        placeholder: str = DEFAULT_PLACEHOLDER,
    ):
        self.renderer = renderer
        self.placeholder = placeholder
        self.converter = converter
        self.clipboard = clipboard
        self.sync_ms = sync_ms
        self.autosave_ms = autosave_ms

        self.history = History(history_limit)
        self.scheduler = Debouncer(clock)
        self.mode = "live"
        self.closed = False

        self._handlers: dict[str, list[Handler]] = {}
        self._canonical = ""
        self.document = Document()
        self._draw()

    # ─── Public API ────────────────────────────────────────────────────

    def on(self, event: str, handler: Handler) -> "EditorSession":
        """Subscribe to 'change', 'save' or 'autosave'."""
        if event not in EVENTS:
            raise ValueError(f"Unknown event {event!r}")
        self._handlers.setdefault(event, []).append(handler)
        return self

    def off(self, event: str, handler: Handler) -> "EditorSession":
        if event in self._handlers:
            self._handlers[event] = [h for h in self._handlers[event] if h is not handler]
        return self

    def load(self, content: str | None) -> "EditorSession":
        """Replace the document with Markdown or HTML content (auto-detected).

        History is cleared; no change event is fired.
        """
        self._ensure_open()
        text = content or ""
        if text and self.converter.is_rich(text):
            text = self.converter.to_markdown(text)
        self._canonical = normalize_newlines(text)
        self.history.clear()
        self._draw()
        logger.debug("loaded %d chars into %d blocks", len(self._canonical), len(self.document))
        return self

    def get_canonical_text(self) -> str:
        """The canonical Markdown, including edits still waiting for sync."""
        if self.scheduler.pending(SYNC):
            self.scheduler.flush(SYNC)
        return self._canonical

    def get_rendered_output(self) -> str:
        return self.renderer.render_html(self.get_canonical_text())

    def clear(self) -> "EditorSession":
        """Reset to a single empty line and drop all history."""
        self._ensure_open()
        self.scheduler.cancel()
        self._canonical = ""
        self.history.clear()
        self._draw()
        return self

    def save(self) -> None:
        self._ensure_open()
        canonical = self.get_canonical_text()
        self._emit("save", self.renderer.render_html(canonical), canonical)

    def undo(self) -> bool:
        self._ensure_open()
        self.sync()
        state = self.history.undo(self._canonical)
        if state is None:
            return False
        self._restore(state)
        return True

    def redo(self) -> bool:
        self._ensure_open()
        self.sync()
        state = self.history.redo(self._canonical)
        if state is None:
            return False
        self._restore(state)
        return True

    def poll(self) -> list[str]:
        """Run due debounced tasks; call this from the host event loop."""
        return self.scheduler.poll()

    def destroy(self) -> None:
        """Cancel pending timers and release listeners."""
        self.scheduler.cancel()
        self._handlers.clear()
        self.closed = True

    # ─── Sync ──────────────────────────────────────────────────────────

    def sync(self) -> bool:
        """Serialize the document now. Returns True if the text changed."""
        self._ensure_open()
        self.scheduler.cancel(SYNC)
        previous = self._canonical
        self._canonical = canonicalize(self.document)
        if self._has_fence_lines():
            # a committed line opened a fence: the tree must match parse(canonical)
            self._redraw_keeping_focus()
        if self._canonical == previous:
            return False
        self.history.push(previous)
        logger.debug(
            "synced: %d chars, %d undo states",
            len(self._canonical), len(self.history.undo_stack),
        )
        return True

    def _has_fence_lines(self) -> bool:
        return any(
            not line.editing and FENCE_OPEN_RE.match(line.raw_text)
            for line in self.document.text_lines()
        )

    def _redraw_keeping_focus(self) -> None:
        line = self.document.editing()
        index = self.document.index(line) if line is not None else None
        caret = line.caret if line is not None else 0
        self._draw()
        if index is None or index >= len(self.document):
            return
        target = self.document[index]
        if isinstance(target, TextLine) and target.raw_text == line.raw_text:
            editing.enter_edit(target, caret)

    def defer_sync(self) -> None:
        """Sync after ``sync_ms`` of quiet; repeated calls collapse into one."""
        self._ensure_open()
        self.scheduler.schedule(SYNC, self.sync_ms, self._sync_and_emit)

    def _sync_and_emit(self) -> bool:
        changed = self.sync()
        if changed:
            self._emit_change()
        return changed

    # ─── Focus ─────────────────────────────────────────────────────────

    @property
    def focused(self) -> TextLine | None:
        """The text line in editing state, if any."""
        return self.document.editing()

    def focus(self, block: Block, caret: int = CARET_END) -> Block:
        """Focus a block; any other editing line is committed first."""
        self._ensure_open()
        previous = self.document.editing()
        editing.focus(self.document, block, caret)
        if previous is not None and previous is not block:
            self.defer_sync()
        return block

    def blur(self) -> TextLine | None:
        line = editing.blur(self.document)
        if line is not None:
            self.defer_sync()
        return line

    escape = blur

    def click(self, block: Block | None = None, region: str = "body") -> Block | None:
        """Handle a click on ``block``, or on the empty area when None."""
        self._ensure_open()
        if isinstance(block, CodeBlock):
            return self.focus(block) if block.click(region) else None
        if isinstance(block, TextLine):
            if not block.editing:
                self.focus(block)
            return block
        lines = self.document.text_lines()
        if lines:
            return self.focus(lines[-1])
        line = self.document.append(TextLine(""))
        return self.focus(line)

    # ─── Text line input ───────────────────────────────────────────────

    def edit(self, text: str, caret: int | None = None) -> bool:
        """Replace the source shown in the focused line (an input event)."""
        line = self.focused
        if line is None:
            return False
        type_text(line, text, caret)
        self.defer_sync()
        return True

    def select(self, start: int, end: int) -> None:
        """Select a range of the focused line's source."""
        line = self.focused
        if line is None:
            return
        length = len(line.text)
        start, end = sorted((clamp_caret(start, length), clamp_caret(end, length)))
        line.selection = (start, end) if start != end else None
        line.caret = end

    def insert_at_caret(self, text: str) -> bool:
        """Type ``text`` at the caret of the focused line."""
        line = self.focused
        if line is None:
            return False
        self._replace_selection(line, text)
        self.defer_sync()
        return True

    def _replace_selection(self, line: TextLine, text: str) -> None:
        current = line.text
        start, end = line.selection or (line.caret, line.caret)
        type_text(line, current[:start] + text + current[end:], start + len(text))
        line.selection = None

    def _selected(self, line: TextLine) -> str:
        if line.selection is None:
            return ""
        start, end = line.selection
        return line.text[start:end]

    def enter(self) -> bool:
        """Split the focused line at the caret, continuing list and quote prefixes."""
        line = self.focused
        if line is None:
            return False
        text = line.text
        kind = classify(text)

        if kind in ("bullet", "numbered"):
            marker = (BULLET_RE if kind == "bullet" else NUMBERED_RE).match(text)
            if marker is not None and text.strip() == marker.group(0).strip():
                # empty list item: leave the list
                type_text(line, "")
                new_line = self.document.insert_after(line, TextLine(""))
                commit(line)
                editing.focus(self.document, new_line, CARET_START)
                self._sync_and_emit()
                return True

        pos = line.caret
        before, after = text[:pos], text[pos:]

        prefix = ""
        if kind == "bullet":
            prefix = BULLET_RE.match(text).group(0)
        elif kind == "numbered":
            prefix = f"{int(NUMBERED_RE.match(text).group(1)) + 1}. "
        elif kind == "blockquote":
            prefix = BLOCKQUOTE_RE.match(text).group(0)

        type_text(line, before)
        new_line = self.document.insert_after(line, TextLine(prefix + after))
        commit(line)
        editing.focus(self.document, new_line, len(prefix))
        self._sync_and_emit()
        return True

    def backspace(self) -> bool:
        """Backspace in the focused line. Returns False if there was nothing to do."""
        line = self.focused
        if line is None:
            return False
        text = line.text

        if line.selection is not None:
            self._replace_selection(line, "")
            self.defer_sync()
            return True

        if line.caret > 0:
            pos = line.caret
            type_text(line, text[: pos - 1] + text[pos:], pos - 1)
            self.defer_sync()
            return True

        prev = self.document.previous_navigable(line)

        if text == "":
            commit(line)
            self.document.remove(line)
            if prev is not None:
                editing.focus(self.document, prev, CARET_END)
            else:
                target = self.document.ensure_not_empty() or self.document[0]
                editing.focus(self.document, target, CARET_START)
            self._sync_and_emit()
            return True

        if isinstance(prev, TextLine):
            # merge into the previous line; never into a code block
            joined_at = len(prev.raw_text)
            commit(line)
            self.document.remove(line)
            self.document.set_text(prev, prev.raw_text + text)
            editing.focus(self.document, prev, joined_at)
            self._sync_and_emit()
            return True

        return False

    def arrow_up(self) -> bool:
        line = self.focused
        if line is None:
            return False
        prev = self.document.previous_navigable(line)
        if prev is None:
            return False
        self.focus(prev, CARET_END)
        return True

    def arrow_down(self) -> bool:
        line = self.focused
        if line is None:
            return False
        nxt = self.document.next_navigable(line)
        if nxt is None:
            return False
        self.focus(nxt, CARET_START)
        return True

    def handle_key(
        self,
        key: str,
        ctrl: bool = False,
        shift: bool = False,
        block: CodeBlock | None = None,
    ) -> bool:
        """Dispatch a key press; ``block`` names a code block that has focus.

        Returns True when the key was consumed.
        """
        self._ensure_open()
        if ctrl and key == "s":
            self.save()
            return True
        if ctrl and not shift and key == "z":
            self.undo()
            return True
        if ctrl and (key == "y" or (shift and key in ("z", "Z"))):
            self.redo()
            return True
        if block is not None:
            return self.code_key(block, key)
        if ctrl and key == "b":
            return self._wrap_selection("**")
        if ctrl and key == "i":
            return self._wrap_selection("*")

        if self.focused is None:
            return False
        if key == "Escape":
            self.escape()
            return True
        if key == "Tab":
            return self.insert_at_caret(TAB)
        if key == "Enter" and not shift:
            return self.enter()
        if key == "Backspace":
            return self.backspace()
        if key == "ArrowUp":
            return self.arrow_up()
        if key == "ArrowDown":
            return self.arrow_down()
        return False

    # ─── Code blocks ───────────────────────────────────────────────────

    def code_input(self, block: CodeBlock, code: str, caret: int | None = None) -> None:
        self.document.index(block)
        block.set_code(code)
        if caret is not None:
            block.caret = clamp_caret(caret, len(code))

    def code_key(self, block: CodeBlock, key: str) -> bool:
        self.document.index(block)
        if key == "Tab":
            block.insert_tab()
            return True
        if key == "ArrowUp":
            nav, target = block.key_up(), self.document.previous_navigable(block)
        elif key == "ArrowDown":
            nav, target = block.key_down(), self.document.next_navigable(block)
        else:
            return False
        if nav is None or target is None:
            return False
        self.focus(target, CARET_START if nav.edge == "start" else CARET_END)
        return True

    def code_copy(self, block: CodeBlock) -> str:
        if self.clipboard is None:
            return block.code
        return block.copy(self.clipboard)

    def insert_code_block(self, language: str = "", code: str = "") -> CodeBlock:
        """Insert a code block after the focused line (or at the end) and focus it."""
        self._ensure_open()
        line = self.focused
        if line is not None:
            commit(line)
        block = CodeBlock(language=language, code=code)
        self._attach(block)
        self.document.insert_after(line, block)
        editing.focus(self.document, block, CARET_START)
        self._sync_and_emit()
        return block

    def _on_code_change(self, block: CodeBlock) -> None:
        if not self.closed and block in self.document:
            self.defer_sync()

    def _attach(self, block: Block) -> None:
        if isinstance(block, CodeBlock):
            block.on_change = self._on_code_change

    # ─── Paste ─────────────────────────────────────────────────────────

    def insert_text(self, text: str) -> None:
        """Insert possibly multi-line Markdown at the caret (paste)."""
        self._ensure_open()
        lines = normalize_newlines(text).split("\n")
        line = self.focused

        if line is None:
            for item in lines:
                self.document.append(TextLine(item))
            self._sync_and_emit()
            return

        if len(lines) == 1:
            self._replace_selection(line, text)
            self._sync_and_emit()
            return

        current = line.text
        start, end = line.selection or (line.caret, line.caret)
        parts = [current[:start] + lines[0], *lines[1:-1], lines[-1] + current[end:]]

        type_text(line, parts[0])
        commit(line)
        ref: TextLine = line
        for part in parts[1:]:
            ref = self.document.insert_after(ref, TextLine(part))
        editing.focus(self.document, ref, len(lines[-1]))
        self._sync_and_emit()

    def paste(self, html: str | None = None, plain: str | None = None) -> bool:
        """Paste a clipboard payload, preferring rich markup."""
        if html and self.converter.is_rich(html):
            self.insert_text(self.converter.to_markdown(html))
            return True
        if plain:
            self.insert_text(plain)
            return True
        return False

    def insert_image(self, name: str, data_url: str) -> None:
        """Completion of an image read (paste or drop)."""
        self.insert_text(f"![{name or 'image'}]({data_url})")

    # ─── Toolbar commands ──────────────────────────────────────────────

    def command(self, name: str, **kwargs: Any) -> bool:
        """Run a toolbar command. ``link``/``image`` take ``url``, ``codeblock`` takes ``language``."""
        self._ensure_open()
        if name == "undo":
            return self.undo()
        if name == "redo":
            return self.redo()
        if name not in SNIPPETS:
            raise UnknownCommandError(name)

        line = self.focused
        if line is None:
            self.sync()
            snippet = SNIPPETS[name]
            self._replace_text(f"{self._canonical}\n{snippet}" if self._canonical else snippet)
            return True

        if name in HEADING_PREFIXES:
            prefix = HEADING_PREFIXES[name]
            current = line.text
            clean = _HEADING_STRIP_RE.sub("", current, count=1)
            type_text(line, clean if current.startswith(prefix) else prefix + clean)
        elif name in WRAP_MARKERS:
            self._wrap_selection(WRAP_MARKERS[name])
        elif name in ("link", "image"):
            url = kwargs.get("url")
            if not url:
                return False
            selected = self._selected(line)
            if name == "link":
                self._replace_selection(line, f"[{selected or 'text'}]({url})")
            else:
                self._replace_selection(line, f"![{selected or 'alt'}]({url})")
        elif name == "codeblock":
            self.insert_code_block(kwargs.get("language", ""))
            return True
        elif name in LINE_PREFIXES:
            self._toggle_prefix(line, LINE_PREFIXES[name])
        elif name == "hr":
            commit(line)
            self.document.insert_after(line, TextLine("---"))
        elif name == "table":
            commit(line)
            ref: Block = line
            for row in TABLE_ROWS:
                ref = self.document.insert_after(ref, TextLine(row))

        self._sync_and_emit()
        return True

    def _wrap_selection(self, marker: str) -> bool:
        line = self.focused
        if line is None:
            return False
        selected = self._selected(line)
        if selected:
            self._replace_selection(line, f"{marker}{selected}{marker}")
        else:
            self._replace_selection(line, marker * 2)
            line.caret -= len(marker)
        self.defer_sync()
        return True

    def _toggle_prefix(self, line: TextLine, prefix: str) -> None:
        current = line.text
        clean = _PREFIX_STRIP_RE.sub("", current, count=1)
        type_text(line, clean if current.startswith(prefix) else prefix + clean)

    # ─── Modes ─────────────────────────────────────────────────────────

    def set_mode(self, mode: str) -> None:
        """Switch between live editing, source and read-only preview."""
        if mode not in MODES:
            raise ValueError(f"Unknown mode {mode!r}")
        self.blur()
        self.scheduler.flush(SYNC)
        self.mode = mode

    def set_source(self, text: str) -> None:
        """Apply an edit made to the whole source text (source mode)."""
        self._replace_text(normalize_newlines(text))

    # ─── Read-only helpers ─────────────────────────────────────────────

    def word_count(self) -> int:
        text = _WORD_FENCE_RE.sub(" ", self._canonical)
        text = _WORD_MARKUP_RE.sub(" ", text).strip()
        return len(text.split()) if text else 0

    def is_placeholder_visible(self) -> bool:
        return len(self.document) == 1 and not self._canonical.strip()

    def placeholder_text(self) -> str | None:
        """The placeholder to show, or None while the document has content."""
        return self.placeholder if self.is_placeholder_visible() else None

    # ─── Internals ─────────────────────────────────────────────────────

    def _ensure_open(self) -> None:
        if self.closed:
            raise SessionClosedError("editor session has been destroyed")

    def _draw(self) -> None:
        """Rebuild the document from the canonical string."""
        self.scheduler.cancel(SYNC)
        self.document = parse(self._canonical)
        # fences are re-emitted in one form, keep the string in step
        self._canonical = canonicalize(self.document)
        for block in self.document:
            self._attach(block)

    def _restore(self, state: str) -> None:
        self._canonical = state
        self._draw()
        self._emit_change()

    def _replace_text(self, text: str) -> None:
        """Replace the canonical string as one undoable edit."""
        self.sync()
        if text == self._canonical:
            return
        self.history.push(self._canonical)
        self._restore(text)

    def _emit(self, event: str, *args: Any) -> None:
        for handler in list(self._handlers.get(event, [])):
            handler(*args)

    def _emit_change(self) -> None:
        canonical = self._canonical
        self._emit("change", self.renderer.render_html(canonical), canonical)
        self.scheduler.schedule(AUTOSAVE, self.autosave_ms, self._autosave)

    def _autosave(self) -> None:
        canonical = self._canonical
        self._emit("autosave", self.renderer.render_html(canonical), canonical)
