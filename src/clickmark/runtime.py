"""Runtime wiring helper for CLI and API applications."""

from dataclasses import dataclass
from pathlib import Path

from .adapters.clipboard import MemoryClipboard
from .adapters.highlight import PygmentsHighlighter
from .adapters.html_to_md import HtmlConverter
from .adapters.md_to_html import MarkdownRenderer
from .config import ClickmarkConfig, load_config
from .core.ports import Clock
from .session import EditorSession


@dataclass
class Runtime:
    """Container for all wired components."""
    config: ClickmarkConfig
    highlighter: PygmentsHighlighter
    renderer: MarkdownRenderer
    converter: HtmlConverter
    clipboard: MemoryClipboard

    def new_session(self, content: str | None = None, clock: Clock | None = None) -> EditorSession:
        session = EditorSession(
            renderer=self.renderer,
            converter=self.converter,
            clipboard=self.clipboard,
            clock=clock,
            sync_ms=self.config.timing.sync_ms,
            autosave_ms=self.config.timing.autosave_ms,
            history_limit=self.config.history.limit,
            placeholder=self.config.editor.placeholder,
        )
        if content:
            session.load(content)
        return session


def build_runtime(config_path: Path | None = None) -> Runtime:
    """Build and wire all components."""
    config = load_config(config_path=config_path)

    highlighter = PygmentsHighlighter(style=config.render.pygments_style)
    renderer = MarkdownRenderer(highlighter, extensions=config.render.extensions)

    return Runtime(
        config=config,
        highlighter=highlighter,
        renderer=renderer,
        converter=HtmlConverter(),
        clipboard=MemoryClipboard(),
    )
