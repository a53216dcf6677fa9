from typing import Protocol


class Highlighter(Protocol):
    """
    Syntax highlighting for code fences. MUST NOT raise: unknown languages
    and internal failures fall back to escaped plain text.
    """

    def highlight(self, language: str, code: str) -> str:
        pass

    def resolve_language(self, language: str) -> str:
        pass


class Renderer(Protocol):
    """
    Canonical Markdown to presentation HTML (preview and exported value).
    """

    def render_html(self, canonical: str) -> str:
        pass


class RichParser(Protocol):
    """
    Detect rich markup (HTML) input and convert it to canonical Markdown.
    """

    def is_rich(self, text: str) -> bool:
        pass

    def to_markdown(self, html: str) -> str:
        pass


class Clipboard(Protocol):
    def write_text(self, text: str) -> None:
        pass


class Clock(Protocol):
    def now(self) -> float:
        """Monotonic seconds."""
        pass
