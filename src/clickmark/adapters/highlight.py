import html
import logging

from pygments import highlight as pygments_highlight
from pygments.formatters.html import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

from ..core.ports import Highlighter

logger = logging.getLogger(__name__)

PLAINTEXT = "plaintext"


def escape_code(code: str) -> str:
    return html.escape(code, quote=False)


class PygmentsHighlighter(Highlighter):
    def __init__(self, style: str = "monokai"):
        self.style = style
        self._formatter = HtmlFormatter(style=style, nowrap=True)
        self._lexer_cache: dict[str, object | None] = {}

    def _lexer(self, language: str):
        key = (language or "").strip().lower()
        if key in self._lexer_cache:
            return self._lexer_cache[key]
        lexer = None
        if key and key != PLAINTEXT:
            try:
                lexer = get_lexer_by_name(key, stripnl=False, ensurenl=False)
            except ClassNotFound:
                lexer = None
            # pygments' own plain-text lexer is not worth a pass
            if lexer is not None and "text" in lexer.aliases:
                lexer = None
        self._lexer_cache[key] = lexer
        return lexer

    def resolve_language(self, language: str) -> str:
        """The language tag a fence is presented with, or ``plaintext``."""
        return (language or "").strip().lower() if self._lexer(language) else PLAINTEXT

    def highlight(self, language: str, code: str) -> str:
        lexer = self._lexer(language)
        if lexer is None:
            return escape_code(code)
        try:
            return pygments_highlight(code, lexer, self._formatter)
        except Exception as e:
            logger.warning("highlighting %r failed, using plain text: %s", language, e)
            return escape_code(code)

    def stylesheet(self, selector: str = ".hljs") -> str:
        """CSS for the configured pygments style."""
        return self._formatter.get_style_defs(selector)
