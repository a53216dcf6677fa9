"""Canonical Markdown -> presentation HTML via python-markdown.

Fenced code is cut out with the structural parser and presented by the
highlighter; the text between fences goes through python-markdown.
"""

import html
import logging
import xml.etree.ElementTree as etree

import markdown
from markdown.extensions import Extension
from markdown.inlinepatterns import SimpleTagInlineProcessor
from markdown.treeprocessors import Treeprocessor

from ..core.codeblock import CodeBlock
from ..core.ports import Highlighter, Renderer
from ..core.structure import parse
from .highlight import PygmentsHighlighter

logger = logging.getLogger(__name__)

DEFAULT_EXTENSIONS = ["tables", "nl2br", "sane_lists"]

STRIKE_RE = r"(~{2})(.+?)~{2}"


class ExternalLinkTreeprocessor(Treeprocessor):
    """Open links in a new tab and lazy-load images."""

    def run(self, root: etree.Element) -> None:
        for el in root.iter("a"):
            el.set("target", "_blank")
            el.set("rel", "noopener")
        for el in root.iter("img"):
            el.set("loading", "lazy")


class ClickmarkExtension(Extension):
    def extendMarkdown(self, md: markdown.Markdown) -> None:
        # below backticks (190) so code spans win, above emphasis (60)
        md.inlinePatterns.register(SimpleTagInlineProcessor(STRIKE_RE, "del"), "del", 65)
        md.treeprocessors.register(ExternalLinkTreeprocessor(md), "external_links", 5)


def render_code_block(highlighter: Highlighter, language: str, code: str) -> str:
    lang = highlighter.resolve_language(language)
    body = highlighter.highlight(language, code)
    label = html.escape(lang)
    return (
        '<div class="prv-cb">'
        f'<div class="prv-cb-h"><span>{label}</span></div>'
        f'<pre><code class="hljs language-{label}">{body}</code></pre>'
        "</div>"
    )


class MarkdownRenderer(Renderer):
    def __init__(
        self,
        highlighter: Highlighter | None = None,
        extensions: list[str] | None = None,
    ):
        self.highlighter = highlighter or PygmentsHighlighter()
        self.extensions = list(DEFAULT_EXTENSIONS if extensions is None else extensions)
        self._md = markdown.Markdown(extensions=[*self.extensions, ClickmarkExtension()])

    def _markdown(self, text: str) -> str:
        self._md.reset()
        return self._md.convert(text)

    def render_html(self, canonical: str) -> str:
        if not canonical:
            return ""
        try:
            return self._render(canonical)
        except Exception as e:
            logger.warning("markdown rendering failed, using escaped text: %s", e)
            return f"<p>{html.escape(canonical, quote=False)}</p>"

    def _render(self, canonical: str) -> str:
        out: list[str] = []
        run: list[str] = []

        def flush_run() -> None:
            if run:
                rendered = self._markdown("\n".join(run))
                if rendered:
                    out.append(rendered)
                run.clear()

        for block in parse(canonical):
            if isinstance(block, CodeBlock):
                flush_run()
                out.append(render_code_block(self.highlighter, block.language, block.code))
            else:
                run.append(block.raw_text)
        flush_run()
        return "\n".join(out)


def render_page(body: str, stylesheet: str = "", title: str = "") -> str:
    """Wrap rendered HTML in a standalone page."""
    return (
        "<!doctype html>\n"
        '<html><head><meta charset="utf-8">'
        f"<title>{html.escape(title)}</title>"
        f"<style>{stylesheet}</style>"
        "</head>\n"
        f"<body>\n{body}\n</body></html>\n"
    )
