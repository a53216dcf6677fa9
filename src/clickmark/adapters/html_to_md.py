"""Rich markup (HTML) -> canonical Markdown.

Used when content is loaded or pasted as HTML. Every element maps to a fixed
Markdown template; unknown elements fall through to their children so no text
is lost.
"""

import logging
import re

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import Comment, Declaration, Doctype, ProcessingInstruction

from ..core.ports import RichParser

logger = logging.getLogger(__name__)

RICH_RE = re.compile(r"<[a-z][\s\S]*>", re.IGNORECASE)
LANGUAGE_CLASS_RE = re.compile(r"language-(\w+)")
BLANK_RUN_RE = re.compile(r"\n{3,}")

# Never part of the visible document.
_SKIP_TAGS = {"head", "script", "style", "template", "title"}
_SKIP_STRINGS = (Comment, Declaration, Doctype, ProcessingInstruction)


def is_rich_markup(text: str) -> bool:
    """True if ``text`` contains something that looks like an HTML tag."""
    return bool(text) and RICH_RE.search(text) is not None


def _children(node: Tag) -> str:
    return "".join(_walk(child) for child in node.children)


def _element_children(node: Tag) -> list[Tag]:
    return [c for c in node.children if isinstance(c, Tag)]


def _language(code: Tag | None) -> str:
    if code is None:
        return ""
    classes = code.get("class") or []
    if isinstance(classes, str):
        classes = classes.split()
    m = LANGUAGE_CLASS_RE.search(" ".join(classes))
    return m.group(1) if m else ""


def _table(node: Tag) -> str:
    rows = node.find_all("tr")
    if not rows:
        return ""
    heads = [c.get_text().strip() for c in rows[0].find_all(["th", "td"])]
    md = f"| {' | '.join(heads)} |\n"
    md += f"| {' | '.join('---' for _ in heads)} |\n"
    for row in rows[1:]:
        cells = [c.get_text().strip() for c in row.find_all("td")]
        md += f"| {' | '.join(cells)} |\n"
    return md


def _walk(node) -> str:
    if isinstance(node, _SKIP_STRINGS):
        return ""
    if isinstance(node, NavigableString):
        return str(node)
    if not isinstance(node, Tag):
        return ""

    tag = node.name.lower()
    if tag in _SKIP_TAGS:
        return ""

    if tag in ("h1", "h2", "h3", "h4", "h5", "h6"):
        return f"{'#' * int(tag[1])} {_children(node).strip()}\n"
    if tag == "p":
        content = _children(node).strip()
        return f"{content}\n" if content else ""
    if tag in ("strong", "b"):
        return f"**{_children(node)}**"
    if tag in ("em", "i"):
        return f"*{_children(node)}*"
    if tag in ("del", "s", "strike"):
        return f"~~{_children(node)}~~"
    if tag == "a":
        return f"[{_children(node)}]({node.get('href') or ''})"
    if tag == "img":
        return f"![{node.get('alt') or ''}]({node.get('src') or ''})"
    if tag == "br":
        return "\n"
    if tag == "hr":
        return "---\n"
    if tag == "blockquote":
        lines = _children(node).strip().split("\n")
        return "\n".join(f"> {line}" for line in lines) + "\n"
    if tag == "code":
        parent = node.parent
        if parent is not None and parent.name == "pre":
            return node.get_text()
        return f"`{node.get_text()}`"
    if tag == "pre":
        code = node.find("code")
        text = (code if code is not None else node).get_text()
        if text.endswith("\n"):
            text = text[:-1]
        return f"```{_language(code)}\n{text}\n```\n"
    if tag == "ul":
        items = [f"- {_walk(li).strip()}" for li in _element_children(node)]
        return "\n".join(items) + "\n"
    if tag == "ol":
        items = [
            f"{i}. {_walk(li).strip()}"
            for i, li in enumerate(_element_children(node), start=1)
        ]
        return "\n".join(items) + "\n"
    if tag == "li":
        return _children(node).strip()
    if tag == "table":
        return _table(node)

    return _children(node)


def html_to_markdown(html: str) -> str:
    """Convert an HTML string to canonical Markdown."""
    if not html:
        return ""
    soup = BeautifulSoup(html, "html.parser")
    root = soup.body if soup.body is not None else soup
    text = _walk(root) if root is not soup else _children(soup)
    return BLANK_RUN_RE.sub("\n\n", text).strip()


class HtmlConverter(RichParser):
    def is_rich(self, text: str) -> bool:
        return is_rich_markup(text)

    def to_markdown(self, html: str) -> str:
        """Convert, or hand the input back untouched if conversion fails."""
        try:
            return html_to_markdown(html)
        except Exception as e:
            logger.warning("HTML conversion failed, keeping input as Markdown: %s", e)
            return html
