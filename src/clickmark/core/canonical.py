"""Document -> canonical Markdown string."""

from .codeblock import CodeBlock
from .editing import capture
from .model import Document

FENCE = "```"


def block_lines(block) -> list[str]:
    if isinstance(block, CodeBlock):
        return [FENCE + block.language, *block.code.split("\n"), FENCE]
    return [block.raw_text]


def canonicalize(doc: Document) -> str:
    """Serialize ``doc`` in order, joining every emitted line with ``\\n``.

    The source shown by a line in editing state is captured first so the text
    the user sees is what gets written; the line keeps its focus.
    """
    editing = doc.editing()
    if editing is not None:
        capture(editing)

    parts: list[str] = []
    for block in doc:
        parts.extend(block_lines(block))
    return "\n".join(parts)
