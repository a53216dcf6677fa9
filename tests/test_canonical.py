"""Tests for document serialization and parsing."""

from clickmark.core.canonical import canonicalize
from clickmark.core.codeblock import CodeBlock
from clickmark.core.editing import enter_edit, type_text
from clickmark.core.model import Document, TextLine
from clickmark.core.structure import parse


def test_canonicalize_code_between_lines():
    """Test a code block is fenced between its neighbours."""
    doc = Document([
        TextLine("Before"),
        CodeBlock(language="go", code="fmt.Println(1)"),
        TextLine("After"),
    ])
    assert canonicalize(doc) == "Before\n```go\nfmt.Println(1)\n```\nAfter"


def test_canonicalize_multiline_and_empty_code():
    """Test code lines are written verbatim, including empty code."""
    doc = Document([CodeBlock("", "a\n\n  b"), CodeBlock("js", "")])
    assert canonicalize(doc) == "```\na\n\n  b\n```\n```js\n\n```"


def test_canonicalize_captures_editing_line():
    """Test the source being edited is what gets written."""
    line = TextLine("old")
    doc = Document([TextLine("first"), line])
    enter_edit(line)
    type_text(line, "new")

    assert canonicalize(doc) == "first\nnew"
    assert line.editing
    assert line.raw_text == "new"


def test_canonicalize_empty_lines():
    """Test empty lines are kept as blank lines."""
    doc = Document([TextLine("a"), TextLine(""), TextLine("b")])
    assert canonicalize(doc) == "a\n\nb"


def test_parse_empty_input():
    """Test empty input gives one empty line."""
    doc = parse("")
    assert len(doc) == 1
    assert doc[0].raw_text == ""


def test_parse_lines_verbatim():
    """Test text lines are kept byte for byte."""
    doc = parse("# Title\n\nSome *text*.\n")
    assert [b.raw_text for b in doc] == ["# Title", "", "Some *text*.", ""]
    assert [b.kind for b in doc] == ["h1", "empty", "paragraph", "empty"]
    assert doc[2].rendered == "Some <em>text</em>."


def test_parse_normalizes_newlines():
    """Test CRLF and CR line breaks."""
    doc = parse("a\r\nb\rc")
    assert [b.raw_text for b in doc] == ["a", "b", "c"]


def test_parse_fenced_code():
    """Test a closed fence becomes one code block."""
    doc = parse("intro\n```python\nx = 1\n\ny = 2\n```\noutro")
    assert len(doc) == 3
    code = doc[1]
    assert isinstance(code, CodeBlock)
    assert code.language == "python"
    assert code.code == "x = 1\n\ny = 2"
    assert doc[2].raw_text == "outro"


def test_parse_unterminated_fence():
    """Test an unclosed fence swallows the rest of the input."""
    doc = parse("```py\nline1\nline2")
    assert len(doc) == 1
    assert doc[0].language == "py"
    assert doc[0].code == "line1\nline2"


def test_parse_tilde_fence():
    """Test tilde fences are recognized."""
    doc = parse("~~~\ncode\n~~~")
    assert len(doc) == 1
    assert doc[0].code == "code"
    assert doc[0].language == ""


def test_parse_empty_code_block():
    """Test a fence closed right away."""
    doc = parse("```js\n```")
    assert doc[0].language == "js"
    assert doc[0].code == ""


def test_round_trip_is_stable():
    """Test parse then canonicalize returns the same text."""
    text = "# T\n\n```go\nfunc main() {}\n```\n- a\n- b\n\n> quote"
    assert canonicalize(parse(text)) == text
    assert canonicalize(parse(canonicalize(parse(text)))) == text


def test_unterminated_fence_is_closed():
    """Test canonical output always closes fences."""
    text = canonicalize(parse("```py\nline1\nline2"))
    assert text == "```py\nline1\nline2\n```"
    assert canonicalize(parse(text)) == text


def test_round_trip_varied_documents():
    """Test canonical text re-parses to a document with the same text."""
    documents = [
        Document([TextLine("")]),
        Document([TextLine("# H"), TextLine(""), TextLine("- a")]),
        Document([CodeBlock("py", "a\n\nb")]),
        Document([CodeBlock("", "")]),
        Document([CodeBlock("", "\n")]),
        Document([TextLine("x"), CodeBlock("js", "  indented\n"), TextLine("")]),
        Document([CodeBlock("a", "1"), CodeBlock("b", "2")]),
        Document([TextLine("> q"), TextLine("1. n"), TextLine("---"), TextLine("~~strike~~")]),
        Document([TextLine("``inline``"), TextLine("~~"), CodeBlock("", "~~ not a fence")]),
    ]
    for doc in documents:
        text = canonicalize(doc)
        assert canonicalize(parse(text)) == text, text
