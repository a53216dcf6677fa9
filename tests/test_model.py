"""Tests for the block model."""

import pytest

from clickmark.core.codeblock import CodeBlock
from clickmark.core.model import Document, TextLine, describe_block
from clickmark.errors import DetachedBlockError


def test_text_line_renders_on_creation():
    """Test a new line starts rendered with its preview HTML."""
    line = TextLine("**x**")
    assert line.edit_state == "rendered"
    assert line.rendered == "<strong>x</strong>"
    assert line.text == "**x**"


def test_kind_follows_raw_text():
    """Test kind is derived from the source text."""
    line = TextLine("## Two")
    assert line.kind == "h2"
    line.raw_text = "- now a list"
    assert line.kind == "bullet"


def test_insert_after_and_remove():
    """Test ordered insertion and removal."""
    a, b, c = TextLine("a"), TextLine("b"), TextLine("c")
    doc = Document([a, c])
    doc.insert_after(a, b)
    assert [line.raw_text for line in doc] == ["a", "b", "c"]

    doc.remove(b)
    assert [line.raw_text for line in doc] == ["a", "c"]


def test_insert_after_none_appends():
    """Test that a missing reference appends."""
    doc = Document([TextLine("a")])
    doc.insert_after(None, TextLine("z"))
    assert doc[1].raw_text == "z"


def test_identity_membership():
    """Test blocks are compared by identity, not by value."""
    a = TextLine("same")
    doc = Document([a])
    assert a in doc
    assert TextLine("same") not in doc
    assert doc.index(a) == 0


def test_detached_block_raises():
    """Test operations with a block that is not in the document."""
    doc = Document([TextLine("a")])
    stray = TextLine("stray")
    with pytest.raises(DetachedBlockError):
        doc.index(stray)
    with pytest.raises(DetachedBlockError):
        doc.remove(stray)
    with pytest.raises(DetachedBlockError):
        doc.insert_after(stray, TextLine("x"))


def test_neighbours():
    """Test previous and next navigable blocks."""
    a, code, b = TextLine("a"), CodeBlock("py", "x"), TextLine("b")
    doc = Document([a, code, b])
    assert doc.previous_navigable(a) is None
    assert doc.previous_navigable(b) is code
    assert doc.next_navigable(a) is code
    assert doc.next_navigable(b) is None


def test_set_text_rendered_line():
    """Test set_text refreshes the preview of a rendered line."""
    line = TextLine("old")
    doc = Document([line])
    doc.set_text(line, "*new*")
    assert line.raw_text == "*new*"
    assert line.rendered == "<em>new</em>"
    assert line.edit_state == "rendered"


def test_set_text_editing_line():
    """Test set_text keeps an editing line in editing state."""
    line = TextLine("hello", edit_state="editing", display="hello", caret=5)
    doc = Document([line])
    doc.set_text(line, "hi")
    assert line.editing
    assert line.display == "hi"
    assert line.caret == 2


def test_editing_lookup():
    """Test finding the line in editing state."""
    a = TextLine("a")
    b = TextLine("b", edit_state="editing", display="b")
    doc = Document([a, b])
    assert doc.editing() is b


def test_ensure_not_empty():
    """Test an empty document gets one empty line."""
    doc = Document()
    line = doc.ensure_not_empty()
    assert line is not None
    assert len(doc) == 1
    assert doc.ensure_not_empty() is None


def test_text_lines_and_code_blocks():
    """Test filtering blocks by type."""
    doc = Document([TextLine("a"), CodeBlock("", "x"), TextLine("b")])
    assert len(doc.text_lines()) == 2
    assert len(doc.code_blocks()) == 1


def test_describe_block():
    """Test plain-data views of blocks."""
    assert describe_block(CodeBlock("go", "x")) == {
        "type": "code", "language": "go", "code": "x"
    }
    data = describe_block(TextLine("# T"))
    assert data["type"] == "text"
    assert data["kind"] == "h1"
    assert data["raw"] == "# T"
    assert data["state"] == "rendered"
    assert data["html"] == "T"
