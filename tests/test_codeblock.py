"""Tests for the code block unit."""

from clickmark.adapters.clipboard import MemoryClipboard
from clickmark.core.codeblock import CodeBlock, Navigation


def test_label():
    """Test the header label falls back to 'code'."""
    assert CodeBlock("rust").label == "rust"
    assert CodeBlock("").label == "code"


def test_insert_tab():
    """Test Tab inserts two spaces at the caret."""
    block = CodeBlock("py", "x", caret=0)
    block.insert_tab()
    assert block.code == "  x"
    assert block.caret == 2


def test_insert_tab_replaces_selection():
    """Test Tab replaces a selection."""
    block = CodeBlock("py", "abcdef", selection=(1, 4))
    block.insert_tab()
    assert block.code == "a  ef"
    assert block.caret == 3
    assert block.selection is None


def test_set_code_clamps_caret():
    """Test the caret stays inside shorter code."""
    block = CodeBlock("", "long text", caret=9)
    block.set_code("ab")
    assert block.caret == 2


def test_on_change_called():
    """Test edits notify the owner."""
    seen = []
    block = CodeBlock("", "", on_change=seen.append)
    block.set_code("a")
    block.insert_tab()
    assert seen == [block, block]


def test_key_up_only_at_start():
    """Test ArrowUp leaves the block only from offset 0."""
    block = CodeBlock("", "ab\ncd", caret=1)
    assert block.key_up() is None
    block.caret = 0
    assert block.key_up() == Navigation("up", "end")


def test_key_down_only_at_end():
    """Test ArrowDown leaves the block only from the last offset."""
    block = CodeBlock("", "ab\ncd", caret=2)
    assert block.key_down() is None
    block.caret = 5
    assert block.key_down() == Navigation("down", "start")


def test_copy():
    """Test copy puts the verbatim code on the clipboard."""
    clipboard = MemoryClipboard()
    block = CodeBlock("sh", "echo 'hi'\n  indented")
    assert block.copy(clipboard) == "echo 'hi'\n  indented"
    assert clipboard.text == "echo 'hi'\n  indented"


def test_click_regions():
    """Test header clicks do not focus the code."""
    block = CodeBlock("py", "x")
    assert block.click("body") is True
    assert block.click("header") is False
    assert block.click("copy") is False
    assert block.click("language") is False
