"""Tests for undo/redo history."""

from clickmark.core.history import DEFAULT_LIMIT, History


def test_default_limit():
    """Test the default cap."""
    assert DEFAULT_LIMIT == 150
    assert History().limit == 150


def test_undo_redo_cycle():
    """Test undo returns the previous state and redo brings it back."""
    history = History()
    history.push("a")
    history.push("ab")

    assert history.undo("abc") == "ab"
    assert history.undo("ab") == "a"
    assert history.undo("a") is None
    assert history.redo("a") == "ab"
    assert history.redo("ab") == "abc"
    assert history.redo("abc") is None


def test_push_clears_redo():
    """Test a new edit invalidates redo."""
    history = History()
    history.push("a")
    history.undo("b")
    assert history.can_redo

    history.push("a")
    assert not history.can_redo


def test_duplicate_push_skipped():
    """Test repeated snapshots are stored once."""
    history = History()
    assert history.push("a") is True
    assert history.push("a") is False
    assert history.undo_stack == ("a",)


def test_empty_snapshot_is_kept():
    """Test the empty document is a valid undo state."""
    history = History()
    history.push("")
    assert history.undo("x") == ""


def test_limit_evicts_oldest():
    """Test the undo stack is bounded."""
    history = History()
    for i in range(151):
        history.push(str(i))

    assert len(history.undo_stack) == 150
    assert history.undo_stack[0] == "1"
    assert history.undo_stack[-1] == "150"


def test_limit_holds_through_redo():
    """Test redo cannot grow the undo stack past its limit."""
    history = History(limit=3)
    for s in "abc":
        history.push(s)
    history.undo("d")
    history.redo("c")
    history.redo("d")
    assert len(history.undo_stack) <= 3


def test_clear():
    """Test clear drops both stacks."""
    history = History()
    history.push("a")
    history.undo("b")
    history.clear()
    assert not history.can_undo
    assert not history.can_redo
