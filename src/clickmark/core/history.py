"""Bounded undo/redo over canonical-string snapshots.

- push() records the state *before* a change and clears redo
- undo()/redo() swap the current state with the top of the other stack
- the undo stack keeps at most ``limit`` snapshots, oldest evicted first
"""

import logging
from collections import deque

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 150


class History:
    def __init__(self, limit: int = DEFAULT_LIMIT) -> None:
        self.limit = limit
        self._undo: deque[str] = deque(maxlen=limit)
        self._redo: list[str] = []

    def push(self, snapshot: str) -> bool:
        """Record a snapshot from a regular edit. Returns True if stored.

        Redo is invalidated even when the snapshot repeats the top of the
        undo stack.
        """
        self._redo.clear()
        if self._undo and self._undo[-1] == snapshot:
            return False
        self._undo.append(snapshot)
        return True

    def undo(self, current: str) -> str | None:
        """Return the previous state, or None when there is nothing to undo."""
        if not self._undo:
            return None
        self._redo.append(current)
        state = self._undo.pop()
        logger.debug("undo: %d left, %d redoable", len(self._undo), len(self._redo))
        return state

    def redo(self, current: str) -> str | None:
        if not self._redo:
            return None
        self._undo.append(current)
        return self._redo.pop()

    def clear(self) -> None:
        self._undo.clear()
        self._redo.clear()

    @property
    def can_undo(self) -> bool:
        return bool(self._undo)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    @property
    def undo_stack(self) -> tuple[str, ...]:
        """Oldest first."""
        return tuple(self._undo)

    @property
    def redo_stack(self) -> tuple[str, ...]:
        return tuple(self._redo)
