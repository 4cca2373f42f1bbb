"""
Bounded undo/redo history of full plan snapshots.

Linear discipline: recording a new snapshot clears the redo stack.
"""

from collections import deque
from typing import Deque, List, Optional

from src.pedagogy.plan import Plan


class SnapshotHistory:
    """Undo/redo over deep-copied Plan snapshots."""

    def __init__(self, limit: int = 50):
        if limit < 1:
            raise ValueError("history limit must be positive")
        self.limit = limit
        self._undo: Deque[Plan] = deque(maxlen=limit)
        self._redo: List[Plan] = []

    @property
    def can_undo(self) -> bool:
        return bool(self._undo)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    def __len__(self) -> int:
        return len(self._undo)

    def record(self, previous: Plan) -> None:
        """Remember ``previous`` before it is replaced; oldest entry drops at the cap."""
        self._undo.append(previous.model_copy(deep=True))
        self._redo.clear()

    def undo(self, current: Plan) -> Optional[Plan]:
        """Snapshot to restore, or None when there is nothing to undo."""
        if not self._undo:
            return None
        self._redo.append(current.model_copy(deep=True))
        return self._undo.pop()

    def redo(self, current: Plan) -> Optional[Plan]:
        if not self._redo:
            return None
        self._undo.append(current.model_copy(deep=True))
        return self._redo.pop()

    def clear(self) -> None:
        self._undo.clear()
        self._redo.clear()
