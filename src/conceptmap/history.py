"""Bounded undo/redo of whole-graph snapshots for one conversation."""
from __future__ import annotations
from collections import deque
from typing import Deque, Optional

from .models.graph import KnowledgeGraph, empty_graph
from .palettes import default_palette

DEFAULT_HISTORY_CAPACITY = 3


class HistoryManager:
    def __init__(self, capacity: int = DEFAULT_HISTORY_CAPACITY, sentinel_palette_id: Optional[str] = None):
        if capacity < 1:
            raise ValueError(f"History capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._sentinel_palette_id = sentinel_palette_id or default_palette().id
        # deque(maxlen) evicts the oldest entry on overflow
        self._undo: Deque[Optional[KnowledgeGraph]] = deque(maxlen=capacity)
        self._redo: Deque[Optional[KnowledgeGraph]] = deque(maxlen=capacity)

    @staticmethod
    def _copy(graph: Optional[KnowledgeGraph]) -> Optional[KnowledgeGraph]:
        return graph.model_copy(deep=True) if graph is not None else None

    @property
    def undo_depth(self) -> int:
        return len(self._undo)

    @property
    def redo_depth(self) -> int:
        return len(self._redo)

    def can_undo(self) -> bool:
        return bool(self._undo)

    def can_redo(self) -> bool:
        return bool(self._redo)

    def record_checkpoint(self, current: Optional[KnowledgeGraph]) -> None:
        """Snapshot the graph about to be replaced. Clears the redo stack."""
        if current is None:
            self._undo.append(empty_graph(self._sentinel_palette_id))
        else:
            self._undo.append(current.model_copy(deep=True))
        self._redo.clear()

    def undo(self, current: Optional[KnowledgeGraph]) -> Optional[KnowledgeGraph]:
        """Return the graph to install.

        None is returned both on underflow and when the graph to restore is
        "no graph"; check `can_undo()` first to tell them apart.
        """
        if not self._undo:
            return None
        restored = self._undo.pop()
        self._redo.append(self._copy(current))
        return self._copy(restored)

    def redo(self, current: Optional[KnowledgeGraph]) -> Optional[KnowledgeGraph]:
        if not self._redo:
            return None
        restored = self._redo.pop()
        self._undo.append(self._copy(current))
        return self._copy(restored)

    def reset(self) -> None:
        self._undo.clear()
        self._redo.clear()
