"""
Keyed-row view model base - framework agnostic.

A subclass turns one input object into an ordered list of
``(row_key, cells)``. The base remembers what was last painted and tells
the widget either to rebuild (row keys or their order changed) or which
individual cells to rewrite.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Generic, List, Optional, Tuple, TypeVar

T = TypeVar("T")

Row = Tuple[str, List[str]]


@dataclass
class CellUpdate:
    """One cell whose text changed since the last paint."""

    row_key: str
    column_index: int
    value: str


class BaseViewModel(ABC, Generic[T]):
    """
    Row cache and cell diffing.

    Rows are built at most once per input object: ``full_refresh_needed``
    followed by ``compute_updates`` on the same object reuses the first
    build. Callers pass a new object whenever the underlying state may
    have changed.

    ViewModels MUST NOT import Textual or hold references to widgets.
    """

    def __init__(self) -> None:
        self._painted: Dict[str, List[str]] = {}
        self._painted_order: Optional[List[str]] = None
        self._built_for: Optional[T] = None
        self._built: List[Row] = []

    @abstractmethod
    def build_rows(self, data: T) -> List[Row]:
        """All rows for ``data``, in display order."""

    def rows_for(self, data: T) -> List[Row]:
        if self._built_for is not data:
            self._built = self.build_rows(data)
            self._built_for = data
        return self._built

    def full_refresh_needed(self, data: T) -> bool:
        """
        True on first paint or when row keys or their order differ.

        Rows inserted mid-table cannot be expressed as cell edits, so any
        change of order is treated as structural.
        """
        if self._painted_order is None:
            return True
        return [key for key, _ in self.rows_for(data)] != self._painted_order

    def compute_updates(self, data: T) -> List[CellUpdate]:
        """Record ``data`` as painted and return the cells that changed."""
        rows = self.rows_for(data)
        updates: List[CellUpdate] = []
        for key, cells in rows:
            old = self._painted.get(key)
            if old is None:
                continue
            updates.extend(
                CellUpdate(key, index, new)
                for index, (before, new) in enumerate(zip(old, cells))
                if before != new
            )
        self._painted = {key: list(cells) for key, cells in rows}
        self._painted_order = [key for key, _ in rows]
        return updates

    def painted_rows(self) -> List[Row]:
        """Rows recorded by the last ``compute_updates``, in order."""
        if self._painted_order is None:
            return []
        return [(key, list(self._painted[key])) for key in self._painted_order]
