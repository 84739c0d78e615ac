"""Table feature engines.

Each engine owns the config, state and actions of one feature and knows
nothing about the others. The composer merges their grid and toolbar
fragments.

Usage
-----
    from gridkit.features import PaginationEngine, SortingEngine

    sorting = SortingEngine({"multi_sort": True})
    pagination = PaginationEngine({"page_size": 50}, total_rows=1000)
"""

from __future__ import annotations

from .base import TableFeature
from .editing import EditingEngine, EditingState, Validator
from .filtering import FilteringEngine, FilteringState
from .pagination import PaginationEngine, PaginationState
from .row_actions import RowActionsEngine, RowActionsState, duplicate_id
from .selection import SelectionEngine, SelectionState
from .sorting import SortingEngine, SortingState
from .undo_redo import UndoRedoEngine, UndoRedoState


__all__ = [
    "EditingEngine",
    "EditingState",
    "FilteringEngine",
    "FilteringState",
    "PaginationEngine",
    "PaginationState",
    "RowActionsEngine",
    "RowActionsState",
    "SelectionEngine",
    "SelectionState",
    "SortingEngine",
    "SortingState",
    "TableFeature",
    "UndoRedoEngine",
    "UndoRedoState",
    "Validator",
    "duplicate_id",
]
