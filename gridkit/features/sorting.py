"""Sorting feature engine.

Supports single-column sorting (the model holds at most one entry) and
multi-column sorting bounded by ``max_sort_columns``. In multi mode the
least recently set column is evicted first.

Example:
    sorting = SortingEngine({"multi_sort": True, "max_sort_columns": 2})
    sorting.set_sort("a", "asc")
    sorting.set_sort("b", "asc")
    sorting.set_sort("c", "asc")
    sorting.state.sort_model  # (b asc, c asc)
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict

from ..log import debug
from ..models import SortDirection, SortingConfig, SortSpec
from .base import TableFeature


class SortingState(BaseModel):
    """Current sort model."""

    model_config = ConfigDict(frozen=True)

    sort_model: tuple[SortSpec, ...] = ()


class SortingEngine(TableFeature[SortingConfig, SortingState]):
    """Ordered column/direction list in single or multi mode."""

    name: ClassVar[str] = "sorting"
    action_names: ClassVar[tuple[str, ...]] = (
        "set_sort",
        "toggle_sort",
        "clear_sort",
        "clear_column_sort",
    )

    def __init__(self, config: SortingConfig | Mapping[str, Any] | None = None) -> None:
        super().__init__(SortingConfig.resolve(config))
        self._sort_model: list[SortSpec] = []
        for spec in self._config.initial_sort:
            self.set_sort(spec.column, spec.direction)

    @property
    def state(self) -> SortingState:
        return SortingState(sort_model=tuple(self._sort_model))

    def _find(self, column: str) -> int:
        for index, spec in enumerate(self._sort_model):
            if spec.column == column:
                return index
        return -1

    def _append_bounded(self, spec: SortSpec) -> None:
        self._sort_model.append(spec)
        overflow = len(self._sort_model) - self._config.max_sort_columns
        if overflow > 0:
            evicted = self._sort_model[:overflow]
            del self._sort_model[:overflow]
            debug(f"Evicted oldest sort columns: {[s.column for s in evicted]}")

    def set_sort(self, column: str, direction: SortDirection) -> None:
        """Set the sort direction for a column.

        Single mode replaces the whole model. Multi mode updates the column
        in place when present, otherwise appends it and trims from the front.
        """
        spec = SortSpec(column=column, direction=direction)
        if not self._config.multi_sort:
            self._sort_model = [spec]
            return

        index = self._find(column)
        if index >= 0:
            self._sort_model[index] = spec
        else:
            self._append_bounded(spec)

    def toggle_sort(self, column: str) -> None:
        """Cycle a column's sort.

        Multi mode: none -> asc -> desc -> none.
        Single mode: asc -> desc -> asc (never empties).
        """
        index = self._find(column)
        if index < 0:
            self.set_sort(column, "asc")
            return

        if self._sort_model[index].direction == "asc":
            self.set_sort(column, "desc")
        elif self._config.multi_sort:
            del self._sort_model[index]
        else:
            self.set_sort(column, "asc")

    def clear_sort(self) -> None:
        """Remove all sorting."""
        self._sort_model = []

    def clear_column_sort(self, column: str) -> None:
        """Remove sorting for one column, leaving the others untouched."""
        self._sort_model = [s for s in self._sort_model if s.column != column]

    def grid_props(self) -> dict[str, Any]:
        props: dict[str, Any] = {"sortingOrder": ["asc", "desc", None]}
        if self._config.multi_sort:
            props["multiSortKey"] = "ctrl"
        return props

    def toolbar_props(self) -> dict[str, Any]:
        return {
            "sortModel": [spec.to_grid() for spec in self._sort_model],
            "showClearSort": bool(self._sort_model),
            "onClearSort": self.clear_sort,
        }
