"""Row selection feature engine."""

from __future__ import annotations

from collections.abc import Hashable, Iterable, Mapping
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict

from ..callbacks import CallbackFunc, notify
from ..grid import RowSelection
from ..log import debug
from ..models import RowIdentity, SelectionConfig
from .base import TableFeature


class SelectionState(BaseModel):
    """Selected rows in selection order, plus their ids."""

    model_config = ConfigDict(frozen=True)

    selected_row_ids: frozenset[Any] = frozenset()
    selected_rows: tuple[Any, ...] = ()
    is_all_selected: bool = False


class SelectionEngine(TableFeature[SelectionConfig, SelectionState]):
    """Single or multiple row selection keyed by row identity.

    Parameters
    ----------
    config : SelectionConfig or Mapping, optional
        Feature options; missing values come from settings.
    identity : RowIdentity
        How to read a row's id.
    on_selection_change : CallbackFunc, optional
        Called with the complete new selection (a tuple of rows) after every
        mutating action.
    """

    name: ClassVar[str] = "selection"
    action_names: ClassVar[tuple[str, ...]] = (
        "select_row",
        "deselect_row",
        "toggle_row_selection",
        "select_all",
        "deselect_all",
        "set_selected_rows",
    )

    def __init__(
        self,
        config: SelectionConfig | Mapping[str, Any] | None = None,
        *,
        identity: RowIdentity,
        on_selection_change: CallbackFunc | None = None,
    ) -> None:
        super().__init__(SelectionConfig.resolve(config))
        self._identity = identity
        self._on_selection_change = on_selection_change
        # Insertion-ordered: id -> row
        self._selected: dict[Hashable, Any] = {}
        self._all_ids: frozenset[Hashable] = frozenset()

    @property
    def single(self) -> bool:
        return self._config.mode == "single"

    @property
    def state(self) -> SelectionState:
        ids = frozenset(self._selected)
        return SelectionState(
            selected_row_ids=ids,
            selected_rows=tuple(self._selected.values()),
            is_all_selected=bool(self._all_ids) and ids == self._all_ids,
        )

    def is_selected(self, row: Any) -> bool:
        return self._identity.get(row) in self._selected

    def _replace(self, rows: Iterable[Any]) -> None:
        selected: dict[Hashable, Any] = {}
        for row in rows:
            selected.setdefault(self._identity.get(row), row)
        self._selected = selected

    def _changed(self, action: str) -> None:
        notify(
            self._on_selection_change,
            tuple(self._selected.values()),
            feature=self.name,
            action=action,
        )

    def select_row(self, row: Any) -> None:
        """Select a row. Single mode replaces the current selection."""
        if self.single:
            self._replace([row])
        else:
            self._selected.setdefault(self._identity.get(row), row)
        self._changed("select_row")

    def deselect_row(self, row: Any) -> None:
        self._selected.pop(self._identity.get(row), None)
        self._changed("deselect_row")

    def toggle_row_selection(self, row: Any) -> None:
        if self.is_selected(row):
            self.deselect_row(row)
        else:
            self.select_row(row)

    def select_all(self, rows: Iterable[Any]) -> None:
        """Select exactly ``rows``. Ignored in single mode."""
        if self.single:
            debug("select_all ignored in single selection mode")
            return
        self._replace(rows)
        self._all_ids = frozenset(self._selected)
        self._changed("select_all")

    def deselect_all(self) -> None:
        self._selected = {}
        self._changed("deselect_all")

    def set_selected_rows(self, rows: Iterable[Any]) -> None:
        """Replace the selection. Single mode keeps only the first row.

        Rows sharing an id collapse to their first occurrence.
        """
        rows = list(rows)
        self._replace(rows[:1] if self.single else rows)
        self._changed("set_selected_rows")

    def grid_props(self) -> dict[str, Any]:
        selection = RowSelection(
            mode="singleRow" if self.single else "multiRow",
            checkboxes=True,
            header_checkbox=self._config.enable_select_all and not self.single,
            enable_click_selection=self._config.select_on_row_click,
        )
        return {"rowSelection": selection.to_dict()}

    def toolbar_props(self) -> dict[str, Any]:
        return {
            "showSelectAll": self._config.enable_select_all and not self.single,
            "selectedCount": len(self._selected),
            "onSelectAll": self.select_all,
            "onDeselectAll": self.deselect_all,
        }
