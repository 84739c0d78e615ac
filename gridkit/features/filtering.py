"""Filtering feature engine.

Holds the quick filter text (raw and debounced) and a per-column filter
model. The raw value tracks every keystroke; the debounced value is what
the grid filters on and is committed by a timer after ``debounce`` ms of
inactivity.
"""

from __future__ import annotations

import asyncio
import threading

from collections.abc import Mapping
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict

from ..callbacks import CallbackFunc, notify
from ..log import debug
from ..models import FilteringConfig
from .base import TableFeature


_FILTERS_TOOL_PANEL = {
    "id": "filters",
    "labelDefault": "Filters",
    "labelKey": "filters",
    "iconKey": "filter",
    "toolPanel": "agFiltersToolPanel",
}


def _running_loop() -> asyncio.AbstractEventLoop | None:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


class FilteringState(BaseModel):
    """Quick filter values and the column filter model."""

    model_config = ConfigDict(frozen=True)

    quick_filter_raw: str = ""
    quick_filter: str = ""
    filter_model: dict[str, Any] = {}

    @property
    def is_filtered(self) -> bool:
        """True when any filter is in effect."""
        return bool(self.quick_filter or self.filter_model)


class FilteringEngine(TableFeature[FilteringConfig, FilteringState]):
    """Quick filter with debounced commit plus an opaque column filter map.

    Parameters
    ----------
    config : FilteringConfig or Mapping, optional
        Feature options; missing values come from settings.
    on_change : CallbackFunc, optional
        Called with the new ``FilteringState`` whenever the committed quick
        filter or the column filter model changes. When ``set_quick_filter``
        is called inside a running event loop, the debounced notification is
        delivered on that loop; otherwise it runs on the timer thread.
    """

    name: ClassVar[str] = "filtering"
    action_names: ClassVar[tuple[str, ...]] = (
        "set_quick_filter",
        "set_column_filter",
        "clear_column_filter",
        "clear_filters",
        "flush",
    )

    def __init__(
        self,
        config: FilteringConfig | Mapping[str, Any] | None = None,
        on_change: CallbackFunc | None = None,
    ) -> None:
        super().__init__(FilteringConfig.resolve(config))
        self._on_change = on_change
        self._raw = ""
        self._debounced = ""
        self._filter_model: dict[str, Any] = {}
        self._timer: threading.Timer | None = None
        self._lock = threading.Lock()

    @property
    def state(self) -> FilteringState:
        with self._lock:
            return FilteringState(
                quick_filter_raw=self._raw,
                quick_filter=self._debounced,
                filter_model=dict(self._filter_model),
            )

    @property
    def has_pending(self) -> bool:
        """True while a debounced commit is scheduled."""
        return self._timer is not None

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _commit(
        self,
        timer: threading.Timer | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        with self._lock:
            # Superseded by a newer call or cancelled after it started
            if timer is not None and self._timer is not timer:
                return
            self._timer = None
            changed = self._debounced != self._raw
            self._debounced = self._raw
        if not changed:
            return
        if loop is not None and not loop.is_closed():
            loop.call_soon_threadsafe(self._changed, "set_quick_filter")
        else:
            self._changed("set_quick_filter")

    def _changed(self, action: str) -> None:
        notify(self._on_change, self.state, feature=self.name, action=action)

    def set_quick_filter(self, text: str) -> None:
        """Update the quick filter text.

        The raw value changes immediately. The committed value follows once
        ``debounce`` ms pass without another call; each call restarts the
        wait. A zero debounce commits synchronously.
        """
        with self._lock:
            self._raw = text
            self._cancel_timer()
            if self._config.debounce > 0:
                loop = _running_loop()
                timer = threading.Timer(
                    self._config.debounce / 1000, lambda: self._commit(timer, loop)
                )
                timer.daemon = True
                self._timer = timer
                timer.start()
                return
        self._commit()

    def flush(self) -> None:
        """Commit a pending quick filter value immediately."""
        with self._lock:
            if self._timer is None:
                debug("No pending quick filter to flush")
                return
            self._cancel_timer()
        self._commit()

    def set_column_filter(self, column: str, descriptor: Any) -> None:
        """Set the filter descriptor for one column, keeping the others."""
        with self._lock:
            self._filter_model = {**self._filter_model, column: descriptor}
        self._changed("set_column_filter")

    def clear_column_filter(self, column: str) -> None:
        """Remove the filter for one column."""
        with self._lock:
            if column not in self._filter_model:
                debug(f"No filter on column '{column}' to clear")
                return
            self._filter_model = {k: v for k, v in self._filter_model.items() if k != column}
        self._changed("clear_column_filter")

    def clear_filters(self) -> None:
        """Reset quick filter text and column filters together.

        Any pending debounced commit is cancelled, so a stale value can never
        land after the clear.
        """
        with self._lock:
            self._cancel_timer()
            changed = bool(self._debounced or self._filter_model)
            self._raw = ""
            self._debounced = ""
            self._filter_model = {}
        if changed:
            self._changed("clear_filters")

    def close(self) -> None:
        with self._lock:
            self._cancel_timer()

    def grid_props(self) -> dict[str, Any]:
        mode = self._config.mode
        props: dict[str, Any] = {}
        if mode in ("quick", "both"):
            props["quickFilterText"] = self._debounced
        if mode in ("advanced", "both"):
            props["floatingFilter"] = self._config.enable_floating_filter
        if self._config.enable_filter_tool_panel:
            props["sideBar"] = {"toolPanels": [_FILTERS_TOOL_PANEL]}
        return props

    def toolbar_props(self) -> dict[str, Any]:
        return {
            "showQuickFilter": self._config.mode in ("quick", "both"),
            "quickFilterValue": self._raw,
            "onQuickFilterChange": self.set_quick_filter,
            "showClearFilters": True,
            "onClearFilters": self.clear_filters,
        }
