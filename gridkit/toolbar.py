"""Pydantic models for the table toolbar.

The composer's toolbar props are a flat dict of flags, values and bound
engine actions (``showUndoButton``, ``canUndo``, ``onUndo``, ...). This
module turns them into typed toolbar items and routes toolbar events back
to the engine actions:

Usage:
    from gridkit.toolbar import build_toolbar

    toolbar = build_toolbar(table.toolbar_props)
    [item.event for item in toolbar.items]   # ["table:undo", "table:redo", ...]
    await toolbar.dispatch("table:undo")

Events follow the ``namespace:event-name`` pattern.
"""

from __future__ import annotations

import inspect
import re
import uuid

from collections.abc import Callable, Mapping, Sequence
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator, model_validator

from .log import debug


ToolbarPosition = Literal["top", "bottom"]

# Event pattern: namespace:event-name (e.g., "table:undo", "table:page-size")
EVENT_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9]*:[a-zA-Z][a-zA-Z0-9_-]*$")


def validate_event_format(event: str) -> bool:
    """Check if event matches namespace:event-name pattern."""
    return bool(EVENT_PATTERN.match(event))


def _generate_component_id(component_type: str = "item") -> str:
    return f"{component_type}-{uuid.uuid4().hex[:8]}"


class Option(BaseModel):
    """A single option for select inputs."""

    model_config = ConfigDict(frozen=True)

    label: str
    value: str | None = None

    @model_validator(mode="after")
    def set_value_from_label(self) -> Option:
        """If value is not provided, use label as value."""
        if self.value is None:
            object.__setattr__(self, "value", self.label)
        return self


class ToolbarItem(BaseModel):
    """Base class for all toolbar items.

    All items have:
    - component_id: Unique identifier (auto-generated if not provided)
    - label: Display label
    - description: Tooltip text
    - event: Event name emitted on interaction (format: namespace:event-name)
    - disabled: Whether the item is disabled
    """

    model_config = ConfigDict(
        extra="forbid",  # Catch typos in field names
        validate_assignment=True,
    )

    component_id: str = Field(default="")
    label: str = ""
    description: str = Field(default="", description="Tooltip text shown on hover")
    event: str = Field(
        default="table:input",
        description="Event name in namespace:event-name format (e.g., 'table:undo')",
    )
    disabled: bool = False

    @model_validator(mode="after")
    def auto_generate_component_id(self) -> ToolbarItem:
        """Auto-generate component_id based on type if not provided."""
        if not self.component_id:
            component_type = getattr(self, "type", "item")
            object.__setattr__(self, "component_id", _generate_component_id(component_type))
        return self

    @field_validator("event")
    @classmethod
    def validate_event_name(cls, v: str) -> str:
        """Validate event follows namespace:event-name pattern."""
        v = v.strip()
        if not validate_event_format(v):
            raise ValueError(
                f"Invalid event format: '{v}'. "
                f"Must match 'namespace:event-name' pattern (e.g., 'table:undo')."
            )
        return v


class Button(ToolbarItem):
    """A clickable button that emits an event.

    Example:
        Button(label="Undo", event="table:undo", disabled=True)
    """

    type: Literal["button"] = "button"
    variant: Literal["primary", "secondary", "danger", "icon"] = "primary"


class SearchInput(ToolbarItem):
    """Search box for the quick filter. Emits the raw text on every change."""

    type: Literal["search"] = "search"
    value: str = ""
    placeholder: str = "Search..."


class Select(ToolbarItem):
    """Single-choice dropdown (page size)."""

    type: Literal["select"] = "select"
    options: list[Option] = Field(default_factory=list)
    selected: str = ""

    @field_validator("options", mode="before")
    @classmethod
    def normalize_options(cls, v: Any) -> list[Option]:
        """Accept plain values as well as Option objects."""
        result: list[Option] = []
        for opt in v or []:
            if isinstance(opt, Option):
                result.append(opt)
            elif isinstance(opt, dict):
                result.append(Option(**opt))
            else:
                result.append(Option(label=str(opt)))
        return result


class PageInfo(ToolbarItem):
    """Read-only pagination position."""

    type: Literal["page-info"] = "page-info"
    current_page: int = 0
    total_pages: int = 0
    total_rows: int = 0


ToolbarItemUnion = Annotated[
    Button | SearchInput | Select | PageInfo,
    Field(discriminator="type"),
]


class Toolbar(BaseModel):
    """A toolbar: positioned items plus the handlers their events drive.

    Handlers are plain or async callables registered per event name.
    """

    model_config = ConfigDict(
        extra="forbid",
        validate_assignment=True,
    )

    component_id: str = Field(default_factory=lambda: _generate_component_id("toolbar"))
    position: ToolbarPosition = "top"
    items: Sequence[ToolbarItemUnion] = Field(default_factory=list)

    _handlers: dict[str, Callable[..., Any]] = PrivateAttr(default_factory=dict)

    def on(self, event: str, handler: Callable[..., Any]) -> None:
        """Register the handler for an event, replacing any previous one."""
        if not validate_event_format(event):
            raise ValueError(f"Invalid event format: '{event}'")
        self._handlers[event] = handler

    def get_item(self, event: str) -> ToolbarItem | None:
        """Return the first item emitting ``event``."""
        for item in self.items:
            if item.event == event:
                return item
        return None

    @property
    def events(self) -> list[str]:
        return list(self._handlers)

    async def dispatch(self, event: str, *args: Any) -> bool:
        """Call the handler registered for ``event``.

        Async handlers are awaited. Handler exceptions propagate.

        Returns
        -------
        bool
            True if a handler was called, False otherwise.
        """
        handler = self._handlers.get(event)
        if handler is None:
            debug(f"No toolbar handler for '{event}'")
            return False
        result = handler(*args)
        if inspect.isawaitable(result):
            await result
        return True


def build_toolbar(
    toolbar_props: Mapping[str, Any],
    position: ToolbarPosition = "top",
) -> Toolbar:
    """Build a toolbar from composed toolbar props.

    Parameters
    ----------
    toolbar_props : Mapping
        Merged toolbar fragments (as produced by the composer).
    position : str
        Toolbar placement.

    Returns
    -------
    Toolbar
        Items for every visible control, with their handlers registered.
    """
    props = dict(toolbar_props)
    items: list[ToolbarItem] = []
    handlers: dict[str, Callable[..., Any] | None] = {}

    def add(item: ToolbarItem, handler: Callable[..., Any] | None) -> None:
        items.append(item)
        handlers[item.event] = handler

    # Edit history
    if props.get("showUndoButton"):
        add(
            Button(label="Undo", event="table:undo", variant="icon", disabled=not props.get("canUndo")),
            props.get("onUndo"),
        )
    if props.get("showRedoButton"):
        add(
            Button(label="Redo", event="table:redo", variant="icon", disabled=not props.get("canRedo")),
            props.get("onRedo"),
        )

    # Filtering and sorting
    if props.get("showQuickFilter"):
        add(
            SearchInput(event="table:quick-filter", value=props.get("quickFilterValue", "")),
            props.get("onQuickFilterChange"),
        )
    if props.get("showClearFilters"):
        add(
            Button(label="Clear filters", event="table:clear-filters", variant="secondary"),
            props.get("onClearFilters"),
        )
    if props.get("showClearSort"):
        add(
            Button(label="Clear sort", event="table:clear-sort", variant="secondary"),
            props.get("onClearSort"),
        )

    # Selection
    if props.get("showSelectAll"):
        add(Button(label="Select all", event="table:select-all", variant="secondary"), props.get("onSelectAll"))
        add(
            Button(
                label="Deselect all",
                event="table:deselect-all",
                variant="secondary",
                disabled=not props.get("selectedCount"),
            ),
            props.get("onDeselectAll"),
        )

    # Row actions
    if props.get("showAddButton"):
        add(Button(label="Add row", event="table:add-row"), props.get("onAdd"))
    if props.get("showDuplicateButton"):
        add(Button(label="Duplicate", event="table:duplicate-row"), props.get("onDuplicate"))
    if props.get("showDeleteButton"):
        add(Button(label="Delete", event="table:delete-row", variant="danger"), props.get("onDelete"))
    if props.get("pendingDeleteId") is not None or props.get("pendingDeleteIds"):
        add(
            Button(label="Confirm delete", event="table:confirm-delete", variant="danger"),
            props.get("onConfirmDelete"),
        )
        add(
            Button(label="Cancel", event="table:cancel-delete", variant="secondary"),
            props.get("onCancelDelete"),
        )

    # Batch editing
    if props.get("showSaveButton"):
        add(
            Button(label="Save", event="table:save", disabled=bool(props.get("isSaving"))),
            props.get("onSave"),
        )
    if props.get("showDiscardButton"):
        add(Button(label="Discard", event="table:discard", variant="secondary"), props.get("onDiscard"))

    # Pagination
    if props.get("showPagination"):
        current = props.get("currentPage", 0)
        total = props.get("totalPages", 0)
        at_start = current <= 0
        at_end = current >= total - 1
        add(Button(label="«", event="table:first-page", variant="icon", disabled=at_start), props.get("onFirstPage"))
        add(
            Button(label="‹", event="table:previous-page", variant="icon", disabled=at_start),
            props.get("onPreviousPage"),
        )
        add(
            PageInfo(
                event="table:page",
                current_page=current,
                total_pages=total,
                total_rows=props.get("totalRows", 0),
            ),
            props.get("onPageChange"),
        )
        add(Button(label="›", event="table:next-page", variant="icon", disabled=at_end), props.get("onNextPage"))
        add(Button(label="»", event="table:last-page", variant="icon", disabled=at_end), props.get("onLastPage"))

        on_page_size = props.get("onPageSizeChange")
        add(
            Select(
                label="Rows per page:",
                event="table:page-size",
                options=props.get("pageSizeOptions", []),
                selected=str(props.get("pageSize", "")),
            ),
            (lambda size: on_page_size(int(size))) if on_page_size is not None else None,
        )

    toolbar = Toolbar(position=position, items=items)
    for event, handler in handlers.items():
        if handler is not None:
            toolbar.on(event, handler)
    return toolbar
