"""Pydantic models for gridkit value types and feature configuration."""

from __future__ import annotations

import copy
import dataclasses
import time

from collections.abc import Callable, Hashable, Mapping, MutableMapping
from enum import Enum
from typing import Any, ClassVar, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .exceptions import GridKitException


SortDirection = Literal["asc", "desc"]
FilterMode = Literal["quick", "advanced", "both"]
PaginationMode = Literal["client", "server"]
SelectionMode = Literal["single", "multiple"]
EditingMode = Literal["batch", "inline"]


class ActionType(str, Enum):
    """History action kinds tracked by the undo/redo engine."""

    ADD = "ADD"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class SortSpec(BaseModel):
    """Sort entry for a single column."""

    model_config = ConfigDict(frozen=True)

    column: str
    direction: SortDirection = "asc"

    def to_grid(self) -> dict[str, str]:
        """Return the AG Grid column-state form ({colId, sort})."""
        return {"colId": self.column, "sort": self.direction}


class HistoryAction(BaseModel):
    """A recorded change that can be undone and redone.

    ``payload`` is opaque to the history engine; ``before``/``after`` are
    optional snapshots the apply callbacks can use to revert or re-apply.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    type: ActionType
    timestamp: float = Field(default_factory=time.time)
    payload: Any = None
    before: Any = None
    after: Any = None


# --- Row access helpers ---


def read_field(row: Any, field: str) -> Any:
    """Read a field from a mapping or attribute-style row."""
    if isinstance(row, Mapping):
        return row.get(field)
    return getattr(row, field, None)


def replace_field(row: Any, field: str, value: Any) -> Any:
    """Return a copy of ``row`` with ``field`` set to ``value``.

    The original row is never modified. Supports plain dicts and other
    mutable mappings, pydantic models, dataclasses and plain objects.
    """
    if type(row) is dict:
        return {**row, field: value}
    if isinstance(row, MutableMapping):
        updated = copy.copy(row)
        updated[field] = value
        return updated
    if isinstance(row, BaseModel):
        return row.model_copy(update={field: value})
    if dataclasses.is_dataclass(row) and not isinstance(row, type):
        return dataclasses.replace(row, **{field: value})
    updated = copy.copy(row)
    setattr(updated, field, value)
    return updated


class RowIdentity:
    """Explicit row-identity strategy injected into a table session.

    Parameters
    ----------
    get : Callable[[Any], Hashable]
        Extract the identity of a row.
    assign : Callable[[Any, Hashable], Any], optional
        Return a copy of a row carrying a new identity. Needed only for
        duplicating rows through the add callback.

    Example:
        identity = RowIdentity.from_field("id")
        identity = RowIdentity(lambda row: row["uuid"])
    """

    def __init__(
        self,
        get: Callable[[Any], Hashable],
        assign: Callable[[Any, Hashable], Any] | None = None,
    ) -> None:
        self._get = get
        self._assign = assign

    @classmethod
    def from_field(cls, field: str) -> RowIdentity:
        """Build an identity keyed by a named field."""
        return cls(
            get=lambda row: read_field(row, field),
            assign=lambda row, new_id: replace_field(row, field, new_id),
        )

    def get(self, row: Any) -> Hashable:
        """Return the identity of ``row``."""
        return self._get(row)

    def assign(self, row: Any, new_id: Hashable) -> Any:
        """Return a copy of ``row`` carrying ``new_id``."""
        if self._assign is None:
            raise GridKitException("Row identity has no assign function", new_id=new_id)
        return self._assign(row, new_id)


# --- Feature configuration ---

C = TypeVar("C", bound="FeatureConfig")


class FeatureConfig(BaseModel):
    """Base for resolved, read-only feature configuration.

    Accepts both snake_case and camelCase keys. Values not given explicitly
    fall back to the matching section of the loaded settings.
    """

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,  # Accept both snake_case and camelCase
        extra="forbid",  # Catch typos in option names
    )

    section: ClassVar[str] = ""

    @classmethod
    def resolve(cls: type[C], overrides: C | Mapping[str, Any] | None = None) -> C:
        """Merge settings defaults with explicit overrides.

        Parameters
        ----------
        overrides : FeatureConfig, Mapping or None
            An already resolved config (returned as is) or option values.

        Returns
        -------
        FeatureConfig
            The resolved configuration.
        """
        if isinstance(overrides, cls):
            return overrides

        from .config import get_settings  # pylint: disable=import-outside-toplevel

        defaults = getattr(get_settings(), cls.section).model_dump()
        defaults = {k: v for k, v in defaults.items() if k in cls.model_fields}

        aliases = {info.alias: name for name, info in cls.model_fields.items() if info.alias}
        explicit = {aliases.get(k, k): v for k, v in (overrides or {}).items()}
        return cls.model_validate({**defaults, **explicit})


class SortingConfig(FeatureConfig):
    """Sorting feature configuration."""

    section: ClassVar[str] = "sorting"

    multi_sort: bool = Field(default=False, alias="multiSort")
    initial_sort: tuple[SortSpec, ...] = Field(default=(), alias="initialSort")
    max_sort_columns: int = Field(default=3, ge=1, alias="maxSortColumns")


class FilteringConfig(FeatureConfig):
    """Filtering feature configuration."""

    section: ClassVar[str] = "filtering"

    mode: FilterMode = "both"
    debounce: int = Field(default=300, ge=0)
    enable_floating_filter: bool = Field(default=False, alias="enableFloatingFilter")
    enable_filter_tool_panel: bool = Field(default=False, alias="enableFilterToolPanel")


class PaginationConfig(FeatureConfig):
    """Pagination feature configuration."""

    section: ClassVar[str] = "pagination"

    mode: PaginationMode = "client"
    page_size: int = Field(default=20, gt=0, alias="pageSize")
    page_size_options: tuple[int, ...] = Field(default=(10, 20, 50, 100), alias="pageSizeOptions")
    initial_page: int = Field(default=0, ge=0, alias="initialPage")


class SelectionConfig(FeatureConfig):
    """Selection feature configuration."""

    section: ClassVar[str] = "selection"

    mode: SelectionMode = "multiple"
    enable_select_all: bool = Field(default=True, alias="enableSelectAll")
    select_on_row_click: bool = Field(default=False, alias="selectOnRowClick")


class EditingConfig(FeatureConfig):
    """Editing feature configuration."""

    section: ClassVar[str] = "editing"

    mode: EditingMode = "batch"
    validate_on_change: bool = Field(default=True, alias="validateOnChange")


class UndoRedoConfig(FeatureConfig):
    """Undo/redo feature configuration."""

    section: ClassVar[str] = "undo_redo"

    max_steps: int = Field(default=20, ge=1, alias="maxSteps")
    tracking_types: tuple[ActionType, ...] = Field(
        default=(ActionType.UPDATE, ActionType.ADD, ActionType.DELETE),
        alias="trackingTypes",
    )
    enable_keyboard_shortcuts: bool = Field(default=True, alias="enableKeyboardShortcuts")

    @field_validator("tracking_types", mode="before")
    @classmethod
    def dedupe_tracking_types(cls, v: Any) -> Any:
        """Drop repeated action types, keeping first occurrence order."""
        if isinstance(v, (list, tuple)):
            return tuple(dict.fromkeys(v))
        return v


class RowActionsConfig(FeatureConfig):
    """Row actions feature configuration."""

    section: ClassVar[str] = "row_actions"

    enable_add: bool = Field(default=True, alias="enableAdd")
    enable_delete: bool = Field(default=True, alias="enableDelete")
    enable_duplicate: bool = Field(default=True, alias="enableDuplicate")
    confirm_delete: bool = Field(default=True, alias="confirmDelete")
    confirm_batch_delete: bool = Field(default=False, alias="confirmBatchDelete")
