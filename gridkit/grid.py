"""AG Grid option models used by the composed grid configuration.

These Pydantic models mirror the parts of AG Grid's API that the feature
engines and the composer emit:
- ColDef: Column definition
- DefaultColDef: Defaults applied to every column
- RowSelection: Row selection configuration

All models use camelCase (via aliases) to match AG Grid's JavaScript API exactly.

Usage:
    from gridkit.grid import ColDef, build_column_defs

    column_defs = build_column_defs([
        "name",
        ColDef(field="hours", header_name="Hours", editable=True),
        {"field": "date", "sort": "desc"},
    ])

AG Grid API Reference: https://www.ag-grid.com/javascript-data-grid/grid-options/
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


RowSelectionMode = Literal["singleRow", "multiRow"]
CellDataType = Literal[
    "text", "number", "boolean", "date", "dateString", "dateTimeString", "object"
]
PinnedPosition = Literal["left", "right"]


class AGGridModel(BaseModel):
    """Base model for AG Grid objects with camelCase serialization."""

    model_config = ConfigDict(
        populate_by_name=True,  # Accept both snake_case and camelCase
        extra="allow",  # Allow extra fields for flexibility
    )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict with camelCase keys, excluding None values.

        Explicitly maps field names to aliases.
        """
        result: dict[str, Any] = {
            (field_info.alias if field_info.alias else field_name): getattr(self, field_name)
            for field_name, field_info in type(self).model_fields.items()
            if getattr(self, field_name) is not None
        }
        # Include extra fields (not in model_fields)
        if self.__pydantic_extra__:
            result.update({k: v for k, v in self.__pydantic_extra__.items() if v is not None})
        return result


class ColDef(AGGridModel):
    """AG Grid Column Definition.

    See: https://www.ag-grid.com/javascript-data-grid/column-definitions/

    Example:
        ColDef(field="name", header_name="Full Name", editable=True)
        # Serializes to: {"field": "name", "headerName": "Full Name", "editable": True}
    """

    # Identity
    field: str | None = None
    col_id: str | None = Field(default=None, alias="colId")
    header_name: str | None = Field(default=None, alias="headerName")

    # Display
    hide: bool | None = None
    pinned: PinnedPosition | None = None
    width: int | None = None
    min_width: int | None = Field(default=None, alias="minWidth")
    flex: int | None = None

    # Interaction
    sortable: bool | None = None  # Inherit from defaultColDef
    filter: bool | str | None = None
    resizable: bool | None = None
    editable: bool | None = None
    cell_editor: str | None = Field(default=None, alias="cellEditor")
    cell_data_type: CellDataType | None = Field(default=None, alias="cellDataType")

    @field_validator("width", "min_width", mode="after")
    @classmethod
    def validate_positive_width(cls, v: int | None) -> int | None:
        """Validate width values are positive if set."""
        if v is not None and v < 0:
            raise ValueError(f"Width must be non-negative, got {v}")
        return v


class DefaultColDef(AGGridModel):
    """Default column definition applied to all columns."""

    sortable: bool = True
    filter: bool = True
    resizable: bool = True


class RowSelection(AGGridModel):
    """AG Grid Row Selection configuration.

    See: https://www.ag-grid.com/javascript-data-grid/row-selection-multi-row/

    enableClickSelection options:
    - False: Only checkboxes select rows
    - True: Click to select, Ctrl+click to deselect
    """

    mode: RowSelectionMode = "multiRow"
    checkboxes: bool = True
    header_checkbox: bool = Field(default=True, alias="headerCheckbox")
    enable_click_selection: bool | str = Field(default=False, alias="enableClickSelection")


def build_column_defs(
    columns: Sequence[str | Mapping[str, Any] | ColDef],
) -> list[dict[str, Any]]:
    """Normalize column descriptors into AG Grid column definition dicts.

    Parameters
    ----------
    columns : Sequence
        Field names, ColDef objects, or raw AG Grid column dicts.

    Returns
    -------
    list[dict[str, Any]]
        Column definitions with camelCase keys.
    """
    result: list[dict[str, Any]] = []
    for column in columns:
        if isinstance(column, str):
            result.append({"field": column})
        # Duck typing instead of isinstance (survives module reloads)
        elif hasattr(column, "to_dict"):
            result.append(column.to_dict())
        elif isinstance(column, Mapping):
            result.append(dict(column))
        else:
            raise TypeError(f"Invalid column descriptor type: {type(column).__name__}")
    return result
