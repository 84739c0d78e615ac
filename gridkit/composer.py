"""Merge feature fragments into one grid and one toolbar configuration.

The composer depends only on the ``TableFeature`` interface. It reads each
enabled engine's fragments and shallow-merges them in a fixed order, so a
later feature overrides keys of an earlier one. Caller-supplied base
configuration is applied last and wins over every fragment.

Usage:
    from gridkit.composer import TableFeatures, compose

    table = compose(
        rows,
        ["name", "hours"],
        TableFeatures(sorting=SortingEngine(), pagination=PaginationEngine()),
        base_config={"domLayout": "autoHeight"},
    )
    table.grid_props["paginationPageSize"]
"""

from __future__ import annotations

import re

from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field, fields
from typing import Any

from .exceptions import FeatureError
from .features import (
    EditingEngine,
    FilteringEngine,
    PaginationEngine,
    RowActionsEngine,
    SelectionEngine,
    SortingEngine,
    TableFeature,
    UndoRedoEngine,
)
from .grid import ColDef, DefaultColDef, build_column_defs
from .log import debug
from .toolbar import Toolbar, ToolbarPosition, build_toolbar


#: Merge order; later features override earlier keys.
FEATURE_ORDER: tuple[str, ...] = (
    "sorting",
    "filtering",
    "pagination",
    "selection",
    "editing",
    "undo_redo",
    "row_actions",
)

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def _to_snake(key: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", key).lower()


@dataclass
class TableFeatures:
    """The set of enabled engines for one table. None means disabled."""

    sorting: SortingEngine | None = None
    filtering: FilteringEngine | None = None
    pagination: PaginationEngine | None = None
    selection: SelectionEngine | None = None
    editing: EditingEngine | None = None
    undo_redo: UndoRedoEngine | None = None
    row_actions: RowActionsEngine | None = None

    @classmethod
    def from_mapping(cls, features: Mapping[str, Any]) -> TableFeatures:
        """Build from a mapping keyed by snake_case or camelCase names.

        Raises
        ------
        FeatureError
            On an unknown key, a value that is not a TableFeature, or an
            engine placed under another feature's key.
        """
        resolved: dict[str, TableFeature | None] = {}
        for key, value in features.items():
            name = _to_snake(key)
            if name not in FEATURE_ORDER:
                raise FeatureError(f"Unknown feature '{key}'", feature=key)
            if value is None or value is False:
                resolved[name] = None
                continue
            if not isinstance(value, TableFeature):
                raise FeatureError(
                    f"Feature '{key}' is not a TableFeature",
                    feature=key,
                    type=type(value).__name__,
                )
            if value.name != name:
                raise FeatureError(
                    f"Feature '{key}' holds a '{value.name}' engine",
                    feature=key,
                )
            resolved[name] = value
        return cls(**resolved)  # type: ignore[arg-type]

    def enabled(self) -> Iterator[TableFeature]:
        """Yield enabled engines in merge order."""
        for name in FEATURE_ORDER:
            engine = getattr(self, name)
            if engine is not None:
                yield engine

    def names(self) -> list[str]:
        return [engine.name for engine in self.enabled()]

    def close(self) -> None:
        """Release resources held by every enabled engine."""
        for engine in self.enabled():
            engine.close()


@dataclass(frozen=True)
class ComposedTable:
    """Result of composition: grid props, toolbar props and the engines."""

    grid_props: dict[str, Any] = field(default_factory=dict)
    toolbar_props: dict[str, Any] = field(default_factory=dict)
    features: TableFeatures = field(default_factory=TableFeatures)

    def toolbar(self, position: ToolbarPosition = "top") -> Toolbar:
        """Build the toolbar model for these toolbar props."""
        return build_toolbar(self.toolbar_props, position=position)


def _coerce_features(features: TableFeatures | Mapping[str, Any] | None) -> TableFeatures:
    if features is None:
        return TableFeatures()
    if isinstance(features, TableFeatures):
        for f in fields(TableFeatures):
            value = getattr(features, f.name)
            if value is not None and not isinstance(value, TableFeature):
                raise FeatureError(
                    f"Feature '{f.name}' is not a TableFeature",
                    feature=f.name,
                    type=type(value).__name__,
                )
            if value is not None and value.name != f.name:
                raise FeatureError(
                    f"Feature '{f.name}' holds a '{value.name}' engine",
                    feature=f.name,
                )
        return features
    if isinstance(features, Mapping):
        return TableFeatures.from_mapping(features)
    raise FeatureError(f"Invalid features container: {type(features).__name__}")


def compose(
    rows: Sequence[Any],
    columns: Sequence[str | Mapping[str, Any] | ColDef],
    features: TableFeatures | Mapping[str, Any] | None = None,
    base_config: Mapping[str, Any] | None = None,
) -> ComposedTable:
    """Compose the grid and toolbar configuration for a table.

    Parameters
    ----------
    rows : Sequence
        Row data handed to the grid as ``rowData``.
    columns : Sequence
        Column descriptors, normalized through ``build_column_defs``.
    features : TableFeatures or Mapping, optional
        Enabled engines. Disabled ones contribute nothing.
    base_config : Mapping, optional
        Grid options applied last, overriding any fragment.

    Returns
    -------
    ComposedTable
        The merged grid props, toolbar props and the feature set.
    """
    table_features = _coerce_features(features)

    grid_props: dict[str, Any] = {
        "rowData": list(rows),
        "columnDefs": build_column_defs(columns),
        "defaultColDef": DefaultColDef().to_dict(),
    }
    toolbar_props: dict[str, Any] = {}

    for engine in table_features.enabled():
        grid_props.update(engine.grid_props())
        toolbar_props.update(engine.toolbar_props())

    if base_config:
        grid_props.update(base_config)

    debug(f"Composed table with features: {table_features.names()}")
    return ComposedTable(
        grid_props=grid_props,
        toolbar_props=toolbar_props,
        features=table_features,
    )
