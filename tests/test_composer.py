"""Tests for feature composition."""

from typing import Any

import pytest

from gridkit.composer import FEATURE_ORDER, ComposedTable, TableFeatures, compose
from gridkit.exceptions import FeatureError
from gridkit.features import (
    EditingEngine,
    FilteringEngine,
    PaginationEngine,
    SelectionEngine,
    SortingEngine,
    UndoRedoEngine,
)
from gridkit.grid import ColDef
from gridkit.toolbar import Toolbar


class LoudSorting(SortingEngine):
    """Sorting engine that claims a key also set by editing."""

    def grid_props(self) -> dict[str, Any]:
        return {**super().grid_props(), "singleClickEdit": "from-sorting"}


class TestCompose:
    """Tests for compose()."""

    def test_base_props_without_features(self, rows):
        """No features gives rowData, columnDefs and defaultColDef only."""
        table = compose(rows, ["name", ColDef(field="hours", editable=True), {"field": "details"}])
        assert table.grid_props == {
            "rowData": rows,
            "columnDefs": [
                {"field": "name"},
                {"field": "hours", "editable": True},
                {"field": "details"},
            ],
            "defaultColDef": {"sortable": True, "filter": True, "resizable": True},
        }
        assert table.toolbar_props == {}

    def test_rows_are_copied_into_list(self, rows):
        """rowData is a new list holding the caller's rows."""
        table = compose(tuple(rows), ["name"])
        assert table.grid_props["rowData"] == rows
        assert table.grid_props["rowData"][0] is rows[0]

    def test_fragments_merged(self, rows, identity):
        """Each enabled feature contributes its fragment."""
        table = compose(
            rows,
            ["name"],
            TableFeatures(
                sorting=SortingEngine({"multi_sort": True}),
                pagination=PaginationEngine({"page_size": 50}),
                selection=SelectionEngine(identity=identity),
            ),
        )
        props = table.grid_props
        assert props["multiSortKey"] == "ctrl"
        assert props["paginationPageSize"] == 50
        assert props["rowSelection"]["mode"] == "multiRow"
        assert table.toolbar_props["showPagination"] is True
        assert table.toolbar_props["showSelectAll"] is True

    def test_later_feature_wins(self, rows):
        """A later feature overrides an earlier one on the same key."""
        table = compose(
            rows,
            ["name"],
            TableFeatures(sorting=LoudSorting(), editing=EditingEngine({"mode": "inline"})),
        )
        assert table.grid_props["singleClickEdit"] is True

    def test_base_config_wins(self, rows):
        """base_config overrides every fragment."""
        table = compose(
            rows,
            ["name"],
            {"pagination": PaginationEngine({"page_size": 50})},
            base_config={"paginationPageSize": 5, "domLayout": "autoHeight"},
        )
        assert table.grid_props["paginationPageSize"] == 5
        assert table.grid_props["domLayout"] == "autoHeight"

    def test_disabled_features_contribute_nothing(self, rows):
        """None and False values disable a feature."""
        table = compose(rows, ["name"], {"sorting": None, "undoRedo": False})
        assert "sortingOrder" not in table.grid_props
        assert table.features.names() == []

    def test_invalid_column_descriptor(self, rows):
        """Unsupported column descriptors raise TypeError."""
        with pytest.raises(TypeError):
            compose(rows, [42])  # type: ignore[list-item]

    def test_toolbar_from_composed_table(self, rows):
        """ComposedTable.toolbar builds a toolbar model."""
        table = compose(rows, ["name"], {"undo_redo": UndoRedoEngine()})
        toolbar = table.toolbar("bottom")
        assert isinstance(toolbar, Toolbar)
        assert toolbar.position == "bottom"
        assert "table:undo" in toolbar.events

    def test_result_is_frozen(self, rows):
        """ComposedTable fields cannot be reassigned."""
        table = compose(rows, ["name"])
        assert isinstance(table, ComposedTable)
        with pytest.raises(AttributeError):
            table.grid_props = {}  # type: ignore[misc]


class TestTableFeatures:
    """Tests for TableFeatures."""

    def test_camel_case_keys(self):
        """camelCase keys map to snake_case features."""
        features = TableFeatures.from_mapping({"undoRedo": UndoRedoEngine()})
        assert isinstance(features.undo_redo, UndoRedoEngine)

    def test_unknown_key(self):
        """Unknown feature keys raise FeatureError."""
        with pytest.raises(FeatureError) as exc_info:
            TableFeatures.from_mapping({"grouping": SortingEngine()})
        assert exc_info.value.feature == "grouping"

    def test_not_a_feature(self):
        """Values that are not engines raise FeatureError."""
        with pytest.raises(FeatureError, match="not a TableFeature"):
            TableFeatures.from_mapping({"sorting": {"multi_sort": True}})

    def test_engine_under_wrong_key(self):
        """An engine under another feature's key raises FeatureError."""
        with pytest.raises(FeatureError, match="holds a 'filtering' engine"):
            TableFeatures.from_mapping({"sorting": FilteringEngine()})

    def test_dataclass_rejects_non_engine(self, rows):
        """compose validates engines set directly on TableFeatures."""
        with pytest.raises(FeatureError):
            compose(rows, ["name"], TableFeatures(sorting="yes"))  # type: ignore[arg-type]

    def test_dataclass_rejects_engine_in_wrong_slot(self, rows):
        """An engine set on another feature's field is rejected by compose."""
        with pytest.raises(FeatureError, match="holds a 'pagination' engine") as exc_info:
            compose(rows, ["name"], TableFeatures(sorting=PaginationEngine()))  # type: ignore[arg-type]
        assert exc_info.value.feature == "sorting"

    def test_invalid_container(self, rows):
        """Anything other than TableFeatures or a mapping is rejected."""
        with pytest.raises(FeatureError):
            compose(rows, ["name"], [SortingEngine()])  # type: ignore[arg-type]

    def test_enabled_in_merge_order(self, identity):
        """enabled() yields engines in the fixed merge order."""
        features = TableFeatures(
            undo_redo=UndoRedoEngine(),
            sorting=SortingEngine(),
            selection=SelectionEngine(identity=identity),
        )
        assert features.names() == ["sorting", "selection", "undo_redo"]
        assert list(FEATURE_ORDER) == [
            "sorting",
            "filtering",
            "pagination",
            "selection",
            "editing",
            "undo_redo",
            "row_actions",
        ]

    def test_close_closes_engines(self):
        """close() cancels pending filter timers."""
        filtering = FilteringEngine({"debounce": 10_000})
        filtering.set_quick_filter("abc")
        TableFeatures(filtering=filtering).close()
        assert not filtering.has_pending
