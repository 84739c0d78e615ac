"""gridkit - composable table features for AG Grid style data grids.

Independent feature engines (sorting, filtering, pagination, selection,
editing, undo/redo, row actions) each own their state and actions, and a
composer merges their fragments into one grid configuration and one toolbar
configuration.
"""

from .composer import FEATURE_ORDER, ComposedTable, TableFeatures, compose
from .config import (
    ClipboardSettings,
    EditingSettings,
    FilteringSettings,
    GridKitSettings,
    LogSettings,
    PaginationSettings,
    RowActionsSettings,
    SelectionSettings,
    SortingSettings,
    UndoRedoSettings,
    clear_settings,
    get_settings,
    reload_settings,
)
from .exceptions import EditValidationError, FeatureError, GridKitException, SessionError
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
from .grid import ColDef, DefaultColDef, RowSelection, build_column_defs
from .keyboard import (
    CellRef,
    Clipboard,
    ClipboardShortcuts,
    KeyEvent,
    KeyEventSource,
    LogNotifier,
    MemoryClipboard,
    Notifier,
    Subscription,
    UndoRedoShortcuts,
)
from .models import (
    ActionType,
    EditingConfig,
    FilteringConfig,
    HistoryAction,
    PaginationConfig,
    RowActionsConfig,
    RowIdentity,
    SelectionConfig,
    SortingConfig,
    SortSpec,
    UndoRedoConfig,
)
from .session import TableSession
from .toolbar import Button, PageInfo, SearchInput, Select, Toolbar, build_toolbar


__version__ = "0.1.0"

__all__ = [
    "FEATURE_ORDER",
    "ActionType",
    "Button",
    "CellRef",
    "Clipboard",
    "ClipboardSettings",
    "ClipboardShortcuts",
    "ColDef",
    "ComposedTable",
    "DefaultColDef",
    "EditValidationError",
    "EditingConfig",
    "EditingEngine",
    "EditingSettings",
    "FeatureError",
    "FilteringConfig",
    "FilteringEngine",
    "FilteringSettings",
    "GridKitException",
    "GridKitSettings",
    "HistoryAction",
    "KeyEvent",
    "KeyEventSource",
    "LogNotifier",
    "LogSettings",
    "MemoryClipboard",
    "Notifier",
    "PageInfo",
    "PaginationConfig",
    "PaginationEngine",
    "PaginationSettings",
    "RowActionsConfig",
    "RowActionsEngine",
    "RowActionsSettings",
    "RowIdentity",
    "RowSelection",
    "SearchInput",
    "Select",
    "SelectionConfig",
    "SelectionEngine",
    "SelectionSettings",
    "SessionError",
    "SortSpec",
    "SortingConfig",
    "SortingEngine",
    "SortingSettings",
    "Subscription",
    "TableFeature",
    "TableFeatures",
    "TableSession",
    "Toolbar",
    "UndoRedoConfig",
    "UndoRedoEngine",
    "UndoRedoSettings",
    "UndoRedoShortcuts",
    "__version__",
    "build_column_defs",
    "build_toolbar",
    "clear_settings",
    "compose",
    "get_settings",
    "reload_settings",
]
