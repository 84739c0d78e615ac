"""Table session: engines, row identity and keyboard subscriptions for one table.

A session builds the enabled feature engines from per-feature specs,
injects the row identity into the engines that need it, registers the
keyboard shortcuts while started, and releases everything on ``close()``.

Each feature spec is one of:
- ``None`` or ``False``: feature disabled
- ``True``: engine with default configuration
- a mapping: engine keyword arguments and/or config options
  (``{"multi_sort": True}``, ``{"mode": "inline", "on_save": save}``)
- a prebuilt engine instance

Usage:
    identity = RowIdentity.from_field("id")
    with TableSession(identity, sorting=True, undo_redo={"max_steps": 50}) as session:
        session.start(key_source)
        table = session.compose(rows, ["name", "hours"])
"""

from __future__ import annotations

import inspect

from collections.abc import Callable, Mapping, Sequence
from typing import Any

from .composer import FEATURE_ORDER, ComposedTable, TableFeatures, compose
from .config import get_settings
from .exceptions import FeatureError, SessionError
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
from .grid import ColDef
from .keyboard import (
    Clipboard,
    ClipboardShortcuts,
    KeyEventSource,
    MemoryClipboard,
    Notifier,
    Subscription,
    UndoRedoShortcuts,
)
from .log import apply_settings, debug
from .models import RowIdentity


FeatureSpec = TableFeature | Mapping[str, Any] | bool | None

_ENGINES: dict[str, type[TableFeature]] = {
    "sorting": SortingEngine,
    "filtering": FilteringEngine,
    "pagination": PaginationEngine,
    "selection": SelectionEngine,
    "editing": EditingEngine,
    "undo_redo": UndoRedoEngine,
    "row_actions": RowActionsEngine,
}

# Engines that read row ids themselves
_NEEDS_IDENTITY = frozenset({"selection", "row_actions"})


def _engine_params(engine_cls: type[TableFeature]) -> set[str]:
    params = inspect.signature(engine_cls.__init__).parameters
    return {name for name in params if name not in ("self", "config")}


def build_feature(name: str, spec: FeatureSpec, identity: RowIdentity) -> TableFeature | None:
    """Create the engine for one feature spec.

    Raises
    ------
    FeatureError
        If the spec has an unsupported type or a prebuilt engine of the
        wrong kind.
    """
    engine_cls = _ENGINES[name]
    if spec is None or spec is False:
        return None
    if isinstance(spec, TableFeature):
        if not isinstance(spec, engine_cls):
            raise FeatureError(
                f"Feature '{name}' expects a {engine_cls.__name__}",
                feature=name,
                type=type(spec).__name__,
            )
        return spec

    if spec is True:
        options: dict[str, Any] = {}
    elif isinstance(spec, Mapping):
        options = dict(spec)
    else:
        raise FeatureError(
            f"Invalid spec for feature '{name}'",
            feature=name,
            type=type(spec).__name__,
        )

    params = _engine_params(engine_cls)
    kwargs = {k: v for k, v in options.items() if k in params}
    config = dict(options.pop("config", None) or {})
    config.update({k: v for k, v in options.items() if k not in params})
    if name in _NEEDS_IDENTITY:
        kwargs.setdefault("identity", identity)
    return engine_cls(config, **kwargs)


class TableSession:
    """Owner of one table's engines, identity and keyboard subscriptions.

    Parameters
    ----------
    identity : RowIdentity
        Row identity strategy injected into selection and row actions.
    sorting, filtering, pagination, selection, editing, undo_redo, row_actions : FeatureSpec
        Per-feature specs (see module docstring).
    clipboard : Clipboard, optional
        Clipboard used by the copy/paste shortcuts. Defaults to a
        process-local ``MemoryClipboard``.
    notifier : Notifier, optional
        Receives clipboard outcome messages.
    is_editing : Callable[[], bool], optional
        Reports whether a managed cell editor is open; undo/redo shortcuts
        stay inactive while it returns True.
    """

    def __init__(
        self,
        identity: RowIdentity,
        *,
        sorting: FeatureSpec = None,
        filtering: FeatureSpec = None,
        pagination: FeatureSpec = None,
        selection: FeatureSpec = None,
        editing: FeatureSpec = None,
        undo_redo: FeatureSpec = None,
        row_actions: FeatureSpec = None,
        clipboard: Clipboard | None = None,
        notifier: Notifier | None = None,
        is_editing: Callable[[], bool] | None = None,
    ) -> None:
        apply_settings()
        self._identity = identity
        specs = {
            "sorting": sorting,
            "filtering": filtering,
            "pagination": pagination,
            "selection": selection,
            "editing": editing,
            "undo_redo": undo_redo,
            "row_actions": row_actions,
        }
        self._features = TableFeatures(
            **{name: build_feature(name, specs[name], identity) for name in FEATURE_ORDER}
        )
        self._clipboard = clipboard
        self._notifier = notifier
        self._is_editing = is_editing
        self._subscriptions: list[Subscription] = []
        self._started = False
        self._closed = False
        debug(f"Table session created with features: {self._features.names()}")

    @property
    def identity(self) -> RowIdentity:
        return self._identity

    @property
    def features(self) -> TableFeatures:
        return self._features

    @property
    def started(self) -> bool:
        return self._started

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def subscriptions(self) -> tuple[Subscription, ...]:
        return tuple(self._subscriptions)

    def _check_open(self) -> None:
        if self._closed:
            raise SessionError("Table session is closed")

    def start(self, key_source: KeyEventSource) -> TableSession:
        """Register the keyboard shortcuts on ``key_source``.

        Undo/redo shortcuts are registered when undo/redo is enabled with
        keyboard shortcuts on. Clipboard shortcuts are registered when
        editing is enabled and the clipboard settings allow it.

        Raises
        ------
        SessionError
            If the session is closed or already started.
        """
        self._check_open()
        if self._started:
            raise SessionError("Table session already started")

        features = self._features
        if features.undo_redo is not None and features.undo_redo.config.enable_keyboard_shortcuts:
            shortcuts = UndoRedoShortcuts(features.undo_redo, is_editing=self._is_editing)
            self._subscriptions.append(key_source.subscribe(shortcuts))

        if features.editing is not None and get_settings().clipboard.enabled:
            clipboard = ClipboardShortcuts(
                features.editing,
                self._clipboard if self._clipboard is not None else MemoryClipboard(),
                notifier=self._notifier,
            )
            self._subscriptions.append(key_source.subscribe(clipboard))

        self._started = True
        debug(f"Table session started with {len(self._subscriptions)} keyboard handler(s)")
        return self

    def compose(
        self,
        rows: Sequence[Any],
        columns: Sequence[str | Mapping[str, Any] | ColDef],
        base_config: Mapping[str, Any] | None = None,
    ) -> ComposedTable:
        """Compose the grid and toolbar configuration for ``rows``.

        In client pagination mode the row count is synced first.
        """
        self._check_open()
        pagination = self._features.pagination
        if pagination is not None and pagination.config.mode == "client":
            pagination.set_total_rows(len(rows))
        return compose(rows, columns, self._features, base_config)

    def close(self) -> None:
        """Dispose keyboard subscriptions and engine resources. Idempotent."""
        if self._closed:
            return
        self._closed = True
        for subscription in self._subscriptions:
            subscription.dispose()
        self._subscriptions.clear()
        self._features.close()
        debug("Table session closed")

    def __enter__(self) -> TableSession:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self._closed else "started" if self._started else "idle"
        return f"TableSession(features={self._features.names()}, {state})"
