"""Keyboard routing for table sessions: undo/redo and cell clipboard.

The host application (a webview bridge, a TUI, a test) translates its own
key events into ``KeyEvent`` objects and feeds them to a ``KeyEventSource``.
Shortcut handlers subscribe to the source and get back a ``Subscription``
that their owner disposes when the table goes away, so several tables can
share one source without leaking handlers into each other.

Usage:
    source = KeyEventSource()
    sub = source.subscribe(UndoRedoShortcuts(undo_engine))
    source.emit(KeyEvent(key="z", ctrl=True))
    sub.dispose()
"""

from __future__ import annotations

import asyncio

from collections.abc import Callable, Coroutine
from typing import Any, Literal, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict

from .features.editing import EditingEngine
from .features.undo_redo import UndoRedoEngine
from .log import debug, error, info, warn
from .models import read_field


TargetKind = Literal["cell", "cell-editor", "input", "document"]
NotifyLevel = Literal["success", "info", "warning", "error"]

# Targets where the platform's own text editing owns the keystroke
_TEXT_TARGETS = frozenset({"cell-editor", "input"})


class CellRef(BaseModel):
    """The grid cell that had focus when a key was pressed."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    row_id: Any
    field: str
    row: Any = None
    value: Any = None
    editable: bool = False


class KeyEvent(BaseModel):
    """Host-neutral key press.

    ``target`` says where focus was: a grid cell, a cell editor, a free-text
    input outside the grid, or the document itself.
    """

    model_config = ConfigDict(frozen=True)

    key: str
    ctrl: bool = False
    meta: bool = False
    shift: bool = False
    alt: bool = False
    target: TargetKind = "document"
    cell: CellRef | None = None

    @property
    def mod(self) -> bool:
        """Ctrl on Windows/Linux or Cmd on macOS."""
        return self.ctrl or self.meta

    @property
    def normalized_key(self) -> str:
        return self.key.lower()


KeyHandler = Callable[[KeyEvent], bool | None]


class Subscription:
    """Handle for a registered key handler. ``dispose()`` is idempotent."""

    def __init__(self, source: KeyEventSource, handler: KeyHandler) -> None:
        self._source = source
        self._handler = handler
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def handler(self) -> KeyHandler:
        return self._handler

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        self._source._unsubscribe(self)  # pylint: disable=protected-access

    def __enter__(self) -> Subscription:
        return self

    def __exit__(self, *exc: object) -> None:
        self.dispose()


class KeyEventSource:
    """In-process publisher of key events."""

    def __init__(self) -> None:
        self._subscriptions: list[Subscription] = []

    def subscribe(self, handler: KeyHandler) -> Subscription:
        subscription = Subscription(self, handler)
        self._subscriptions.append(subscription)
        return subscription

    def _unsubscribe(self, subscription: Subscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

    @property
    def handler_count(self) -> int:
        return len(self._subscriptions)

    def emit(self, event: KeyEvent) -> bool:
        """Deliver an event to every handler in subscription order.

        Returns
        -------
        bool
            True if any handler reported the event as handled.
        """
        handled = False
        for subscription in list(self._subscriptions):
            if subscription.disposed:
                continue
            if subscription.handler(event):
                handled = True
        return handled


@runtime_checkable
class Notifier(Protocol):
    """Receives user-facing outcome messages (toasts, status lines)."""

    def notify(self, message: str, level: NotifyLevel = "info") -> None: ...


class LogNotifier:
    """Notifier writing through the gridkit logger."""

    def notify(self, message: str, level: NotifyLevel = "info") -> None:
        if level == "error":
            error(message)
        elif level == "warning":
            warn(message)
        else:
            info(message)


@runtime_checkable
class Clipboard(Protocol):
    """System clipboard access."""

    def read_text(self) -> str: ...

    def write_text(self, text: str) -> None: ...


class MemoryClipboard:
    """Process-local clipboard."""

    def __init__(self, text: str = "") -> None:
        self.text = text

    def read_text(self) -> str:
        return self.text

    def write_text(self, text: str) -> None:
        self.text = text


class _ActionRunner:
    """Runs async engine actions from synchronous key handlers.

    Inside a running event loop the action becomes a task that starts only
    after the previously scheduled action has finished, so repeated
    keystrokes are applied one at a time in the order they arrived. Without
    a loop the action runs to completion before the handler returns.
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[Any]] = set()
        self._last: asyncio.Task[Any] | None = None

    @property
    def pending(self) -> tuple[asyncio.Task[Any], ...]:
        return tuple(self._tasks)

    def run(self, coro: Coroutine[Any, Any, Any], name: str) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            asyncio.run(coro)
            return
        task = loop.create_task(self._after(self._last, coro), name=name)
        self._last = task
        self._tasks.add(task)
        task.add_done_callback(self._done)

    @staticmethod
    async def _after(previous: asyncio.Task[Any] | None, coro: Coroutine[Any, Any, Any]) -> Any:
        try:
            if previous is not None and not previous.done():
                # Failures of the earlier action are reported by _done
                await asyncio.wait({previous})
        except asyncio.CancelledError:
            coro.close()
            raise
        return await coro

    def _done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if self._last is task:
            self._last = None
        if not task.cancelled() and task.exception() is not None:
            error(f"Keyboard action '{task.get_name()}' failed: {task.exception()!r}")


class UndoRedoShortcuts(_ActionRunner):
    """Ctrl/Cmd+Z undoes; Ctrl/Cmd+Y and Ctrl/Cmd+Shift+Z redo.

    Shortcuts are left alone while a managed cell is being edited or focus
    is in a free-text input, so the platform's own text undo keeps working.

    Parameters
    ----------
    engine : UndoRedoEngine
        History to drive.
    is_editing : Callable[[], bool], optional
        Reports whether a managed cell editor is open.
    """

    def __init__(
        self,
        engine: UndoRedoEngine,
        is_editing: Callable[[], bool] | None = None,
    ) -> None:
        super().__init__()
        self._engine = engine
        self._is_editing = is_editing or (lambda: False)

    def __call__(self, event: KeyEvent) -> bool:
        if not event.mod or event.alt:
            return False

        key = event.normalized_key
        if key == "z" and not event.shift:
            action = "undo"
        elif key == "y" or (key == "z" and event.shift):
            action = "redo"
        else:
            return False

        if event.target in _TEXT_TARGETS or self._is_editing():
            debug(f"Keyboard {action} left to the text editor ({event.target})")
            return False

        self.run(getattr(self._engine, action)(), name=f"undo_redo.{action}")
        return True


def _paste_value(text: str, multiline: bool) -> str:
    if multiline:
        return text.replace("\t", " ")
    return text.replace("\r\n", "\n").split("\t")[0].split("\n")[0]


def _preview(text: str, limit: int = 20) -> str:
    return f"{text[:limit]}..." if len(text) > limit else text


class ClipboardShortcuts:
    """Ctrl/Cmd+C copies the focused cell; Ctrl/Cmd+V pastes into it.

    Pasted values land in the editing engine's draft for the row (opening
    one from ``CellRef.row`` when needed). Fields listed in
    ``multiline_fields`` keep the whole clipboard text with tabs turned into
    spaces; other fields take the first tab or newline separated value.

    Parameters
    ----------
    editing : EditingEngine
        Receives pasted values.
    clipboard : Clipboard
        System clipboard access.
    is_active : Callable[[], bool], optional
        Shortcuts only act while this returns True. Defaults to "editing is
        in batch mode".
    multiline_fields : Iterable[str], optional
        Fields that accept multi-line text. Defaults to the clipboard
        settings.
    notifier : Notifier, optional
        Receives outcome messages. Defaults to ``LogNotifier``.
    """

    def __init__(
        self,
        editing: EditingEngine,
        clipboard: Clipboard,
        *,
        is_active: Callable[[], bool] | None = None,
        multiline_fields: Any = None,
        notifier: Notifier | None = None,
    ) -> None:
        if multiline_fields is None:
            from .config import get_settings  # pylint: disable=import-outside-toplevel

            multiline_fields = get_settings().clipboard.multiline_fields
        self._editing = editing
        self._clipboard = clipboard
        self._is_active = is_active or (lambda: editing.batch)
        self._multiline_fields = frozenset(multiline_fields)
        self._notifier = notifier or LogNotifier()

    def __call__(self, event: KeyEvent) -> bool:
        if not event.mod or event.shift or event.alt:
            return False
        key = event.normalized_key
        if key not in ("c", "v") or event.cell is None or event.target != "cell":
            return False
        if not self._is_active():
            return False

        if key == "c":
            self._copy(event.cell)
        else:
            self._paste(event.cell)
        return True

    def _cell_value(self, cell: CellRef) -> Any:
        draft = self._editing.get_draft(cell.row_id)
        if draft is not None:
            return read_field(draft, cell.field)
        if cell.row is not None:
            return read_field(cell.row, cell.field)
        return cell.value

    def _copy(self, cell: CellRef) -> None:
        value = self._cell_value(cell)
        text = "" if value is None else str(value)
        try:
            self._clipboard.write_text(text)
        except (OSError, RuntimeError) as e:
            error(f"Failed to write clipboard: {e!r}")
            self._notifier.notify("Copy failed", "error")
            return
        self._notifier.notify(f'Copied cell value: "{_preview(text)}"', "success")

    def _paste(self, cell: CellRef) -> None:
        if not cell.editable:
            self._notifier.notify("This cell cannot be edited", "warning")
            return
        try:
            text = self._clipboard.read_text()
        except (OSError, RuntimeError) as e:
            error(f"Failed to read clipboard: {e!r}")
            self._notifier.notify("Could not read the clipboard", "error")
            return
        if not text:
            debug("Paste ignored: clipboard is empty")
            return

        if self._editing.get_draft(cell.row_id) is None:
            if cell.row is None:
                self._notifier.notify("Row is not being edited", "warning")
                return
            self._editing.start_edit(cell.row_id, cell.row)

        value = _paste_value(text, cell.field in self._multiline_fields)
        self._editing.update_cell(cell.row_id, cell.field, value)
        self._notifier.notify("Pasted into cell", "success")
