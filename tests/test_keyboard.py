"""Tests for keyboard routing, undo/redo shortcuts and clipboard shortcuts."""

import asyncio

from unittest.mock import AsyncMock, MagicMock

import pytest

from gridkit.features import EditingEngine, UndoRedoEngine
from gridkit.keyboard import (
    CellRef,
    ClipboardShortcuts,
    KeyEvent,
    KeyEventSource,
    LogNotifier,
    MemoryClipboard,
    Notifier,
    UndoRedoShortcuts,
)
from gridkit.models import HistoryAction


def history(on_undo=None, on_redo=None, steps=("a",)) -> UndoRedoEngine:
    engine = UndoRedoEngine(on_undo=on_undo, on_redo=on_redo)
    for payload in steps:
        engine.push_action(HistoryAction(type="UPDATE", payload=payload))
    return engine


def cell_event(key: str, row: dict, field: str, editable: bool = True, **mods) -> KeyEvent:
    return KeyEvent(
        key=key,
        ctrl=True,
        target="cell",
        cell=CellRef(row_id=row["id"], field=field, row=row, value=row[field], editable=editable),
        **mods,
    )


class TestKeyEventSource:
    """Tests for subscription handling."""

    def test_emit_reaches_all_handlers(self):
        """Every handler receives the event; any True means handled."""
        source = KeyEventSource()
        first = MagicMock(return_value=False)
        second = MagicMock(return_value=True)
        source.subscribe(first)
        source.subscribe(second)
        event = KeyEvent(key="a")
        assert source.emit(event) is True
        first.assert_called_once_with(event)
        second.assert_called_once_with(event)

    def test_unhandled(self):
        """No handler returning True means unhandled."""
        source = KeyEventSource()
        source.subscribe(lambda event: None)
        assert source.emit(KeyEvent(key="a")) is False

    def test_dispose_is_idempotent(self):
        """Disposing twice is harmless and stops delivery."""
        source = KeyEventSource()
        handler = MagicMock()
        subscription = source.subscribe(handler)
        subscription.dispose()
        subscription.dispose()
        assert subscription.disposed
        assert source.handler_count == 0
        source.emit(KeyEvent(key="a"))
        handler.assert_not_called()

    def test_subscription_context_manager(self):
        """Leaving the with block disposes the subscription."""
        source = KeyEventSource()
        with source.subscribe(MagicMock()) as subscription:
            assert source.handler_count == 1
        assert subscription.disposed
        assert source.handler_count == 0

    def test_key_event_helpers(self):
        """mod covers ctrl and meta; keys are lowercased."""
        assert KeyEvent(key="Z", meta=True).mod
        assert not KeyEvent(key="z").mod
        assert KeyEvent(key="Z").normalized_key == "z"


class TestUndoRedoShortcuts:
    """Tests for Ctrl/Cmd+Z and Ctrl/Cmd+Y routing."""

    @pytest.mark.parametrize(
        ("event", "expected"),
        [
            (KeyEvent(key="z", ctrl=True), "undo"),
            (KeyEvent(key="Z", meta=True), "undo"),
            (KeyEvent(key="y", ctrl=True), "redo"),
            (KeyEvent(key="z", ctrl=True, shift=True), "redo"),
        ],
    )
    def test_routing_without_loop(self, event, expected):
        """Without a running loop the action completes before returning."""
        on_undo = MagicMock()
        on_redo = MagicMock()
        engine = history(on_undo, on_redo)
        if expected == "redo":
            asyncio.run(engine.undo())
            on_undo.reset_mock()

        assert UndoRedoShortcuts(engine)(event) is True
        callback = on_undo if expected == "undo" else on_redo
        callback.assert_called_once()

    @pytest.mark.parametrize(
        "event",
        [
            KeyEvent(key="z"),
            KeyEvent(key="z", ctrl=True, alt=True),
            KeyEvent(key="x", ctrl=True),
            KeyEvent(key="z", ctrl=True, target="cell-editor"),
            KeyEvent(key="z", ctrl=True, target="input"),
        ],
        ids=["no-modifier", "alt", "other-key", "cell-editor", "input"],
    )
    def test_ignored_events(self, event):
        """Non-shortcuts and text targets are left alone."""
        on_undo = MagicMock()
        assert UndoRedoShortcuts(history(on_undo))(event) is False
        on_undo.assert_not_called()

    def test_ignored_while_editing(self):
        """An open cell editor suppresses the shortcut."""
        on_undo = MagicMock()
        shortcuts = UndoRedoShortcuts(history(on_undo), is_editing=lambda: True)
        assert shortcuts(KeyEvent(key="z", ctrl=True)) is False
        on_undo.assert_not_called()

    @pytest.mark.asyncio
    async def test_runs_as_task_inside_loop(self):
        """Inside a running loop the action is scheduled as a task."""
        on_undo = AsyncMock()
        engine = history(on_undo)
        shortcuts = UndoRedoShortcuts(engine)
        source = KeyEventSource()
        source.subscribe(shortcuts)

        assert source.emit(KeyEvent(key="z", ctrl=True))
        assert len(shortcuts.pending) == 1
        await asyncio.gather(*shortcuts.pending)
        on_undo.assert_awaited_once()
        assert not engine.can_undo

    @pytest.mark.asyncio
    async def test_failed_task_is_logged(self, caplog):
        """A failing background action is logged, not lost."""
        engine = history(AsyncMock(side_effect=RuntimeError("boom")))
        shortcuts = UndoRedoShortcuts(engine)
        shortcuts(KeyEvent(key="z", ctrl=True))
        results = await asyncio.gather(*shortcuts.pending, return_exceptions=True)
        await asyncio.sleep(0)
        assert isinstance(results[0], RuntimeError)
        assert "undo_redo.undo" in caplog.text
        assert engine.can_undo

    @pytest.mark.asyncio
    async def test_repeated_presses_apply_in_order(self):
        """A second Ctrl+Z waits for the first undo to finish."""
        applied = []

        async def on_undo(action):
            await asyncio.sleep(0.01)
            applied.append(action.payload)

        engine = history(on_undo, steps=("a", "b"))
        shortcuts = UndoRedoShortcuts(engine)
        shortcuts(KeyEvent(key="z", ctrl=True))
        shortcuts(KeyEvent(key="z", ctrl=True))
        await asyncio.gather(*shortcuts.pending)

        assert applied == ["b", "a"]
        assert not engine.can_undo
        assert [entry.payload for entry in engine.state.redo_stack] == ["b", "a"]

    @pytest.mark.asyncio
    async def test_failed_press_does_not_block_next(self):
        """A failing undo still lets the following shortcut run."""
        on_undo = AsyncMock(side_effect=[RuntimeError("boom"), None])
        engine = history(on_undo, steps=("a",))
        shortcuts = UndoRedoShortcuts(engine)
        shortcuts(KeyEvent(key="z", ctrl=True))
        shortcuts(KeyEvent(key="z", ctrl=True))
        results = await asyncio.gather(*shortcuts.pending, return_exceptions=True)

        assert sum(isinstance(result, RuntimeError) for result in results) == 1
        assert on_undo.await_count == 2
        assert not engine.can_undo


class TestClipboardShortcuts:
    """Tests for cell copy and paste."""

    @pytest.fixture
    def notifier(self):
        return MagicMock(spec=Notifier)

    def test_copy_writes_cell_value(self, rows, notifier):
        """Ctrl+C copies the focused cell value."""
        clipboard = MemoryClipboard()
        shortcuts = ClipboardShortcuts(EditingEngine(), clipboard, notifier=notifier)
        assert shortcuts(cell_event("c", rows[1], "hours")) is True
        assert clipboard.text == "6.5"
        notifier.notify.assert_called_once_with('Copied cell value: "6.5"', "success")

    def test_copy_prefers_draft(self, rows, notifier):
        """A draft value wins over the grid row."""
        editing = EditingEngine()
        editing.start_edit("r1", rows[0])
        editing.update_cell("r1", "name", "Edited")
        clipboard = MemoryClipboard()
        ClipboardShortcuts(editing, clipboard, notifier=notifier)(cell_event("c", rows[0], "name"))
        assert clipboard.text == "Edited"

    def test_copy_none_as_empty(self, rows, notifier):
        """None copies as an empty string."""
        clipboard = MemoryClipboard("old")
        ClipboardShortcuts(EditingEngine(), clipboard, notifier=notifier)(cell_event("c", rows[2], "details"))
        assert clipboard.text == ""

    def test_long_value_preview(self, notifier):
        """The copy message truncates long values."""
        row = {"id": "r9", "name": "x" * 40}
        ClipboardShortcuts(EditingEngine(), MemoryClipboard(), notifier=notifier)(cell_event("c", row, "name"))
        notifier.notify.assert_called_once_with(f'Copied cell value: "{"x" * 20}..."', "success")

    def test_paste_opens_draft(self, rows, notifier):
        """Pasting into a row without a draft opens one."""
        editing = EditingEngine()
        shortcuts = ClipboardShortcuts(editing, MemoryClipboard("Planning"), notifier=notifier)
        assert shortcuts(cell_event("v", rows[0], "name")) is True
        assert editing.get_draft("r1")["name"] == "Planning"
        assert editing.state.dirty_rows == frozenset({"r1"})
        assert rows[0]["name"] == "Design review"
        notifier.notify.assert_called_once_with("Pasted into cell", "success")

    def test_paste_single_line_field(self, rows, notifier):
        """Single-line fields take the first tab or newline separated value."""
        editing = EditingEngine()
        shortcuts = ClipboardShortcuts(editing, MemoryClipboard("a\tb\nc"), notifier=notifier)
        shortcuts(cell_event("v", rows[0], "name"))
        assert editing.get_draft("r1")["name"] == "a"

    def test_paste_multiline_field(self, rows, notifier):
        """Multi-line fields keep newlines and turn tabs into spaces."""
        editing = EditingEngine()
        shortcuts = ClipboardShortcuts(
            editing, MemoryClipboard("a\tb\nc"), multiline_fields=["details"], notifier=notifier
        )
        shortcuts(cell_event("v", rows[0], "details"))
        assert editing.get_draft("r1")["details"] == "a b\nc"

    def test_multiline_fields_from_settings(self, rows, notifier, monkeypatch):
        """multiline_fields defaults to the clipboard settings."""
        from gridkit.config import clear_settings

        monkeypatch.setenv("GRIDKIT_CLIPBOARD__MULTILINE_FIELDS", "details,notes")
        clear_settings()
        editing = EditingEngine()
        ClipboardShortcuts(editing, MemoryClipboard("x\ny"), notifier=notifier)(cell_event("v", rows[0], "details"))
        assert editing.get_draft("r1")["details"] == "x\ny"

    def test_paste_into_read_only_cell(self, rows, notifier):
        """Non-editable cells warn and stay unchanged."""
        editing = EditingEngine()
        shortcuts = ClipboardShortcuts(editing, MemoryClipboard("x"), notifier=notifier)
        assert shortcuts(cell_event("v", rows[0], "id", editable=False)) is True
        notifier.notify.assert_called_once_with("This cell cannot be edited", "warning")
        assert editing.get_draft("r1") is None

    def test_paste_empty_clipboard(self, rows, notifier):
        """An empty clipboard is ignored."""
        editing = EditingEngine()
        ClipboardShortcuts(editing, MemoryClipboard(""), notifier=notifier)(cell_event("v", rows[0], "name"))
        assert editing.get_draft("r1") is None
        notifier.notify.assert_not_called()

    def test_clipboard_errors_reported(self, rows, notifier):
        """Clipboard failures become error notifications."""
        clipboard = MagicMock()
        clipboard.read_text.side_effect = OSError("no display")
        clipboard.write_text.side_effect = RuntimeError("locked")
        shortcuts = ClipboardShortcuts(EditingEngine(), clipboard, notifier=notifier)
        shortcuts(cell_event("v", rows[0], "name"))
        shortcuts(cell_event("c", rows[0], "name"))
        assert [c.args for c in notifier.notify.call_args_list] == [
            ("Could not read the clipboard", "error"),
            ("Copy failed", "error"),
        ]

    @pytest.mark.parametrize(
        "event",
        [
            KeyEvent(key="c", ctrl=True, target="document"),
            KeyEvent(key="c", ctrl=True, target="cell"),
            KeyEvent(key="c", ctrl=True, shift=True, target="cell", cell=CellRef(row_id="r1", field="name")),
            KeyEvent(key="c", target="cell", cell=CellRef(row_id="r1", field="name")),
            KeyEvent(key="x", ctrl=True, target="cell", cell=CellRef(row_id="r1", field="name")),
        ],
        ids=["document", "no-cell", "shift", "no-modifier", "other-key"],
    )
    def test_ignored_events(self, event, notifier):
        """Only Ctrl/Cmd+C/V on a focused cell is handled."""
        shortcuts = ClipboardShortcuts(EditingEngine(), MemoryClipboard("x"), notifier=notifier)
        assert shortcuts(event) is False
        notifier.notify.assert_not_called()

    def test_inactive_in_inline_mode(self, rows, notifier):
        """By default shortcuts only act in batch editing mode."""
        shortcuts = ClipboardShortcuts(EditingEngine({"mode": "inline"}), MemoryClipboard("x"), notifier=notifier)
        assert shortcuts(cell_event("v", rows[0], "name")) is False

    def test_log_notifier(self, caplog):
        """LogNotifier writes warnings and errors through the logger."""
        LogNotifier().notify("careful", "warning")
        LogNotifier().notify("broken", "error")
        assert "careful" in caplog.text
        assert "broken" in caplog.text
