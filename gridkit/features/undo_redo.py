"""Undo/redo history engine.

Two bounded LIFO stacks of ``HistoryAction`` entries. Pushing a new action
clears the redo stack, so redo never crosses a branch point. The engine
never touches row data itself: applying an undo or redo is delegated to the
``on_undo`` / ``on_redo`` callbacks.

A stack transition is only committed after its apply callback returns. If
the callback raises, both stacks are left as they were and the exception
propagates.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict

from ..callbacks import CallbackFunc, invoke
from ..log import debug
from ..models import ActionType, HistoryAction, UndoRedoConfig
from .base import TableFeature


class UndoRedoState(BaseModel):
    """Snapshot of both history stacks (oldest first)."""

    model_config = ConfigDict(frozen=True)

    undo_stack: tuple[HistoryAction, ...] = ()
    redo_stack: tuple[HistoryAction, ...] = ()

    @property
    def can_undo(self) -> bool:
        return bool(self.undo_stack)

    @property
    def can_redo(self) -> bool:
        return bool(self.redo_stack)


def _take(stack: list[HistoryAction], action: HistoryAction) -> bool:
    """Remove ``action`` (by identity, searching from the top)."""
    for index in range(len(stack) - 1, -1, -1):
        if stack[index] is action:
            del stack[index]
            return True
    return False


class UndoRedoEngine(TableFeature[UndoRedoConfig, UndoRedoState]):
    """Bounded, branch-invalidating two-stack history.

    Parameters
    ----------
    config : UndoRedoConfig or Mapping, optional
        Feature options; missing values come from settings.
    on_undo : CallbackFunc, optional
        Reverts the given action. May be async.
    on_redo : CallbackFunc, optional
        Re-applies the given action. May be async.
    """

    name: ClassVar[str] = "undo_redo"
    action_names: ClassVar[tuple[str, ...]] = (
        "undo",
        "redo",
        "push_action",
        "clear_history",
    )

    def __init__(
        self,
        config: UndoRedoConfig | Mapping[str, Any] | None = None,
        *,
        on_undo: CallbackFunc | None = None,
        on_redo: CallbackFunc | None = None,
    ) -> None:
        super().__init__(UndoRedoConfig.resolve(config))
        self._on_undo = on_undo
        self._on_redo = on_redo
        self._undo: list[HistoryAction] = []
        self._redo: list[HistoryAction] = []

    @property
    def state(self) -> UndoRedoState:
        return UndoRedoState(undo_stack=tuple(self._undo), redo_stack=tuple(self._redo))

    @property
    def can_undo(self) -> bool:
        return bool(self._undo)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    def _push_bounded(self, stack: list[HistoryAction], action: HistoryAction) -> None:
        stack.append(action)
        overflow = len(stack) - self._config.max_steps
        if overflow > 0:
            del stack[:overflow]

    def push_action(self, action: HistoryAction) -> None:
        """Record an action and invalidate the redo branch.

        Actions whose type is not tracked are ignored.
        """
        if action.type not in self._config.tracking_types:
            debug(f"History action {action.type.value} not tracked, ignored")
            return
        self._push_bounded(self._undo, action)
        self._redo.clear()

    def record(
        self,
        type: ActionType | str,  # pylint: disable=redefined-builtin
        payload: Any = None,
        before: Any = None,
        after: Any = None,
    ) -> HistoryAction:
        """Build a timestamped action and push it.

        Returns
        -------
        HistoryAction
            The built action, whether or not its type is tracked.
        """
        action = HistoryAction(type=type, payload=payload, before=before, after=after)
        self.push_action(action)
        return action

    async def undo(self) -> HistoryAction | None:
        """Revert the most recent action.

        Returns
        -------
        HistoryAction or None
            The undone action, or None when there was nothing to undo.
        """
        if not self._undo:
            debug("Nothing to undo")
            return None
        action = self._undo[-1]
        await invoke(self._on_undo, action, feature=self.name, action="undo")
        if _take(self._undo, action):
            self._push_bounded(self._redo, action)
        return action

    async def redo(self) -> HistoryAction | None:
        """Re-apply the most recently undone action.

        Returns
        -------
        HistoryAction or None
            The redone action, or None when there was nothing to redo.
        """
        if not self._redo:
            debug("Nothing to redo")
            return None
        action = self._redo[-1]
        await invoke(self._on_redo, action, feature=self.name, action="redo")
        if _take(self._redo, action):
            self._push_bounded(self._undo, action)
        return action

    def clear_history(self) -> None:
        self._undo.clear()
        self._redo.clear()

    def grid_props(self) -> dict[str, Any]:
        return {}

    def toolbar_props(self) -> dict[str, Any]:
        return {
            "showUndoButton": True,
            "showRedoButton": True,
            "canUndo": self.can_undo,
            "canRedo": self.can_redo,
            "onUndo": self.undo,
            "onRedo": self.redo,
        }
