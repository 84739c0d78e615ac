"""Row actions feature engine: add, delete, duplicate.

The engine only orchestrates. Persistence is delegated to the ``on_add``,
``on_delete``, ``on_delete_batch`` and ``on_duplicate`` callbacks, any of
which may be async. With ``confirm_delete`` enabled a single-row delete is
held as pending until ``confirm_delete()`` or ``cancel_delete()``.
"""

from __future__ import annotations

import asyncio
import copy
import uuid

from collections.abc import Hashable, Iterable, Mapping
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict

from ..callbacks import CallbackFunc, invoke
from ..log import debug
from ..models import RowActionsConfig, RowIdentity
from .base import TableFeature


class RowActionsState(BaseModel):
    """Enabled actions and deletes awaiting confirmation."""

    model_config = ConfigDict(frozen=True)

    can_add: bool = True
    can_delete: bool = True
    can_duplicate: bool = True
    pending_delete_id: Any = None
    pending_batch_ids: tuple[Any, ...] = ()


def duplicate_id(original: Hashable) -> str:
    """Derive a fresh id for a duplicated row."""
    return f"{original}-copy-{uuid.uuid4().hex[:8]}"


class RowActionsEngine(TableFeature[RowActionsConfig, RowActionsState]):
    """Add/delete/duplicate orchestration with optional delete confirmation.

    Parameters
    ----------
    config : RowActionsConfig or Mapping, optional
        Feature options; missing values come from settings.
    identity : RowIdentity
        Reads a row's id and stamps new ids on duplicated rows.
    on_add, on_delete, on_delete_batch, on_duplicate : CallbackFunc, optional
        Persistence callbacks (sync or async).
    """

    name: ClassVar[str] = "row_actions"
    action_names: ClassVar[tuple[str, ...]] = (
        "add_row",
        "delete_row",
        "delete_rows",
        "duplicate_row",
        "confirm_delete",
        "cancel_delete",
    )

    def __init__(
        self,
        config: RowActionsConfig | Mapping[str, Any] | None = None,
        *,
        identity: RowIdentity,
        on_add: CallbackFunc | None = None,
        on_delete: CallbackFunc | None = None,
        on_delete_batch: CallbackFunc | None = None,
        on_duplicate: CallbackFunc | None = None,
    ) -> None:
        super().__init__(RowActionsConfig.resolve(config))
        self._identity = identity
        self._on_add = on_add
        self._on_delete = on_delete
        self._on_delete_batch = on_delete_batch
        self._on_duplicate = on_duplicate
        self._pending_id: Hashable | None = None
        self._pending_batch: tuple[Hashable, ...] = ()

    @property
    def state(self) -> RowActionsState:
        return RowActionsState(
            can_add=self._config.enable_add,
            can_delete=self._config.enable_delete,
            can_duplicate=self._config.enable_duplicate,
            pending_delete_id=self._pending_id,
            pending_batch_ids=self._pending_batch,
        )

    async def add_row(self, row: Any) -> None:
        if not self._config.enable_add:
            debug("add_row ignored: adding is disabled")
            return
        await invoke(self._on_add, row, feature=self.name, action="add_row")

    async def delete_row(self, row_id: Hashable) -> None:
        """Delete a row, or hold it for confirmation when confirmation is on.

        A new request replaces any earlier pending single-row delete.
        """
        if not self._config.enable_delete:
            debug("delete_row ignored: deleting is disabled")
            return
        if self._config.confirm_delete:
            self._pending_id = row_id
            debug(f"Delete of row {row_id!r} awaiting confirmation")
            return
        await invoke(self._on_delete, row_id, feature=self.name, action="delete_row")

    async def delete_rows(self, row_ids: Iterable[Hashable]) -> None:
        """Delete several rows at once.

        Uses ``on_delete_batch`` when given, otherwise issues the single-row
        deletes concurrently. Not gated by ``confirm_delete``; set
        ``confirm_batch_delete`` to hold the batch for confirmation.
        """
        if not self._config.enable_delete:
            debug("delete_rows ignored: deleting is disabled")
            return
        ids = tuple(row_ids)
        if not ids:
            debug("delete_rows ignored: no ids given")
            return
        if self._config.confirm_batch_delete:
            self._pending_batch = ids
            debug(f"Delete of {len(ids)} rows awaiting confirmation")
            return
        await self._delete_many(ids)

    async def _delete_many(self, ids: tuple[Hashable, ...]) -> None:
        if self._on_delete_batch is not None:
            await invoke(self._on_delete_batch, list(ids), feature=self.name, action="delete_rows")
            return
        await asyncio.gather(
            *(invoke(self._on_delete, row_id, feature=self.name, action="delete_rows") for row_id in ids)
        )

    async def confirm_delete(self) -> None:
        """Carry out the pending deletes.

        A pending entry is only cleared once its callback succeeded.
        """
        if self._pending_id is None and not self._pending_batch:
            debug("confirm_delete ignored: nothing pending")
            return
        if self._pending_id is not None:
            row_id = self._pending_id
            await invoke(self._on_delete, row_id, feature=self.name, action="confirm_delete")
            if self._pending_id == row_id:
                self._pending_id = None
        if self._pending_batch:
            ids = self._pending_batch
            await self._delete_many(ids)
            if self._pending_batch == ids:
                self._pending_batch = ()

    def cancel_delete(self) -> None:
        self._pending_id = None
        self._pending_batch = ()

    async def duplicate_row(self, row: Any) -> Any:
        """Duplicate a row.

        Delegates to ``on_duplicate`` when given. Otherwise a deep copy with
        a new ``{id}-copy-{hex}`` id goes through ``on_add``.

        Returns
        -------
        Any
            The result of ``on_duplicate``, or the cloned row.
        """
        if not self._config.enable_duplicate:
            debug("duplicate_row ignored: duplicating is disabled")
            return None
        if self._on_duplicate is not None:
            return await invoke(self._on_duplicate, row, feature=self.name, action="duplicate_row")

        clone = self._identity.assign(copy.deepcopy(row), duplicate_id(self._identity.get(row)))
        await invoke(self._on_add, clone, feature=self.name, action="duplicate_row")
        return clone

    def grid_props(self) -> dict[str, Any]:
        return {}

    def toolbar_props(self) -> dict[str, Any]:
        return {
            "showAddButton": self._config.enable_add,
            "showDeleteButton": self._config.enable_delete,
            "showDuplicateButton": self._config.enable_duplicate,
            "onAdd": self.add_row,
            "onDelete": self.delete_row,
            "onDuplicate": self.duplicate_row,
            "pendingDeleteId": self._pending_id,
            "pendingDeleteIds": list(self._pending_batch),
            "onConfirmDelete": self.confirm_delete,
            "onCancelDelete": self.cancel_delete,
        }
