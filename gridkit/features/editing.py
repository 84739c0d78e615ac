"""Editing feature engine: drafts, dirty tracking and saving.

Each row being edited gets a draft, an independent deep copy of the row
taken when editing starts. Cell updates replace the draft with a modified
copy, so the caller's row objects are never mutated.

Modes:
- ``batch``: edits accumulate until ``save_changes`` hands them to the save
  callback; saved drafts are closed.
- ``inline``: full-row editing; saved drafts stay open.
"""

from __future__ import annotations

import copy

from collections.abc import Callable, Hashable, Mapping
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict

from ..callbacks import CallbackFunc, invoke
from ..exceptions import EditValidationError
from ..log import debug, info
from ..models import EditingConfig, read_field, replace_field
from .base import TableFeature


# A validator receives (value, draft row) and returns an error message or None
Validator = Callable[[Any, Any], str | None]


class EditingState(BaseModel):
    """Open drafts, dirty ids and validation errors."""

    model_config = ConfigDict(frozen=True)

    editing_rows: dict[Any, Any] = {}
    dirty_rows: frozenset[Any] = frozenset()
    is_saving: bool = False
    errors: dict[Any, dict[str, str]] = {}

    @property
    def is_editing(self) -> bool:
        return bool(self.editing_rows)

    @property
    def has_changes(self) -> bool:
        return bool(self.dirty_rows)


class EditingEngine(TableFeature[EditingConfig, EditingState]):
    """Batch or inline row editing with an asynchronous save callback.

    Parameters
    ----------
    config : EditingConfig or Mapping, optional
        Feature options; missing values come from settings.
    on_save : CallbackFunc, optional
        Receives ``{row_id: draft}`` for every dirty row. May be async.
        Exceptions propagate out of ``save_changes`` and leave the edit
        state untouched.
    validators : Mapping[str, Validator], optional
        Per-field validators returning an error message or None.
    """

    name: ClassVar[str] = "editing"
    action_names: ClassVar[tuple[str, ...]] = (
        "start_edit",
        "stop_edit",
        "update_cell",
        "save_changes",
        "discard_changes",
        "reset",
    )

    def __init__(
        self,
        config: EditingConfig | Mapping[str, Any] | None = None,
        *,
        on_save: CallbackFunc | None = None,
        validators: Mapping[str, Validator] | None = None,
    ) -> None:
        super().__init__(EditingConfig.resolve(config))
        self._on_save = on_save
        self._validators = dict(validators or {})
        self._drafts: dict[Hashable, Any] = {}
        self._dirty: set[Hashable] = set()
        self._errors: dict[Hashable, dict[str, str]] = {}
        self._saving = False

    @property
    def state(self) -> EditingState:
        return EditingState(
            editing_rows=dict(self._drafts),
            dirty_rows=frozenset(self._dirty),
            is_saving=self._saving,
            errors={row_id: dict(errs) for row_id, errs in self._errors.items()},
        )

    @property
    def batch(self) -> bool:
        return self._config.mode == "batch"

    def get_draft(self, row_id: Hashable) -> Any:
        """Return the current draft for ``row_id``, or None."""
        return self._drafts.get(row_id)

    def start_edit(self, row_id: Hashable, row: Any) -> None:
        """Open (or reopen) a draft for a row.

        Reopening discards the previous draft together with its dirty flag
        and errors.
        """
        self._drafts[row_id] = copy.deepcopy(row)
        self._dirty.discard(row_id)
        self._errors.pop(row_id, None)

    def stop_edit(self, row_id: Hashable) -> None:
        """Close a draft without saving it."""
        self._drafts.pop(row_id, None)
        self._dirty.discard(row_id)
        self._errors.pop(row_id, None)

    def update_cell(self, row_id: Hashable, field: str, value: Any) -> None:
        """Set ``field`` on the row's draft and mark the row dirty.

        Ignored when the row has no open draft.
        """
        draft = self._drafts.get(row_id)
        if draft is None:
            debug(f"update_cell ignored: row {row_id!r} is not being edited")
            return

        draft = replace_field(draft, field, value)
        self._drafts[row_id] = draft
        self._dirty.add(row_id)

        if self._config.validate_on_change:
            self._validate_field(row_id, draft, field)

    def _validate_field(self, row_id: Hashable, draft: Any, field: str) -> None:
        validator = self._validators.get(field)
        if validator is None:
            return
        message = validator(read_field(draft, field), draft)
        row_errors = self._errors.setdefault(row_id, {})
        if message:
            row_errors[field] = message
        else:
            row_errors.pop(field, None)
        if not row_errors:
            del self._errors[row_id]

    def _validate_dirty(self) -> dict[Hashable, dict[str, str]]:
        for row_id in self._dirty:
            for field in self._validators:
                self._validate_field(row_id, self._drafts[row_id], field)
        return {row_id: errs for row_id, errs in self._errors.items() if row_id in self._dirty}

    async def save_changes(self) -> None:
        """Hand every dirty draft to the save callback.

        Nothing happens when no row is dirty. Rows edited again while the
        callback was running keep their dirty flag.

        Raises
        ------
        EditValidationError
            If a dirty row fails validation. The callback is not invoked.
        """
        if not self._dirty:
            debug("save_changes ignored: no dirty rows")
            return

        errors = self._validate_dirty()
        if errors:
            raise EditValidationError(
                f"{len(errors)} edited row(s) failed validation", errors=errors
            )

        snapshot = {row_id: self._drafts[row_id] for row_id in self._dirty}
        self._saving = True
        try:
            await invoke(self._on_save, dict(snapshot), feature=self.name, action="save_changes")
        finally:
            self._saving = False

        for row_id, saved in snapshot.items():
            if self._drafts.get(row_id) is not saved:
                continue
            self._dirty.discard(row_id)
            if self.batch:
                del self._drafts[row_id]
        info(f"Saved {len(snapshot)} edited row(s)")

    def discard_changes(self) -> None:
        """Drop every draft, dirty flag and error."""
        self._drafts = {}
        self._dirty = set()
        self._errors = {}

    def reset(self) -> None:
        self.discard_changes()

    def grid_props(self) -> dict[str, Any]:
        inline = not self.batch
        props: dict[str, Any] = {
            "singleClickEdit": inline,
            "stopEditingWhenCellsLoseFocus": inline,
        }
        if inline:
            props["editType"] = "fullRow"
        return props

    def toolbar_props(self) -> dict[str, Any]:
        has_changes = bool(self._dirty)
        return {
            "showSaveButton": self.batch and has_changes,
            "showDiscardButton": self.batch and has_changes,
            "onSave": self.save_changes,
            "onDiscard": self.discard_changes,
            "hasChanges": has_changes,
            "isSaving": self._saving,
        }
