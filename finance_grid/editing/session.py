"""
Cell Edit Session

Single-slot state machine for editing one cell at a time.

    IDLE ──start_edit──▶ EDITING ──commit / cancel──▶ IDLE

Rules:
- The derived field can never be entered.
- Starting a new edit while one is active commits the active one first.
  If that commit is refused (invalid draft), the new edit does not start.
- Enter is swallowed while a validation error is showing; blur and Tab
  re-run normalization and are refused for an invalid draft.
- After a commit that gets past validation the session is IDLE again,
  whether or not the committer accepted the value.
"""

from enum import Enum
from typing import Any, Callable, Optional

import structlog
from pydantic import BaseModel, ConfigDict

from finance_grid.models.records import FieldKind, GridRecord
from finance_grid.store import RecordFieldError, RecordIndexError, RecordStore
from finance_grid.validation import CellValidationError, CellValidator

logger = structlog.get_logger(__name__)

# (index, field, value) -> updated record, or None if the change was refused
Committer = Callable[[int, str, Any], Optional[GridRecord]]


class EditState(str, Enum):
    IDLE = "idle"
    EDITING = "editing"


class CommitTrigger(str, Enum):
    """What ended the edit in the UI."""
    BLUR = "blur"
    ENTER = "enter"
    TAB = "tab"


class CommitResult(str, Enum):
    NO_SESSION = "no_session"
    REFUSED = "refused"        # Validation failed, still EDITING
    UNCHANGED = "unchanged"    # Normalized value equals the original
    COMMITTED = "committed"
    FAILED = "failed"          # Committer rejected the value, now IDLE


class EditDraft(BaseModel):
    """The live edit: which cell, its value at start, and the draft text."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    index: int
    field: str
    kind: FieldKind
    original_value: Any
    draft: str
    error: Optional[str] = None


class CellEditSession:
    """
    Governs interactive editing of one cell at a time.

    The committer receives the normalized value; it defaults to the Record
    Store's update(). The Grid Session wires in the orchestrator instead so
    the change is also pushed to the remote store.
    """

    def __init__(
        self,
        store: RecordStore,
        committer: Optional[Committer] = None,
        validator: Optional[CellValidator] = None,
    ):
        self._store = store
        self._committer = committer or store.update
        self._validator = validator or CellValidator()
        self._active: Optional[EditDraft] = None
        self.last_error: Optional[str] = None

    @property
    def state(self) -> EditState:
        return EditState.EDITING if self._active is not None else EditState.IDLE

    @property
    def is_editing(self) -> bool:
        return self._active is not None

    @property
    def editing_cell(self) -> Optional[tuple[int, str]]:
        if self._active is None:
            return None
        return self._active.index, self._active.field

    @property
    def draft(self) -> Optional[str]:
        return self._active.draft if self._active else None

    @property
    def validation_error(self) -> Optional[str]:
        return self._active.error if self._active else None

    @property
    def original_value(self) -> Any:
        return self._active.original_value if self._active else None

    def start_edit(self, index: int, field: str) -> bool:
        """
        Enter EDITING for (index, field).

        Returns:
            True if that cell is now being edited
        """
        dataset = self._store.dataset
        attr = dataset.resolve_field(field)
        kind = dataset.field_kinds.get(attr) if attr else None
        if kind is None or not kind.is_editable:
            logger.debug("edit_refused", dataset=dataset.name, field=field, index=index)
            return False

        if self._active is not None:
            if (self._active.index, self._active.field) == (index, attr):
                return True
            if self.commit(CommitTrigger.BLUR) == CommitResult.REFUSED:
                return False

        try:
            original = self._store.value_at(index, attr)
        except RecordIndexError:
            return False

        self._active = EditDraft(
            index=index,
            field=attr,
            kind=kind,
            original_value=original,
            draft="" if original is None else str(original),
        )
        self.last_error = None
        return True

    def on_input(self, value: str) -> Optional[str]:
        """
        Replace the draft and re-validate it.

        Returns:
            The validation error now showing, if any
        """
        if self._active is None:
            return None
        self._active.draft = value
        self._active.error = self._validator.validate_input(self._active.kind, value)
        return self._active.error

    def commit(self, trigger: CommitTrigger = CommitTrigger.BLUR) -> CommitResult:
        """Normalize the draft and hand it to the committer if it changed."""
        active = self._active
        if active is None:
            return CommitResult.NO_SESSION

        if trigger == CommitTrigger.ENTER and active.error:
            return CommitResult.REFUSED

        try:
            value = self._validator.normalize(active.field, active.kind, active.draft)
        except CellValidationError as e:
            active.error = str(e)
            return CommitResult.REFUSED

        try:
            if self._validator.same_value(active.kind, active.original_value, value):
                return CommitResult.UNCHANGED
            try:
                updated = self._committer(active.index, active.field, value)
            except (RecordIndexError, RecordFieldError) as e:
                self.last_error = str(e)
                return CommitResult.FAILED
            if updated is None:
                self.last_error = "Failed to update cell value"
                return CommitResult.FAILED
            return CommitResult.COMMITTED
        finally:
            self._active = None

    def cancel(self) -> bool:
        """Discard the draft without touching the store."""
        if self._active is None:
            return False
        self._active = None
        return True
