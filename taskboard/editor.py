"""
Task editing session state machine.

Lifecycle:
  Idle → Editing(task id | None) → Submitting → Idle        (saved)
                      ↑                 │
                      └─────────────────┘                    (service failure)

A validation failure never leaves Editing. Edit mode works from the task as
read from the snapshot when editing began; later changes to that task are
not reconciled.
"""
from enum import Enum
from typing import Any, Dict, Optional

from .schema import Task
from .validator import ValidationError, form_from_task, validate_task_form


class EditorState(Enum):
    IDLE = "idle"
    EDITING = "editing"
    SUBMITTING = "submitting"


class EditorStateError(Exception):
    """Raised when an editor operation is called from the wrong state."""
    pass


ALLOWED_NEXT = {
    EditorState.IDLE: [EditorState.EDITING],
    EditorState.EDITING: [EditorState.SUBMITTING, EditorState.IDLE],
    EditorState.SUBMITTING: [EditorState.IDLE, EditorState.EDITING],
}


class TaskEditor:
    """One create/edit session."""

    def __init__(self):
        self.state = EditorState.IDLE
        self.original: Optional[Task] = None
        self.form: Dict[str, Any] = {}
        self.error: Optional[str] = None

    @property
    def task_id(self) -> Any:
        """Id being edited, None in create mode (or when idle)."""
        return self.original.id if self.original else None

    @property
    def is_create(self) -> bool:
        return self.state != EditorState.IDLE and self.original is None

    def _move(self, new_state: EditorState) -> None:
        if new_state not in ALLOWED_NEXT[self.state]:
            raise EditorStateError(
                f"Invalid editor transition: {self.state.value} → {new_state.value}"
            )
        self.state = new_state

    def begin_create(self) -> Dict[str, Any]:
        self._move(EditorState.EDITING)
        self.original = None
        self.form = {"title": "", "description": "", "dueDate": "",
                     "priority": "medium", "category": "", "tags": []}
        self.error = None
        return self.form

    def begin_edit(self, task: Task) -> Dict[str, Any]:
        self._move(EditorState.EDITING)
        self.original = task
        self.form = form_from_task(task)
        self.error = None
        return self.form

    def cancel(self) -> None:
        self._move(EditorState.IDLE)
        self._reset()

    def submit(self, form: Dict[str, Any]) -> Dict[str, Any]:
        """Validate the form and enter Submitting.

        Raises ValidationError (state stays Editing) on bad input.
        """
        if self.state != EditorState.EDITING:
            raise EditorStateError(f"Cannot submit while {self.state.value}")
        self.form = dict(form)
        try:
            payload = validate_task_form(self.form, original=self.original)
        except ValidationError as e:
            self.error = str(e)
            raise
        self.error = None
        self._move(EditorState.SUBMITTING)
        return payload

    def resolve(self, result: Any = None, error: Optional[Exception] = None) -> EditorState:
        """Apply the outcome of the service call that followed submit()."""
        if self.state != EditorState.SUBMITTING:
            raise EditorStateError(f"Nothing to resolve while {self.state.value}")
        if error is not None:
            self.error = str(error) or error.__class__.__name__
            self._move(EditorState.EDITING)
        else:
            self._move(EditorState.IDLE)
            self._reset()
        return self.state

    def _reset(self) -> None:
        self.original = None
        self.form = {}
        self.error = None
