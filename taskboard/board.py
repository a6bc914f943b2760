"""
Board session: owns the task store and the category list for one session
and routes user actions through validation and the data services.

Data service failures stop here. They are logged, turned into a failure
notification, and leave local state untouched (mutations are applied only
after the service succeeds). Validation failures are raised to the caller.
"""
import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from .dates import due_label, due_status, today_utc
from .editor import TaskEditor
from .filters import StatusFilter, filter_tasks
from .schema import Category, Task
from .services import DataServiceError
from .stats import compute_breakdown, compute_stats
from .store import Snapshot, TaskStore
from .validator import ValidationError, validate_category_form

logger = logging.getLogger(__name__)

SUCCESS = "success"
ERROR = "error"


@dataclass(frozen=True)
class Notification:
    """User-facing message about the outcome of an action."""
    level: str
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {"level": self.level, "message": self.message}


@dataclass(frozen=True)
class Outcome:
    ok: bool
    value: Any = None
    notification: Optional[Notification] = None


def _ok(value: Any, message: str) -> Outcome:
    return Outcome(True, value, Notification(SUCCESS, message))


def _failed(message: str) -> Outcome:
    return Outcome(False, None, Notification(ERROR, message))


def task_view(task: Task, today) -> Dict[str, Any]:
    """Client-form task plus its due-date display fields."""
    data = task.to_dict()
    data["dueStatus"] = due_status(task.due_date, task.completed, today)
    data["dueLabel"] = due_label(task.due_date, today)
    return data


class TaskBoard:
    """Single-writer session state over a task service and a category service."""

    def __init__(self, task_service, category_service):
        self.task_service = task_service
        self.category_service = category_service
        self.store = TaskStore()
        self.categories: Tuple[Category, ...] = ()

    # ──────────────────────────────────────────
    # Loading
    # ──────────────────────────────────────────

    async def load(self) -> Outcome:
        """Fetch tasks and categories together and replace local state."""
        try:
            tasks, categories = await asyncio.gather(
                self.task_service.get_all(),
                self.category_service.get_all(),
            )
        except Exception as e:
            logger.error(f"Failed to load data: {e}")
            self.store.replace_all(())
            self.categories = ()
            return _failed("Failed to load data")
        self.store.replace_all(tasks or ())
        self.categories = tuple(categories or ())
        logger.info(f"Loaded {len(self.store)} tasks, {len(self.categories)} categories")
        return Outcome(True, self.store.snapshot())

    # ──────────────────────────────────────────
    # Lookups
    # ──────────────────────────────────────────

    def snapshot(self) -> Snapshot:
        return self.store.snapshot()

    def find_task(self, raw_id: Any) -> Optional[Task]:
        """Look a task up by id, comparing string forms (path ids arrive as text)."""
        for task in self.store.snapshot():
            if str(task.id) == str(raw_id):
                return task
        return None

    def find_category(self, raw_id: Any) -> Optional[Category]:
        for category in self.categories:
            if str(category.id) == str(raw_id):
                return category
        return None

    # ──────────────────────────────────────────
    # Task actions
    # ──────────────────────────────────────────

    async def create_task(self, form: Dict[str, Any]) -> Outcome:
        """Validate and create. Raises ValidationError on bad input."""
        editor = TaskEditor()
        editor.begin_create()
        return await self._submit(editor, form)

    async def update_task(self, task_id: Any, form: Dict[str, Any]) -> Outcome:
        """Validate and save a form edit. Raises ValidationError on bad input."""
        original = self.store.get(task_id)
        if original is None:
            logger.warning(f"Edit requested for unknown task {task_id}")
            return _failed("Failed to save task")
        editor = TaskEditor()
        editor.begin_edit(original)
        return await self._submit(editor, form)

    async def _submit(self, editor: TaskEditor, form: Dict[str, Any]) -> Outcome:
        """Run one editor session to completion. Overlapping calls each own their editor."""
        try:
            payload = editor.submit(form)
        except ValidationError:
            editor.cancel()
            raise

        creating = editor.is_create
        try:
            if creating:
                task = await self.task_service.create(payload)
            else:
                task = await self.task_service.update(editor.task_id, payload)
        except DataServiceError as e:
            logger.error(f"Error saving task: {e}")
            editor.resolve(error=e)
            editor.cancel()
            return _failed("Failed to save task")

        editor.resolve(result=task)
        if creating:
            self.store.apply_create(task)
            logger.info(f"Created task {task.id}: {task.title}")
            return _ok(task, "Task created successfully!")
        self.store.apply_update(task)
        logger.info(f"Updated task {task.id}")
        return _ok(task, "Task updated successfully!")

    async def toggle_complete(self, task_id: Any) -> Outcome:
        """Flip completion with a full-record update (not the form path)."""
        task = self.store.get(task_id)
        if task is None:
            return _failed("Failed to update task")
        payload = task.with_completed(not task.completed).to_dict()
        try:
            updated = await self.task_service.update(task.id, payload)
        except DataServiceError as e:
            logger.error(f"Error updating task {task_id}: {e}")
            return _failed("Failed to update task")
        self.store.apply_update(updated)
        return _ok(updated, "Task completed!" if updated.completed else "Task reopened!")

    async def delete_task(self, task_id: Any) -> Outcome:
        try:
            deleted = await self.task_service.delete(task_id)
        except DataServiceError as e:
            logger.error(f"Error deleting task {task_id}: {e}")
            return _failed("Failed to delete task")
        if not deleted:
            return _failed("Failed to delete task")
        self.store.apply_delete(task_id)
        logger.info(f"Deleted task {task_id}")
        return _ok(task_id, "Task deleted successfully!")

    # ──────────────────────────────────────────
    # Category actions
    # ──────────────────────────────────────────

    async def create_category(self, form: Dict[str, Any]) -> Outcome:
        payload = validate_category_form(form)
        try:
            category = await self.category_service.create(payload)
        except DataServiceError as e:
            logger.error(f"Error creating category: {e}")
            return _failed("Failed to save category")
        self.categories = self.categories + (category,)
        return _ok(category, "Category created successfully!")

    async def update_category(self, category_id: Any, form: Dict[str, Any]) -> Outcome:
        payload = validate_category_form(form)
        try:
            category = await self.category_service.update(category_id, payload)
        except DataServiceError as e:
            logger.error(f"Error updating category {category_id}: {e}")
            return _failed("Failed to save category")
        self.categories = tuple(category if c.id == category.id else c for c in self.categories)
        return _ok(category, "Category updated successfully!")

    async def delete_category(self, category_id: Any) -> Outcome:
        """Tasks naming the category keep the label; dangling names are tolerated."""
        try:
            deleted = await self.category_service.delete(category_id)
        except DataServiceError as e:
            logger.error(f"Error deleting category {category_id}: {e}")
            return _failed("Failed to delete category")
        if not deleted:
            return _failed("Failed to delete category")
        self.categories = tuple(c for c in self.categories if c.id != category_id)
        return _ok(category_id, "Category deleted successfully!")

    # ──────────────────────────────────────────
    # Derived views
    # ──────────────────────────────────────────

    def view(
        self,
        status_filter=StatusFilter.ALL,
        query: str = "",
        now: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """Visible tasks plus stats, recomputed from the current snapshot."""
        snapshot = self.store.snapshot()
        today = today_utc(now)
        visible = filter_tasks(snapshot, status_filter, query)
        return {
            "tasks": [task_view(t, today) for t in visible],
            "stats": compute_stats(snapshot, now).to_dict(),
            "categories": [c.to_dict() for c in self.categories],
            "breakdown": compute_breakdown(snapshot),
        }
