"""
Task store: the session's authoritative task collection.

Single writer. Every mutation builds a new tuple and returns it, so a
snapshot handed to a reader never changes underneath it.
"""
import logging
from typing import Any, Iterable, Optional, Tuple

from .schema import Task

logger = logging.getLogger(__name__)

Snapshot = Tuple[Task, ...]


class TaskStore:
    """Copy-on-write container for Task records."""

    def __init__(self, tasks: Iterable[Task] = ()):
        self._tasks: Snapshot = tuple(tasks)

    def __len__(self) -> int:
        return len(self._tasks)

    def snapshot(self) -> Snapshot:
        return self._tasks

    def get(self, task_id: Any) -> Optional[Task]:
        for task in self._tasks:
            if task.id == task_id:
                return task
        return None

    def replace_all(self, tasks: Iterable[Task]) -> Snapshot:
        self._tasks = tuple(tasks)
        return self._tasks

    def apply_create(self, task: Task) -> Snapshot:
        """Append a task that already carries its id. Uniqueness is the caller's job."""
        self._tasks = self._tasks + (task,)
        return self._tasks

    def apply_update(self, task: Task) -> Snapshot:
        """Replace the task with the same id, keeping its position.

        An unknown id is dropped without error.
        """
        if self.get(task.id) is None:
            logger.debug(f"Update for unknown task {task.id} ignored")
            return self._tasks
        self._tasks = tuple(task if t.id == task.id else t for t in self._tasks)
        return self._tasks

    def apply_delete(self, task_id: Any) -> Snapshot:
        """Remove a task by id. Absent ids are a no-op."""
        remaining = tuple(t for t in self._tasks if t.id != task_id)
        if len(remaining) != len(self._tasks):
            self._tasks = remaining
        return self._tasks
