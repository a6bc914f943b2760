"""
Filter & search over a task snapshot.

A task is visible when it passes the status filter AND the text query.
Results keep store order.
"""
from enum import Enum
from typing import Iterable, Optional, Tuple

from .schema import Task


class StatusFilter(Enum):
    ALL = "all"
    PENDING = "pending"
    COMPLETED = "completed"

    @classmethod
    def from_str(cls, value: Optional[str]) -> "StatusFilter":
        try:
            return cls[(value or "").strip().upper()]
        except KeyError:
            return cls.ALL


def matches_status(task: Task, status_filter: StatusFilter) -> bool:
    if status_filter == StatusFilter.PENDING:
        return not task.completed
    if status_filter == StatusFilter.COMPLETED:
        return task.completed
    return True


def matches_query(task: Task, query: Optional[str]) -> bool:
    """Case-insensitive substring match on title or description. Blank matches all."""
    if not query or not query.strip():
        return True
    needle = query.lower()
    return needle in task.title.lower() or needle in task.description.lower()


def filter_tasks(
    tasks: Iterable[Task],
    status_filter=StatusFilter.ALL,
    query: Optional[str] = "",
) -> Tuple[Task, ...]:
    if not isinstance(status_filter, StatusFilter):
        status_filter = StatusFilter.from_str(status_filter)
    return tuple(
        t for t in tasks
        if matches_status(t, status_filter) and matches_query(t, query)
    )


def filter_by_category(tasks: Iterable[Task], name: str) -> Tuple[Task, ...]:
    """Label match on the category name; dangling names simply match nothing."""
    return tuple(t for t in tasks if t.category == name)


def filter_by_tag(tasks: Iterable[Task], tag: str) -> Tuple[Task, ...]:
    tag = tag.strip()
    return tuple(t for t in tasks if tag in t.tags)
