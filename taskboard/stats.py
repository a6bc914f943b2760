"""
Board statistics, computed fresh from a snapshot on every call.
"""
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Any, Dict, Iterable, Optional

from .dates import is_overdue, today_utc
from .schema import Priority, Task


@dataclass(frozen=True)
class TaskStats:
    total: int = 0
    completed: int = 0
    pending: int = 0
    overdue: int = 0

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


def compute_stats(tasks: Iterable[Task], now: Optional[datetime] = None) -> TaskStats:
    """Count total / completed / pending / overdue.

    Overdue compares calendar days, so a task due later today is not overdue.
    """
    today = today_utc(now)
    total = completed = overdue = 0
    for task in tasks:
        total += 1
        if task.completed:
            completed += 1
        elif is_overdue(task.due_date, task.completed, today):
            overdue += 1
    return TaskStats(total=total, completed=completed, pending=total - completed, overdue=overdue)


def compute_breakdown(tasks: Iterable[Task]) -> Dict[str, Any]:
    """Counts by priority (every level present) and by category label."""
    by_priority = {p.value: 0 for p in Priority}
    by_category: Dict[str, int] = {}
    for task in tasks:
        by_priority[task.priority.value] += 1
        if task.category:
            by_category[task.category] = by_category.get(task.category, 0) + 1
    return {"by_priority": by_priority, "by_category": by_category}
