"""
Task form validation and normalization.

Turns raw user input into a client-form payload ready for a data service.
Performs no I/O.

Rules:
    title     : required, trimmed; checked before anything else
    dueDate   : "" -> None, date-only -> ISO instant (midnight UTC)
    priority  : low | medium | high, blank -> medium
    tags      : trimmed, empties and repeats dropped, first-seen order kept
    completed : carried over from the original on edit, False on create
    createdAt : carried over from the original on edit, now on create
"""
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from .dates import to_date_only, to_iso_instant
from .schema import Priority, Task


class ValidationError(Exception):
    """Raised when user input cannot be submitted as-is."""
    pass


PRIORITIES = [p.value for p in Priority]


def add_tag(tags: Iterable[str], candidate: Any) -> List[str]:
    """Return tags plus the trimmed candidate, unless it is empty or already present."""
    result = list(tags)
    tag = "" if candidate is None else str(candidate).strip()
    if tag and tag not in result:
        result.append(tag)
    return result


def remove_tag(tags: Iterable[str], tag: str) -> List[str]:
    return [t for t in tags if t != tag]


def normalize_tags(candidates: Any) -> List[str]:
    if not candidates:
        return []
    if isinstance(candidates, str):
        candidates = candidates.split(",")
    tags: List[str] = []
    for candidate in candidates:
        tags = add_tag(tags, candidate)
    return tags


def validate_task_form(
    form: Dict[str, Any],
    original: Optional[Task] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Validate and normalize a create/edit form.

    Returns:
        client-form payload (no id).

    Raises:
        ValidationError with a user-facing message.
    """
    title = str(form.get("title") or "").strip()
    if not title:
        raise ValidationError("Task title is required")

    raw_due = form.get("dueDate")
    try:
        due = to_iso_instant(raw_due.strip() if isinstance(raw_due, str) else raw_due)
    except (ValueError, TypeError):
        raise ValidationError(f"Invalid due date: '{raw_due}'")

    priority = str(form.get("priority") or Priority.MEDIUM.value).strip().lower()
    if priority not in PRIORITIES:
        raise ValidationError(
            f"Invalid priority: '{priority}'. Allowed: {', '.join(PRIORITIES)}"
        )

    if original is not None:
        completed = original.completed
        created_at = original.created_at
    else:
        completed = False
        created_at = (now or datetime.now(timezone.utc)).isoformat()

    return {
        "title": title,
        "description": str(form.get("description") or ""),
        "dueDate": due,
        "priority": priority,
        "category": str(form.get("category") or "").strip(),
        "completed": completed,
        "tags": normalize_tags(form.get("tags")),
        "createdAt": created_at,
    }


def validate_category_form(form: Dict[str, Any]) -> Dict[str, Any]:
    name = str(form.get("name") or "").strip()
    if not name:
        raise ValidationError("Category name is required")
    return {"name": name, "tags": normalize_tags(form.get("tags"))}


def form_from_task(task: Task) -> Dict[str, Any]:
    """Pre-populate an edit form from a stored task (due date shown date-only)."""
    return {
        "title": task.title,
        "description": task.description,
        "dueDate": to_date_only(task.due_date),
        "priority": task.priority.value,
        "category": task.category,
        "tags": list(task.tags),
    }
