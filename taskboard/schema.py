"""
Task and category records.

Two wire forms exist for the same records:
  - client form (camelCase): what the JSON API and the in-memory backend speak
  - record form (snake_case): what the remote record API stores

Records are frozen; an edit produces a new record that replaces the old one.
"""
from enum import Enum
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Optional, Tuple, Dict, Any

from .dates import to_date_only


def utc_now_iso() -> str:
    """ISO-8601 UTC instant."""
    return datetime.now(timezone.utc).isoformat()


class Priority(Enum):
    """Task priority levels."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def from_str(cls, value: Optional[str]) -> "Priority":
        try:
            return cls[(value or "").strip().upper()]
        except KeyError:
            return cls.MEDIUM


def split_tags(value: Any) -> Tuple[str, ...]:
    """Read a tag field that may be a list or a comma-joined string."""
    if not value:
        return ()
    if isinstance(value, str):
        value = value.split(",")
    return tuple(str(t).strip() for t in value if str(t).strip())


@dataclass(frozen=True)
class Task:
    """A user-created to-do item."""

    id: Any
    title: str
    description: str = ""
    due_date: Optional[str] = None     # ISO instant, date-only string, or None
    priority: Priority = Priority.MEDIUM
    category: str = ""                 # soft reference to Category.name
    completed: bool = False
    tags: Tuple[str, ...] = ()
    created_at: str = field(default_factory=utc_now_iso)

    def with_completed(self, completed: bool) -> "Task":
        return replace(self, completed=completed)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the client (camelCase) form."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "dueDate": self.due_date,
            "priority": self.priority.value,
            "category": self.category,
            "completed": self.completed,
            "tags": list(self.tags),
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Task":
        """Deserialize from the client (camelCase) form."""
        return cls(
            id=data.get("id"),
            title=data.get("title") or "",
            description=data.get("description") or "",
            due_date=data.get("dueDate") or None,
            priority=Priority.from_str(data.get("priority")),
            category=data.get("category") or "",
            completed=bool(data.get("completed", False)),
            tags=split_tags(data.get("tags")),
            created_at=data.get("createdAt") or utc_now_iso(),
        )

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Task":
        """Deserialize from the remote record (snake_case) form."""
        return cls(
            id=record.get("Id"),
            title=record.get("title") or record.get("Name") or "",
            description=record.get("description") or "",
            due_date=record.get("due_date") or None,
            priority=Priority.from_str(record.get("priority")),
            category=record.get("category") or "",
            completed=bool(record.get("completed", False)),
            tags=split_tags(record.get("Tags")),
            created_at=record.get("created_at") or record.get("CreatedOn") or utc_now_iso(),
        )


def task_payload_to_record(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Map a client-form task payload onto the remote record's updateable fields."""
    tags = payload.get("tags")
    return {
        "Name": payload.get("title") or "",
        "title": payload.get("title") or "",
        "description": payload.get("description") or "",
        "due_date": to_date_only(payload.get("dueDate")),
        "priority": payload.get("priority") or Priority.MEDIUM.value,
        "category": payload.get("category") or "",
        "completed": bool(payload.get("completed", False)),
        "Tags": ",".join(tags) if isinstance(tags, (list, tuple)) else "",
    }


@dataclass(frozen=True)
class Category:
    """A named grouping label tasks can reference by name."""

    id: Any
    name: str
    tags: Tuple[str, ...] = ()
    created_on: str = field(default_factory=utc_now_iso)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "tags": list(self.tags),
            "createdOn": self.created_on,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Category":
        return cls(
            id=data.get("id"),
            name=data.get("name") or "",
            tags=split_tags(data.get("tags")),
            created_on=data.get("createdOn") or utc_now_iso(),
        )

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Category":
        return cls(
            id=record.get("Id"),
            name=record.get("Name") or "",
            tags=split_tags(record.get("Tags")),
            created_on=record.get("CreatedOn") or utc_now_iso(),
        )


def category_payload_to_record(payload: Dict[str, Any]) -> Dict[str, Any]:
    tags = payload.get("tags")
    return {
        "Name": payload.get("name") or "",
        "Tags": ",".join(tags) if isinstance(tags, (list, tuple)) else "",
    }
