"""Shared test fixtures for taskboard tests."""

import sys
from pathlib import Path

import pytest

# Ensure the repo root (taskboard package + task_server module) is importable
sys.path.insert(0, str(Path(__file__).parent.parent))

from taskboard.schema import Task, Category
from taskboard.services import (
    MemoryTaskService,
    MemoryCategoryService,
    CreateError,
    NotFoundError,
    TransportError,
)


@pytest.fixture
def make_task():
    """Factory for Task records with sensible defaults."""
    def _make(id, title="Task", **kwargs):
        kwargs.setdefault("created_at", "2025-01-01T00:00:00+00:00")
        return Task(id=id, title=title, **kwargs)
    return _make


@pytest.fixture
def sample_tasks(make_task):
    """The two-task board used by several scenarios."""
    return (
        make_task(1, "A", completed=False, due_date="2020-01-01"),
        make_task(2, "B", completed=True),
    )


@pytest.fixture
def task_service():
    return MemoryTaskService()


@pytest.fixture
def category_service():
    return MemoryCategoryService([{"id": 1, "name": "Work", "tags": ["office"]}])


class FailingService:
    """Data service whose writes always fail; reads return nothing."""

    def __init__(self, error=TransportError("backend down")):
        self.error = error
        self.calls = []

    async def get_all(self):
        return []

    async def get_by_id(self, record_id):
        return None

    async def create(self, payload):
        self.calls.append(("create", payload))
        raise CreateError("Failed to create task")

    async def update(self, record_id, payload):
        self.calls.append(("update", record_id, payload))
        raise NotFoundError(f"task {record_id} not found")

    async def delete(self, record_id):
        self.calls.append(("delete", record_id))
        raise self.error


@pytest.fixture
def failing_service():
    return FailingService()
