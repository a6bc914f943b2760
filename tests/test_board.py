"""
Tests for the board session (board.py): the full path from form to
store to derived views, and conversion of service failures.
"""

import asyncio
import logging
from datetime import datetime, timezone

import pytest

from taskboard.board import TaskBoard, SUCCESS, ERROR
from taskboard.services import MemoryTaskService, MemoryCategoryService
from taskboard.validator import ValidationError


@pytest.fixture
def board(task_service, category_service):
    b = TaskBoard(task_service, category_service)
    asyncio.run(b.load())
    return b


def test_load_fetches_tasks_and_categories(category_service):
    tasks = MemoryTaskService([{"id": 1, "title": "Seeded"}])
    board = TaskBoard(tasks, category_service)
    outcome = asyncio.run(board.load())
    assert outcome.ok
    assert [t.title for t in board.snapshot()] == ["Seeded"]
    assert [c.name for c in board.categories] == ["Work"]


def test_created_task_reachable_beside_text_id_seed(category_service):
    tasks = MemoryTaskService([{"id": "1", "title": "Seeded"}])
    board = TaskBoard(tasks, category_service)
    asyncio.run(board.load())
    created = asyncio.run(board.create_task({"title": "New"})).value
    assert board.find_task("1").title == "Seeded"
    assert board.find_task(str(created.id)).title == "New"


def test_load_failure_leaves_empty_board(category_service, caplog):
    class Broken:
        async def get_all(self):
            raise RuntimeError("boom")

    board = TaskBoard(Broken(), category_service)
    with caplog.at_level(logging.ERROR):
        outcome = asyncio.run(board.load())
    assert not outcome.ok
    assert outcome.notification.message == "Failed to load data"
    assert board.snapshot() == ()
    assert board.categories == ()
    assert "boom" in caplog.text


def test_create_task_applies_to_store(board):
    outcome = asyncio.run(board.create_task({"title": " Buy milk ", "tags": ["x", " x ", "y"]}))
    assert outcome.ok
    assert outcome.notification.level == SUCCESS
    assert outcome.notification.message == "Task created successfully!"
    task = board.snapshot()[0]
    assert task.title == "Buy milk"
    assert task.tags == ("x", "y")


def test_create_task_validation_error_raised(board):
    with pytest.raises(ValidationError):
        asyncio.run(board.create_task({"title": "  ", "tags": ["x", "x", " "]}))
    assert board.snapshot() == ()


def test_update_task_keeps_completed_and_created_at(board):
    created = asyncio.run(board.create_task({"title": "A"})).value
    asyncio.run(board.toggle_complete(created.id))
    outcome = asyncio.run(board.update_task(created.id, {"title": "A2", "completed": False}))
    assert outcome.ok
    assert outcome.notification.message == "Task updated successfully!"
    task = board.store.get(created.id)
    assert task.title == "A2"
    assert task.completed is True
    assert task.created_at == created.created_at


def test_update_unknown_task_fails_softly(board):
    outcome = asyncio.run(board.update_task(404, {"title": "x"}))
    assert not outcome.ok
    assert outcome.notification.message == "Failed to save task"


def test_toggle_complete_messages(board):
    created = asyncio.run(board.create_task({"title": "A"})).value
    done = asyncio.run(board.toggle_complete(created.id))
    assert done.notification.message == "Task completed!"
    assert board.store.get(created.id).completed is True
    reopened = asyncio.run(board.toggle_complete(created.id))
    assert reopened.notification.message == "Task reopened!"
    assert board.store.get(created.id).completed is False


def test_delete_task(board):
    created = asyncio.run(board.create_task({"title": "A"})).value
    outcome = asyncio.run(board.delete_task(created.id))
    assert outcome.ok
    assert outcome.notification.message == "Task deleted successfully!"
    assert board.snapshot() == ()


def test_overlapping_creates_both_reach_store(category_service):
    board = TaskBoard(MemoryTaskService(latency_ms=10), category_service)

    async def both():
        return await asyncio.gather(
            board.create_task({"title": "A"}),
            board.create_task({"title": "B"}),
            return_exceptions=True,
        )

    results = asyncio.run(both())
    assert all(getattr(r, "ok", False) for r in results), results
    assert sorted(t.title for t in board.snapshot()) == ["A", "B"]


def test_overlapping_create_and_update(board):
    created = asyncio.run(board.create_task({"title": "A"})).value

    async def both():
        return await asyncio.gather(
            board.update_task(created.id, {"title": "A2"}),
            board.create_task({"title": "B"}),
        )

    updated, new = asyncio.run(both())
    assert updated.ok and new.ok
    assert sorted(t.title for t in board.snapshot()) == ["A2", "B"]


def test_task_deleted_behind_our_back_fails_update(board, task_service):
    created = asyncio.run(board.create_task({"title": "A"})).value
    asyncio.run(task_service.delete(created.id))  # another writer removed it
    before = board.snapshot()
    outcome = asyncio.run(board.update_task(created.id, {"title": "A2"}))
    assert not outcome.ok
    assert outcome.notification.level == ERROR
    assert board.snapshot() == before


class TestServiceFailures:

    @pytest.fixture
    def seeded(self, failing_service, make_task):
        board = TaskBoard(failing_service, MemoryCategoryService())
        board.store.replace_all([make_task(1, "A")])
        return board

    def test_create_failure_keeps_state(self, failing_service, caplog):
        board = TaskBoard(failing_service, MemoryCategoryService())
        with caplog.at_level(logging.ERROR):
            outcome = asyncio.run(board.create_task({"title": "A"}))
        assert not outcome.ok
        assert outcome.notification.message == "Failed to save task"
        assert board.snapshot() == ()
        assert "Error saving task" in caplog.text

    def test_toggle_failure_keeps_state(self, seeded):
        before = seeded.snapshot()
        outcome = asyncio.run(seeded.toggle_complete(1))
        assert outcome.notification.message == "Failed to update task"
        assert seeded.snapshot() == before

    def test_delete_failure_keeps_state(self, seeded):
        outcome = asyncio.run(seeded.delete_task(1))
        assert outcome.notification.message == "Failed to delete task"
        assert len(seeded.snapshot()) == 1

    def test_delete_reported_false_keeps_state(self, make_task):
        class Refusing:
            async def delete(self, record_id):
                return False

        board = TaskBoard(Refusing(), MemoryCategoryService())
        board.store.replace_all([make_task(1, "A")])
        outcome = asyncio.run(board.delete_task(1))
        assert not outcome.ok
        assert len(board.snapshot()) == 1


class TestCategories:

    def test_create_update_delete(self, board):
        created = asyncio.run(board.create_category({"name": "Home", "tags": ["a", "a"]})).value
        assert created.tags == ("a",)
        assert [c.name for c in board.categories] == ["Work", "Home"]

        asyncio.run(board.update_category(created.id, {"name": "House"}))
        assert [c.name for c in board.categories] == ["Work", "House"]

        asyncio.run(board.delete_category(created.id))
        assert [c.name for c in board.categories] == ["Work"]

    def test_deleting_category_keeps_task_label(self, board):
        asyncio.run(board.create_task({"title": "A", "category": "Work"}))
        work = board.categories[0]
        asyncio.run(board.delete_category(work.id))
        assert board.snapshot()[0].category == "Work"

    def test_category_name_required(self, board):
        with pytest.raises(ValidationError):
            asyncio.run(board.create_category({"name": ""}))

    def test_unknown_category_update_fails_softly(self, board):
        outcome = asyncio.run(board.update_category(999, {"name": "x"}))
        assert not outcome.ok


class TestView:

    def test_view_recomputes_after_every_mutation(self, board):
        now = datetime(2025, 1, 1, tzinfo=timezone.utc)
        asyncio.run(board.create_task({"title": "A", "dueDate": "2020-01-01"}))
        created = asyncio.run(board.create_task({"title": "B"})).value
        assert board.view(now=now)["stats"] == {"total": 2, "completed": 0, "pending": 2, "overdue": 1}

        asyncio.run(board.toggle_complete(created.id))
        assert board.view(now=now)["stats"] == {"total": 2, "completed": 1, "pending": 1, "overdue": 1}

        asyncio.run(board.delete_task(created.id))
        assert board.view(now=now)["stats"] == {"total": 1, "completed": 0, "pending": 1, "overdue": 1}

    def test_view_filters_and_decorates(self, board):
        now = datetime(2025, 1, 1, tzinfo=timezone.utc)
        asyncio.run(board.create_task({"title": "A", "dueDate": "2020-01-01"}))
        created = asyncio.run(board.create_task({"title": "B"})).value
        asyncio.run(board.toggle_complete(created.id))

        view = board.view("pending", "a", now=now)
        assert [t["title"] for t in view["tasks"]] == ["A"]
        assert view["tasks"][0]["dueStatus"] == "overdue"
        assert view["tasks"][0]["dueLabel"] == "Jan 01, 2020"
        assert [c["name"] for c in view["categories"]] == ["Work"]
        assert view["breakdown"]["by_priority"]["medium"] == 2

    def test_find_task_matches_text_ids(self, board):
        created = asyncio.run(board.create_task({"title": "A"})).value
        assert board.find_task(str(created.id)) == created
        assert board.find_task("nope") is None
