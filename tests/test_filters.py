"""Tests for task filters and projections."""

from datetime import datetime, timedelta, timezone

from taskflow.filters import filter_tasks, overdue_tasks, task_stats, upcoming_tasks
from taskflow.models import Task, TaskFilter

NOW = datetime(2026, 3, 10, 15, 0, tzinfo=timezone.utc)


def make_task(title: str, **kwargs) -> Task:
    return Task(id=title, title=title, created_at=NOW, updated_at=NOW, **kwargs)


TASKS = [
    make_task("Write report", status="in-progress", priority="high", tags={"work"}),
    make_task("Buy milk", priority="low", tags={"home"}),
    make_task("Review report", status="completed", priority="high", tags={"work", "review"}),
    make_task("Call mom"),
]


def test_default_filter_returns_everything() -> None:
    """Test that an all/empty filter is vacuously true."""
    assert filter_tasks(TASKS, TaskFilter()) == TASKS


def test_filter_clauses_are_combined() -> None:
    """Test that every clause must hold."""
    task_filter = TaskFilter(priority="high", search_query="REPORT", status="completed")
    assert [task.title for task in filter_tasks(TASKS, task_filter)] == ["Review report"]


def test_tag_filter_needs_one_common_tag() -> None:
    """Test that a task matches when it has any of the filter's tags."""
    task_filter = TaskFilter(tags={"home", "review"})
    assert [task.title for task in filter_tasks(TASKS, task_filter)] == ["Buy milk", "Review report"]


def test_filter_does_not_mutate_input() -> None:
    """Test that filtering is pure."""
    tasks = list(TASKS)
    task_filter = TaskFilter(status="todo")
    first = filter_tasks(tasks, task_filter)
    second = filter_tasks(tasks, task_filter)
    assert first == second
    assert tasks == TASKS


def test_upcoming_and_overdue() -> None:
    """Test due-date projections ignore closed tasks and sort by due date."""
    later = make_task("Later", due_date=NOW + timedelta(days=3))
    today = make_task("Today", due_date=NOW - timedelta(hours=2))
    overdue = make_task("Overdue", due_date=NOW - timedelta(days=2))
    done = make_task("Done", status="completed", due_date=NOW - timedelta(days=5))
    undated = make_task("Undated")
    tasks = [later, today, overdue, done, undated]

    assert upcoming_tasks(tasks) == [overdue, today, later]
    assert overdue_tasks(tasks, NOW) == [overdue]


def test_task_stats() -> None:
    """Test dashboard statistics."""
    stats = task_stats(TASKS)
    assert stats["total"] == 4
    assert stats["completed"] == 1
    assert stats["completion_rate"] == 25
    assert stats["by_priority"] == {"low": 1, "medium": 1, "high": 2, "urgent": 0}
    assert task_stats([])["completion_rate"] == 0
