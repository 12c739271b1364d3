"""Tests for data models."""

from datetime import datetime, timezone

from taskflow.models import Automation, CreateTask, Project, Task, TaskCompleted, TaskFilter

NOW = datetime(2026, 1, 1, tzinfo=timezone.utc)


def test_task_creation() -> None:
    """Test task creation with defaults."""
    task = Task(id="t1", title="Write report", created_at=NOW, updated_at=NOW)
    assert task.id == "t1"
    assert task.title == "Write report"
    assert task.description == ""
    assert task.status == "todo"
    assert task.priority == "medium"
    assert task.tags == set()
    assert task.project_id is None
    assert task.completed_at is None


def test_project_defaults() -> None:
    """Test project creation with defaults."""
    project = Project(id="p1", name="Launch", created_at=NOW, updated_at=NOW)
    assert project.progress == 0.0
    assert project.team_members == []


def test_create_task_action_defaults() -> None:
    """Test that create-task actions default to medium priority and no tags."""
    action = CreateTask(title="Follow up")
    assert action.type == "create-task"
    assert action.priority == "medium"
    assert action.tags == frozenset()


def test_automation_is_active_by_default() -> None:
    """Test automation creation."""
    automation = Automation(
        id="a1",
        name="Follow up",
        trigger=TaskCompleted(),
        action=CreateTask(title="Follow up"),
        created_at=NOW,
    )
    assert automation.active is True
    assert automation.trigger.type == "task-completed"


def test_filter_defaults_match_everything() -> None:
    """Test the default task filter."""
    task_filter = TaskFilter()
    assert task_filter.status == "all"
    assert task_filter.priority == "all"
    assert task_filter.tags == set()
    assert task_filter.search_query == ""
