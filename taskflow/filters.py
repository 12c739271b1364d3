"""Read-side projections over the task collection.

Every function here is pure: it never mutates the tasks it is given.
"""

from collections.abc import Iterable
from datetime import datetime
from typing import Any

from taskflow.models import PRIORITIES, Task, TaskFilter

OPEN_STATUSES = ("todo", "in-progress")


def matches_filter(task: Task, task_filter: TaskFilter) -> bool:
    """Check whether a task satisfies every clause of a filter."""
    if task_filter.status != "all" and task.status != task_filter.status:
        return False
    if task_filter.priority != "all" and task.priority != task_filter.priority:
        return False
    if task_filter.tags and not (task.tags & task_filter.tags):
        return False
    if task_filter.search_query and task_filter.search_query.lower() not in task.title.lower():
        return False
    return True


def filter_tasks(tasks: Iterable[Task], task_filter: TaskFilter) -> list[Task]:
    """Return the tasks matching a filter, preserving collection order."""
    return [task for task in tasks if matches_filter(task, task_filter)]


def upcoming_tasks(tasks: Iterable[Task]) -> list[Task]:
    """Return open tasks that have a due date, soonest first."""
    dated = [task for task in tasks if task.status in OPEN_STATUSES and task.due_date is not None]
    return sorted(dated, key=lambda task: task.due_date)


def overdue_tasks(tasks: Iterable[Task], now: datetime) -> list[Task]:
    """Return open tasks due before the start of ``now``'s day, oldest first."""
    start_of_day = now.replace(hour=0, minute=0, second=0, microsecond=0)
    return [task for task in upcoming_tasks(tasks) if task.due_date < start_of_day]


def task_stats(tasks: Iterable[Task]) -> dict[str, Any]:
    """Summarise a task collection the way the dashboard shows it.

    Returns:
        Dictionary with ``total``, ``completed``, ``completion_rate`` (rounded percent)
        and ``by_priority`` counts
    """
    tasks = list(tasks)
    total = len(tasks)
    completed = sum(1 for task in tasks if task.status == "completed")
    by_priority = {priority: 0 for priority in PRIORITIES}
    for task in tasks:
        by_priority[task.priority] += 1
    return {
        "total": total,
        "completed": completed,
        "completion_rate": round(100 * completed / total) if total else 0,
        "by_priority": by_priority,
    }
