"""Task commands for taskflow CLI."""

from cyclopts import App

from taskflow.models import Task
from taskflow.store import Store

task_app = App(name="task", help="Manage tasks")


def _format_task(task: Task) -> str:
    status_marker = "○" if task.status == "completed" else "●"
    due = f" due {task.due_date.date().isoformat()}" if task.due_date else ""
    return f"{status_marker} {task.id}: {task.title} [{task.priority}]{due}"


def _report_cascades(store: Store) -> None:
    for report in store.engine.cascade_reports:
        print(f"Automation cascade stopped ({report.reason}) after {report.actions_executed} action(s)")


@task_app.command
def add(
    title: str,
    description: str = "",
    priority: str = "medium",
    tags: str = "",
    project: str | None = None,
    goal: str | None = None,
    due: str | None = None,
) -> None:
    """Create a new task.

    Args:
        title: Task title
        description: Task description
        priority: low, medium, high or urgent
        tags: Comma separated tag ids or names
        project: Project id
        goal: Goal id
        due: Due date in ISO 8601 format
    """
    from taskflow.cli import get_store, parse_date, resolve_tags

    store = get_store()
    task = store.create_task(
        title=title,
        description=description,
        priority=priority,
        tags=resolve_tags(store, tags),
        project_id=project,
        goal_id=goal,
        due_date=parse_date(due),
    )
    print(f"Created task {task.id}: {task.title}")
    _report_cascades(store)


@task_app.command
def show(task_id: str) -> None:
    """Show a task by ID."""
    from taskflow.cli import get_store

    store = get_store()
    task = store.get_task(task_id)
    if task is None:
        print(f"Task {task_id} not found")
        return

    print(f"Task: {task.id}")
    print(f"Title: {task.title}")
    print(f"Description: {task.description}")
    print(f"Status: {task.status}")
    print(f"Priority: {task.priority}")
    if task.tags:
        names = [tag.name if (tag := store.get_tag(tag_id)) else tag_id for tag_id in sorted(task.tags)]
        print(f"Tags: {', '.join(names)}")
    if task.project_id:
        print(f"Project: {task.project_id}")
    if task.due_date:
        print(f"Due: {task.due_date.isoformat()}")
    if task.completed_at:
        print(f"Completed: {task.completed_at.isoformat()}")


@task_app.command
def update(
    task_id: str,
    title: str | None = None,
    description: str | None = None,
    status: str | None = None,
    priority: str | None = None,
    tags: str | None = None,
    project: str | None = None,
    due: str | None = None,
) -> None:
    """Update a task; tags replace the current set."""
    from taskflow.cli import get_store, parse_date, resolve_tags

    store = get_store()
    changes = {
        "title": title,
        "description": description,
        "status": status,
        "priority": priority,
        "project_id": project,
    }
    changes = {key: value for key, value in changes.items() if value is not None}
    if tags is not None:
        changes["tags"] = resolve_tags(store, tags)
    if due is not None:
        changes["due_date"] = parse_date(due)

    task = store.update_task(task_id, **changes)
    if task is None:
        print(f"Task {task_id} not found")
        return
    print(f"Updated task {task.id}: {task.title}")
    _report_cascades(store)


@task_app.command
def complete(task_id: str) -> None:
    """Mark a task as completed."""
    from taskflow.cli import get_store

    store = get_store()
    task = store.complete_task(task_id)
    if task is None:
        print(f"Task {task_id} not found")
        return
    print(f"Completed task {task.id}: {task.title}")
    _report_cascades(store)


@task_app.command
def delete(*task_ids: str) -> None:
    """Delete one or more tasks."""
    from taskflow.cli import get_store

    store = get_store()
    deleted = [task_id for task_id in task_ids if store.delete_task(task_id) is not None]
    print(f"Deleted {len(deleted)} task(s)")


@task_app.command(name="list")
def list_tasks(
    status: str = "all",
    priority: str = "all",
    tags: str = "",
    search: str = "",
) -> None:
    """List tasks matching a filter."""
    from taskflow.cli import resolve_tags, get_store
    from taskflow.filters import filter_tasks
    from taskflow.models import TaskFilter

    store = get_store()
    task_filter = TaskFilter(
        status=status,
        priority=priority,
        tags=set(resolve_tags(store, tags)),
        search_query=search,
    )
    tasks = filter_tasks(store.tasks, task_filter)

    print(f"Found {len(tasks)} task(s):\n")
    for task in tasks:
        print(_format_task(task))
