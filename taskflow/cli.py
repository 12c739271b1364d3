"""CLI for taskflow."""

from datetime import datetime, timezone
from pathlib import Path
from typing import Annotated, Literal

import structlog
from cyclopts import App, Parameter

from taskflow.automation_commands import automation_app
from taskflow.backend import StorageBackend
from taskflow.backends import JsonFileBackend, MemoryBackend, YamlFileBackend
from taskflow.config import Config, get_config
from taskflow.config_commands import config_app
from taskflow.filters import overdue_tasks, task_stats, upcoming_tasks
from taskflow.goal_commands import goal_app
from taskflow.notifications import PrintNotifier
from taskflow.project_commands import project_app
from taskflow.store import Store
from taskflow.tag_commands import tag_app
from taskflow.task_commands import task_app

logger = structlog.get_logger()

app = App(
    help="TaskFlow - tasks, projects, goals and automations from the terminal",
)

app.command(task_app)
app.command(project_app)
app.command(goal_app)
app.command(tag_app)
app.command(automation_app)
app.command(config_app)


def configure_logging(log_level: str) -> None:
    """Configure structlog with the specified log level."""
    structlog.configure(wrapper_class=structlog.make_filtering_bound_logger(min_level=log_level.lower()))


def build_backend(config: Config) -> StorageBackend:
    """Build the storage backend named by ``storage.backend``."""
    backend_type = config.get("storage.backend")

    if backend_type == "json":
        return JsonFileBackend(config.storage_path())
    elif backend_type == "yaml":
        return YamlFileBackend(config.storage_path())
    elif backend_type == "memory":
        return MemoryBackend()
    else:
        raise ValueError(f"Unknown storage backend: {backend_type}")


def get_store() -> Store:
    """Open the store configured for the current directory."""
    config = get_config()
    return Store(
        backend=build_backend(config),
        notifier=PrintNotifier(),
        max_depth=config.get_int("automation.max_depth"),
        max_actions=config.get_int("automation.max_actions"),
        seed_default_tags=True,
    )


def parse_csv(value: str | None) -> list[str]:
    """Split a comma separated option into its non-empty parts."""
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def parse_date(value: str | None) -> datetime | None:
    """Parse an ISO 8601 date or datetime; naive values are taken as UTC."""
    if not value:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def resolve_tags(store: Store, value: str | None) -> list[str]:
    """Resolve comma separated tag ids or names to tag ids.

    Raises:
        ValueError: If a tag matches neither an id nor a name
    """
    by_name = {tag.name.lower(): tag.id for tag in store.tags}
    tag_ids = []
    for item in parse_csv(value):
        if store.get_tag(item) is not None:
            tag_ids.append(item)
        elif item.lower() in by_name:
            tag_ids.append(by_name[item.lower()])
        else:
            raise ValueError(f"Unknown tag: {item}")
    return tag_ids


@app.command
def export(path: Path | None = None) -> None:
    """Export the whole state as JSON."""
    store = get_store()
    if path is None:
        path = Path(f"taskflow-export-{datetime.now().date().isoformat()}.json")
    path.write_text(store.export_json(), encoding="utf-8")
    print(f"Exported {len(store.tasks)} task(s) to {path}")


@app.command(name="import")
def import_(path: Path) -> None:
    """Replace the state with a previously exported JSON file."""
    store = get_store()
    store.import_json(path.read_text(encoding="utf-8"))
    print(f"Imported {len(store.tasks)} task(s) from {path}")


@app.command
def stats() -> None:
    """Show task statistics."""
    store = get_store()
    summary = task_stats(store.tasks)
    print(f"Tasks: {summary['total']}")
    print(f"Completed: {summary['completed']} ({summary['completion_rate']}%)")
    for priority, count in summary["by_priority"].items():
        print(f"  {priority}: {count}")
    overdue = overdue_tasks(store.tasks, store.now())
    if overdue:
        print(f"Overdue: {len(overdue)}")


@app.command
def upcoming() -> None:
    """List open tasks with a due date, soonest first."""
    store = get_store()
    tasks = upcoming_tasks(store.tasks)
    if not tasks:
        print("No upcoming tasks")
        return
    for task in tasks:
        print(f"{task.due_date.date().isoformat()}  {task.id}: {task.title} [{task.priority}]")


@app.command(name="due-soon")
def due_soon() -> None:
    """Run task-due-soon automations against every open task with a due date."""
    store = get_store()
    checked = store.check_due_soon()
    print(f"Checked {len(checked)} task(s)")
    for report in store.engine.cascade_reports:
        print(f"Automation cascade stopped ({report.reason}) after {report.actions_executed} action(s)")


@app.meta.default
def main(
    *tokens: Annotated[str, Parameter(show=False, allow_leading_hyphen=True)],
    log_level: Literal["debug", "info", "warning", "error", "critical"] = "critical",
) -> None:
    """Main entry point with global options."""
    configure_logging(log_level)
    app(tokens)


if __name__ == "__main__":
    app.meta()
