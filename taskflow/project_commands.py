"""Project commands for taskflow CLI."""

from cyclopts import App

project_app = App(name="project", help="Manage projects")


@project_app.command
def add(
    name: str,
    description: str = "",
    priority: str = "medium",
    tags: str = "",
    members: str = "",
    start: str | None = None,
    due: str | None = None,
) -> None:
    """Create a new project."""
    from taskflow.cli import get_store, parse_csv, parse_date, resolve_tags

    store = get_store()
    project = store.create_project(
        name=name,
        description=description,
        priority=priority,
        tags=resolve_tags(store, tags),
        team_members=parse_csv(members),
        start_date=parse_date(start),
        due_date=parse_date(due),
    )
    print(f"Created project {project.id}: {project.name}")


@project_app.command
def complete(project_id: str) -> None:
    """Complete a project and all of its tasks."""
    from taskflow.cli import get_store

    store = get_store()
    project = store.complete_project(project_id)
    if project is None:
        print(f"Project {project_id} not found")
        return
    print(f"Completed project {project.id}: {project.name}")


@project_app.command
def delete(*project_ids: str) -> None:
    """Delete projects; their tasks are kept and detached."""
    from taskflow.cli import get_store

    store = get_store()
    deleted = [project_id for project_id in project_ids if store.delete_project(project_id) is not None]
    print(f"Deleted {len(deleted)} project(s)")


@project_app.command(name="list")
def list_projects() -> None:
    """List projects with their progress."""
    from taskflow.cli import get_store

    store = get_store()
    projects = store.projects
    if not projects:
        print("No projects")
        return

    for project in projects:
        task_count = sum(1 for task in store.tasks if task.project_id == project.id)
        print(f"{project.id}: {project.name} {round(project.progress)}% ({task_count} task(s), {project.status})")
