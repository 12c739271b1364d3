"""Derived project metrics."""

from collections.abc import Iterable

from taskflow.models import Task


def recompute_progress(project_id: str, tasks: Iterable[Task]) -> float:
    """Return the completion percentage of a project.

    Args:
        project_id: Project to compute progress for
        tasks: Task snapshot taken after the mutation

    Returns:
        ``100 * completed / total`` over tasks referencing the project, or 0.0 if it has none
    """
    total = 0
    completed = 0
    for task in tasks:
        if task.project_id != project_id:
            continue
        total += 1
        if task.status == "completed":
            completed += 1
    if total == 0:
        return 0.0
    return 100.0 * completed / total
