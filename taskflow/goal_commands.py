"""Goal commands for taskflow CLI."""

from cyclopts import App

goal_app = App(name="goal", help="Manage goals")


@goal_app.command
def add(
    title: str,
    target: float,
    unit: str = "",
    description: str = "",
    priority: str = "medium",
    due: str | None = None,
) -> None:
    """Create a new goal."""
    from taskflow.cli import get_store, parse_date

    store = get_store()
    goal = store.create_goal(
        title=title,
        target=target,
        unit=unit,
        description=description,
        priority=priority,
        due_date=parse_date(due),
    )
    print(f"Created goal {goal.id}: {goal.title}")


@goal_app.command
def progress(goal_id: str, current: float) -> None:
    """Record the current value of a goal."""
    from taskflow.cli import get_store

    store = get_store()
    goal = store.update_goal_progress(goal_id, current)
    if goal is None:
        print(f"Goal {goal_id} not found")
        return
    print(f"{goal.title}: {goal.current}/{goal.target} {goal.unit} ({goal.status})")


@goal_app.command
def milestone(goal_id: str, title: str, target: float) -> None:
    """Add a milestone to a goal."""
    from taskflow.cli import get_store

    store = get_store()
    added = store.add_milestone(goal_id, title, target)
    if added is None:
        print(f"Goal {goal_id} not found")
        return
    print(f"Added milestone {added.id}: {added.title}")


@goal_app.command
def complete(goal_id: str) -> None:
    """Complete a goal."""
    from taskflow.cli import get_store

    store = get_store()
    goal = store.complete_goal(goal_id)
    if goal is None:
        print(f"Goal {goal_id} not found")
        return
    print(f"Completed goal {goal.id}: {goal.title}")


@goal_app.command
def delete(*goal_ids: str) -> None:
    """Delete goals."""
    from taskflow.cli import get_store

    store = get_store()
    deleted = [goal_id for goal_id in goal_ids if store.delete_goal(goal_id) is not None]
    print(f"Deleted {len(deleted)} goal(s)")


@goal_app.command(name="list")
def list_goals() -> None:
    """List goals and milestones."""
    from taskflow.cli import get_store

    store = get_store()
    if not store.goals:
        print("No goals")
        return

    for goal in store.goals:
        print(f"{goal.id}: {goal.title} {goal.current}/{goal.target} {goal.unit} ({goal.status})")
        for item in goal.milestones:
            marker = "x" if item.is_completed else " "
            print(f"  [{marker}] {item.title} ({item.target} {goal.unit})")
