"""Automation commands for taskflow CLI."""

from typing import Literal

from cyclopts import App

from taskflow.models import (
    Action,
    AddTag,
    ChangePriority,
    CreateTask,
    PriorityChanged,
    SendNotification,
    TagAdded,
    TaskCompleted,
    TaskCreated,
    TaskDueSoon,
    Trigger,
)

automation_app = App(name="automation", help="Manage automations")

TriggerKind = Literal["task-created", "task-completed", "task-due-soon", "priority-changed", "tag-added"]
ActionKind = Literal["create-task", "change-priority", "add-tag", "send-notification"]


def build_trigger(kind: str, days: int | None = None, priority: str | None = None, tag: str | None = None) -> Trigger:
    """Build a trigger from CLI options.

    Raises:
        ValueError: If an option required by the trigger kind is missing
    """
    if kind == "task-created":
        return TaskCreated()
    if kind == "task-completed":
        return TaskCompleted()
    if kind == "task-due-soon":
        if days is None:
            raise ValueError("--days is required for task-due-soon")
        return TaskDueSoon(days=days)
    if kind == "priority-changed":
        if priority is None:
            raise ValueError("--when-priority is required for priority-changed")
        return PriorityChanged(priority=priority)
    if kind == "tag-added":
        if tag is None:
            raise ValueError("--when-tag is required for tag-added")
        return TagAdded(tag=tag)
    raise ValueError(f"Unknown trigger: {kind}")


def build_action(
    kind: str,
    title: str | None = None,
    description: str = "",
    priority: str | None = None,
    tags: list[str] | None = None,
    tag: str | None = None,
    message: str | None = None,
) -> Action:
    """Build an action from CLI options.

    Raises:
        ValueError: If an option required by the action kind is missing
    """
    if kind == "create-task":
        if not title:
            raise ValueError("--title is required for create-task")
        return CreateTask(
            title=title,
            description=description,
            priority=priority or "medium",
            tags=frozenset(tags or ()),
        )
    if kind == "change-priority":
        if priority is None:
            raise ValueError("--priority is required for change-priority")
        return ChangePriority(priority=priority)
    if kind == "add-tag":
        if tag is None:
            raise ValueError("--tag is required for add-tag")
        return AddTag(tag=tag)
    if kind == "send-notification":
        if not message:
            raise ValueError("--message is required for send-notification")
        return SendNotification(message=message)
    raise ValueError(f"Unknown action: {kind}")


def describe(trigger: Trigger, action: Action) -> str:
    """Render an automation rule as a one-line summary."""
    match trigger:
        case TaskDueSoon(days=days):
            when = f"task due within {days} day(s)"
        case PriorityChanged(priority=priority):
            when = f"priority changes to {priority}"
        case TagAdded(tag=tag):
            when = f"tag {tag} is added"
        case _:
            when = trigger.type.replace("-", " ")

    match action:
        case CreateTask(title=title):
            then = f'create task "{title}"'
        case ChangePriority(priority=priority):
            then = f"set priority to {priority}"
        case AddTag(tag=tag):
            then = f"add tag {tag}"
        case SendNotification(message=message):
            then = f'notify "{message}"'
        case _:
            then = action.type

    return f"when {when}, {then}"


@automation_app.command
def add(
    name: str,
    trigger: TriggerKind,
    action: ActionKind,
    days: int | None = None,
    when_priority: str | None = None,
    when_tag: str | None = None,
    title: str | None = None,
    description: str = "",
    priority: str | None = None,
    tags: str = "",
    tag: str | None = None,
    message: str | None = None,
    inactive: bool = False,
) -> None:
    """Create a new automation.

    Args:
        name: Automation name
        trigger: Event kind the automation listens for
        action: Effect performed when the trigger matches
        days: Window for task-due-soon
        when_priority: Priority for priority-changed
        when_tag: Tag id or name for tag-added
        title: Title of the task created by create-task
        description: Description of the task created by create-task
        priority: Priority for create-task or change-priority
        tags: Comma separated tags for create-task
        tag: Tag id or name for add-tag
        message: Message for send-notification
        inactive: Create the automation switched off
    """
    from taskflow.cli import get_store, resolve_tags

    store = get_store()
    when_tag_ids = resolve_tags(store, when_tag)
    tag_ids = resolve_tags(store, tag)
    automation = store.create_automation(
        name=name,
        trigger=build_trigger(trigger, days=days, priority=when_priority, tag=next(iter(when_tag_ids), None)),
        action=build_action(
            action,
            title=title,
            description=description,
            priority=priority,
            tags=resolve_tags(store, tags),
            tag=next(iter(tag_ids), None),
            message=message,
        ),
        active=not inactive,
    )
    print(f"Created automation {automation.id}: {automation.name}")


@automation_app.command
def toggle(automation_id: str) -> None:
    """Switch an automation on or off."""
    from taskflow.cli import get_store

    store = get_store()
    automation = store.toggle_automation(automation_id)
    if automation is None:
        print(f"Automation {automation_id} not found")
        return
    state = "active" if automation.active else "inactive"
    print(f"Automation {automation.id} is now {state}")


@automation_app.command
def delete(*automation_ids: str) -> None:
    """Delete automations."""
    from taskflow.cli import get_store

    store = get_store()
    deleted = [aid for aid in automation_ids if store.delete_automation(aid) is not None]
    print(f"Deleted {len(deleted)} automation(s)")


@automation_app.command(name="list")
def list_automations() -> None:
    """List automations in evaluation order."""
    from taskflow.cli import get_store

    store = get_store()
    if not store.automations:
        print("No automations")
        return

    for automation in store.automations:
        marker = "●" if automation.active else "○"
        print(f"{marker} {automation.id}: {automation.name} ({describe(automation.trigger, automation.action)})")
