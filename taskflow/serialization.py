"""Conversion between store state and plain JSON-compatible snapshots."""

import json
from datetime import datetime, timezone
from typing import Any

import structlog

from taskflow.errors import StorageError
from taskflow.models import (
    Action,
    AddTag,
    Automation,
    ChangePriority,
    CreateTask,
    Document,
    Goal,
    Milestone,
    PriorityChanged,
    Project,
    SendNotification,
    Tag,
    TagAdded,
    Task,
    TaskCompleted,
    TaskCreated,
    TaskDueSoon,
    TaskFilter,
    Trigger,
)

logger = structlog.get_logger()

COLLECTIONS = ("tasks", "projects", "goals", "tags", "documents", "automations")


def _dt(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse_dt(value: str | None) -> datetime | None:
    if not value:
        return None
    parsed = datetime.fromisoformat(value)
    # Date-only and naive timestamps are read as UTC
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def trigger_to_dict(trigger: Trigger) -> dict[str, Any]:
    """Serialize a trigger variant into a tagged dict."""
    match trigger:
        case TaskCreated() | TaskCompleted():
            return {"type": trigger.type}
        case TaskDueSoon(days=days):
            return {"type": trigger.type, "days": days}
        case PriorityChanged(priority=priority):
            return {"type": trigger.type, "priority": priority}
        case TagAdded(tag=tag):
            return {"type": trigger.type, "tag": tag}
    raise TypeError(f"Unknown trigger: {trigger!r}")


def trigger_from_dict(data: dict[str, Any]) -> Trigger:
    """Build a trigger variant from its tagged dict."""
    match data.get("type"):
        case "task-created":
            return TaskCreated()
        case "task-completed":
            return TaskCompleted()
        case "task-due-soon":
            return TaskDueSoon(days=int(data["days"]))
        case "priority-changed":
            return PriorityChanged(priority=data["priority"])
        case "tag-added":
            return TagAdded(tag=data.get("tag"))
    raise ValueError(f"Unknown trigger type: {data.get('type')!r}")


def action_to_dict(action: Action) -> dict[str, Any]:
    """Serialize an action variant into a tagged dict."""
    match action:
        case CreateTask():
            return {
                "type": action.type,
                "title": action.title,
                "description": action.description,
                "priority": action.priority,
                "tags": sorted(action.tags),
            }
        case ChangePriority(priority=priority):
            return {"type": action.type, "priority": priority}
        case AddTag(tag=tag):
            return {"type": action.type, "tag": tag}
        case SendNotification(message=message):
            return {"type": action.type, "message": message}
    raise TypeError(f"Unknown action: {action!r}")


def action_from_dict(data: dict[str, Any]) -> Action:
    """Build an action variant from its tagged dict."""
    match data.get("type"):
        case "create-task":
            return CreateTask(
                title=data["title"],
                description=data.get("description") or "",
                priority=data.get("priority") or "medium",
                tags=frozenset(data.get("tags") or ()),
            )
        case "change-priority":
            return ChangePriority(priority=data["priority"])
        case "add-tag":
            return AddTag(tag=data.get("tag"))
        case "send-notification":
            return SendNotification(message=data["message"])
    raise ValueError(f"Unknown action type: {data.get('type')!r}")


def task_to_dict(task: Task) -> dict[str, Any]:
    return {
        "id": task.id,
        "title": task.title,
        "description": task.description,
        "status": task.status,
        "priority": task.priority,
        "tags": sorted(task.tags),
        "project_id": task.project_id,
        "goal_id": task.goal_id,
        "due_date": _dt(task.due_date),
        "created_at": _dt(task.created_at),
        "updated_at": _dt(task.updated_at),
        "completed_at": _dt(task.completed_at),
    }


def task_from_dict(data: dict[str, Any]) -> Task:
    return Task(
        id=data["id"],
        title=data["title"],
        description=data.get("description") or "",
        status=data.get("status", "todo"),
        priority=data.get("priority", "medium"),
        tags=set(data.get("tags") or ()),
        project_id=data.get("project_id"),
        goal_id=data.get("goal_id"),
        due_date=_parse_dt(data.get("due_date")),
        created_at=_parse_dt(data["created_at"]),
        updated_at=_parse_dt(data["updated_at"]),
        completed_at=_parse_dt(data.get("completed_at")),
    )


def project_to_dict(project: Project) -> dict[str, Any]:
    return {
        "id": project.id,
        "name": project.name,
        "description": project.description,
        "status": project.status,
        "priority": project.priority,
        "tags": sorted(project.tags),
        "start_date": _dt(project.start_date),
        "due_date": _dt(project.due_date),
        "team_members": list(project.team_members),
        "progress": project.progress,
        "created_at": _dt(project.created_at),
        "updated_at": _dt(project.updated_at),
        "completed_at": _dt(project.completed_at),
    }


def project_from_dict(data: dict[str, Any]) -> Project:
    return Project(
        id=data["id"],
        name=data["name"],
        description=data.get("description") or "",
        status=data.get("status", "todo"),
        priority=data.get("priority", "medium"),
        tags=set(data.get("tags") or ()),
        start_date=_parse_dt(data.get("start_date")),
        due_date=_parse_dt(data.get("due_date")),
        team_members=list(data.get("team_members") or ()),
        progress=float(data.get("progress", 0.0)),
        created_at=_parse_dt(data["created_at"]),
        updated_at=_parse_dt(data["updated_at"]),
        completed_at=_parse_dt(data.get("completed_at")),
    )


def goal_to_dict(goal: Goal) -> dict[str, Any]:
    return {
        "id": goal.id,
        "title": goal.title,
        "description": goal.description,
        "target": goal.target,
        "current": goal.current,
        "unit": goal.unit,
        "status": goal.status,
        "priority": goal.priority,
        "tags": sorted(goal.tags),
        "milestones": [
            {"id": m.id, "title": m.title, "target": m.target, "is_completed": m.is_completed}
            for m in goal.milestones
        ],
        "start_date": _dt(goal.start_date),
        "due_date": _dt(goal.due_date),
        "created_at": _dt(goal.created_at),
        "updated_at": _dt(goal.updated_at),
        "completed_at": _dt(goal.completed_at),
    }


def goal_from_dict(data: dict[str, Any]) -> Goal:
    return Goal(
        id=data["id"],
        title=data["title"],
        description=data.get("description") or "",
        target=data["target"],
        current=data.get("current", 0.0),
        unit=data.get("unit", ""),
        status=data.get("status", "todo"),
        priority=data.get("priority", "medium"),
        tags=set(data.get("tags") or ()),
        milestones=[
            Milestone(
                id=m["id"],
                title=m["title"],
                target=m["target"],
                is_completed=bool(m.get("is_completed", False)),
            )
            for m in data.get("milestones") or ()
        ],
        start_date=_parse_dt(data.get("start_date")),
        due_date=_parse_dt(data.get("due_date")),
        created_at=_parse_dt(data["created_at"]),
        updated_at=_parse_dt(data["updated_at"]),
        completed_at=_parse_dt(data.get("completed_at")),
    )


def tag_to_dict(tag: Tag) -> dict[str, Any]:
    return {"id": tag.id, "name": tag.name, "color": tag.color}


def tag_from_dict(data: dict[str, Any]) -> Tag:
    return Tag(id=data["id"], name=data["name"], color=data.get("color", "#64748b"))


def document_to_dict(document: Document) -> dict[str, Any]:
    return {
        "id": document.id,
        "title": document.title,
        "content": document.content,
        "tags": sorted(document.tags),
        "project_id": document.project_id,
        "created_at": _dt(document.created_at),
        "updated_at": _dt(document.updated_at),
    }


def document_from_dict(data: dict[str, Any]) -> Document:
    return Document(
        id=data["id"],
        title=data["title"],
        content=data.get("content") or "",
        tags=set(data.get("tags") or ()),
        project_id=data.get("project_id"),
        created_at=_parse_dt(data["created_at"]),
        updated_at=_parse_dt(data["updated_at"]),
    )


def automation_to_dict(automation: Automation) -> dict[str, Any]:
    return {
        "id": automation.id,
        "name": automation.name,
        "active": automation.active,
        "trigger": trigger_to_dict(automation.trigger),
        "action": action_to_dict(automation.action),
        "created_at": _dt(automation.created_at),
    }


def automation_from_dict(data: dict[str, Any]) -> Automation:
    return Automation(
        id=data["id"],
        name=data["name"],
        active=bool(data.get("active", True)),
        trigger=trigger_from_dict(data["trigger"]),
        action=action_from_dict(data["action"]),
        created_at=_parse_dt(data["created_at"]),
    )


def filter_to_dict(task_filter: TaskFilter) -> dict[str, Any]:
    return {
        "status": task_filter.status,
        "priority": task_filter.priority,
        "tags": sorted(task_filter.tags),
        "search_query": task_filter.search_query,
    }


def filter_from_dict(data: dict[str, Any]) -> TaskFilter:
    return TaskFilter(
        status=data.get("status", "all"),
        priority=data.get("priority", "all"),
        tags=set(data.get("tags") or ()),
        search_query=data.get("search_query", ""),
    )


_ENCODERS = {
    "tasks": task_to_dict,
    "projects": project_to_dict,
    "goals": goal_to_dict,
    "tags": tag_to_dict,
    "documents": document_to_dict,
    "automations": automation_to_dict,
}

_DECODERS = {
    "tasks": task_from_dict,
    "projects": project_from_dict,
    "goals": goal_from_dict,
    "tags": tag_from_dict,
    "documents": document_from_dict,
    "automations": automation_from_dict,
}


def encode_state(collections: dict[str, list[Any]], task_filter: TaskFilter) -> dict[str, Any]:
    """Encode every collection and the filter into a snapshot dict.

    Args:
        collections: Mapping of collection name to its entities, in insertion order
        task_filter: Current task filter

    Returns:
        JSON-compatible snapshot
    """
    snapshot: dict[str, Any] = {name: [_ENCODERS[name](item) for item in collections[name]] for name in COLLECTIONS}
    snapshot["filter"] = filter_to_dict(task_filter)
    return snapshot


def decode_state(snapshot: dict[str, Any]) -> tuple[dict[str, list[Any]], TaskFilter]:
    """Decode a snapshot dict back into entity collections and a filter.

    Missing collections decode as empty.

    Raises:
        StorageError: If the snapshot is malformed
    """
    try:
        collections = {name: [_DECODERS[name](item) for item in snapshot.get(name) or ()] for name in COLLECTIONS}
        task_filter = filter_from_dict(snapshot.get("filter") or {})
    except (KeyError, TypeError, ValueError) as e:
        logger.error("Failed to decode snapshot", error=str(e))
        raise StorageError(f"Malformed snapshot: {e}") from e
    return collections, task_filter


def dumps(snapshot: dict[str, Any]) -> str:
    """Render a snapshot as JSON text."""
    return json.dumps(snapshot, indent=2)


def loads(text: str) -> dict[str, Any]:
    """Parse JSON text into a snapshot dict.

    Raises:
        StorageError: If the text is not a JSON object
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise StorageError(f"Invalid snapshot JSON: {e}") from e
    if not isinstance(data, dict):
        raise StorageError("Snapshot must be a JSON object")
    return data
