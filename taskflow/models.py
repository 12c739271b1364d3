"""Data models for taskflow."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

Priority = Literal["low", "medium", "high", "urgent"]
Status = Literal["todo", "in-progress", "completed", "archived"]

PRIORITIES: tuple[str, ...] = ("low", "medium", "high", "urgent")
STATUSES: tuple[str, ...] = ("todo", "in-progress", "completed", "archived")


@dataclass
class Tag:
    """A coloured label referenced by id from other entities."""

    id: str
    name: str
    color: str = "#64748b"


@dataclass
class Task:
    """Represents a single unit of work."""

    id: str
    title: str
    created_at: datetime
    updated_at: datetime
    description: str = ""
    status: Status = "todo"
    priority: Priority = "medium"
    tags: set[str] = field(default_factory=set)
    project_id: str | None = None
    goal_id: str | None = None
    due_date: datetime | None = None
    completed_at: datetime | None = None


@dataclass
class Project:
    """A group of tasks with a derived completion percentage."""

    id: str
    name: str
    created_at: datetime
    updated_at: datetime
    description: str = ""
    status: Status = "todo"
    priority: Priority = "medium"
    tags: set[str] = field(default_factory=set)
    start_date: datetime | None = None
    due_date: datetime | None = None
    team_members: list[str] = field(default_factory=list)
    progress: float = 0.0
    completed_at: datetime | None = None


@dataclass
class Milestone:
    id: str
    title: str
    target: float
    is_completed: bool = False


@dataclass
class Goal:
    """A measurable target tracked through ``current`` against ``target``."""

    id: str
    title: str
    target: float
    unit: str
    created_at: datetime
    updated_at: datetime
    description: str = ""
    current: float = 0.0
    status: Status = "todo"
    priority: Priority = "medium"
    tags: set[str] = field(default_factory=set)
    milestones: list[Milestone] = field(default_factory=list)
    start_date: datetime | None = None
    due_date: datetime | None = None
    completed_at: datetime | None = None


@dataclass
class Document:
    id: str
    title: str
    created_at: datetime
    updated_at: datetime
    content: str = ""
    tags: set[str] = field(default_factory=set)
    project_id: str | None = None


# Triggers


@dataclass(frozen=True)
class TaskCreated:
    type: Literal["task-created"] = "task-created"


@dataclass(frozen=True)
class TaskCompleted:
    type: Literal["task-completed"] = "task-completed"


@dataclass(frozen=True)
class TaskDueSoon:
    days: int
    type: Literal["task-due-soon"] = "task-due-soon"


@dataclass(frozen=True)
class PriorityChanged:
    priority: Priority
    type: Literal["priority-changed"] = "priority-changed"


@dataclass(frozen=True)
class TagAdded:
    """Fires when ``tag`` is added to a task.

    ``tag`` becomes None when the referenced tag is deleted; such a trigger
    never matches.
    """

    tag: str | None
    type: Literal["tag-added"] = "tag-added"


Trigger = TaskCreated | TaskCompleted | TaskDueSoon | PriorityChanged | TagAdded


# Actions


@dataclass(frozen=True)
class CreateTask:
    title: str
    description: str = ""
    priority: Priority = "medium"
    tags: frozenset[str] = frozenset()
    type: Literal["create-task"] = "create-task"


@dataclass(frozen=True)
class ChangePriority:
    priority: Priority
    type: Literal["change-priority"] = "change-priority"


@dataclass(frozen=True)
class AddTag:
    tag: str | None
    type: Literal["add-tag"] = "add-tag"


@dataclass(frozen=True)
class SendNotification:
    message: str
    type: Literal["send-notification"] = "send-notification"


Action = CreateTask | ChangePriority | AddTag | SendNotification


@dataclass
class Automation:
    """A trigger/action rule evaluated against domain events."""

    id: str
    name: str
    trigger: Trigger
    action: Action
    created_at: datetime
    active: bool = True


@dataclass
class TaskFilter:
    """Read-side filter over the task collection."""

    status: Status | Literal["all"] = "all"
    priority: Priority | Literal["all"] = "all"
    tags: set[str] = field(default_factory=set)
    search_query: str = ""
