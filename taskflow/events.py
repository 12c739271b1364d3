"""Domain events emitted by store mutations and consumed by the automation engine."""

from dataclasses import dataclass
from typing import Literal

from taskflow.models import Priority


@dataclass(frozen=True)
class TaskCreatedEvent:
    task_id: str
    type: Literal["task-created"] = "task-created"


@dataclass(frozen=True)
class TaskCompletedEvent:
    task_id: str
    type: Literal["task-completed"] = "task-completed"


@dataclass(frozen=True)
class TaskDueSoonEvent:
    task_id: str
    type: Literal["task-due-soon"] = "task-due-soon"


@dataclass(frozen=True)
class PriorityChangedEvent:
    """Carries the new priority of the subject task."""

    task_id: str
    priority: Priority
    type: Literal["priority-changed"] = "priority-changed"


@dataclass(frozen=True)
class TagAddedEvent:
    """One event per tag id newly added to the subject task."""

    task_id: str
    tag: str
    type: Literal["tag-added"] = "tag-added"


Event = TaskCreatedEvent | TaskCompletedEvent | TaskDueSoonEvent | PriorityChangedEvent | TagAddedEvent
