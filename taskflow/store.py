"""Domain store: owns every collection and is the only writer of persisted state.

Mutations run synchronously under a re-entrant lock. Domain events raised by a
mutation are queued and handed to the automation engine when the outermost
mutation finishes; the engine may call back into the store, and the snapshot is
saved once the whole cascade has settled.

Operating on an id that does not exist is a silent no-op: lookups and
mutations return None and leave the state untouched.
"""

import threading
import uuid
from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any

import structlog

from taskflow import serialization
from taskflow.automation import DEFAULT_MAX_ACTIONS, DEFAULT_MAX_DEPTH, AutomationEngine, CascadeReport
from taskflow.backend import StorageBackend
from taskflow.errors import ValidationError
from taskflow.events import (
    Event,
    PriorityChangedEvent,
    TagAddedEvent,
    TaskCompletedEvent,
    TaskCreatedEvent,
    TaskDueSoonEvent,
)
from taskflow.filters import OPEN_STATUSES, filter_tasks
from taskflow.models import (
    PRIORITIES,
    STATUSES,
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
from taskflow.notifications import Notifier
from taskflow.progress import recompute_progress

logger = structlog.get_logger()

DEFAULT_TAGS = (
    ("Personal", "#3b82f6"),
    ("Work", "#f97316"),
    ("Home", "#14b8a6"),
)

TASK_FIELDS = frozenset({"title", "description", "status", "priority", "tags", "project_id", "goal_id", "due_date"})
PROJECT_FIELDS = frozenset(
    {"name", "description", "status", "priority", "tags", "start_date", "due_date", "team_members"}
)
GOAL_FIELDS = frozenset(
    {"title", "description", "target", "unit", "status", "priority", "tags", "start_date", "due_date"}
)
DOCUMENT_FIELDS = frozenset({"title", "content", "tags", "project_id"})
AUTOMATION_FIELDS = frozenset({"name", "active", "trigger", "action"})
TAG_FIELDS = frozenset({"name", "color"})


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


def _require_text(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field_name} must not be empty")
    return value


def _check_choice(value: Any, choices: tuple[str, ...], field_name: str) -> str:
    if value not in choices:
        raise ValidationError(f"Invalid {field_name} {value!r}, expected one of: {', '.join(choices)}")
    return value


def _check_datetime(value: Any, field_name: str) -> datetime | None:
    """Return ``value`` as an aware datetime; naive values are taken as UTC."""
    if value is None:
        return None
    if not isinstance(value, datetime):
        raise ValidationError(f"{field_name} must be a datetime, got {type(value).__name__}")
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _check_dates(changes: dict[str, Any]) -> None:
    for field_name in ("start_date", "due_date"):
        if field_name in changes:
            changes[field_name] = _check_datetime(changes[field_name], field_name)


def _check_fields(changes: dict[str, Any], allowed: frozenset[str], kind: str) -> None:
    unknown = set(changes) - allowed
    if unknown:
        raise ValidationError(f"Cannot update {kind} field(s): {', '.join(sorted(unknown))}")


class Store:
    """State-owning service for tasks, projects, goals, tags, documents and automations."""

    def __init__(
        self,
        backend: StorageBackend | None = None,
        notifier: Notifier | None = None,
        max_depth: int = DEFAULT_MAX_DEPTH,
        max_actions: int = DEFAULT_MAX_ACTIONS,
        clock: Callable[[], datetime] = utcnow,
        on_cascade_limit: Callable[[CascadeReport], None] | None = None,
        seed_default_tags: bool = False,
    ) -> None:
        """Initialize the store and load the backend's snapshot, if any.

        Args:
            backend: Persistence adapter; the snapshot is saved after every mutation
            notifier: Sink for send-notification actions
            max_depth: Automation cascade depth limit
            max_actions: Automation action budget per cascade
            clock: Source of timestamps
            on_cascade_limit: Observer for truncated cascades
            seed_default_tags: Create the default tags when the backend holds no snapshot
        """
        self.backend = backend
        self.now = clock
        self.engine = AutomationEngine(
            self,
            notifier=notifier,
            max_depth=max_depth,
            max_actions=max_actions,
            on_cascade_limit=on_cascade_limit,
        )
        self._lock = threading.RLock()
        self._depth = 0
        self._pending_events: list[Event] = []

        self._tasks: dict[str, Task] = {}
        self._projects: dict[str, Project] = {}
        self._goals: dict[str, Goal] = {}
        self._tags: dict[str, Tag] = {}
        self._documents: dict[str, Document] = {}
        self._automations: dict[str, Automation] = {}
        self.filter = TaskFilter()

        snapshot = backend.load() if backend is not None else None
        if snapshot is not None:
            self._replace_state(snapshot)
            logger.info("Store loaded", tasks=len(self._tasks), automations=len(self._automations))
        elif seed_default_tags:
            for name, color in DEFAULT_TAGS:
                tag = Tag(id=_new_id(), name=name, color=color)
                self._tags[tag.id] = tag

    # Collections

    @property
    def tasks(self) -> list[Task]:
        return list(self._tasks.values())

    @property
    def projects(self) -> list[Project]:
        return list(self._projects.values())

    @property
    def goals(self) -> list[Goal]:
        return list(self._goals.values())

    @property
    def tags(self) -> list[Tag]:
        return list(self._tags.values())

    @property
    def documents(self) -> list[Document]:
        return list(self._documents.values())

    @property
    def automations(self) -> list[Automation]:
        return list(self._automations.values())

    def get_task(self, task_id: str) -> Task | None:
        return self._lookup(self._tasks, task_id, "task")

    def get_project(self, project_id: str) -> Project | None:
        return self._lookup(self._projects, project_id, "project")

    def get_goal(self, goal_id: str) -> Goal | None:
        return self._lookup(self._goals, goal_id, "goal")

    def get_tag(self, tag_id: str) -> Tag | None:
        return self._lookup(self._tags, tag_id, "tag")

    def get_document(self, document_id: str) -> Document | None:
        return self._lookup(self._documents, document_id, "document")

    def get_automation(self, automation_id: str) -> Automation | None:
        return self._lookup(self._automations, automation_id, "automation")

    def filtered_tasks(self) -> list[Task]:
        """Return the tasks matching the current filter."""
        return filter_tasks(self._tasks.values(), self.filter)

    # Tasks

    def create_task(
        self,
        title: str,
        description: str = "",
        status: str = "todo",
        priority: str = "medium",
        tags: Iterable[str] = (),
        project_id: str | None = None,
        goal_id: str | None = None,
        due_date: datetime | None = None,
    ) -> Task:
        """Create a task and emit ``task-created``.

        Raises:
            ValidationError: If the title is empty, an enum value is unknown or a reference is missing
        """
        _require_text(title, "title")
        _check_choice(status, STATUSES, "status")
        _check_choice(priority, PRIORITIES, "priority")
        tag_ids = self._check_tags(tags)
        self._check_reference(self._projects, project_id, "project")
        self._check_reference(self._goals, goal_id, "goal")
        due_date = _check_datetime(due_date, "due_date")

        with self._mutation():
            now = self.now()
            task = Task(
                id=_new_id(),
                title=title,
                description=description,
                status=status,
                priority=priority,
                tags=tag_ids,
                project_id=project_id,
                goal_id=goal_id,
                due_date=due_date,
                created_at=now,
                updated_at=now,
                completed_at=now if status == "completed" else None,
            )
            self._tasks[task.id] = task
            self._refresh_progress(project_id)
            self._emit(TaskCreatedEvent(task_id=task.id))
            logger.info("Task created", task_id=task.id, title=title)
        return task

    def update_task(self, task_id: str, **changes: Any) -> Task | None:
        """Merge ``changes`` into a task.

        Emits ``priority-changed`` when the priority actually changes,
        ``tag-added`` once per newly added tag in the order given, and
        ``task-completed`` when the status moves into ``completed``.

        Raises:
            ValidationError: If a field is unknown or a value is invalid
        """
        task = self.get_task(task_id)
        if task is None:
            return None

        _check_fields(changes, TASK_FIELDS, "task")
        if "title" in changes:
            _require_text(changes["title"], "title")
        if "status" in changes:
            _check_choice(changes["status"], STATUSES, "status")
        if "priority" in changes:
            _check_choice(changes["priority"], PRIORITIES, "priority")
        ordered_tags: list[str] = []
        if "tags" in changes:
            ordered_tags = list(dict.fromkeys(changes["tags"]))
            changes["tags"] = self._check_tags(ordered_tags)
        if "project_id" in changes:
            self._check_reference(self._projects, changes["project_id"], "project")
        if "goal_id" in changes:
            self._check_reference(self._goals, changes["goal_id"], "goal")
        _check_dates(changes)

        with self._mutation():
            previous = replace(task, tags=set(task.tags))
            for name, value in changes.items():
                setattr(task, name, value)
            now = self.now()
            task.updated_at = now

            if task.status == "completed" and previous.status != "completed":
                task.completed_at = now
            elif task.status != "completed":
                task.completed_at = None

            if task.priority != previous.priority:
                self._emit(PriorityChangedEvent(task_id=task.id, priority=task.priority))
            for tag_id in ordered_tags:
                if tag_id not in previous.tags:
                    self._emit(TagAddedEvent(task_id=task.id, tag=tag_id))
            if task.status == "completed" and previous.status != "completed":
                self._emit(TaskCompletedEvent(task_id=task.id))

            self._refresh_progress(previous.project_id, task.project_id)
            logger.info("Task updated", task_id=task.id, fields=sorted(changes))
        return task

    def complete_task(self, task_id: str) -> Task | None:
        """Mark a task completed and emit ``task-completed``.

        Completing an already completed task changes nothing: the original
        ``completed_at`` is kept and no event is emitted.
        """
        task = self.get_task(task_id)
        if task is None:
            return None
        if task.status == "completed":
            logger.debug("Task already completed", task_id=task_id)
            return task

        with self._mutation():
            self._mark_completed(task)
            self._refresh_progress(task.project_id)
            logger.info("Task completed", task_id=task.id)
        return task

    def delete_task(self, task_id: str) -> Task | None:
        task = self.get_task(task_id)
        if task is None:
            return None

        with self._mutation():
            del self._tasks[task_id]
            self._refresh_progress(task.project_id)
            logger.info("Task deleted", task_id=task_id)
        return task

    def check_due_soon(self) -> list[Task]:
        """Emit ``task-due-soon`` for every open task with a due date.

        Which automations fire is decided by each trigger's ``days`` window.

        Returns:
            The tasks an event was emitted for
        """
        with self._mutation():
            checked = [task for task in self._tasks.values() if task.status in OPEN_STATUSES and task.due_date]
            for task in checked:
                self._emit(TaskDueSoonEvent(task_id=task.id))
            logger.info("Checked due dates", tasks=len(checked))
        return checked

    # Projects

    def create_project(
        self,
        name: str,
        description: str = "",
        status: str = "todo",
        priority: str = "medium",
        tags: Iterable[str] = (),
        start_date: datetime | None = None,
        due_date: datetime | None = None,
        team_members: Iterable[str] = (),
    ) -> Project:
        _require_text(name, "name")
        _check_choice(status, STATUSES, "status")
        _check_choice(priority, PRIORITIES, "priority")
        tag_ids = self._check_tags(tags)
        start_date = _check_datetime(start_date, "start_date")
        due_date = _check_datetime(due_date, "due_date")

        with self._mutation():
            now = self.now()
            project = Project(
                id=_new_id(),
                name=name,
                description=description,
                status=status,
                priority=priority,
                tags=tag_ids,
                start_date=start_date,
                due_date=due_date,
                team_members=list(team_members),
                created_at=now,
                updated_at=now,
                completed_at=now if status == "completed" else None,
            )
            self._projects[project.id] = project
            logger.info("Project created", project_id=project.id, name=name)
        return project

    def update_project(self, project_id: str, **changes: Any) -> Project | None:
        """Merge ``changes`` into a project.

        ``progress`` is derived from the project's tasks and cannot be set.
        Moving the status to ``completed`` completes the project's tasks.
        """
        project = self.get_project(project_id)
        if project is None:
            return None

        if "progress" in changes:
            raise ValidationError("progress is derived from the project's tasks")
        _check_fields(changes, PROJECT_FIELDS, "project")
        if "name" in changes:
            _require_text(changes["name"], "name")
        if "status" in changes:
            _check_choice(changes["status"], STATUSES, "status")
        if "priority" in changes:
            _check_choice(changes["priority"], PRIORITIES, "priority")
        if "tags" in changes:
            changes["tags"] = self._check_tags(changes["tags"])
        if "team_members" in changes:
            changes["team_members"] = list(changes["team_members"])
        _check_dates(changes)

        with self._mutation():
            was_completed = project.status == "completed"
            for name, value in changes.items():
                setattr(project, name, value)
            project.updated_at = self.now()
            if project.status == "completed" and not was_completed:
                self._complete_project(project)
            elif project.status != "completed":
                project.completed_at = None
            logger.info("Project updated", project_id=project.id, fields=sorted(changes))
        return project

    def complete_project(self, project_id: str) -> Project | None:
        """Complete a project and every task in it; progress becomes 100."""
        project = self.get_project(project_id)
        if project is None:
            return None

        with self._mutation():
            self._complete_project(project)
            logger.info("Project completed", project_id=project.id)
        return project

    def delete_project(self, project_id: str) -> Project | None:
        """Delete a project, detaching its tasks and documents."""
        project = self.get_project(project_id)
        if project is None:
            return None

        with self._mutation():
            del self._projects[project_id]
            now = self.now()
            for item in [*self._tasks.values(), *self._documents.values()]:
                if item.project_id == project_id:
                    item.project_id = None
                    item.updated_at = now
            logger.info("Project deleted", project_id=project_id)
        return project

    # Goals

    def create_goal(
        self,
        title: str,
        target: float,
        unit: str = "",
        description: str = "",
        current: float = 0.0,
        status: str = "todo",
        priority: str = "medium",
        tags: Iterable[str] = (),
        milestones: Iterable[tuple[str, float]] = (),
        start_date: datetime | None = None,
        due_date: datetime | None = None,
    ) -> Goal:
        """Create a goal.

        Args:
            milestones: ``(title, target)`` pairs

        Raises:
            ValidationError: If the title is empty or the target is not positive
        """
        _require_text(title, "title")
        self._check_target(target)
        _check_choice(status, STATUSES, "status")
        _check_choice(priority, PRIORITIES, "priority")
        tag_ids = self._check_tags(tags)
        start_date = _check_datetime(start_date, "start_date")
        due_date = _check_datetime(due_date, "due_date")
        milestone_list = []
        for milestone_title, milestone_target in milestones:
            _require_text(milestone_title, "milestone title")
            milestone_list.append(Milestone(id=_new_id(), title=milestone_title, target=milestone_target))

        with self._mutation():
            now = self.now()
            goal = Goal(
                id=_new_id(),
                title=title,
                target=target,
                unit=unit,
                description=description,
                status=status,
                priority=priority,
                tags=tag_ids,
                milestones=milestone_list,
                start_date=start_date,
                due_date=due_date,
                created_at=now,
                updated_at=now,
            )
            self._goals[goal.id] = goal
            if status == "completed":
                self._complete_goal(goal)
            else:
                self._apply_goal_progress(goal, current)
            logger.info("Goal created", goal_id=goal.id, title=title)
        return goal

    def update_goal(self, goal_id: str, **changes: Any) -> Goal | None:
        goal = self.get_goal(goal_id)
        if goal is None:
            return None

        _check_fields(changes, GOAL_FIELDS, "goal")
        if "title" in changes:
            _require_text(changes["title"], "title")
        if "target" in changes:
            self._check_target(changes["target"])
        if "status" in changes:
            _check_choice(changes["status"], STATUSES, "status")
        if "priority" in changes:
            _check_choice(changes["priority"], PRIORITIES, "priority")
        if "tags" in changes:
            changes["tags"] = self._check_tags(changes["tags"])
        _check_dates(changes)

        with self._mutation():
            was_completed = goal.status == "completed"
            for name, value in changes.items():
                setattr(goal, name, value)
            goal.updated_at = self.now()
            if goal.status == "completed" and not was_completed:
                self._complete_goal(goal)
            elif goal.status != "completed":
                goal.completed_at = None
            logger.info("Goal updated", goal_id=goal.id, fields=sorted(changes))
        return goal

    def update_goal_progress(self, goal_id: str, current: float) -> Goal | None:
        """Set a goal's current value, completing reached milestones and the goal itself."""
        goal = self.get_goal(goal_id)
        if goal is None:
            return None

        with self._mutation():
            self._apply_goal_progress(goal, current)
            goal.updated_at = self.now()
            logger.info("Goal progress updated", goal_id=goal.id, current=current, target=goal.target)
        return goal

    def complete_goal(self, goal_id: str) -> Goal | None:
        """Complete a goal: ``current`` is set to ``target``."""
        goal = self.get_goal(goal_id)
        if goal is None:
            return None

        with self._mutation():
            self._complete_goal(goal)
            goal.updated_at = self.now()
            logger.info("Goal completed", goal_id=goal.id)
        return goal

    def add_milestone(self, goal_id: str, title: str, target: float) -> Milestone | None:
        goal = self.get_goal(goal_id)
        if goal is None:
            return None
        _require_text(title, "milestone title")

        with self._mutation():
            milestone = Milestone(id=_new_id(), title=title, target=target, is_completed=goal.current >= target)
            goal.milestones.append(milestone)
            goal.updated_at = self.now()
            logger.info("Milestone added", goal_id=goal.id, milestone_id=milestone.id)
        return milestone

    def toggle_milestone(self, goal_id: str, milestone_id: str) -> Milestone | None:
        goal = self.get_goal(goal_id)
        if goal is None:
            return None
        milestone = next((m for m in goal.milestones if m.id == milestone_id), None)
        if milestone is None:
            logger.debug("Milestone not found", goal_id=goal_id, milestone_id=milestone_id)
            return None

        with self._mutation():
            milestone.is_completed = not milestone.is_completed
            goal.updated_at = self.now()
        return milestone

    def delete_goal(self, goal_id: str) -> Goal | None:
        """Delete a goal, detaching tasks that referenced it."""
        goal = self.get_goal(goal_id)
        if goal is None:
            return None

        with self._mutation():
            del self._goals[goal_id]
            now = self.now()
            for task in self._tasks.values():
                if task.goal_id == goal_id:
                    task.goal_id = None
                    task.updated_at = now
            logger.info("Goal deleted", goal_id=goal_id)
        return goal

    # Tags

    def create_tag(self, name: str, color: str = "#64748b") -> Tag:
        _require_text(name, "name")

        with self._mutation():
            tag = Tag(id=_new_id(), name=name, color=color)
            self._tags[tag.id] = tag
            logger.info("Tag created", tag_id=tag.id, name=name)
        return tag

    def update_tag(self, tag_id: str, **changes: Any) -> Tag | None:
        tag = self.get_tag(tag_id)
        if tag is None:
            return None

        _check_fields(changes, TAG_FIELDS, "tag")
        if "name" in changes:
            _require_text(changes["name"], "name")

        with self._mutation():
            for name, value in changes.items():
                setattr(tag, name, value)
            logger.info("Tag updated", tag_id=tag.id, fields=sorted(changes))
        return tag

    def delete_tag(self, tag_id: str) -> Tag | None:
        """Delete a tag and strip every reference to it.

        Automations whose trigger or action named the tag lose the reference
        and are deactivated.
        """
        tag = self.get_tag(tag_id)
        if tag is None:
            return None

        with self._mutation():
            del self._tags[tag_id]
            now = self.now()
            tagged = [*self._tasks.values(), *self._projects.values(), *self._goals.values(), *self._documents.values()]
            for item in tagged:
                if tag_id in item.tags:
                    item.tags.discard(tag_id)
                    item.updated_at = now
            for automation in self._automations.values():
                self._strip_tag_from_automation(automation, tag_id)
            self.filter.tags.discard(tag_id)
            logger.info("Tag deleted", tag_id=tag_id)
        return tag

    # Documents

    def create_document(
        self,
        title: str,
        content: str = "",
        tags: Iterable[str] = (),
        project_id: str | None = None,
    ) -> Document:
        _require_text(title, "title")
        tag_ids = self._check_tags(tags)
        self._check_reference(self._projects, project_id, "project")

        with self._mutation():
            now = self.now()
            document = Document(
                id=_new_id(),
                title=title,
                content=content,
                tags=tag_ids,
                project_id=project_id,
                created_at=now,
                updated_at=now,
            )
            self._documents[document.id] = document
            logger.info("Document created", document_id=document.id, title=title)
        return document

    def update_document(self, document_id: str, **changes: Any) -> Document | None:
        document = self.get_document(document_id)
        if document is None:
            return None

        _check_fields(changes, DOCUMENT_FIELDS, "document")
        if "title" in changes:
            _require_text(changes["title"], "title")
        if "tags" in changes:
            changes["tags"] = self._check_tags(changes["tags"])
        if "project_id" in changes:
            self._check_reference(self._projects, changes["project_id"], "project")

        with self._mutation():
            for name, value in changes.items():
                setattr(document, name, value)
            document.updated_at = self.now()
            logger.info("Document updated", document_id=document.id, fields=sorted(changes))
        return document

    def delete_document(self, document_id: str) -> Document | None:
        document = self.get_document(document_id)
        if document is None:
            return None

        with self._mutation():
            del self._documents[document_id]
            logger.info("Document deleted", document_id=document_id)
        return document

    # Automations

    def create_automation(self, name: str, trigger: Trigger, action: Action, active: bool = True) -> Automation:
        """Create an automation; it is evaluated after every automation declared before it.

        Raises:
            ValidationError: If the name is empty or the trigger/action is invalid
        """
        _require_text(name, "name")
        self._check_trigger(trigger)
        self._check_action(action)

        with self._mutation():
            automation = Automation(
                id=_new_id(),
                name=name,
                trigger=trigger,
                action=action,
                active=active,
                created_at=self.now(),
            )
            self._automations[automation.id] = automation
            logger.info("Automation created", automation_id=automation.id, trigger=trigger.type, action=action.type)
        return automation

    def update_automation(self, automation_id: str, **changes: Any) -> Automation | None:
        automation = self.get_automation(automation_id)
        if automation is None:
            return None

        _check_fields(changes, AUTOMATION_FIELDS, "automation")
        if "name" in changes:
            _require_text(changes["name"], "name")
        if "trigger" in changes:
            self._check_trigger(changes["trigger"])
        if "action" in changes:
            self._check_action(changes["action"])

        with self._mutation():
            for name, value in changes.items():
                setattr(automation, name, value)
            logger.info("Automation updated", automation_id=automation.id, fields=sorted(changes))
        return automation

    def toggle_automation(self, automation_id: str) -> Automation | None:
        automation = self.get_automation(automation_id)
        if automation is None:
            return None

        with self._mutation():
            automation.active = not automation.active
            logger.info("Automation toggled", automation_id=automation.id, active=automation.active)
        return automation

    def delete_automation(self, automation_id: str) -> Automation | None:
        automation = self.get_automation(automation_id)
        if automation is None:
            return None

        with self._mutation():
            del self._automations[automation_id]
            logger.info("Automation deleted", automation_id=automation_id)
        return automation

    # Filter

    def set_status_filter(self, status: str) -> TaskFilter:
        if status != "all":
            _check_choice(status, STATUSES, "status")
        with self._mutation():
            self.filter.status = status
        return self.filter

    def set_priority_filter(self, priority: str) -> TaskFilter:
        if priority != "all":
            _check_choice(priority, PRIORITIES, "priority")
        with self._mutation():
            self.filter.priority = priority
        return self.filter

    def toggle_tag_filter(self, tag_id: str) -> TaskFilter:
        with self._mutation():
            if tag_id in self.filter.tags:
                self.filter.tags.discard(tag_id)
            elif tag_id in self._tags:
                self.filter.tags.add(tag_id)
            else:
                logger.debug("Tag not found", tag_id=tag_id)
        return self.filter

    def set_search_query(self, query: str) -> TaskFilter:
        with self._mutation():
            self.filter.search_query = query
        return self.filter

    def reset_filters(self) -> TaskFilter:
        with self._mutation():
            self.filter = TaskFilter()
        return self.filter

    # Snapshots

    def snapshot(self) -> dict[str, Any]:
        """Return the whole state as a JSON-compatible dict."""
        with self._lock:
            return serialization.encode_state(
                {
                    "tasks": self.tasks,
                    "projects": self.projects,
                    "goals": self.goals,
                    "tags": self.tags,
                    "documents": self.documents,
                    "automations": self.automations,
                },
                self.filter,
            )

    def export_json(self) -> str:
        return serialization.dumps(self.snapshot())

    def import_json(self, text: str) -> None:
        """Replace the whole state with an exported snapshot.

        No automations fire for the imported entities.

        Raises:
            StorageError: If the text is not a valid snapshot
        """
        snapshot = serialization.loads(text)
        with self._mutation():
            self._replace_state(snapshot)
            logger.info("Snapshot imported", tasks=len(self._tasks), automations=len(self._automations))

    # Internals

    @contextmanager
    def _mutation(self) -> Iterator[None]:
        with self._lock:
            self._depth += 1
            try:
                yield
            except BaseException:
                self._depth -= 1
                if self._depth == 0:
                    self._pending_events.clear()
                raise
            self._depth -= 1
            if self._depth == 0:
                self._flush()

    def _flush(self) -> None:
        events, self._pending_events = self._pending_events, []
        self.engine.process(events)
        if not self.engine.running:
            self._persist()

    def _persist(self) -> None:
        if self.backend is not None:
            self.backend.save(self.snapshot())

    def _emit(self, event: Event) -> None:
        self._pending_events.append(event)

    def _lookup(self, collection: dict[str, Any], entity_id: str, kind: str) -> Any:
        entity = collection.get(entity_id)
        if entity is None:
            logger.debug(f"{kind.capitalize()} not found", entity_id=entity_id)
        return entity

    def _replace_state(self, snapshot: dict[str, Any]) -> None:
        collections, task_filter = serialization.decode_state(snapshot)
        self._tasks = {task.id: task for task in collections["tasks"]}
        self._projects = {project.id: project for project in collections["projects"]}
        self._goals = {goal.id: goal for goal in collections["goals"]}
        self._tags = {tag.id: tag for tag in collections["tags"]}
        self._documents = {document.id: document for document in collections["documents"]}
        self._automations = {automation.id: automation for automation in collections["automations"]}
        self.filter = task_filter

    def _mark_completed(self, task: Task) -> None:
        now = self.now()
        task.status = "completed"
        task.completed_at = now
        task.updated_at = now
        self._emit(TaskCompletedEvent(task_id=task.id))

    def _complete_project(self, project: Project) -> None:
        now = self.now()
        for task in self._tasks.values():
            if task.project_id == project.id and task.status != "completed":
                self._mark_completed(task)
        project.status = "completed"
        project.completed_at = now
        project.updated_at = now
        project.progress = 100.0

    def _refresh_progress(self, *project_ids: str | None) -> None:
        for project_id in dict.fromkeys(project_ids):
            if project_id is None or project_id not in self._projects:
                continue
            project = self._projects[project_id]
            progress = recompute_progress(project_id, self._tasks.values())
            if progress != project.progress:
                logger.debug("Project progress changed", project_id=project_id, progress=progress)
                project.progress = progress
                project.updated_at = self.now()

    def _apply_goal_progress(self, goal: Goal, current: float) -> None:
        goal.current = current
        for milestone in goal.milestones:
            if current >= milestone.target:
                milestone.is_completed = True
        if current >= goal.target and goal.status != "completed":
            goal.status = "completed"
            goal.completed_at = self.now()

    def _complete_goal(self, goal: Goal) -> None:
        goal.current = goal.target
        for milestone in goal.milestones:
            if goal.target >= milestone.target:
                milestone.is_completed = True
        goal.status = "completed"
        if goal.completed_at is None:
            goal.completed_at = self.now()

    def _strip_tag_from_automation(self, automation: Automation, tag_id: str) -> None:
        trigger, action = automation.trigger, automation.action
        deactivate = False
        if isinstance(trigger, TagAdded) and trigger.tag == tag_id:
            automation.trigger = TagAdded(tag=None)
            deactivate = True
        if isinstance(action, AddTag) and action.tag == tag_id:
            automation.action = AddTag(tag=None)
            deactivate = True
        elif isinstance(action, CreateTask) and tag_id in action.tags:
            automation.action = replace(action, tags=action.tags - {tag_id})
        if deactivate:
            automation.active = False
            logger.info("Automation deactivated after tag deletion", automation_id=automation.id, tag_id=tag_id)

    def _check_tags(self, tags: Iterable[str]) -> set[str]:
        tag_ids = set(tags)
        missing = tag_ids - self._tags.keys()
        if missing:
            raise ValidationError(f"Unknown tag id(s): {', '.join(sorted(map(str, missing)))}")
        return tag_ids

    def _check_reference(self, collection: dict[str, Any], entity_id: str | None, kind: str) -> None:
        if entity_id is not None and entity_id not in collection:
            raise ValidationError(f"Unknown {kind} id: {entity_id}")

    def _check_target(self, target: Any) -> None:
        if not isinstance(target, (int, float)) or target <= 0:
            raise ValidationError("target must be a positive number")

    def _check_trigger(self, trigger: Trigger) -> None:
        match trigger:
            case TaskCreated() | TaskCompleted():
                pass
            case TaskDueSoon(days=days):
                if days < 0:
                    raise ValidationError("days must be >= 0")
            case PriorityChanged(priority=priority):
                _check_choice(priority, PRIORITIES, "priority")
            case TagAdded(tag=tag):
                self._check_tags([tag])
            case _:
                raise ValidationError(f"Unknown trigger: {trigger!r}")

    def _check_action(self, action: Action) -> None:
        match action:
            case CreateTask():
                _require_text(action.title, "title")
                _check_choice(action.priority, PRIORITIES, "priority")
                self._check_tags(action.tags)
            case ChangePriority(priority=priority):
                _check_choice(priority, PRIORITIES, "priority")
            case AddTag(tag=tag):
                self._check_tags([tag])
            case SendNotification(message=message):
                _require_text(message, "message")
            case _:
                raise ValidationError(f"Unknown action: {action!r}")
