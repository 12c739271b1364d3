"""Automation engine: matches domain events against triggers and runs actions.

Events produced while an action runs are pushed onto an explicit work stack
and processed depth-first, so every induced effect has been applied by the
time the originating store call returns. A cascade that goes deeper than
``max_depth`` or runs more than ``max_actions`` actions is abandoned and
recorded in ``cascade_reports``; it never raises.
"""

import math
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal, assert_never

import structlog

from taskflow.errors import ValidationError
from taskflow.events import Event
from taskflow.models import (
    AddTag,
    Automation,
    ChangePriority,
    CreateTask,
    PriorityChanged,
    SendNotification,
    TagAdded,
    Task,
    TaskCompleted,
    TaskCreated,
    TaskDueSoon,
)
from taskflow.notifications import LogNotifier, Notifier

if TYPE_CHECKING:
    from taskflow.store import Store

logger = structlog.get_logger()

DEFAULT_MAX_DEPTH = 10
DEFAULT_MAX_ACTIONS = 1000

SECONDS_PER_DAY = 24 * 60 * 60


@dataclass
class CascadeReport:
    """Describes a cascade that was cut short."""

    reason: Literal["max-depth", "max-actions"]
    root_event: Event
    event: Event
    depth: int
    actions_executed: int


@dataclass
class _Frame:
    event: Event
    depth: int
    pending: Iterator[Automation] | None = field(default=None)


class AutomationEngine:
    """Evaluates active automations of a store against its events."""

    def __init__(
        self,
        store: "Store",
        notifier: Notifier | None = None,
        max_depth: int = DEFAULT_MAX_DEPTH,
        max_actions: int = DEFAULT_MAX_ACTIONS,
        on_cascade_limit: Callable[[CascadeReport], None] | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            store: Store whose automations are evaluated and whose mutations actions call
            notifier: Sink for send-notification actions (defaults to the log)
            max_depth: Deepest cascade level processed; top-level events are depth 0
            max_actions: Most actions executed for one top-level batch of events
            on_cascade_limit: Called with the report when a cascade is cut short
        """
        if max_depth < 0:
            raise ValueError("max_depth must be >= 0")
        if max_actions < 1:
            raise ValueError("max_actions must be >= 1")
        self.store = store
        self.notifier = notifier or LogNotifier()
        self.max_depth = max_depth
        self.max_actions = max_actions
        self.on_cascade_limit = on_cascade_limit
        self.cascade_reports: list[CascadeReport] = []
        self._running = False
        self._emitted: list[Event] = []

    @property
    def running(self) -> bool:
        """True while a cascade is being processed."""
        return self._running

    def process(self, events: list[Event]) -> None:
        """Process a batch of events emitted by one store mutation.

        While a cascade is already running the events are buffered and picked
        up as children of the action currently executing.
        """
        if not events:
            return
        if self._running:
            self._emitted.extend(events)
            return

        self._running = True
        try:
            self._run(events)
        finally:
            self._running = False
            self._emitted = []

    def matching_automations(self, event: Event, task: Task) -> list[Automation]:
        """Return active automations whose trigger matches an event, in declaration order."""
        return [automation for automation in self.store.automations if self.matches(automation, event, task)]

    def matches(self, automation: Automation, event: Event, task: Task) -> bool:
        """Check whether one automation's trigger matches an event on ``task``."""
        if not automation.active:
            return False

        trigger = automation.trigger
        if trigger.type != event.type:
            return False

        match trigger:
            case PriorityChanged(priority=priority):
                return priority == event.priority
            case TagAdded(tag=tag):
                if tag is None or self.store.get_tag(tag) is None:
                    logger.debug("Trigger references missing tag", automation_id=automation.id, tag=tag)
                    return False
                return tag == event.tag
            case TaskDueSoon(days=days):
                if task.due_date is None:
                    return False
                days_until_due = math.ceil((task.due_date - self.store.now()).total_seconds() / SECONDS_PER_DAY)
                return days_until_due <= days
            case TaskCreated() | TaskCompleted():
                return True
            case _:
                assert_never(trigger)

    def _run(self, events: list[Event]) -> None:
        root_event = events[0]
        stack: list[_Frame] = []
        self._push(stack, events, 0)
        actions_executed = 0

        while stack:
            frame = stack[-1]
            if frame.pending is None:
                task = self.store.get_task(frame.event.task_id)
                if task is None:
                    logger.debug("Event subject no longer exists", event=frame.event.type, task_id=frame.event.task_id)
                    stack.pop()
                    continue
                frame.pending = iter(self.matching_automations(frame.event, task))

            automation = next(frame.pending, None)
            if automation is None:
                stack.pop()
                continue

            if actions_executed >= self.max_actions:
                self._abort("max-actions", root_event, frame.event, frame.depth, actions_executed)
                return

            self._execute(automation, frame.event)
            actions_executed += 1

            emitted, self._emitted = self._emitted, []
            if not emitted:
                continue
            if frame.depth + 1 > self.max_depth:
                self._abort("max-depth", root_event, emitted[0], frame.depth + 1, actions_executed)
                return
            self._push(stack, emitted, frame.depth + 1)

        logger.debug("Cascade finished", root_event=root_event.type, actions_executed=actions_executed)

    def _push(self, stack: list[_Frame], events: list[Event], depth: int) -> None:
        # Reversed so the first event is on top of the stack
        for event in reversed(events):
            stack.append(_Frame(event=event, depth=depth))

    def _abort(
        self,
        reason: Literal["max-depth", "max-actions"],
        root_event: Event,
        event: Event,
        depth: int,
        actions_executed: int,
    ) -> None:
        report = CascadeReport(
            reason=reason,
            root_event=root_event,
            event=event,
            depth=depth,
            actions_executed=actions_executed,
        )
        self.cascade_reports.append(report)
        logger.warning(
            "Automation cascade limit exceeded",
            reason=reason,
            root_event=root_event.type,
            task_id=event.task_id,
            depth=depth,
            actions_executed=actions_executed,
        )
        if self.on_cascade_limit is not None:
            self.on_cascade_limit(report)

    def _execute(self, automation: Automation, event: Event) -> None:
        action = automation.action
        log = logger.bind(automation_id=automation.id, action=action.type, task_id=event.task_id)
        log.info("Running automation", name=automation.name, trigger=event.type)

        task = self.store.get_task(event.task_id)
        try:
            match action:
                case CreateTask():
                    tags = {tag for tag in action.tags if self.store.get_tag(tag) is not None}
                    if len(tags) != len(action.tags):
                        log.debug("Dropped missing tags from created task", dropped=sorted(action.tags - tags))
                    self.store.create_task(
                        title=action.title,
                        description=action.description,
                        priority=action.priority,
                        tags=tags,
                    )
                case ChangePriority(priority=priority):
                    if task is None:
                        log.debug("Skipping action, subject task is gone")
                        return
                    self.store.update_task(task.id, priority=priority)
                case AddTag(tag=tag):
                    if task is None:
                        log.debug("Skipping action, subject task is gone")
                        return
                    if tag is None or self.store.get_tag(tag) is None:
                        log.debug("Skipping action, tag is gone", tag=tag)
                        return
                    if tag in task.tags:
                        return
                    self.store.update_task(task.id, tags=[*task.tags, tag])
                case SendNotification(message=message):
                    self.notifier.notify(message)
                case _:
                    assert_never(action)
        except ValidationError as e:
            log.warning("Automation action rejected", error=str(e))
