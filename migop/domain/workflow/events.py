"""Workflow events and their publisher.

Listeners are called synchronously, in registration order, at the moment the
controller emits an event. SSE consumers take a queue instead.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, ClassVar, Dict, FrozenSet, Iterable, List, Optional, Tuple, Union

from migop.domain.workflow.states import WorkflowState
from migop.domain.workflow.workflow_data import CompletionSummary, WorkflowData


logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


# Old state reported by the state change that reset() emits.
RESET = "RESET"


@dataclass
class StateChangeEvent:
    """Emitted on every state transition, including reset."""
    event_type: ClassVar[str] = "state_change"

    old_state: Union[WorkflowState, str]
    new_state: WorkflowState
    workflow_data: WorkflowData
    timestamp: datetime = field(default_factory=_now)

    @property
    def is_reset(self) -> bool:
        return self.old_state == RESET

    def to_dict(self) -> Dict[str, Any]:
        old_state = self.old_state.value if isinstance(self.old_state, WorkflowState) else self.old_state
        return {
            "event_type": self.event_type,
            "old_state": old_state,
            "new_state": self.new_state.value,
            "workflow_data": self.workflow_data.to_dict(),
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class StatusEvent:
    """Human-readable progress message."""
    event_type: ClassVar[str] = "status"

    message: str
    state: WorkflowState
    progress: Optional[Dict[str, int]] = None
    timestamp: datetime = field(default_factory=_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_type": self.event_type,
            "message": self.message,
            "state": self.state.value,
            "progress": self.progress,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class ErrorEvent:
    """Emitted once per failure, after the transition to ERROR."""
    event_type: ClassVar[str] = "error"

    message: str
    cause: Dict[str, Any]
    failed_state: WorkflowState
    workflow_data: WorkflowData
    timestamp: datetime = field(default_factory=_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_type": self.event_type,
            "message": self.message,
            "cause": self.cause,
            "failed_state": self.failed_state.value,
            "workflow_data": self.workflow_data.to_dict(),
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class CompletionEvent:
    """Emitted once when a run reaches COMPLETE."""
    event_type: ClassVar[str] = "complete"

    summary: CompletionSummary
    timestamp: datetime = field(default_factory=_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_type": self.event_type,
            "summary": self.summary.to_dict(),
            "timestamp": self.timestamp.isoformat(),
        }


WorkflowEvent = Union[StateChangeEvent, StatusEvent, ErrorEvent, CompletionEvent]
EventListener = Callable[[WorkflowEvent], None]

EVENT_TYPES = frozenset(
    cls.event_type for cls in (StateChangeEvent, StatusEvent, ErrorEvent, CompletionEvent)
)


def _filter(event_types: Optional[Iterable[str]]) -> Optional[FrozenSet[str]]:
    if event_types is None:
        return None
    wanted = frozenset(event_types)
    unknown = wanted - EVENT_TYPES
    if unknown:
        raise ValueError(f"Unknown event types: {sorted(unknown)}")
    return wanted


class WorkflowEventPublisher:
    """Fans workflow events out to listeners and subscriber queues."""

    def __init__(self):
        self._listeners: List[Tuple[EventListener, Optional[FrozenSet[str]]]] = []
        self._queues: List[Tuple[asyncio.Queue, Optional[FrozenSet[str]]]] = []

    def add_listener(
        self,
        listener: EventListener,
        event_types: Optional[Iterable[str]] = None,
    ) -> Callable[[], None]:
        """Register a synchronous listener.

        Args:
            listener: Called with each matching event
            event_types: Restrict to these event types (all if None)

        Returns:
            Callable that removes the listener
        """
        entry = (listener, _filter(event_types))
        self._listeners.append(entry)

        def remove() -> None:
            if entry in self._listeners:
                self._listeners.remove(entry)

        return remove

    def subscribe(self, event_types: Optional[Iterable[str]] = None) -> asyncio.Queue:
        """Subscribe a queue to workflow events."""
        queue: asyncio.Queue = asyncio.Queue()
        self._queues.append((queue, _filter(event_types)))
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        """Remove a subscriber queue."""
        self._queues = [(q, f) for q, f in self._queues if q is not queue]

    def subscriber_count(self) -> int:
        return len(self._listeners) + len(self._queues)

    def publish(self, event: WorkflowEvent) -> None:
        """Deliver event to every matching listener, then every queue.

        A failing listener is logged and skipped; it never reaches the
        workflow.
        """
        for listener, wanted in list(self._listeners):
            if wanted is not None and event.event_type not in wanted:
                continue
            try:
                listener(event)
            except Exception:
                logger.exception(f"Workflow event listener failed on {event.event_type} event")

        for queue, wanted in list(self._queues):
            if wanted is None or event.event_type in wanted:
                queue.put_nowait(event)
