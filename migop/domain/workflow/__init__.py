"""Workflow state machine, events, chunked processing and call tracking."""

from migop.domain.workflow.call_tracker import CallPolicy, RemoteCallTracker
from migop.domain.workflow.chunking import ChunkedProcessingCancelled, chunked_for_each
from migop.domain.workflow.controller import WorkflowController
from migop.domain.workflow.events import (
    EVENT_TYPES,
    RESET,
    CompletionEvent,
    ErrorEvent,
    StateChangeEvent,
    StatusEvent,
    WorkflowEvent,
    WorkflowEventPublisher,
)
from migop.domain.workflow.states import PAUSE_STATES, TERMINAL_STATES, PhaseInfo, WorkflowState, phase_info
from migop.domain.workflow.workflow_data import (
    CompletionSummary,
    Phase1Data,
    Phase2Data,
    Phase3Data,
    ResumeData,
    WorkflowData,
)

__all__ = [
    "CallPolicy",
    "ChunkedProcessingCancelled",
    "CompletionEvent",
    "CompletionSummary",
    "ErrorEvent",
    "EVENT_TYPES",
    "PAUSE_STATES",
    "Phase1Data",
    "Phase2Data",
    "Phase3Data",
    "PhaseInfo",
    "RESET",
    "RemoteCallTracker",
    "ResumeData",
    "StateChangeEvent",
    "StatusEvent",
    "TERMINAL_STATES",
    "WorkflowController",
    "WorkflowData",
    "WorkflowEvent",
    "WorkflowEventPublisher",
    "WorkflowState",
    "chunked_for_each",
    "phase_info",
]
