"""Workflow states and phase descriptions."""

from dataclasses import dataclass
from enum import Enum
from typing import Dict


class WorkflowState(str, Enum):
    """Every state the controller can be in."""
    IDLE = "IDLE"
    P1_EXPORTING = "P1_EXPORTING"
    P1_ANALYZING = "P1_ANALYZING"
    VERSION_1_PAUSE = "VERSION_1_PAUSE"
    P2_TRANSFORMING = "P2_TRANSFORMING"
    P2_REBUILDING = "P2_REBUILDING"
    P2_REPLACING = "P2_REPLACING"
    VERSION_2_PAUSE = "VERSION_2_PAUSE"
    P3_FINALIZING = "P3_FINALIZING"
    COMPLETE = "COMPLETE"
    ERROR = "ERROR"

    @property
    def is_pause(self) -> bool:
        return self in PAUSE_STATES

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATES


PAUSE_STATES = frozenset({WorkflowState.VERSION_1_PAUSE, WorkflowState.VERSION_2_PAUSE})
TERMINAL_STATES = frozenset({WorkflowState.COMPLETE, WorkflowState.ERROR})


@dataclass(frozen=True)
class PhaseInfo:
    """What the user should be told about the current state."""
    phase: int
    name: str
    description: str

    def to_dict(self) -> Dict[str, object]:
        return {"phase": self.phase, "name": self.name, "description": self.description}


_READY = PhaseInfo(0, "Ready", "Click Start to begin")
_PHASE_1 = PhaseInfo(1, "Export & Analyze", "Exporting document and detecting suggestions")
_PHASE_2 = PhaseInfo(2, "Transform & Replace", "Converting suggestions to visual markup")
_PHASE_3 = PhaseInfo(3, "Finalize", "Writing version history page")
_COMPLETE = PhaseInfo(4, "Complete", "Workflow finished successfully")
_ERROR = PhaseInfo(-1, "Error", "An error occurred")

_PHASES: Dict[WorkflowState, PhaseInfo] = {
    WorkflowState.IDLE: _READY,
    WorkflowState.P1_EXPORTING: _PHASE_1,
    WorkflowState.P1_ANALYZING: _PHASE_1,
    WorkflowState.VERSION_1_PAUSE: _PHASE_1,
    WorkflowState.P2_TRANSFORMING: _PHASE_2,
    WorkflowState.P2_REBUILDING: _PHASE_2,
    WorkflowState.P2_REPLACING: _PHASE_2,
    WorkflowState.VERSION_2_PAUSE: _PHASE_2,
    WorkflowState.P3_FINALIZING: _PHASE_3,
    WorkflowState.COMPLETE: _COMPLETE,
    WorkflowState.ERROR: _ERROR,
}


def phase_info(state: WorkflowState) -> PhaseInfo:
    return _PHASES[state]
