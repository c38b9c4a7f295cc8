"""Workflow control endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from migop.api.dependencies import get_clipboard, get_controller
from migop.api.exceptions import InvalidStateError
from migop.api.schemas import (
    CommitteeListResponse,
    CommitteeOption,
    ErrorResponse,
    PhaseInfoResponse,
    ResumeRequest,
    WorkflowStateResponse,
)
from migop.domain.versioning import COMMITTEE_OPTIONS
from migop.domain.workflow import ResumeData, WorkflowController
from migop.gateway.clipboard import InMemoryClipboard


router = APIRouter(prefix="/workflow", tags=["workflow"])

_WAIT_DESCRIPTION = "Return only after the phase started by this request has settled"


def _state_to_response(
    controller: WorkflowController,
    clipboard: Optional[InMemoryClipboard],
    accepted: Optional[bool] = None,
) -> WorkflowStateResponse:
    """Convert controller state to a response."""
    info = controller.get_phase_info()
    completion = controller.completion
    return WorkflowStateResponse(
        state=controller.get_state().value,
        is_paused=controller.is_paused(),
        is_complete=controller.is_complete(),
        accepted=accepted,
        phase=PhaseInfoResponse(**info.to_dict()),
        workflow_data=controller.get_workflow_data().to_dict(),
        active_calls=controller.get_stats()["active_calls"],
        completion=completion.to_dict() if completion else None,
        error=controller.last_error,
        clipboard=clipboard.current if clipboard else None,
    )


@router.get("/state", response_model=WorkflowStateResponse)
async def get_workflow_state(
    controller: WorkflowController = Depends(get_controller),
    clipboard: Optional[InMemoryClipboard] = Depends(get_clipboard),
) -> WorkflowStateResponse:
    """Get current workflow state."""
    return _state_to_response(controller, clipboard)


@router.post(
    "/start",
    response_model=WorkflowStateResponse,
    responses={409: {"model": ErrorResponse, "description": "Workflow is not idle"}},
)
async def start_workflow(
    wait: bool = Query(False, description=_WAIT_DESCRIPTION),
    controller: WorkflowController = Depends(get_controller),
    clipboard: Optional[InMemoryClipboard] = Depends(get_clipboard),
) -> WorkflowStateResponse:
    """Start a new workflow run."""
    if not controller.start_workflow():
        state = controller.get_state().value
        raise InvalidStateError(f"Cannot start workflow from state {state}", current_state=state)
    if wait:
        await controller.wait_until_settled()
    return _state_to_response(controller, clipboard, accepted=True)


@router.post(
    "/resume",
    response_model=WorkflowStateResponse,
    responses={409: {"model": ErrorResponse, "description": "Workflow is not paused"}},
)
async def resume_workflow(
    body: Optional[ResumeRequest] = None,
    wait: bool = Query(False, description=_WAIT_DESCRIPTION),
    controller: WorkflowController = Depends(get_controller),
    clipboard: Optional[InMemoryClipboard] = Depends(get_clipboard),
) -> WorkflowStateResponse:
    """Resume from the current pause."""
    user_data = None
    if body is not None:
        user_data = ResumeData(
            is_official=body.is_official,
            committee=body.committee,
            comments=body.comments,
        )
    if not controller.resume_workflow(user_data):
        state = controller.get_state().value
        raise InvalidStateError(f"Cannot resume workflow from state {state}", current_state=state)
    if wait:
        await controller.wait_until_settled()
    return _state_to_response(controller, clipboard, accepted=True)


@router.post("/reset", response_model=WorkflowStateResponse)
async def reset_workflow(
    controller: WorkflowController = Depends(get_controller),
    clipboard: Optional[InMemoryClipboard] = Depends(get_clipboard),
) -> WorkflowStateResponse:
    """Abandon the current run and return to IDLE."""
    controller.reset()
    return _state_to_response(controller, clipboard, accepted=True)


@router.get("/committees", response_model=CommitteeListResponse)
async def list_committees() -> CommitteeListResponse:
    """Committees that can approve an Official version."""
    return CommitteeListResponse(
        committees=[
            CommitteeOption(value=value, label=label)
            for value, label in COMMITTEE_OPTIONS
        ]
    )
