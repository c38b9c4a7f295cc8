"""API schema models."""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ErrorResponse(BaseModel):
    """Standard error response format."""

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional error details")


class ResumeRequest(BaseModel):
    """Input for resuming from a pause.

    Ignored at the first pause. At the second pause an Official version needs
    a committee and comments.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "is_official": True,
                "committee": "Policy",
                "comments": "Adopted with amendments",
            }
        },
    )

    is_official: bool = Field(False, alias="isOfficial")
    committee: Optional[str] = None
    comments: Optional[str] = None


class PhaseInfoResponse(BaseModel):
    """Phase shown to the user for the current state."""

    phase: int = Field(..., description="0 ready, 1-3 phases, 4 complete, -1 error")
    name: str
    description: str


class WorkflowStateResponse(BaseModel):
    """Current workflow state."""

    state: str
    is_paused: bool
    is_complete: bool
    accepted: Optional[bool] = Field(None, description="Whether the last command was accepted")
    phase: PhaseInfoResponse
    workflow_data: Dict[str, Any]
    active_calls: List[str] = Field(default_factory=list)
    completion: Optional[Dict[str, Any]] = None
    error: Optional[Dict[str, Any]] = None
    clipboard: Optional[str] = Field(None, description="Last version number copied for the user")


class CommitteeOption(BaseModel):
    """Committee selectable for an Official version."""

    value: str
    label: str


class CommitteeListResponse(BaseModel):
    """Committee options."""

    committees: List[CommitteeOption]


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Service status")
    version: str = Field(..., description="API version")
    environment: str
    gateway: str = Field(..., description="remote or in-memory")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
