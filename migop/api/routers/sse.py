"""Server-Sent Events endpoint for workflow events."""

import asyncio
import json
from typing import AsyncGenerator

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from migop.api.dependencies import get_controller
from migop.domain.workflow import WorkflowController, WorkflowEvent


router = APIRouter(prefix="/workflow", tags=["sse"])

KEEPALIVE_SECONDS = 15.0


def _format_sse(event: WorkflowEvent) -> str:
    """Format a workflow event as SSE message."""
    return f"event: {event.event_type}\ndata: {json.dumps(event.to_dict())}\n\n"


def _format_sse_dict(event_type: str, data: dict) -> str:
    """Format a dict as SSE message."""
    return f"event: {event_type}\ndata: {json.dumps(data)}\n\n"


async def _event_generator(
    controller: WorkflowController,
    request: Request,
    keepalive_seconds: float = KEEPALIVE_SECONDS,
) -> AsyncGenerator[str, None]:
    """Generate SSE events until the client disconnects."""
    queue = controller.events.subscribe()

    try:
        yield _format_sse_dict("connected", {
            "state": controller.get_state().value,
            "phase": controller.get_phase_info().to_dict(),
        })

        while True:
            if await request.is_disconnected():
                break
            try:
                event = await asyncio.wait_for(queue.get(), timeout=keepalive_seconds)
                yield _format_sse(event)
            except asyncio.TimeoutError:
                yield ": keepalive\n\n"
    finally:
        controller.events.unsubscribe(queue)


@router.get(
    "/events",
    summary="Stream workflow events",
    description="Server-Sent Events stream of state changes, status messages, errors and completion.",
    responses={200: {"description": "SSE stream of workflow events"}},
)
async def stream_workflow_events(
    request: Request,
    controller: WorkflowController = Depends(get_controller),
) -> StreamingResponse:
    """Stream workflow events via SSE."""
    return StreamingResponse(
        _event_generator(controller, request),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )
