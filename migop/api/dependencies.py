"""FastAPI dependency injection for API endpoints."""

from typing import Optional

from fastapi import Request

from migop.api.exceptions import ServiceUnavailableError
from migop.domain.workflow import WorkflowController
from migop.gateway.clipboard import InMemoryClipboard


def get_controller(request: Request) -> WorkflowController:
    """Controller owned by the running app."""
    controller = getattr(request.app.state, "controller", None)
    if controller is None:
        raise ServiceUnavailableError()
    return controller


def get_clipboard(request: Request) -> Optional[InMemoryClipboard]:
    """Clipboard the controller copies version numbers into, if it keeps them."""
    clipboard = getattr(request.app.state, "clipboard", None)
    return clipboard if isinstance(clipboard, InMemoryClipboard) else None
