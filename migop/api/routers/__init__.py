"""API routers."""

from migop.api.routers.health import router as health_router
from migop.api.routers.sse import router as sse_router
from migop.api.routers.workflow import router as workflow_router

__all__ = ["health_router", "sse_router", "workflow_router"]
