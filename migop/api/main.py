"""
Main FastAPI application for the MIGOP Editor.

Owns one WorkflowController per process; the gateway is the Apps Script web
app when GATEWAY_URL is set and an in-memory document otherwise.
"""

import logging
from typing import Optional

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from migop import __version__
from migop.api.error_handlers import register_error_handlers
from migop.api.routers import health_router, sse_router, workflow_router
from migop.core.config import Settings, get_settings
from migop.core.logging import configure_logging
from migop.domain.workflow import WorkflowController
from migop.gateway import Clipboard, DocumentGateway, HttpDocumentGateway, InMemoryClipboard, InMemoryDocumentGateway


logger = logging.getLogger(__name__)


def build_gateway(settings: Settings) -> DocumentGateway:
    """Gateway selected by configuration."""
    if settings.uses_remote_gateway:
        logger.info(f"Using remote document gateway at {settings.gateway_url}")
        return HttpDocumentGateway(
            base_url=settings.gateway_url,
            token=settings.gateway_token,
            document_id=settings.gateway_document_id,
        )
    logger.info("No GATEWAY_URL configured; using in-memory document gateway")
    return InMemoryDocumentGateway()


def create_app(
    settings: Optional[Settings] = None,
    gateway: Optional[DocumentGateway] = None,
    clipboard: Optional[Clipboard] = None,
    controller: Optional[WorkflowController] = None,
) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        settings: Settings to use (loaded from environment if None)
        gateway: Document gateway (chosen from settings if None)
        clipboard: Clipboard sink (in-memory if None)
        controller: Prebuilt controller; overrides gateway and clipboard
    """
    settings = settings or get_settings()
    configure_logging(level=settings.log_level, format_type=settings.log_format)

    if controller is None:
        clipboard = clipboard or InMemoryClipboard()
        controller = WorkflowController(
            gateway=gateway or build_gateway(settings),
            settings=settings,
            clipboard=clipboard,
        )

    app = FastAPI(
        title=settings.app_name,
        description="Pausable document-revision workflow for MIGOP documents",
        version=__version__,
        debug=settings.debug,
    )
    app.state.settings = settings
    app.state.controller = controller
    app.state.clipboard = clipboard

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app)

    api_router = APIRouter(prefix="/api/v1")
    api_router.include_router(workflow_router)
    api_router.include_router(sse_router)
    app.include_router(health_router)
    app.include_router(api_router)

    logger.info(f"{settings.app_name} {__version__} ready ({settings.environment})")
    return app


def run() -> None:
    """Run the development server."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "migop.api.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
