"""
Shared pytest fixtures for all tests.

Provides sample WordprocessingML, an in-memory document gateway and a
controller wired to both.
"""

import logging
from datetime import datetime
from typing import List

import pytest

from migop.core.config import Settings
from migop.domain.workflow import WorkflowController
from migop.gateway import InMemoryClipboard, InMemoryDocumentGateway, build_minimal_docx


W_NS = "http://schemas.openxmlformats.org/wordprocessingml/2006/main"

FIXED_NOW = datetime(2025, 10, 4, 9, 15, 30)


# =============================================================================
# DOCUMENT FIXTURES
# =============================================================================

def make_document_xml(body: str) -> str:
    """Wrap body markup in a w:document root."""
    return (
        '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
        f'<w:document xmlns:w="{W_NS}"><w:body>{body}</w:body></w:document>'
    )


def make_suggestion_body(count: int) -> str:
    """Paragraphs alternating insertions (even index) and deletions (odd index)."""
    paragraphs = []
    for i in range(count):
        if i % 2 == 0:
            paragraphs.append(
                f'<w:p><w:ins w:id="{i}" w:author="Editor"><w:r><w:t>added {i}</w:t></w:r></w:ins></w:p>'
            )
        else:
            paragraphs.append(
                f'<w:p><w:del w:id="{i}" w:author="Editor"><w:r><w:delText>removed {i}</w:delText></w:r></w:del></w:p>'
            )
    return "".join(paragraphs)


SAMPLE_BODY = (
    '<w:p>'
    '<w:r><w:t xml:space="preserve">Keep this </w:t></w:r>'
    '<w:ins w:id="1" w:author="Alice" w:date="2025-10-01T10:00:00Z">'
    '<w:r><w:t>added text</w:t></w:r>'
    '</w:ins>'
    '<w:del w:id="2" w:author="Bob" w:date="2025-10-01T11:00:00Z">'
    '<w:r><w:rPr><w:b/></w:rPr><w:delText>removed text</w:delText></w:r>'
    '</w:del>'
    '</w:p>'
    '<w:p>'
    '<w:pPr><w:rPr><w:ins w:id="9" w:author="Alice"/></w:rPr></w:pPr>'
    '<w:ins w:id="3" w:author="Alice"><w:r><w:t>second paragraph</w:t></w:r></w:ins>'
    '</w:p>'
)


@pytest.fixture
def sample_xml() -> str:
    """document.xml with two insertions and one deletion."""
    return make_document_xml(SAMPLE_BODY)


@pytest.fixture
def sample_docx(sample_xml) -> bytes:
    """Minimal DOCX container around sample_xml."""
    return build_minimal_docx(sample_xml)


# =============================================================================
# WORKFLOW FIXTURES
# =============================================================================

@pytest.fixture
def settings() -> Settings:
    """Settings with short timeouts for tests."""
    return Settings(
        export_timeout_seconds=5.0,
        replace_timeout_seconds=5.0,
        counter_timeout_seconds=5.0,
        history_timeout_seconds=5.0,
    )


@pytest.fixture
def gateway(sample_docx) -> InMemoryDocumentGateway:
    return InMemoryDocumentGateway(docx_bytes=sample_docx, doc_id="doc-1", doc_name="MIGOP Draft")


@pytest.fixture
def clipboard() -> InMemoryClipboard:
    return InMemoryClipboard()


@pytest.fixture
def clock():
    """Clock frozen at 2025-10-04 09:15:30."""
    return lambda: FIXED_NOW


@pytest.fixture
def controller(gateway, settings, clipboard, clock) -> WorkflowController:
    return WorkflowController(gateway, settings=settings, clipboard=clipboard, clock=clock)


@pytest.fixture
def recorded_events(controller) -> List:
    """Every event the controller publishes, in order."""
    events: List = []
    controller.events.add_listener(events.append)
    return events


@pytest.fixture
def xml_factory():
    """Build document.xml with ``count`` alternating insertions and deletions."""
    def build(count: int) -> str:
        return make_document_xml(make_suggestion_body(count))
    return build


@pytest.fixture
def restore_logging():
    """Undo configure_logging() changes to the root logger."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
