"""Document gateway implementations and the clipboard sink."""

from migop.gateway.base import (
    DocumentGateway,
    ExportMetadata,
    ExportResult,
    HistoryWriteResult,
    ReplaceResult,
)
from migop.gateway.clipboard import Clipboard, InMemoryClipboard
from migop.gateway.http import HttpDocumentGateway
from migop.gateway.in_memory import InMemoryDocumentGateway, build_minimal_docx

__all__ = [
    "Clipboard",
    "DocumentGateway",
    "ExportMetadata",
    "ExportResult",
    "HistoryWriteResult",
    "HttpDocumentGateway",
    "InMemoryClipboard",
    "InMemoryDocumentGateway",
    "ReplaceResult",
    "build_minimal_docx",
]
