"""In-memory document gateway for local development and testing."""

import asyncio
import base64
import binascii
import io
import time
import zipfile
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from migop.domain.docx.models import DOCUMENT_PART
from migop.domain.versioning import VersionRecord
from migop.gateway.base import ExportMetadata, ExportResult, HistoryWriteResult, ReplaceResult


EXPORT = "export"
REPLACE = "replace"
COUNTER = "counter"
HISTORY = "history"

_CONTENT_TYPES = (
    '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
    '<Types xmlns="http://schemas.openxmlformats.org/package/2006/content-types">'
    '<Default Extension="rels" ContentType="application/vnd.openxmlformats-package.relationships+xml"/>'
    '<Default Extension="xml" ContentType="application/xml"/>'
    '<Override PartName="/word/document.xml" '
    'ContentType="application/vnd.openxmlformats-officedocument.wordprocessingml.document.main+xml"/>'
    '</Types>'
)

_ROOT_RELS = (
    '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
    '<Relationships xmlns="http://schemas.openxmlformats.org/package/2006/relationships">'
    '<Relationship Id="rId1" '
    'Type="http://schemas.openxmlformats.org/officeDocument/2006/relationships/officeDocument" '
    'Target="word/document.xml"/>'
    '</Relationships>'
)

EMPTY_DOCUMENT_XML = (
    '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
    '<w:document xmlns:w="http://schemas.openxmlformats.org/wordprocessingml/2006/main">'
    '<w:body><w:p><w:r><w:t>Untitled document</w:t></w:r></w:p></w:body>'
    '</w:document>'
)


def build_minimal_docx(document_xml: str) -> bytes:
    """Package a document.xml into the smallest container Word will open."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as zout:
        zout.writestr("[Content_Types].xml", _CONTENT_TYPES)
        zout.writestr("_rels/.rels", _ROOT_RELS)
        zout.writestr(DOCUMENT_PART, document_xml)
    return buffer.getvalue()


@dataclass
class GatewayCall:
    """Record of a gateway call."""
    operation: str
    args: tuple = ()
    timestamp: float = field(default_factory=time.time)


_MISSING = object()


class InMemoryDocumentGateway:
    """Document gateway holding one DOCX in memory.

    Tests can script the next outcome of any operation (``set_result``,
    ``set_error``) or block it until released (``hold``).
    """

    def __init__(
        self,
        docx_bytes: Optional[bytes] = None,
        doc_id: str = "local-document",
        doc_name: str = "Untitled document",
        counter: int = 0,
    ):
        self._docx = docx_bytes if docx_bytes is not None else build_minimal_docx(EMPTY_DOCUMENT_XML)
        self.doc_id = doc_id
        self.doc_name = doc_name
        self.counter = counter
        self.history: List[VersionRecord] = []
        self._calls: List[GatewayCall] = []
        self._results: Dict[str, Any] = {}
        self._errors: Dict[str, Exception] = {}
        self._holds: Dict[str, asyncio.Event] = {}

    @property
    def document(self) -> bytes:
        """Current DOCX bytes."""
        return self._docx

    @property
    def calls(self) -> List[GatewayCall]:
        return self._calls

    def call_count(self, operation: Optional[str] = None) -> int:
        if operation is None:
            return len(self._calls)
        return sum(1 for c in self._calls if c.operation == operation)

    def set_result(self, operation: str, result: Any) -> None:
        """Return ``result`` from the next call of ``operation``."""
        self._results[operation] = result

    def set_error(self, operation: str, error: Exception) -> None:
        """Raise ``error`` from the next call of ``operation``."""
        self._errors[operation] = error

    def hold(self, operation: str) -> asyncio.Event:
        """Block calls of ``operation`` until the returned event is set."""
        event = asyncio.Event()
        self._holds[operation] = event
        return event

    async def _enter(self, operation: str, *args: Any) -> Any:
        self._calls.append(GatewayCall(operation=operation, args=args))
        event = self._holds.get(operation)
        if event is not None:
            await event.wait()
            self._holds.pop(operation, None)
        error = self._errors.pop(operation, None)
        if error is not None:
            raise error
        return self._results.pop(operation, _MISSING)

    async def export_document(self) -> ExportResult:
        scripted = await self._enter(EXPORT)
        if scripted is not _MISSING:
            return scripted
        return ExportResult(
            success=True,
            data=base64.b64encode(self._docx).decode("ascii"),
            metadata=ExportMetadata(
                size=len(self._docx),
                doc_id=self.doc_id,
                doc_name=self.doc_name,
                exported_at=datetime.now(timezone.utc).isoformat(),
            ),
        )

    async def replace_document(self, base64_data: str) -> ReplaceResult:
        scripted = await self._enter(REPLACE, len(base64_data or ""))
        if scripted is not _MISSING:
            return scripted
        try:
            self._docx = base64.b64decode(base64_data, validate=True)
        except (binascii.Error, ValueError, TypeError) as e:
            return ReplaceResult(success=False, error=f"Invalid DOCX data: {e}")
        return ReplaceResult(
            success=True,
            replacement_details={
                "replacedAt": datetime.now(timezone.utc).isoformat(),
                "docId": self.doc_id,
            },
        )

    async def get_or_increment_version_counter(self, increment: bool) -> Any:
        scripted = await self._enter(COUNTER, increment)
        if scripted is not _MISSING:
            return scripted
        if increment:
            self.counter += 1
        return self.counter

    async def write_version_history(self, entry: VersionRecord) -> HistoryWriteResult:
        scripted = await self._enter(HISTORY, entry)
        if scripted is not _MISSING:
            return scripted
        self.history.append(entry)
        return HistoryWriteResult(success=True)
