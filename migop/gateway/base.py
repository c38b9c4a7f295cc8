"""Document gateway protocol and result models.

The gateway is the only wire-level boundary of the workflow: it exports the
live document, replaces it, hands out the version counter and writes the
version-history page. Results are parsed defensively because the remote side
answers with loosely shaped JSON.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol, runtime_checkable

from migop.domain.versioning import VersionRecord


@dataclass
class ExportMetadata:
    """What the gateway reports about an exported document."""
    size: Optional[int] = None
    doc_id: Optional[str] = None
    doc_name: Optional[str] = None
    exported_at: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["ExportMetadata"]:
        if not isinstance(data, dict):
            return None
        size = data.get("size")
        return cls(
            size=size if isinstance(size, int) and not isinstance(size, bool) else None,
            doc_id=data.get("docId") or data.get("doc_id"),
            doc_name=data.get("docName") or data.get("doc_name"),
            exported_at=data.get("exportedAt") or data.get("exported_at"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "size": self.size,
            "doc_id": self.doc_id,
            "doc_name": self.doc_name,
            "exported_at": self.exported_at,
        }


@dataclass
class ExportResult:
    """Result of exporting the live document as DOCX."""
    success: bool
    data: Optional[str] = None  # base64 DOCX
    metadata: Optional[ExportMetadata] = None
    error: Optional[str] = None

    @classmethod
    def from_dict(cls, payload: Any) -> "ExportResult":
        if not isinstance(payload, dict):
            return cls(success=False, error=f"Export returned invalid result: {payload!r}")
        return cls(
            success=payload.get("success") is True,
            data=payload.get("data"),
            metadata=ExportMetadata.from_dict(payload.get("metadata")),
            error=payload.get("error"),
        )


@dataclass
class ReplaceResult:
    """Result of replacing the live document with a processed DOCX."""
    success: bool
    replacement_details: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None

    @classmethod
    def from_dict(cls, payload: Any) -> "ReplaceResult":
        if not isinstance(payload, dict):
            return cls(
                success=False,
                error=f"Server returned invalid result type: {type(payload).__name__}",
            )
        details = payload.get("replacementDetails") or payload.get("replacement_details")
        return cls(
            success=payload.get("success") is True,
            replacement_details=details if isinstance(details, dict) else {},
            error=payload.get("error"),
        )


@dataclass
class HistoryWriteResult:
    """Result of writing the version-history page."""
    success: bool
    error: Optional[str] = None

    @classmethod
    def from_dict(cls, payload: Any) -> "HistoryWriteResult":
        if not isinstance(payload, dict):
            return cls(success=False, error=f"History write returned invalid result: {payload!r}")
        return cls(success=payload.get("success") is True, error=payload.get("error"))


@runtime_checkable
class DocumentGateway(Protocol):
    """Protocol for the remote document-editing service."""

    async def export_document(self) -> ExportResult:
        """Export the current document as base64 DOCX."""
        ...

    async def replace_document(self, base64_data: str) -> ReplaceResult:
        """Replace the live document content with the given DOCX."""
        ...

    async def get_or_increment_version_counter(self, increment: bool) -> Any:
        """Return the document's version counter, optionally incrementing it first.

        No failure channel beyond exceptions: callers must treat non-integer
        answers defensively.
        """
        ...

    async def write_version_history(self, entry: VersionRecord) -> HistoryWriteResult:
        """Append an entry to the document's version-history page."""
        ...
