"""Workflow data - the mutable record of one workflow run.

Owned exclusively by the controller; everything handed out is a deep copy.
"""

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from migop.domain.docx.models import DocxPackage, Suggestion
from migop.domain.docx.detector import count_by_type
from migop.gateway.base import ExportMetadata


def _size(value: Optional[str]) -> Optional[int]:
    return len(value) if value is not None else None


_TRUE_FLAGS = frozenset(("true", "1", "yes"))
_FALSE_FLAGS = frozenset(("false", "0", "no", ""))


def _parse_flag(value: Any) -> bool:
    """Official flag from client data: real bools, 0/1, or true/false strings."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_FLAGS:
            return True
        if text in _FALSE_FLAGS:
            return False
    raise ValueError(f"Invalid isOfficial value: {value!r}")


@dataclass
class Phase1Data:
    """Export & analyze results."""
    exported_docx_base64: Optional[str] = None
    document_xml: Optional[str] = None
    suggestions: List[Suggestion] = field(default_factory=list)
    version_number: Optional[str] = None
    package: Optional[DocxPackage] = None


@dataclass
class Phase2Data:
    """Transform & replace results."""
    modified_xml: Optional[str] = None
    rebuilt_docx_base64: Optional[str] = None
    version_number: Optional[str] = None
    is_official: bool = False


@dataclass
class Phase3Data:
    """Official finalization input and output."""
    committee: Optional[str] = None
    comments: Optional[str] = None
    timestamp: Optional[str] = None
    version_number: Optional[str] = None


@dataclass
class WorkflowData:
    """Complete record of one workflow run."""
    version_counter: Optional[int] = None
    phase1: Phase1Data = field(default_factory=Phase1Data)
    phase2: Phase2Data = field(default_factory=Phase2Data)
    phase3: Phase3Data = field(default_factory=Phase3Data)
    export_metadata: Optional[ExportMetadata] = None
    replacement_details: Dict[str, Any] = field(default_factory=dict)

    @property
    def suggestions_count(self) -> int:
        return len(self.phase1.suggestions)

    def copy(self) -> "WorkflowData":
        """Deep copy safe to hand to code outside the controller."""
        return copy.deepcopy(self)

    def to_dict(self, include_payloads: bool = False) -> Dict[str, Any]:
        """Serialize to dict.

        Payloads (base64 DOCX and XML text) are reported as sizes unless
        ``include_payloads`` is set.
        """
        p1, p2, p3 = self.phase1, self.phase2, self.phase3
        data: Dict[str, Any] = {
            "version_counter": self.version_counter,
            "phase1": {
                "exported_docx_size": _size(p1.exported_docx_base64),
                "document_xml_size": _size(p1.document_xml),
                "suggestions": [s.to_dict() for s in p1.suggestions],
                "suggestion_counts": count_by_type(p1.suggestions),
                "version_number": p1.version_number,
                "package_parts": p1.package.part_names if p1.package else [],
            },
            "phase2": {
                "modified_xml_size": _size(p2.modified_xml),
                "rebuilt_docx_size": _size(p2.rebuilt_docx_base64),
                "version_number": p2.version_number,
                "is_official": p2.is_official,
            },
            "phase3": {
                "committee": p3.committee,
                "comments": p3.comments,
                "timestamp": p3.timestamp,
                "version_number": p3.version_number,
            },
            "export_metadata": self.export_metadata.to_dict() if self.export_metadata else None,
            "replacement_details": dict(self.replacement_details),
        }
        if include_payloads:
            data["phase1"]["exported_docx_base64"] = p1.exported_docx_base64
            data["phase1"]["document_xml"] = p1.document_xml
            data["phase2"]["modified_xml"] = p2.modified_xml
            data["phase2"]["rebuilt_docx_base64"] = p2.rebuilt_docx_base64
        return data


@dataclass
class ResumeData:
    """User input supplied when resuming from a pause."""
    is_official: bool = False
    committee: Optional[str] = None
    comments: Optional[str] = None

    @classmethod
    def from_value(cls, value: Any) -> "ResumeData":
        """Accept None, a ResumeData, or a dict (snake_case or camelCase keys).

        Raises:
            TypeError: value is none of those
            ValueError: the official flag is not a recognizable boolean
        """
        if value is None:
            return cls()
        if isinstance(value, cls):
            return value
        if isinstance(value, dict):
            official = value.get("is_official", value.get("isOfficial", False))
            return cls(
                is_official=_parse_flag(official),
                committee=value.get("committee"),
                comments=value.get("comments"),
            )
        raise TypeError(f"Unsupported resume data: {type(value).__name__}")


@dataclass
class CompletionSummary:
    """Final counts recorded when a run reaches COMPLETE."""
    suggestions_count: int
    is_official: bool
    version_counter: Optional[int]
    final_version_number: Optional[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "suggestions_count": self.suggestions_count,
            "is_official": self.is_official,
            "version_counter": self.version_counter,
            "final_version_number": self.final_version_number,
        }
