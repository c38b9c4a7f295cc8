"""DOCX domain models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


DOCUMENT_PART = "word/document.xml"


class SuggestionType(str, Enum):
    """Kind of tracked change."""
    INSERTION = "insertion"
    DELETION = "deletion"


@dataclass(frozen=True)
class Suggestion:
    """A tracked change found in document.xml.

    ``index`` is the position of the revision element in document order;
    the transformer relies on it to pair suggestions with elements.
    """
    type: SuggestionType
    index: int
    text: str = ""
    revision_id: Optional[str] = None
    author: Optional[str] = None
    date: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "index": self.index,
            "text": self.text,
            "revision_id": self.revision_id,
            "author": self.author,
            "date": self.date,
        }


@dataclass
class DocxPackage:
    """Unpacked DOCX container: part name -> raw bytes, in archive order."""
    parts: Dict[str, bytes] = field(default_factory=dict)

    @property
    def size_bytes(self) -> int:
        return sum(len(data) for data in self.parts.values())

    @property
    def part_names(self):
        return list(self.parts.keys())

    def has_part(self, name: str) -> bool:
        return name in self.parts
