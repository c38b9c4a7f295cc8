"""DOCX container handling, suggestion detection and XML transformation."""

from migop.domain.docx.detector import SuggestionDetector, count_by_type
from migop.domain.docx.models import DOCUMENT_PART, DocxPackage, Suggestion, SuggestionType
from migop.domain.docx.processor import DocxProcessor
from migop.domain.docx.transformer import TransformPlan, TransformStyle, XmlTransformer

__all__ = [
    "DOCUMENT_PART",
    "DocxPackage",
    "DocxProcessor",
    "Suggestion",
    "SuggestionDetector",
    "SuggestionType",
    "TransformPlan",
    "TransformStyle",
    "XmlTransformer",
    "count_by_type",
]
