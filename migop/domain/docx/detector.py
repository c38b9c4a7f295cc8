"""Suggestion detector - find tracked changes in WordprocessingML.

Insertions are ``w:ins`` elements, deletions are ``w:del`` elements. Revision
marks that only flag formatting of a paragraph/run mark (children of
``w:pPr``/``w:rPr``/``w:trPr``) carry no content and are not suggestions.
"""

import logging
from collections import Counter
from typing import Dict, List

from lxml import etree

from migop.domain.docx.models import Suggestion, SuggestionType
from migop.domain.errors import DocxProcessingError


logger = logging.getLogger(__name__)

W_NS = "http://schemas.openxmlformats.org/wordprocessingml/2006/main"
NAMESPACES = {"w": W_NS}


def _w(tag: str) -> str:
    return f"{{{W_NS}}}{tag}"


_REVISION_TAGS = {
    _w("ins"): SuggestionType.INSERTION,
    _w("del"): SuggestionType.DELETION,
}


def local_name(element: etree._Element) -> str:
    return etree.QName(element).localname


class SuggestionDetector:
    """Extract insertion/deletion suggestions from document.xml."""

    def parse(self, xml: str) -> etree._Element:
        """Parse document XML text into an element tree."""
        try:
            return etree.fromstring(xml.encode("utf-8"))
        except etree.XMLSyntaxError as e:
            raise DocxProcessingError(f"document.xml is not well-formed: {e}")

    def revision_elements(self, root: etree._Element) -> List[etree._Element]:
        """Content-bearing w:ins/w:del elements in document order."""
        found = []
        for el in root.iter(*_REVISION_TAGS):
            parent = el.getparent()
            if parent is not None and local_name(parent).endswith("Pr"):
                continue
            found.append(el)
        return found

    def suggestion_type(self, element: etree._Element) -> SuggestionType:
        try:
            return _REVISION_TAGS[element.tag]
        except KeyError:
            raise DocxProcessingError(f"Not a revision element: {element.tag}")

    def to_suggestion(self, element: etree._Element, index: int) -> Suggestion:
        """Describe one revision element."""
        stype = self.suggestion_type(element)
        text_tag = _w("t") if stype is SuggestionType.INSERTION else _w("delText")
        text = "".join(t.text or "" for t in element.iter(text_tag))
        return Suggestion(
            type=stype,
            index=index,
            text=text,
            revision_id=element.get(_w("id")),
            author=element.get(_w("author")),
            date=element.get(_w("date")),
        )

    def extract_suggestions(self, xml: str) -> List[Suggestion]:
        """All suggestions in one pass."""
        root = self.parse(xml)
        suggestions = [
            self.to_suggestion(el, i) for i, el in enumerate(self.revision_elements(root))
        ]
        logger.info(f"Suggestions analyzed: {len(suggestions)} found")
        return suggestions


def count_by_type(suggestions: List[Suggestion]) -> Dict[str, int]:
    """Insertion/deletion totals, both keys always present."""
    counts = Counter(s.type.value for s in suggestions)
    return {t.value: counts.get(t.value, 0) for t in SuggestionType}
