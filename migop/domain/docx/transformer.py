"""XML transformer - turn tracked changes into visible markup.

Each suggestion's revision wrapper is removed and its runs are restyled so
reviewers see the change in plain formatting:

- insertions: colored and underlined text
- deletions: colored struck-through text (``w:delText`` becomes ``w:t``)
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from lxml import etree

from migop.domain.docx.detector import SuggestionDetector, _w, local_name
from migop.domain.docx.models import Suggestion, SuggestionType
from migop.domain.errors import DocxProcessingError


logger = logging.getLogger(__name__)

XML_SPACE = "{http://www.w3.org/XML/1998/namespace}space"

# Schema order of the run-property children we touch (CT_RPr / EG_RPrBase).
_RPR_ORDER = [
    "ins", "del", "moveFrom", "moveTo",
    "rStyle", "rFonts", "b", "bCs", "i", "iCs", "caps", "smallCaps",
    "strike", "dstrike", "outline", "shadow", "emboss", "imprint",
    "noProof", "snapToGrid", "vanish", "webHidden", "color", "spacing",
    "w", "kern", "position", "sz", "szCs", "highlight", "u", "effect",
    "bdr", "shd", "fitText", "vertAlign", "rtl", "cs", "em", "lang",
    "eastAsianLayout", "specVanish", "oMath",
]
_RPR_RANK = {name: rank for rank, name in enumerate(_RPR_ORDER)}


@dataclass
class TransformStyle:
    """Colors (hex RRGGBB) and underline used for visible markup."""
    insertion_color: str = "0070C0"
    insertion_underline: str = "single"
    deletion_color: str = "C00000"


@dataclass
class TransformPlan:
    """Parsed document plus its revision elements, ready for item-wise apply."""
    root: etree._Element
    elements: List[etree._Element] = field(default_factory=list)
    applied: int = 0


class XmlTransformer:
    """Rewrite w:ins/w:del suggestions as visibly formatted runs."""

    def __init__(
        self,
        detector: Optional[SuggestionDetector] = None,
        style: Optional[TransformStyle] = None,
    ):
        self.detector = detector or SuggestionDetector()
        self.style = style or TransformStyle()

    def prepare(self, xml: str) -> TransformPlan:
        root = self.detector.parse(xml)
        return TransformPlan(root=root, elements=self.detector.revision_elements(root))

    def apply(self, plan: TransformPlan, suggestion: Suggestion) -> Suggestion:
        """Transform the revision element a suggestion points at."""
        if not 0 <= suggestion.index < len(plan.elements):
            raise DocxProcessingError(
                f"Suggestion {suggestion.index} has no matching revision element",
                details={"revision_elements": len(plan.elements)},
            )
        element = plan.elements[suggestion.index]
        if self.detector.suggestion_type(element) is not suggestion.type:
            raise DocxProcessingError(
                f"Suggestion {suggestion.index} is a {suggestion.type.value} "
                f"but the document has a {local_name(element)} element there"
            )

        if suggestion.type is SuggestionType.INSERTION:
            self._mark_insertion(element)
        else:
            self._mark_deletion(element)
        self._unwrap(element)
        plan.applied += 1
        return suggestion

    def serialize(self, plan: TransformPlan) -> str:
        return etree.tostring(
            plan.root, xml_declaration=True, encoding="UTF-8", standalone=True
        ).decode("utf-8")

    def transform_xml(self, xml: str, suggestions: Sequence[Suggestion]) -> str:
        """Transform all suggestions in one pass."""
        plan = self.prepare(xml)
        for suggestion in suggestions:
            self.apply(plan, suggestion)
        logger.info(f"XML transformation complete: {plan.applied} suggestions applied")
        return self.serialize(plan)

    # ------------------------------------------------------------------
    # Markup helpers
    # ------------------------------------------------------------------

    def _mark_insertion(self, element: etree._Element) -> None:
        for run in element.iter(_w("r")):
            rpr = self._run_properties(run)
            self._set_property(rpr, "color", self.style.insertion_color)
            self._set_property(rpr, "u", self.style.insertion_underline)

    def _mark_deletion(self, element: etree._Element) -> None:
        for text in list(element.iter(_w("delText"))):
            text.tag = _w("t")
            text.set(XML_SPACE, "preserve")
        for instr in list(element.iter(_w("delInstrText"))):
            instr.tag = _w("instrText")
        for run in element.iter(_w("r")):
            rpr = self._run_properties(run)
            self._set_property(rpr, "color", self.style.deletion_color)
            self._set_property(rpr, "strike", None)

    @staticmethod
    def _run_properties(run: etree._Element) -> etree._Element:
        rpr = run.find(_w("rPr"))
        if rpr is None:
            rpr = etree.Element(_w("rPr"))
            run.insert(0, rpr)
        return rpr

    @staticmethod
    def _set_property(rpr: etree._Element, name: str, value: Optional[str]) -> None:
        existing = rpr.find(_w(name))
        if existing is not None:
            rpr.remove(existing)
        prop = etree.Element(_w(name))
        if value is not None:
            prop.set(_w("val"), value)

        rank = _RPR_RANK[name]
        for position, child in enumerate(rpr):
            if not isinstance(child.tag, str):
                continue
            if _RPR_RANK.get(local_name(child), len(_RPR_ORDER)) > rank:
                rpr.insert(position, prop)
                return
        rpr.append(prop)

    @staticmethod
    def _unwrap(element: etree._Element) -> None:
        parent = element.getparent()
        if parent is None:
            return
        position = parent.index(element)
        for offset, child in enumerate(list(element)):
            parent.insert(position + offset, child)
        parent.remove(element)
