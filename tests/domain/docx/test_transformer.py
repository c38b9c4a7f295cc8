"""Tests for the XML transformer."""

import pytest
from lxml import etree

from migop.domain.docx import (
    Suggestion,
    SuggestionDetector,
    SuggestionType,
    TransformStyle,
    XmlTransformer,
)
from migop.domain.errors import DocxProcessingError


NS = {"w": "http://schemas.openxmlformats.org/wordprocessingml/2006/main"}


@pytest.fixture
def detector() -> SuggestionDetector:
    return SuggestionDetector()


@pytest.fixture
def transformer(detector) -> XmlTransformer:
    return XmlTransformer(detector=detector)


def _transform(transformer, detector, xml):
    return etree.fromstring(
        transformer.transform_xml(xml, detector.extract_suggestions(xml)).encode("utf-8")
    )


class TestTransformXml:
    """Tests for XmlTransformer.transform_xml."""

    def test_removes_revision_wrappers(self, transformer, detector, sample_xml):
        root = _transform(transformer, detector, sample_xml)
        body = root.find("w:body", NS)
        assert body.findall(".//w:p/w:ins", NS) == []
        assert body.findall(".//w:del", NS) == []
        assert root.findall(".//w:delText", NS) == []

    def test_formatting_revision_marks_untouched(self, transformer, detector, sample_xml):
        root = _transform(transformer, detector, sample_xml)
        marks = root.findall(".//w:pPr/w:rPr/w:ins", NS)
        assert len(marks) == 1
        assert marks[0].get(f"{{{NS['w']}}}id") == "9"

    def test_insertion_markup(self, transformer, detector, sample_xml):
        root = _transform(transformer, detector, sample_xml)
        run = root.xpath(".//w:r[w:t='added text']", namespaces=NS)[0]
        rpr = run.find("w:rPr", NS)
        assert rpr.find("w:color", NS).get(f"{{{NS['w']}}}val") == "0070C0"
        assert rpr.find("w:u", NS).get(f"{{{NS['w']}}}val") == "single"

    def test_deletion_markup(self, transformer, detector, sample_xml):
        root = _transform(transformer, detector, sample_xml)
        text = root.xpath(".//w:t[.='removed text']", namespaces=NS)[0]
        assert text.get("{http://www.w3.org/XML/1998/namespace}space") == "preserve"
        rpr = text.getparent().find("w:rPr", NS)
        assert rpr.find("w:strike", NS) is not None
        assert rpr.find("w:color", NS).get(f"{{{NS['w']}}}val") == "C00000"

    def test_run_properties_keep_schema_order(self, transformer, detector, sample_xml):
        """Existing w:b stays first; strike precedes color."""
        root = _transform(transformer, detector, sample_xml)
        rpr = root.xpath(".//w:r[w:t='removed text']/w:rPr", namespaces=NS)[0]
        assert [etree.QName(child).localname for child in rpr] == ["b", "strike", "color"]

    def test_text_order_preserved(self, transformer, detector, sample_xml):
        root = _transform(transformer, detector, sample_xml)
        texts = [t.text for t in root.iter(f"{{{NS['w']}}}t")]
        assert texts == ["Keep this ", "added text", "removed text", "second paragraph"]

    def test_custom_style(self, detector, sample_xml):
        transformer = XmlTransformer(detector=detector, style=TransformStyle(insertion_color="00FF00"))
        root = _transform(transformer, detector, sample_xml)
        run = root.xpath(".//w:r[w:t='added text']", namespaces=NS)[0]
        assert run.find("w:rPr/w:color", NS).get(f"{{{NS['w']}}}val") == "00FF00"

    def test_no_suggestions_is_identity(self, transformer, detector, xml_factory):
        xml = xml_factory(0)
        assert etree.tostring(_transform(transformer, detector, xml)) == etree.tostring(
            etree.fromstring(xml.encode("utf-8"))
        )


class TestItemwiseApply:
    """Tests for prepare/apply/serialize."""

    def test_counts_applied(self, transformer, detector, xml_factory):
        xml = xml_factory(6)
        plan = transformer.prepare(xml)
        for suggestion in detector.extract_suggestions(xml):
            transformer.apply(plan, suggestion)
        assert plan.applied == 6
        assert "<w:ins" not in transformer.serialize(plan)

    def test_serialize_has_declaration(self, transformer, sample_xml):
        output = transformer.serialize(transformer.prepare(sample_xml))
        assert output.startswith("<?xml version='1.0' encoding='UTF-8' standalone='yes'?>")

    def test_index_out_of_range(self, transformer, sample_xml):
        plan = transformer.prepare(sample_xml)
        with pytest.raises(DocxProcessingError, match="no matching revision element"):
            transformer.apply(plan, Suggestion(type=SuggestionType.INSERTION, index=10))

    def test_type_mismatch(self, transformer, sample_xml):
        plan = transformer.prepare(sample_xml)
        with pytest.raises(DocxProcessingError, match="is a deletion"):
            transformer.apply(plan, Suggestion(type=SuggestionType.DELETION, index=0))
