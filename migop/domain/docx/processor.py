"""DOCX processor - unpack/repack the container and move it across the wire.

The processor never interprets WordprocessingML; it only swaps the
``word/document.xml`` part and keeps every other part byte-for-byte.
"""

import base64
import binascii
import io
import logging
import zipfile

from migop.domain.docx.models import DOCUMENT_PART, DocxPackage
from migop.domain.errors import DocxProcessingError


logger = logging.getLogger(__name__)


class DocxProcessor:
    """Convert between base64 transport, DOCX bytes and unpacked parts."""

    def __init__(self, document_part: str = DOCUMENT_PART):
        self.document_part = document_part

    @staticmethod
    def decode(base64_data: str) -> bytes:
        """Decode base64 transport data into DOCX bytes."""
        if not base64_data:
            raise DocxProcessingError("No DOCX data to decode")
        try:
            return base64.b64decode(base64_data, validate=True)
        except (binascii.Error, ValueError) as e:
            raise DocxProcessingError(f"Invalid base64 DOCX data: {e}")

    @staticmethod
    def encode(docx_bytes: bytes) -> str:
        """Encode DOCX bytes for transport."""
        return base64.b64encode(docx_bytes).decode("ascii")

    def unpack(self, docx_bytes: bytes) -> DocxPackage:
        """Read every part of the container into memory."""
        try:
            with zipfile.ZipFile(io.BytesIO(docx_bytes), "r") as zin:
                parts = {info.filename: zin.read(info.filename) for info in zin.infolist()}
        except zipfile.BadZipFile as e:
            raise DocxProcessingError(f"Exported file is not a valid DOCX container: {e}")

        if self.document_part not in parts:
            raise DocxProcessingError(
                f"DOCX container has no {self.document_part}",
                details={"parts": list(parts)},
            )

        logger.info(f"Unpacked DOCX: {len(parts)} parts, {len(docx_bytes)} bytes")
        return DocxPackage(parts=parts)

    def read_document_xml(self, package: DocxPackage) -> str:
        """Return the main document part as text."""
        try:
            return package.parts[self.document_part].decode("utf-8")
        except KeyError:
            raise DocxProcessingError(f"DOCX container has no {self.document_part}")
        except UnicodeDecodeError as e:
            raise DocxProcessingError(f"{self.document_part} is not valid UTF-8: {e}")

    def rebuild(self, package: DocxPackage, document_xml: str) -> bytes:
        """Repack the original parts with a replacement document part."""
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as zout:
            for name, data in package.parts.items():
                if name == self.document_part:
                    data = document_xml.encode("utf-8")
                zout.writestr(name, data)
        rebuilt = buffer.getvalue()
        logger.info(f"Rebuilt DOCX: {len(package.parts)} parts, {len(rebuilt)} bytes")
        return rebuilt
