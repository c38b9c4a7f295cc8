"""Tests for the in-memory document gateway and clipboard."""

import asyncio
import base64

import pytest

from migop.domain.errors import GatewayError
from migop.domain.versioning import VersionRecord
from migop.gateway import (
    ExportResult,
    InMemoryClipboard,
    InMemoryDocumentGateway,
    ReplaceResult,
)
from migop.gateway.in_memory import COUNTER, EXPORT, HISTORY, REPLACE


class TestExport:
    """Tests for export_document."""

    @pytest.mark.asyncio
    async def test_exports_current_document(self, gateway, sample_docx):
        result = await gateway.export_document()
        assert result.success is True
        assert base64.b64decode(result.data) == sample_docx
        assert result.metadata.size == len(sample_docx)
        assert result.metadata.doc_id == "doc-1"
        assert result.metadata.doc_name == "MIGOP Draft"

    @pytest.mark.asyncio
    async def test_default_document_is_valid_docx(self):
        result = await InMemoryDocumentGateway().export_document()
        assert result.success is True
        assert base64.b64decode(result.data)[:2] == b"PK"

    @pytest.mark.asyncio
    async def test_scripted_result(self, gateway):
        gateway.set_result(EXPORT, ExportResult(success=False, error="Export quota exceeded"))
        result = await gateway.export_document()
        assert result.error == "Export quota exceeded"
        assert (await gateway.export_document()).success is True

    @pytest.mark.asyncio
    async def test_scripted_error(self, gateway):
        gateway.set_error(EXPORT, GatewayError("offline"))
        with pytest.raises(GatewayError, match="offline"):
            await gateway.export_document()
        assert gateway.call_count(EXPORT) == 1


class TestReplace:
    """Tests for replace_document."""

    @pytest.mark.asyncio
    async def test_replaces_document(self, gateway):
        result = await gateway.replace_document(base64.b64encode(b"new bytes").decode("ascii"))
        assert result.success is True
        assert result.replacement_details["docId"] == "doc-1"
        assert "replacedAt" in result.replacement_details
        assert gateway.document == b"new bytes"

    @pytest.mark.asyncio
    async def test_rejects_invalid_base64(self, gateway, sample_docx):
        result = await gateway.replace_document("%%%")
        assert result.success is False
        assert gateway.document == sample_docx

    @pytest.mark.asyncio
    async def test_scripted_result(self, gateway):
        gateway.set_result(REPLACE, ReplaceResult(success=False, error="Locked"))
        assert (await gateway.replace_document("AAAA")).error == "Locked"


class TestCounter:
    """Tests for get_or_increment_version_counter."""

    @pytest.mark.asyncio
    async def test_increments(self):
        gateway = InMemoryDocumentGateway(counter=4)
        assert await gateway.get_or_increment_version_counter(True) == 5
        assert await gateway.get_or_increment_version_counter(False) == 5
        assert await gateway.get_or_increment_version_counter(True) == 6

    @pytest.mark.asyncio
    async def test_scripted_value(self, gateway):
        gateway.set_result(COUNTER, "seven")
        assert await gateway.get_or_increment_version_counter(True) == "seven"


class TestHistory:
    @pytest.mark.asyncio
    async def test_appends_entry(self, gateway):
        entry = VersionRecord("1:O:25:10:04:09:15:30", "Policy Committee", "2025-10-04T09:15:30", "Adopted")
        result = await gateway.write_version_history(entry)
        assert result.success is True
        assert gateway.history == [entry]
        assert gateway.calls[-1].operation == HISTORY
        assert gateway.calls[-1].args == (entry,)


class TestHold:
    """Tests for holding a call until released."""

    @pytest.mark.asyncio
    async def test_hold_blocks_until_released(self, gateway):
        release = gateway.hold(EXPORT)
        task = asyncio.ensure_future(gateway.export_document())
        await asyncio.sleep(0.01)
        assert not task.done()
        assert gateway.call_count(EXPORT) == 1

        release.set()
        result = await asyncio.wait_for(task, timeout=1)
        assert result.success is True

    @pytest.mark.asyncio
    async def test_hold_applies_once(self, gateway):
        gateway.hold(EXPORT).set()
        await gateway.export_document()
        result = await asyncio.wait_for(gateway.export_document(), timeout=1)
        assert result.success is True


class TestInMemoryClipboard:
    @pytest.mark.asyncio
    async def test_keeps_history(self):
        clipboard = InMemoryClipboard()
        assert clipboard.current is None
        await clipboard.copy("1:B:25:10:04:09:15:30")
        await clipboard.copy("1:A:25:10:04:09:20:00")
        assert clipboard.current == "1:A:25:10:04:09:20:00"
        assert clipboard.history == ["1:B:25:10:04:09:15:30", "1:A:25:10:04:09:20:00"]
        clipboard.clear()
        assert clipboard.current is None
