"""Tests for the HTTP document gateway."""

import json

import httpx
import pytest

from migop.domain.errors import GatewayError, InvalidGatewayResultError
from migop.domain.versioning import VersionRecord
from migop.gateway import HttpDocumentGateway


URL = "https://script.example/macros/s/abc/exec"


class Recorder:
    """MockTransport handler that records requests and replies from a script."""

    def __init__(self, response=None, status_code=200, raw=None, error=None):
        self.requests = []
        self.response = response
        self.status_code = status_code
        self.raw = raw
        self.error = error

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if self.raw is not None:
            return httpx.Response(self.status_code, text=self.raw)
        return httpx.Response(self.status_code, json=self.response)

    @property
    def last_body(self) -> dict:
        return json.loads(self.requests[-1].content)


def make_gateway(recorder: Recorder, **kwargs) -> HttpDocumentGateway:
    client = httpx.AsyncClient(transport=httpx.MockTransport(recorder))
    return HttpDocumentGateway(URL, client=client, **kwargs)


class TestRequests:
    """Tests for the request envelope."""

    @pytest.mark.asyncio
    async def test_action_and_document_id(self):
        recorder = Recorder(response={"success": True, "data": "UEs="})
        gateway = make_gateway(recorder, document_id="doc-42")
        await gateway.export_document()
        assert recorder.requests[0].method == "POST"
        assert str(recorder.requests[0].url) == URL
        assert recorder.last_body == {"action": "exportDocumentAsDocx", "documentId": "doc-42"}

    @pytest.mark.asyncio
    async def test_bearer_token(self):
        recorder = Recorder(response=3)
        await make_gateway(recorder, token="s3cret").get_or_increment_version_counter(True)
        assert recorder.requests[0].headers["authorization"] == "Bearer s3cret"

    @pytest.mark.asyncio
    async def test_no_token_header_without_token(self):
        recorder = Recorder(response=3)
        await make_gateway(recorder).get_or_increment_version_counter(False)
        assert "authorization" not in recorder.requests[0].headers
        assert recorder.last_body == {"action": "getOrIncrementVersionCounter", "increment": False}


class TestResults:
    """Tests for result parsing."""

    @pytest.mark.asyncio
    async def test_export_result(self):
        recorder = Recorder(response={
            "success": True,
            "data": "UEsDBA==",
            "metadata": {"size": 4, "docId": "doc-42", "docName": "Draft", "exportedAt": "2025-10-04T09:15:30Z"},
        })
        result = await make_gateway(recorder).export_document()
        assert result.success is True
        assert result.data == "UEsDBA=="
        assert result.metadata.doc_name == "Draft"
        assert result.metadata.size == 4

    @pytest.mark.asyncio
    async def test_export_failure_result(self):
        recorder = Recorder(response={"success": False, "error": "No access"})
        result = await make_gateway(recorder).export_document()
        assert result.success is False
        assert result.error == "No access"

    @pytest.mark.asyncio
    async def test_replace_sends_data(self):
        recorder = Recorder(response={"success": True, "replacementDetails": {"docId": "doc-42"}})
        result = await make_gateway(recorder).replace_document("UEsDBA==")
        assert recorder.last_body == {"action": "replaceDocumentWithProcessedDocx", "data": "UEsDBA=="}
        assert result.replacement_details == {"docId": "doc-42"}

    @pytest.mark.asyncio
    async def test_replace_non_object_result(self):
        recorder = Recorder(response="done")
        result = await make_gateway(recorder).replace_document("UEsDBA==")
        assert result.success is False
        assert result.error == "Server returned invalid result type: str"

    @pytest.mark.asyncio
    async def test_counter_returns_raw_value(self):
        recorder = Recorder(response=7)
        assert await make_gateway(recorder).get_or_increment_version_counter(True) == 7

    @pytest.mark.asyncio
    async def test_history_sends_version_data(self):
        recorder = Recorder(response={"success": True})
        entry = VersionRecord("2:O:25:10:04:09:15:30", "District 4", "2025-10-04T09:15:30", "Approved")
        result = await make_gateway(recorder).write_version_history(entry)
        assert result.success is True
        assert recorder.last_body["action"] == "writeVersionHistoryPage"
        assert recorder.last_body["versionData"] == {
            "versionNumber": "2:O:25:10:04:09:15:30",
            "committee": "District 4",
            "timestamp": "2025-10-04T09:15:30",
            "comments": "Approved",
        }


class TestErrors:
    """Tests for transport and HTTP failures."""

    @pytest.mark.asyncio
    async def test_http_error_status(self):
        recorder = Recorder(response={"error": "boom"}, status_code=500)
        with pytest.raises(GatewayError) as exc_info:
            await make_gateway(recorder).export_document()
        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_connection_error(self):
        recorder = Recorder(error=httpx.ConnectError("refused"))
        with pytest.raises(GatewayError, match="request failed"):
            await make_gateway(recorder).export_document()

    @pytest.mark.asyncio
    async def test_transport_timeout(self):
        recorder = Recorder(error=httpx.ReadTimeout("slow"))
        with pytest.raises(GatewayError, match="timed out"):
            await make_gateway(recorder).replace_document("UEs=")

    @pytest.mark.asyncio
    async def test_non_json_body(self):
        recorder = Recorder(raw="<html>Sign in</html>")
        with pytest.raises(InvalidGatewayResultError, match="non-JSON"):
            await make_gateway(recorder).export_document()
