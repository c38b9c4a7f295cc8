"""HTTP document gateway backed by an Apps Script web app.

Every call is a JSON POST ``{"action": <server function>, "documentId": ..., ...}``
to the deployed web-app URL; the body of the response is the server
function's return value.
"""

import logging
from typing import Any, Optional

import httpx

from migop.domain.errors import GatewayError, InvalidGatewayResultError
from migop.domain.versioning import VersionRecord
from migop.gateway.base import ExportResult, HistoryWriteResult, ReplaceResult


logger = logging.getLogger(__name__)


class HttpDocumentGateway:
    """Document gateway speaking to the Apps Script web app over HTTPS."""

    EXPORT_ACTION = "exportDocumentAsDocx"
    REPLACE_ACTION = "replaceDocumentWithProcessedDocx"
    COUNTER_ACTION = "getOrIncrementVersionCounter"
    HISTORY_ACTION = "writeVersionHistoryPage"

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        document_id: Optional[str] = None,
        timeout: float = 120.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the gateway.

        Args:
            base_url: Deployed web-app URL
            token: Optional bearer token sent with every request
            document_id: Document the web app should operate on
            timeout: Transport timeout in seconds; the workflow applies its
                own, shorter, per-call policy on top of this
            client: Optional shared AsyncClient (tests inject a MockTransport)
        """
        self._base_url = base_url
        self._token = token
        self._document_id = document_id
        self._timeout = timeout
        self._client = client

    async def _call(self, action: str, **params: Any) -> Any:
        body = {"action": action, **params}
        if self._document_id:
            body["documentId"] = self._document_id

        headers = {"content-type": "application/json"}
        if self._token:
            headers["authorization"] = f"Bearer {self._token}"

        logger.debug(f"Gateway call {action}")
        try:
            if self._client is not None:
                response = await self._client.post(self._base_url, json=body, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=self._timeout, follow_redirects=True) as client:
                    response = await client.post(self._base_url, json=body, headers=headers)
        except httpx.TimeoutException as e:
            raise GatewayError(f"{action} request timed out: {e}")
        except httpx.RequestError as e:
            raise GatewayError(f"{action} request failed: {e}")

        if response.status_code >= 400:
            raise GatewayError(
                f"{action} failed with HTTP {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError:
            raise InvalidGatewayResultError(
                f"{action} returned a non-JSON body",
                details={"body": response.text[:200]},
            )

    async def export_document(self) -> ExportResult:
        return ExportResult.from_dict(await self._call(self.EXPORT_ACTION))

    async def replace_document(self, base64_data: str) -> ReplaceResult:
        return ReplaceResult.from_dict(await self._call(self.REPLACE_ACTION, data=base64_data))

    async def get_or_increment_version_counter(self, increment: bool) -> Any:
        return await self._call(self.COUNTER_ACTION, increment=increment)

    async def write_version_history(self, entry: VersionRecord) -> HistoryWriteResult:
        return HistoryWriteResult.from_dict(
            await self._call(self.HISTORY_ACTION, versionData=entry.to_dict())
        )
