"""JSON-over-HTTP client for the bulk and reporting services."""

from __future__ import annotations

import asyncio
from typing import Any

import aiohttp

from bulk_platform.errors import RemoteFaultError, TransportError
from bulk_platform.operations.status import JobStatusResponse, OperationError
from bulk_platform.services.bulk_api.interface import (
    AuthorizationData,
    BulkApiInterface,
    DownloadRequest,
    ReportRequest,
    ResponseMode,
    SubmittedJob,
    UploadUrl,
)
from bulk_platform.services.http_errors import error_for_status
from bulk_platform.services.secrets.interface import SecretsInterface


def _status_from_body(body: dict[str, Any]) -> JobStatusResponse:
    return JobStatusResponse(
        status=str(body.get("status", "")),
        percent_complete=int(body.get("percent_complete") or 0),
        result_file_url=body.get("result_file_url") or None,
        errors=tuple(OperationError.from_dict(e) for e in body.get("errors") or ()),
        tracking_id=body.get("tracking_id"),
    )


def _require(body: dict[str, Any], key: str, url: str) -> Any:
    if not body.get(key):
        raise RemoteFaultError(f"Response from {url} has no '{key}'", details=body)
    return body[key]


class RestBulkApi(BulkApiInterface):
    """Config (via secrets):
        BULK_API_BASE_URL        - service root, e.g. https://bulk.example.com/v1 (required)
        BULK_API_TIMEOUT_SECONDS - per-request timeout (default 60)

    Endpoints:
        POST {base}/bulk/downloads            submit a download
        GET  {base}/bulk/downloads/{id}       download status
        POST {base}/bulk/uploads              reserve an upload URL
        GET  {base}/bulk/uploads/{id}         upload status
        POST {base}/reports                   submit a report
        GET  {base}/reports/{id}              report status
    """

    def __init__(self, secrets: SecretsInterface) -> None:
        self._base_url = secrets.require("BULK_API_BASE_URL").rstrip("/")
        self._timeout = aiohttp.ClientTimeout(
            total=float(secrets.get_or_default("BULK_API_TIMEOUT_SECONDS", "60"))
        )

    async def _request(
        self,
        method: str,
        path: str,
        auth: AuthorizationData,
        body: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        url = f"{self._base_url}{path}"
        try:
            async with aiohttp.ClientSession(timeout=self._timeout) as session:
                async with session.request(method, url, json=body, headers=auth.headers()) as response:
                    try:
                        payload = await response.json(content_type=None)
                    except ValueError:
                        payload = None
                    if response.status >= 300:
                        raise error_for_status(
                            response.status, url, payload if isinstance(payload, dict) else None
                        )
                    if not isinstance(payload, dict):
                        raise RemoteFaultError(f"Unexpected response body from {url}")
                    return payload
        except asyncio.TimeoutError as exc:
            raise TransportError(f"Timed out calling {url}") from exc
        except aiohttp.ClientError as exc:
            raise TransportError(f"Request to {url} failed: {exc}") from exc

    async def submit_download(self, auth: AuthorizationData, request: DownloadRequest) -> SubmittedJob:
        body = await self._request("POST", "/bulk/downloads", auth, request.to_dict())
        return SubmittedJob(_require(body, "request_id", "/bulk/downloads"), body.get("tracking_id"))

    async def get_download_status(self, auth: AuthorizationData, request_id: str) -> JobStatusResponse:
        return _status_from_body(await self._request("GET", f"/bulk/downloads/{request_id}", auth))

    async def get_upload_url(self, auth: AuthorizationData, response_mode: ResponseMode) -> UploadUrl:
        body = await self._request(
            "POST",
            "/bulk/uploads",
            auth,
            {"response_mode": response_mode.value, "account_id": auth.account_id},
        )
        return UploadUrl(
            request_id=_require(body, "request_id", "/bulk/uploads"),
            upload_url=_require(body, "upload_url", "/bulk/uploads"),
            tracking_id=body.get("tracking_id"),
        )

    async def get_upload_status(self, auth: AuthorizationData, request_id: str) -> JobStatusResponse:
        return _status_from_body(await self._request("GET", f"/bulk/uploads/{request_id}", auth))

    async def submit_report(self, auth: AuthorizationData, request: ReportRequest) -> SubmittedJob:
        body = await self._request("POST", "/reports", auth, request.to_dict())
        return SubmittedJob(_require(body, "request_id", "/reports"), body.get("tracking_id"))

    async def get_report_status(self, auth: AuthorizationData, request_id: str) -> JobStatusResponse:
        return _status_from_body(await self._request("GET", f"/reports/{request_id}", auth))
