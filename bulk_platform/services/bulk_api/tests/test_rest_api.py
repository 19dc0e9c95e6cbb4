"""Tests for RestBulkApi against a local aiohttp TestServer playing the service."""

from __future__ import annotations

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from bulk_platform.errors import RemoteFaultError, TransportError
from bulk_platform.services.bulk_api.interface import (
    DownloadEntity,
    DownloadRequest,
    ReportRequest,
    ResponseMode,
)
from bulk_platform.services.bulk_api.rest_api import RestBulkApi
from bulk_platform.services.secrets.env_secrets import EnvSecrets


@pytest.fixture
def seen():
    return []


@pytest.fixture
async def server(seen):
    async def submit_download(request: web.Request) -> web.Response:
        seen.append((request.path, await request.json(), dict(request.headers)))
        return web.json_response({"request_id": "download-1", "tracking_id": "trk-1"})

    async def download_status(request: web.Request) -> web.Response:
        request_id = request.match_info["request_id"]
        if request_id == "missing":
            return web.json_response({"message": "Request id not found"}, status=404)
        if request_id == "busy":
            return web.Response(status=502, text="bad gateway")
        return web.json_response({
            "status": "Failed",
            "percent_complete": 40,
            "errors": [{"code": 3201, "message": "Invalid account", "error_code": "InvalidAccountId"}],
        })

    async def upload_url(request: web.Request) -> web.Response:
        seen.append((request.path, await request.json(), dict(request.headers)))
        return web.json_response({"request_id": "upload-1", "upload_url": "https://u/1"})

    async def upload_status(request: web.Request) -> web.Response:
        return web.json_response({"status": "Completed", "result_file_url": "https://r/1.zip"})

    async def submit_report(request: web.Request) -> web.Response:
        seen.append((request.path, await request.json(), dict(request.headers)))
        return web.json_response({"tracking_id": "trk-3"})

    async def not_json(request: web.Request) -> web.Response:
        return web.Response(text="<html>maintenance</html>")

    app = web.Application()
    app.router.add_post("/v1/bulk/downloads", submit_download)
    app.router.add_get("/v1/bulk/downloads/{request_id}", download_status)
    app.router.add_post("/v1/bulk/uploads", upload_url)
    app.router.add_get("/v1/bulk/uploads/{request_id}", upload_status)
    app.router.add_post("/v1/reports", submit_report)
    app.router.add_get("/v1/reports/{request_id}", not_json)
    async with TestServer(app) as srv:
        yield srv


@pytest.fixture
def rest(server):
    base = str(server.make_url("/v1/"))
    return RestBulkApi(EnvSecrets(overrides={"BULK_API_BASE_URL": base, "BULK_API_TIMEOUT_SECONDS": "5"}))


def test_base_url_is_required():
    with pytest.raises(KeyError, match="BULK_API_BASE_URL"):
        RestBulkApi(EnvSecrets(overrides={"BULK_API_BASE_URL": ""}))


# ── Downloads ─────────────────────────────────────────────────────────────────

async def test_submit_download_sends_request_and_credentials(rest, auth, seen):
    request = DownloadRequest(account_id=200, entities=(DownloadEntity.CAMPAIGNS,), campaign_ids=(11,))
    job = await rest.submit_download(auth, request)
    assert (job.request_id, job.tracking_id) == ("download-1", "trk-1")
    path, body, headers = seen[0]
    assert path == "/v1/bulk/downloads"
    assert body["entities"] == ["Campaigns"]
    assert body["campaigns"] == [{"campaign_id": 11, "parent_account_id": 200}]
    assert body["format_version"] == "4.0"
    assert headers["DeveloperToken"] == "dev-token"
    assert headers["Authorization"] == "Bearer access-token"


async def test_status_body_is_parsed(rest, auth):
    status = await rest.get_download_status(auth, "download-1")
    assert status.status == "Failed"
    assert status.percent_complete == 40
    assert status.result_file_url is None
    assert status.errors[0].code == 3201
    assert status.errors[0].error_code == "InvalidAccountId"


async def test_not_found_is_a_fault_with_service_message(rest, auth):
    with pytest.raises(RemoteFaultError, match="Request id not found") as exc_info:
        await rest.get_download_status(auth, "missing")
    assert exc_info.value.status_code == 404


async def test_bad_gateway_is_transient(rest, auth):
    with pytest.raises(TransportError, match="HTTP 502"):
        await rest.get_download_status(auth, "busy")


# ── Uploads and reports ───────────────────────────────────────────────────────

async def test_get_upload_url(rest, auth, seen):
    upload = await rest.get_upload_url(auth, ResponseMode.ERRORS_ONLY)
    assert (upload.request_id, upload.upload_url) == ("upload-1", "https://u/1")
    assert seen[0][1] == {"response_mode": "ErrorsOnly", "account_id": 200}


async def test_upload_status(rest, auth):
    status = await rest.get_upload_status(auth, "upload-1")
    assert status.status == "Completed"
    assert status.result_file_url == "https://r/1.zip"


async def test_response_without_request_id_is_a_fault(rest, auth):
    with pytest.raises(RemoteFaultError, match="no 'request_id'"):
        await rest.submit_report(auth, ReportRequest("CampaignPerformance", ["Impressions"]))


async def test_non_json_body_is_a_fault(rest, auth):
    with pytest.raises(RemoteFaultError, match="Unexpected response body"):
        await rest.get_report_status(auth, "report-1")
