from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from typing import Any

from bulk_platform.errors import RemoteFaultError
from bulk_platform.operations.status import JobStatusResponse
from bulk_platform.services.bulk_api.interface import (
    AuthorizationData,
    BulkApiInterface,
    DownloadRequest,
    ReportRequest,
    ResponseMode,
    SubmittedJob,
    UploadUrl,
)


@dataclass
class _Job:
    kind: str
    responses: list[JobStatusResponse]
    polls: int = 0


@dataclass
class ApiCall:
    name: str
    args: dict[str, Any] = field(default_factory=dict)


class MemoryBulkApi(BulkApiInterface):
    """Scripted service for tests.

    ``script(kind, ...)`` sets the status sequence the next submitted job of
    that kind (``download``, ``upload``, ``report``) will report, one per
    poll; the last response repeats once the sequence is used up. Exceptions
    queued in ``status_errors`` are raised by the next status calls instead.
    """

    def __init__(self) -> None:
        self.calls: list[ApiCall] = []
        self.status_errors: list[Exception] = []
        self.upload_url = "memory://uploads"
        self._scripts: dict[str, list[JobStatusResponse]] = {}
        self._jobs: dict[str, _Job] = {}
        self._ids = itertools.count(1)

    def script(self, kind: str, *responses: JobStatusResponse) -> None:
        self._scripts[kind] = list(responses)

    def add_job(self, request_id: str, kind: str, *responses: JobStatusResponse) -> None:
        self._jobs[request_id] = _Job(kind, list(responses))

    def polls(self, request_id: str) -> int:
        return self._jobs[request_id].polls

    @property
    def call_names(self) -> list[str]:
        return [c.name for c in self.calls]

    def _new_job(self, kind: str) -> str:
        request_id = f"{kind}-{next(self._ids)}"
        responses = self._scripts.get(kind) or [JobStatusResponse(status="InProgress")]
        self._jobs[request_id] = _Job(kind, list(responses))
        return request_id

    def _status(self, kind: str, request_id: str) -> JobStatusResponse:
        if self.status_errors:
            raise self.status_errors.pop(0)
        job = self._jobs.get(request_id)
        if job is None or job.kind != kind:
            raise RemoteFaultError(f"Unknown {kind} request id: {request_id}", status_code=404)
        job.polls += 1
        if len(job.responses) > 1:
            return job.responses.pop(0)
        return job.responses[0]

    async def submit_download(self, auth: AuthorizationData, request: DownloadRequest) -> SubmittedJob:
        self.calls.append(ApiCall("submit_download", {"request": request}))
        request_id = self._new_job("download")
        return SubmittedJob(request_id, f"tracking-{request_id}")

    async def get_download_status(self, auth: AuthorizationData, request_id: str) -> JobStatusResponse:
        self.calls.append(ApiCall("get_download_status", {"request_id": request_id}))
        return self._status("download", request_id)

    async def get_upload_url(self, auth: AuthorizationData, response_mode: ResponseMode) -> UploadUrl:
        self.calls.append(ApiCall("get_upload_url", {"response_mode": response_mode}))
        request_id = self._new_job("upload")
        return UploadUrl(request_id, f"{self.upload_url}/{request_id}", f"tracking-{request_id}")

    async def get_upload_status(self, auth: AuthorizationData, request_id: str) -> JobStatusResponse:
        self.calls.append(ApiCall("get_upload_status", {"request_id": request_id}))
        return self._status("upload", request_id)

    async def submit_report(self, auth: AuthorizationData, request: ReportRequest) -> SubmittedJob:
        self.calls.append(ApiCall("submit_report", {"request": request}))
        request_id = self._new_job("report")
        return SubmittedJob(request_id, f"tracking-{request_id}")

    async def get_report_status(self, auth: AuthorizationData, request_id: str) -> JobStatusResponse:
        self.calls.append(ApiCall("get_report_status", {"request_id": request_id}))
        return self._status("report", request_id)
