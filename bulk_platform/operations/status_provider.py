"""Per job kind: which remote call reports status, and what its vocabulary means.

Every kind maps its own status strings onto ``OperationStatus`` so the
tracking loop is written once.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from bulk_platform.errors import RemoteFaultError
from bulk_platform.operations.status import BulkOperationStatus, JobStatusResponse, OperationStatus
from bulk_platform.services.bulk_api.interface import AuthorizationData, BulkApiInterface

S = OperationStatus

DOWNLOAD_STATUSES: dict[str, OperationStatus] = {
    "Pending": S.PENDING,
    "InProgress": S.IN_PROGRESS,
    "Completed": S.COMPLETED,
    "Failed": S.FAILED,
    "FailedFullSyncRequired": S.FAILED,
    "Expired": S.EXPIRED,
    "Aborted": S.ABORTED,
}

UPLOAD_STATUSES: dict[str, OperationStatus] = {
    "PendingFileUpload": S.PENDING,
    "FileUploaded": S.PENDING,
    "InProgress": S.IN_PROGRESS,
    "Completed": S.COMPLETED,
    "CompletedWithErrors": S.COMPLETED_WITH_ERRORS,
    "Failed": S.FAILED,
    "Expired": S.EXPIRED,
    "Aborted": S.ABORTED,
}

REPORT_STATUSES: dict[str, OperationStatus] = {
    "Pending": S.PENDING,
    "InProgress": S.IN_PROGRESS,
    "Success": S.COMPLETED,
    "Error": S.FAILED,
}


class StatusProvider(ABC):
    kind: str = ""
    statuses: dict[str, OperationStatus] = {}

    @abstractmethod
    async def fetch(self, api: BulkApiInterface, auth: AuthorizationData, request_id: str) -> JobStatusResponse: ...

    def translate(self, response: JobStatusResponse) -> BulkOperationStatus:
        status = self.statuses.get(response.status)
        if status is None:
            raise RemoteFaultError(
                f"Unknown {self.kind} status '{response.status}'",
                details={"status": response.status},
            )
        return BulkOperationStatus(
            status=status,
            percent_complete=100 if status.is_success else response.percent_complete,
            result_file_url=response.result_file_url,
            errors=tuple(response.errors),
            tracking_id=response.tracking_id,
        )

    async def get_status(
        self, api: BulkApiInterface, auth: AuthorizationData, request_id: str
    ) -> BulkOperationStatus:
        return self.translate(await self.fetch(api, auth, request_id))


class DownloadStatusProvider(StatusProvider):
    kind = "download"
    statuses = DOWNLOAD_STATUSES

    async def fetch(self, api: BulkApiInterface, auth: AuthorizationData, request_id: str) -> JobStatusResponse:
        return await api.get_download_status(auth, request_id)


class UploadStatusProvider(StatusProvider):
    kind = "upload"
    statuses = UPLOAD_STATUSES

    async def fetch(self, api: BulkApiInterface, auth: AuthorizationData, request_id: str) -> JobStatusResponse:
        return await api.get_upload_status(auth, request_id)


class ReportStatusProvider(StatusProvider):
    kind = "report"
    statuses = REPORT_STATUSES

    async def fetch(self, api: BulkApiInterface, auth: AuthorizationData, request_id: str) -> JobStatusResponse:
        return await api.get_report_status(auth, request_id)
