"""Report jobs run through the same operation state machine as bulk jobs."""

from __future__ import annotations

import asyncio
import os

from bulk_platform.config.settings import BulkSettings
from bulk_platform.errors import ValidationError
from bulk_platform.manager.base import ServiceManagerBase
from bulk_platform.manager.parameters import ReportingDownloadParameters
from bulk_platform.operations.operation import ProgressCallback, ReportingDownloadOperation
from bulk_platform.services.archive.interface import ArchiveInterface
from bulk_platform.services.bulk_api.interface import BulkApiInterface, ReportRequest
from bulk_platform.services.filesystem.interface import FileSystemInterface
from bulk_platform.services.logger.interface import LoggingInterface
from bulk_platform.services.metrics.interface import MetricsInterface
from bulk_platform.services.transfer.interface import FileTransferInterface


class ReportingServiceManager(ServiceManagerBase):
    """Downloads reports into ``<working directory>/Reporting`` unless told otherwise."""

    def __init__(
        self,
        settings: BulkSettings,
        api: BulkApiInterface,
        transfer: FileTransferInterface,
        archive: ArchiveInterface,
        fs: FileSystemInterface,
        log: LoggingInterface,
        metrics: MetricsInterface,
    ) -> None:
        super().__init__(settings, api, transfer, archive, fs, log, metrics)
        self.working_directory = os.path.join(settings.working_directory, "Reporting")

    async def submit_download(self, report_request: ReportRequest) -> ReportingDownloadOperation:
        self._require(report_request, "Report request")
        self._validate_authorization()
        return await self._submit(report_request)

    async def _submit(self, report_request: ReportRequest) -> ReportingDownloadOperation:
        job = await self._api.submit_report(self.authorization, report_request)
        self._log.info("Submitted report", request_id=job.request_id, report_type=report_request.report_type)
        return self._operation(ReportingDownloadOperation, job.request_id, job.tracking_id)

    async def download_file(
        self,
        parameters: ReportingDownloadParameters,
        progress: ProgressCallback | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> str:
        self._require(parameters, "Reporting download parameters")
        self._require(parameters.report_request, "Report request")
        assert parameters.report_request is not None
        self._validate_authorization()
        async with await self._submit(parameters.report_request) as operation:
            await operation.track(progress, cancel_event)
            return await self.download_result(
                operation,
                parameters.result_file_directory,
                parameters.result_file_name,
                parameters.overwrite_result_file,
            )

    def resume_download_operation(
        self, request_id: str, tracking_id: str | None = None
    ) -> ReportingDownloadOperation:
        if not request_id:
            raise ValidationError("request_id must not be empty")
        self._validate_authorization()
        return self._operation(ReportingDownloadOperation, request_id, tracking_id)
