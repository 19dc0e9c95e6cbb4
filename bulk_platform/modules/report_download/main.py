"""Report Download job module.

Submits a report request, waits for it and saves the report under the
reporting working directory (or ``result-dir``).

Args:
    report-type: Report to run (``CampaignPerformanceReport``)
    columns:     Comma-separated report columns
    account-ids: Comma-separated account ids (defaults to the configured account)
    format:      ``Csv`` | ``Tsv`` | ``Xml``
    report-name: Optional report display name
    result-dir:  Directory for the report file
    result-file: Report file name
    overwrite:   Replace an existing report file
"""

from __future__ import annotations

from bulk_platform.config.context import ModuleConfig
from bulk_platform.errors import BulkError, ValidationError
from bulk_platform.manager.parameters import ReportingDownloadParameters
from bulk_platform.manager.reporting_service_manager import ReportingServiceManager
from bulk_platform.modules.base import EXIT_OK, TrackingJobModule
from bulk_platform.services.bulk_api.interface import ReportRequest
from bulk_platform.services.logger.factory import LoggerFactory


class ReportDownloadModule(TrackingJobModule):
    def __init__(
        self,
        config: ModuleConfig,
        logger: LoggerFactory,
        manager: ReportingServiceManager,
    ) -> None:
        super().__init__()
        self.config = config
        self.logger = logger
        self.manager = manager
        self.report_path: str | None = None

    async def initialize(self) -> None:
        await super().initialize()
        self.log = self.logger.create()

    async def validate(self) -> None:
        report_type = self.config.get("report-type") or ""
        columns = self.config.get_list("columns")
        if not report_type:
            self.log.error("Validation failed: report-type is required", module="report_download")
            raise ValidationError("report-type is required")
        if not columns:
            self.log.error("Validation failed: columns are required", module="report_download")
            raise ValidationError("at least one report column is required")
        try:
            account_ids = [int(aid) for aid in self.config.get_list("account-ids")]
        except ValueError as exc:
            self.log.error("Validation failed", module="report_download", error=str(exc))
            raise ValidationError(f"account-ids must be integers: {exc}") from exc
        if not account_ids and self.manager.authorization.account_id is not None:
            account_ids = [self.manager.authorization.account_id]
        self.request = ReportRequest(
            report_type=report_type,
            columns=columns,
            account_ids=account_ids,
            format=self.config.get("format", "Csv"),
            report_name=self.config.get("report-name") or None,
        )

    async def execute(self) -> int:
        parameters = ReportingDownloadParameters(
            report_request=self.request,
            result_file_directory=self.config.get("result-dir") or None,
            result_file_name=self.config.get("result-file") or None,
            overwrite_result_file=bool(self.config.get("overwrite", False)),
        )
        try:
            self.report_path = await self.manager.download_file(
                parameters, self.report_progress, self.cancel_event
            )
        except BulkError as exc:
            return self.exit_code_for(exc)
        self.log.info("Report download complete", report_type=self.request.report_type, path=self.report_path)
        return EXIT_OK


module_class = ReportDownloadModule
