"""Bulk Upload job module.

Uploads a bulk file, waits for the service to apply it and reads the result
file back, logging every entity the service rejected.

Args:
    file-path:      Bulk file to upload (read via FileSystemInterface)
    response-mode:  ``ErrorsOnly`` | ``ErrorsAndResults``
    compress:       Zip the file before sending it
    rename:         Rename the file to ``upload_<request id>.csv`` before sending
    request-id:     Resume an earlier upload instead of sending a file
    result-dir:     Directory for the result file (defaults to the working directory)
    result-file:    Result file name
    overwrite:      Replace an existing result file
    fail-on-errors: Exit non-zero when any uploaded entity was rejected
    cleanup:        Empty the working directory when done, result file included
"""

from __future__ import annotations

from bulk_platform.bulk.file_type import BulkFileType
from bulk_platform.config.context import ModuleConfig
from bulk_platform.errors import BulkError, ValidationError
from bulk_platform.manager.bulk_service_manager import BulkServiceManager
from bulk_platform.manager.parameters import FileUploadParameters, SubmitUploadParameters
from bulk_platform.modules.base import EXIT_FAILED, EXIT_OK, TrackingJobModule
from bulk_platform.services.bulk_api.interface import ResponseMode
from bulk_platform.services.logger.factory import LoggerFactory
from bulk_platform.services.metrics.interface import MetricsInterface


class BulkUploadModule(TrackingJobModule):
    def __init__(
        self,
        config: ModuleConfig,
        logger: LoggerFactory,
        manager: BulkServiceManager,
        metrics: MetricsInterface,
    ) -> None:
        super().__init__()
        self.config = config
        self.logger = logger
        self.manager = manager
        self.metrics = metrics
        self.rejected = 0
        self.cleanup = False

    async def initialize(self) -> None:
        await super().initialize()
        self.log = self.logger.create()
        self.file_path: str = self.config.get("file-path") or ""
        self.request_id: str | None = self.config.get("request-id") or None
        self.result_dir: str | None = self.config.get("result-dir") or None
        self.result_file: str | None = self.config.get("result-file") or None
        self.overwrite = bool(self.config.get("overwrite", False))
        self.compress = bool(self.config.get("compress", True))
        self.rename = bool(self.config.get("rename", False))
        self.fail_on_errors = bool(self.config.get("fail-on-errors", False))
        self.cleanup = bool(self.config.get("cleanup", False))

    async def validate(self) -> None:
        if not self.file_path and self.request_id is None:
            self.log.error("Validation failed: file-path is required", module="bulk_upload")
            raise ValidationError("file-path is required")
        try:
            self.response_mode = ResponseMode(self.config.get("response-mode", "ErrorsAndResults"))
        except ValueError as exc:
            self.log.error("Validation failed", module="bulk_upload", error=str(exc))
            raise ValidationError(str(exc)) from exc

    async def execute(self) -> int:
        try:
            path = await self._upload()
        except BulkError as exc:
            return self.exit_code_for(exc)

        total = 0
        with self.manager.open_reader(path, BulkFileType.CSV) as reader:
            for entity in reader:
                total += 1
                if entity.has_errors:
                    self.rejected += 1
                    for error in entity.errors:
                        self.log.warn(
                            "Entity rejected",
                            record_type=entity.record_type,
                            error_number=error.number,
                            error=error.message,
                        )
        self.metrics.gauge("bulk_upload_rejected_entities", self.rejected)
        self.log.info("Bulk upload complete", result_file=path, entities=total, rejected=self.rejected)
        if self.rejected and self.fail_on_errors:
            return EXIT_FAILED
        return EXIT_OK

    async def teardown(self) -> None:
        if self.cleanup:
            self.manager.cleanup_temp_files()
        await super().teardown()

    async def _upload(self) -> str:
        if self.request_id is None:
            parameters = FileUploadParameters(
                submit_upload_parameters=SubmitUploadParameters(
                    upload_file_path=self.file_path,
                    response_mode=self.response_mode,
                    rename_upload_file_to_match_request_id=self.rename,
                    compress_upload_file=self.compress,
                ),
                result_file_directory=self.result_dir,
                result_file_name=self.result_file,
                overwrite_result_file=self.overwrite,
            )
            return await self.manager.upload_file(parameters, self.report_progress, self.cancel_event)

        self.log.info("Resuming bulk upload", request_id=self.request_id)
        async with self.manager.resume_upload_operation(self.request_id) as operation:
            await operation.track(self.report_progress, self.cancel_event)
            return await self.manager.download_result(
                operation, self.result_dir, self.result_file, self.overwrite
            )


module_class = BulkUploadModule
