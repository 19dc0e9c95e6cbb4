"""Bulk Download job module.

Downloads account or campaign entities as a bulk file, reads the result back
and logs how many entities of each record type it holds. With ``request-id``
the job resumes tracking of a download submitted earlier instead of
submitting a new one.

Args:
    entities:       Comma-separated download entities (``Campaigns,CampaignTargets``)
    campaign-ids:   Comma-separated campaign ids; omit for the whole account
    data-scope:     ``EntityData`` | ``EntityPerformanceData``
    file-type:      ``Csv`` | ``Tsv``
    last-sync-time: ISO timestamp for an incremental download
    request-id:     Resume an earlier download instead of submitting
    result-dir:     Directory for the result file (defaults to the working directory)
    result-file:    Result file name (defaults to the name inside the result archive)
    overwrite:      Replace an existing result file
"""

from __future__ import annotations

from collections import Counter
from datetime import datetime, timezone

from bulk_platform.bulk.file_type import BulkFileType
from bulk_platform.bulk.reader import BulkFileReader
from bulk_platform.config.context import ModuleConfig
from bulk_platform.errors import BulkError, ValidationError
from bulk_platform.manager.bulk_service_manager import BulkServiceManager
from bulk_platform.manager.parameters import DownloadParameters, SubmitDownloadParameters
from bulk_platform.modules.base import EXIT_OK, TrackingJobModule
from bulk_platform.services.bulk_api.interface import DataScope, DownloadEntity
from bulk_platform.services.logger.factory import LoggerFactory
from bulk_platform.services.metrics.interface import MetricsInterface


class BulkDownloadModule(TrackingJobModule):
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
        self.entity_counts: Counter[str] = Counter()

    async def initialize(self) -> None:
        await super().initialize()
        self.log = self.logger.create()
        self.request_id: str | None = self.config.get("request-id") or None
        self.result_dir: str | None = self.config.get("result-dir") or None
        self.result_file: str | None = self.config.get("result-file") or None
        self.overwrite = bool(self.config.get("overwrite", False))

    async def validate(self) -> None:
        try:
            self.file_type = BulkFileType(self.config.get("file-type", "Csv"))
            self.data_scope = DataScope(self.config.get("data-scope", "EntityData"))
            self.entities = [
                DownloadEntity(name) for name in self.config.get_list("entities", ["Campaigns"])
            ]
            raw_ids = self.config.get_list("campaign-ids")
            self.campaign_ids = [int(cid) for cid in raw_ids] if raw_ids else None
            raw_sync = self.config.get("last-sync-time")
            self.last_sync_time = datetime.fromisoformat(raw_sync) if raw_sync else None
            if self.last_sync_time is not None and self.last_sync_time.tzinfo is None:
                self.last_sync_time = self.last_sync_time.replace(tzinfo=timezone.utc)
        except ValueError as exc:
            self.log.error("Validation failed", module="bulk_download", error=str(exc))
            raise ValidationError(str(exc)) from exc

    async def execute(self) -> int:
        try:
            reader = await self._download()
        except BulkError as exc:
            return self.exit_code_for(exc)

        with reader:
            for entity in reader:
                self.entity_counts[entity.record_type] += 1
                if entity.has_errors:
                    self.log.warn(
                        "Entity has errors",
                        record_type=entity.record_type,
                        errors=[error.message for error in entity.errors],
                    )
        for record_type, count in sorted(self.entity_counts.items()):
            self.metrics.gauge("bulk_download_entities", count, tags={"record_type": record_type})
        self.log.info(
            "Bulk download complete",
            entities=sum(self.entity_counts.values()),
            record_types=len(self.entity_counts),
        )
        return EXIT_OK

    async def _download(self) -> BulkFileReader:
        if self.request_id is None:
            parameters = DownloadParameters(
                submit_download_parameters=SubmitDownloadParameters(
                    entities=self.entities,
                    file_type=self.file_type,
                    data_scope=self.data_scope,
                    campaign_ids=self.campaign_ids,
                    last_sync_time=self.last_sync_time,
                ),
                result_file_directory=self.result_dir,
                result_file_name=self.result_file,
                overwrite_result_file=self.overwrite,
            )
            return await self.manager.download_entities(
                parameters, self.report_progress, self.cancel_event
            )

        self.log.info("Resuming bulk download", request_id=self.request_id)
        async with self.manager.resume_download_operation(self.request_id) as operation:
            await operation.track(self.report_progress, self.cancel_event)
            path = await self.manager.download_result(
                operation, self.result_dir, self.result_file, self.overwrite
            )
        return self.manager.open_reader(path, self.file_type)


module_class = BulkDownloadModule
