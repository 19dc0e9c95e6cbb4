from __future__ import annotations

from typing import TypeVar

from bulk_platform.config.settings import BulkSettings
from bulk_platform.errors import ValidationError
from bulk_platform.operations.operation import BulkOperation
from bulk_platform.services.archive.interface import ArchiveInterface
from bulk_platform.services.bulk_api.interface import AuthorizationData, BulkApiInterface
from bulk_platform.services.filesystem.interface import FileSystemInterface
from bulk_platform.services.logger.interface import LoggingInterface
from bulk_platform.services.metrics.interface import MetricsInterface
from bulk_platform.services.transfer.interface import FileTransferInterface

OperationT = TypeVar("OperationT", bound=BulkOperation)


class ServiceManagerBase:
    """Wiring shared by the bulk and reporting managers."""

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
        self.settings = settings
        self.poll_interval = settings.poll_interval
        self.status_retry_limit = settings.status_retry_limit
        self.working_directory = settings.working_directory
        self._api = api
        self._transfer = transfer
        self._archive = archive
        self._fs = fs
        self._log = log
        self._metrics = metrics

    @property
    def authorization(self) -> AuthorizationData:
        return self.settings.authorization

    def _validate_authorization(self) -> None:
        self.authorization.validate()

    @staticmethod
    def _require(value: object, name: str) -> None:
        if value is None:
            raise ValidationError(f"{name} must not be None")

    def _create_working_directory(self) -> None:
        self._fs.create_directory_if_absent(self.working_directory)

    def _operation(self, cls: type[OperationT], request_id: str, tracking_id: str | None) -> OperationT:
        return cls(
            request_id,
            self.authorization,
            self._api,
            self._transfer,
            self._archive,
            self._fs,
            self._log,
            metrics=self._metrics,
            tracking_id=tracking_id,
            poll_interval=self.poll_interval,
            status_retry_limit=self.status_retry_limit,
        )

    async def download_result(
        self,
        operation: BulkOperation,
        directory: str | None,
        file_name: str | None,
        overwrite: bool,
    ) -> str:
        self._create_working_directory()
        return await operation.download_result_file(
            directory or self.working_directory, file_name, decompress=True, overwrite=overwrite
        )
