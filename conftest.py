"""Root-level pytest fixtures: in-memory services wired the way the CLI runner wires them."""

from __future__ import annotations

import io
import zipfile

import pytest

from bulk_platform.config.settings import BulkSettings
from bulk_platform.manager.bulk_service_manager import BulkServiceManager
from bulk_platform.manager.reporting_service_manager import ReportingServiceManager
from bulk_platform.services.archive.zip_archive import ZipArchive
from bulk_platform.services.bulk_api.interface import AuthorizationData
from bulk_platform.services.bulk_api.memory_api import MemoryBulkApi
from bulk_platform.services.filesystem.memory_filesystem import MemoryFileSystem
from bulk_platform.services.logger.memory_logger import MemoryLogger
from bulk_platform.services.metrics.memory_metrics import MemoryMetrics
from bulk_platform.services.transfer.memory_transfer import MemoryFileTransfer

WORKING_DIRECTORY = "/work"


def zip_bytes(entry_name: str, content: str | bytes) -> bytes:
    """A zip archive holding a single entry, as the service returns result files."""
    if isinstance(content, str):
        content = content.encode("utf-8")
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        zf.writestr(entry_name, content)
    return buf.getvalue()


def unzip_single(data: bytes) -> tuple[str, bytes]:
    with zipfile.ZipFile(io.BytesIO(data)) as zf:
        names = zf.namelist()
        assert len(names) == 1, names
        return names[0], zf.read(names[0])


@pytest.fixture
def fs() -> MemoryFileSystem:
    return MemoryFileSystem()


@pytest.fixture
def log() -> MemoryLogger:
    return MemoryLogger()


@pytest.fixture
def metrics() -> MemoryMetrics:
    return MemoryMetrics()


@pytest.fixture
def api() -> MemoryBulkApi:
    return MemoryBulkApi()


@pytest.fixture
def transfer(fs: MemoryFileSystem) -> MemoryFileTransfer:
    return MemoryFileTransfer(fs)


@pytest.fixture
def archive(fs: MemoryFileSystem) -> ZipArchive:
    return ZipArchive(fs)


@pytest.fixture
def auth() -> AuthorizationData:
    return AuthorizationData(
        customer_id=100,
        account_id=200,
        developer_token="dev-token",
        auth_token="access-token",
    )


@pytest.fixture
def settings(auth: AuthorizationData) -> BulkSettings:
    return BulkSettings(
        authorization=auth,
        poll_interval=0,
        status_retry_limit=2,
        working_directory=WORKING_DIRECTORY,
    )


@pytest.fixture
def bulk_manager(settings, api, transfer, archive, fs, log, metrics) -> BulkServiceManager:
    return BulkServiceManager(settings, api, transfer, archive, fs, log, metrics)


@pytest.fixture
def reporting_manager(settings, api, transfer, archive, fs, log, metrics) -> ReportingServiceManager:
    return ReportingServiceManager(settings, api, transfer, archive, fs, log, metrics)


@pytest.fixture
def make_zip():
    return zip_bytes


@pytest.fixture
def read_zip():
    return unzip_single
