from __future__ import annotations

from dataclasses import dataclass

from bulk_platform.errors import RemoteFaultError
from bulk_platform.services.filesystem.interface import FileSystemInterface
from bulk_platform.services.transfer.interface import FileTransferInterface


@dataclass
class UploadedFile:
    url: str
    path: str
    content: bytes
    headers: dict[str, str]


class MemoryFileTransfer(FileTransferInterface):
    """Serves downloads from a URL -> bytes map and records uploads.

    Set ``upload_error`` to make the next uploads raise it. Set
    ``download_error`` to make downloads raise it after the body is written,
    as a connection dropped mid-transfer would.
    """

    def __init__(self, fs: FileSystemInterface) -> None:
        self._fs = fs
        self.remote_files: dict[str, bytes] = {}
        self.uploads: list[UploadedFile] = []
        self.downloads: list[str] = []
        self.upload_error: Exception | None = None
        self.download_error: Exception | None = None

    async def download_file(self, url: str, path: str) -> None:
        if url not in self.remote_files:
            raise RemoteFaultError(f"No remote file at {url}", status_code=404)
        self.downloads.append(url)
        with self._fs.open(path, "wb") as out:
            out.write(self.remote_files[url])
        if self.download_error is not None:
            raise self.download_error

    async def upload_file(self, url: str, path: str, headers: dict[str, str] | None = None) -> None:
        if self.upload_error is not None:
            raise self.upload_error
        with self._fs.open(path, "rb") as src:
            content = src.read()
        self.uploads.append(UploadedFile(url, path, content, dict(headers or {})))
