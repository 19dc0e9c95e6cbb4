from __future__ import annotations

import asyncio
import posixpath

import aiohttp

from bulk_platform.errors import TransportError
from bulk_platform.services.filesystem.interface import FileSystemInterface
from bulk_platform.services.http_errors import error_for_status
from bulk_platform.services.secrets.interface import SecretsInterface
from bulk_platform.services.transfer.interface import FileTransferInterface

CHUNK_SIZE = 64 * 1024


class AiohttpFileTransfer(FileTransferInterface):
    """File transfer over HTTP.

    Config (via secrets):
        BULK_TRANSFER_TIMEOUT_SECONDS - total timeout per transfer (default 600).
    """

    def __init__(self, fs: FileSystemInterface, secrets: SecretsInterface) -> None:
        self._fs = fs
        self._timeout = aiohttp.ClientTimeout(
            total=float(secrets.get_or_default("BULK_TRANSFER_TIMEOUT_SECONDS", "600"))
        )

    async def download_file(self, url: str, path: str) -> None:
        try:
            async with aiohttp.ClientSession(timeout=self._timeout) as session:
                async with session.get(url) as response:
                    if response.status != 200:
                        raise error_for_status(response.status, url)
                    with self._fs.open(path, "wb") as out:
                        async for chunk in response.content.iter_chunked(CHUNK_SIZE):
                            out.write(chunk)
        except asyncio.TimeoutError as exc:
            raise TransportError(f"Timed out downloading {url}") from exc
        except aiohttp.ClientError as exc:
            raise TransportError(f"Download from {url} failed: {exc}") from exc

    async def upload_file(self, url: str, path: str, headers: dict[str, str] | None = None) -> None:
        with self._fs.open(path, "rb") as src:
            payload = src.read()
        form = aiohttp.FormData()
        form.add_field(
            "file",
            payload,
            filename=posixpath.basename(path),
            content_type="application/octet-stream",
        )
        try:
            async with aiohttp.ClientSession(timeout=self._timeout) as session:
                async with session.post(url, data=form, headers=headers or {}) as response:
                    if response.status >= 300:
                        raise error_for_status(response.status, url)
        except asyncio.TimeoutError as exc:
            raise TransportError(f"Timed out uploading {path}") from exc
        except aiohttp.ClientError as exc:
            raise TransportError(f"Upload to {url} failed: {exc}") from exc
