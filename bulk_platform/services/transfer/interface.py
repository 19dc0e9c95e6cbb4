from abc import ABC, abstractmethod


class FileTransferInterface(ABC):
    """Moves bulk files between a URL and the local file system."""

    @abstractmethod
    async def download_file(self, url: str, path: str) -> None:
        """Stream the content at *url* into *path*, replacing it if present."""
        ...

    @abstractmethod
    async def upload_file(self, url: str, path: str, headers: dict[str, str] | None = None) -> None:
        """Send the file at *path* to *url* as a multipart ``file`` field."""
        ...
