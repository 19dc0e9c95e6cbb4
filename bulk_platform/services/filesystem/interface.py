from abc import ABC, abstractmethod
from typing import IO, Any


class FileSystemInterface(ABC):
    """File operations on bulk files, archives and the working directory.

    Every mutating call is idempotent when the target state already holds:
    creating an existing directory or deleting a missing file is not an error.
    """

    @abstractmethod
    def open(self, path: str, mode: str = "rb", encoding: str | None = None) -> IO[Any]:
        """Open *path* in one of ``rb``, ``wb``, ``r``, ``w``.

        Text modes use universal newlines off (``newline=""``) so the csv
        module sees the file's own line endings. Raises FileNotFoundError
        when reading a missing file.
        """
        ...

    @abstractmethod
    def exists(self, path: str) -> bool: ...

    @abstractmethod
    def create_directory_if_absent(self, path: str) -> None: ...

    @abstractmethod
    def list_files(self, directory: str) -> list[str]:
        """Paths of the regular files directly inside *directory*, sorted."""
        ...

    @abstractmethod
    def delete_file(self, path: str) -> bool:
        """Delete a file. Returns True if deleted, False if it didn't exist."""
        ...

    @abstractmethod
    def rename_file(self, source: str, target: str) -> None:
        """Move *source* to *target*, replacing *target* if present."""
        ...
