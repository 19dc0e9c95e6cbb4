from abc import ABC, abstractmethod


class ArchiveInterface(ABC):
    """Compression of upload files and extraction of result archives."""

    @abstractmethod
    def compress_file(self, source_path: str, archive_path: str) -> None:
        """Write an archive at *archive_path* holding *source_path* as its only entry."""
        ...

    @abstractmethod
    def extract_single(
        self,
        archive_path: str,
        directory: str,
        file_name: str | None = None,
        overwrite: bool = False,
    ) -> str:
        """Extract the archive's single payload entry into *directory*.

        The entry keeps its own name unless *file_name* is given. Returns the
        extracted path. Raises ArchiveError unless the archive holds exactly
        one file, and FileExistsError when the target exists and *overwrite*
        is false.
        """
        ...
