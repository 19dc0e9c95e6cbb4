import posixpath
import shutil
import zipfile

from bulk_platform.errors import ArchiveError
from bulk_platform.services.archive.interface import ArchiveInterface
from bulk_platform.services.filesystem.interface import FileSystemInterface


class ZipArchive(ArchiveInterface):
    """Zip archives read and written through the injected file system."""

    def __init__(self, fs: FileSystemInterface) -> None:
        self._fs = fs

    def compress_file(self, source_path: str, archive_path: str) -> None:
        entry_name = posixpath.basename(source_path.replace("\\", "/"))
        with self._fs.open(archive_path, "wb") as out:
            with zipfile.ZipFile(out, "w", compression=zipfile.ZIP_DEFLATED) as zf:
                with self._fs.open(source_path, "rb") as src, zf.open(entry_name, "w") as dst:
                    shutil.copyfileobj(src, dst)

    def extract_single(
        self,
        archive_path: str,
        directory: str,
        file_name: str | None = None,
        overwrite: bool = False,
    ) -> str:
        with self._fs.open(archive_path, "rb") as raw:
            try:
                zf = zipfile.ZipFile(raw)
            except zipfile.BadZipFile as exc:
                raise ArchiveError(f"Not a zip archive: {archive_path}") from exc
            with zf:
                entries = [info for info in zf.infolist() if not info.is_dir()]
                if len(entries) != 1:
                    raise ArchiveError(
                        f"Expected exactly one file in {archive_path}, found {len(entries)}"
                    )
                entry = entries[0]
                name = file_name or posixpath.basename(entry.filename)
                target = posixpath.join(directory, name)
                if self._fs.exists(target) and not overwrite:
                    raise FileExistsError(f"File already exists: {target}")
                self._fs.create_directory_if_absent(directory)
                with zf.open(entry) as src, self._fs.open(target, "wb") as dst:
                    shutil.copyfileobj(src, dst)
        return target
