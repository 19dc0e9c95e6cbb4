import os
from pathlib import Path
from typing import IO, Any

from bulk_platform.services.filesystem.interface import FileSystemInterface
from bulk_platform.services.secrets.interface import SecretsInterface

_MODES = ("rb", "wb", "r", "w")


class LocalFileSystem(FileSystemInterface):
    """File system backed by local disk.

    Config (via secrets):
        FS_LOCAL_ROOT - base directory for relative paths. Unset means
                        relative paths resolve against the process cwd.
                        Absolute paths are always used as given.
    """

    def __init__(self, secrets: SecretsInterface) -> None:
        root = secrets.get("FS_LOCAL_ROOT")
        self._root = Path(root) if root else None

    def _resolve(self, path: str) -> Path:
        """Resolve a path against root, rejecting traversal attempts."""
        if ".." in Path(path).parts:
            raise ValueError(f"Path traversal not allowed: {path}")
        if self._root is None:
            return Path(path)
        return self._root / path

    def open(self, path: str, mode: str = "rb", encoding: str | None = None) -> IO[Any]:
        if mode not in _MODES:
            raise ValueError(f"Unsupported mode '{mode}' (available: {', '.join(_MODES)})")
        full = self._resolve(path)
        if "w" in mode:
            full.parent.mkdir(parents=True, exist_ok=True)
        if "b" in mode:
            return open(full, mode)
        return open(full, mode, encoding=encoding or "utf-8", newline="")

    def exists(self, path: str) -> bool:
        return self._resolve(path).exists()

    def create_directory_if_absent(self, path: str) -> None:
        self._resolve(path).mkdir(parents=True, exist_ok=True)

    def list_files(self, directory: str) -> list[str]:
        target = self._resolve(directory)
        if not target.is_dir():
            return []
        return sorted(
            os.path.join(directory, p.name) for p in target.iterdir() if p.is_file()
        )

    def delete_file(self, path: str) -> bool:
        full = self._resolve(path)
        if full.is_file():
            full.unlink()
            return True
        return False

    def rename_file(self, source: str, target: str) -> None:
        src = self._resolve(source)
        if not src.exists():
            raise FileNotFoundError(f"File not found: {source}")
        dst = self._resolve(target)
        dst.parent.mkdir(parents=True, exist_ok=True)
        os.replace(src, dst)
