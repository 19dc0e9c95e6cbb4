import io
import posixpath
from typing import IO, Any

from bulk_platform.services.filesystem.interface import FileSystemInterface


class _MemoryWriter(io.BytesIO):
    """Buffers writes and stores them in the owning file system on close."""

    def __init__(self, files: dict[str, bytes], path: str) -> None:
        super().__init__()
        self._files = files
        self._path = path

    def close(self) -> None:
        if not self.closed:
            self._files[self._path] = self.getvalue()
        super().close()


def _norm(path: str) -> str:
    return posixpath.normpath(path)


class MemoryFileSystem(FileSystemInterface):
    """In-memory file system for unit testing. Paths are POSIX-style keys."""

    def __init__(self) -> None:
        self._files: dict[str, bytes] = {}
        self._directories: set[str] = set()

    def open(self, path: str, mode: str = "rb", encoding: str | None = None) -> IO[Any]:
        key = _norm(path)
        if mode in ("rb", "r"):
            if key not in self._files:
                raise FileNotFoundError(f"File not found: {path}")
            buffer: io.BytesIO = io.BytesIO(self._files[key])
        elif mode in ("wb", "w"):
            self._directories.add(posixpath.dirname(key))
            buffer = _MemoryWriter(self._files, key)
        else:
            raise ValueError(f"Unsupported mode '{mode}'")
        if "b" in mode:
            return buffer
        return io.TextIOWrapper(buffer, encoding=encoding or "utf-8", newline="")

    def exists(self, path: str) -> bool:
        key = _norm(path)
        return key in self._files or key in self._directories

    def create_directory_if_absent(self, path: str) -> None:
        self._directories.add(_norm(path))

    def list_files(self, directory: str) -> list[str]:
        base = _norm(directory)
        return sorted(k for k in self._files if posixpath.dirname(k) == base)

    def delete_file(self, path: str) -> bool:
        key = _norm(path)
        if key in self._files:
            del self._files[key]
            return True
        return False

    def rename_file(self, source: str, target: str) -> None:
        src = _norm(source)
        if src not in self._files:
            raise FileNotFoundError(f"File not found: {source}")
        self._files[_norm(target)] = self._files.pop(src)

    # Test helpers

    def read_bytes(self, path: str) -> bytes:
        key = _norm(path)
        if key not in self._files:
            raise FileNotFoundError(f"File not found: {path}")
        return self._files[key]

    def write_bytes(self, path: str, data: bytes) -> None:
        key = _norm(path)
        self._directories.add(posixpath.dirname(key))
        self._files[key] = data
