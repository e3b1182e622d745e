"""Disk access used by the converter, behind a protocol tests can replace."""

from pathlib import Path
from typing import List, Protocol

from .exceptions import FileSystemError


class FileSystem(Protocol):
    """Disk operations needed to enumerate, read and place material files.

    Implementations raise ``FileSystemError`` instead of ``OSError`` so the
    batch converter can report a failed file and move on.
    """

    def iter_files(self, root: Path, suffix: str) -> List[Path]:
        """Files below root whose suffix matches, case-insensitively, sorted."""
        ...

    def read_text(self, path: Path) -> str:
        ...

    def path_exists(self, path: Path) -> bool:
        ...

    def ensure_directory(self, path: Path) -> Path:
        """Create path and its parents when missing and return it."""
        ...


def _failure(message: str, path: Path, exc: BaseException) -> FileSystemError:
    return FileSystemError(
        message,
        details={"path": str(path), "error": str(exc), "type": type(exc).__name__},
    )


class DefaultFileSystem:
    """FileSystem backed by ``pathlib``."""

    def iter_files(self, root: Path, suffix: str) -> List[Path]:
        if not root.is_dir():
            raise FileSystemError(
                f"Not a directory: {root}", details={"path": str(root)}
            )
        wanted = suffix.lower()
        try:
            matches = [
                candidate
                for candidate in root.rglob("*")
                if candidate.suffix.lower() == wanted and candidate.is_file()
            ]
        except OSError as exc:
            raise _failure(f"Failed to list files in {root}", root, exc) from exc
        return sorted(matches)

    def read_text(self, path: Path) -> str:
        # utf-8-sig drops the BOM some material editors write.
        try:
            return path.read_text(encoding="utf-8-sig")
        except (OSError, UnicodeDecodeError) as exc:
            raise _failure(f"Failed to read {path}", path, exc) from exc

    def path_exists(self, path: Path) -> bool:
        return path.exists()

    def ensure_directory(self, path: Path) -> Path:
        try:
            path.mkdir(parents=True, exist_ok=True)
        except (OSError, ValueError) as exc:
            raise _failure(f"Failed to create directory: {path}", path, exc) from exc
        return path
