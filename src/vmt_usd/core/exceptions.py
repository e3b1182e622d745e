"""Errors raised while converting VMT materials."""

from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union


class VmtUSDError(Exception):
    """Root of the package's error hierarchy.

    ``message`` is the text shown to users; ``details`` holds structured
    context (paths, offending values) for logs and tests.
    """

    def __init__(
        self, message: str, details: Optional[Mapping[str, Any]] = None
    ) -> None:
        super().__init__(message)
        self.message = message
        self._details: Dict[str, Any] = dict(details or {})

    @property
    def details(self) -> Mapping[str, Any]:
        return self._details

    def __str__(self) -> str:
        if self._details:
            return f"{self.message} (details={self._details!r})"
        return self.message


class VmtParseError(VmtUSDError):
    """A VMT file could not be read or decoded."""

    pass


class NoInputFilesError(VmtUSDError):
    """Raised when a source folder contains no VMT files."""

    def __init__(self, source_dir: Union[str, Path]) -> None:
        super().__init__(
            "No .vmt files found in the selected folder.",
            details={"source_dir": str(source_dir)},
        )


class MaterialRecordError(VmtUSDError):
    """Raised when a material record cannot be loaded or written."""

    pass


class ValidationError(VmtUSDError):
    """An input path or value is outside what the converter accepts."""

    pass


class FileSystemError(VmtUSDError):
    """Listing, reading or creating files on disk failed."""

    pass


class ConfigurationError(VmtUSDError):
    """Conversion settings or the shader registry are invalid."""

    pass
