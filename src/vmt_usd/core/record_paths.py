from pathlib import Path

from .exceptions import ValidationError
from .models import DEFAULT_RECORD_EXTENSION


def build_record_path(
    source_file: Path,
    source_root: Path,
    destination_root: Path,
    extension: str = DEFAULT_RECORD_EXTENSION,
) -> Path:
    """Map a VMT file onto its material record path.

    The path relative to the source root is kept and re-rooted under the
    destination root; only the extension changes.

    Args:
        source_file: VMT file path.
        source_root: Folder the batch was started from.
        destination_root: Root of the material record tree.
        extension: Record file extension.

    Returns:
        Path: Material record path.

    Raises:
        ValidationError: If source_file is not inside source_root.
    """
    source_file = Path(source_file)
    try:
        relative = source_file.relative_to(Path(source_root))
    except ValueError as exc:
        raise ValidationError(
            f"Source file is outside the source folder: {source_file}",
            details={"path": str(source_file), "source_root": str(source_root)},
        ) from exc
    return Path(destination_root) / relative.with_suffix(extension)
