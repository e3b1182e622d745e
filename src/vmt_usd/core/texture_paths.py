"""Helpers for rewriting VMT texture paths into asset lookups."""

import os
from pathlib import Path, PurePosixPath
from typing import Optional, Tuple

from .models import DEFAULT_IMAGE_EXTENSION, DEFAULT_LEGACY_EXTENSION


def normalize_separators(path: str) -> str:
    return str(path).replace("\\", "/")


def substitute_legacy_extension(
    path: str,
    legacy_extension: str = DEFAULT_LEGACY_EXTENSION,
    image_extension: str = DEFAULT_IMAGE_EXTENSION,
) -> Tuple[str, bool]:
    """Replace a trailing legacy texture extension with an image extension.

    Args:
        path: Texture path as written in the VMT.
        legacy_extension: Extension to replace, matched case-insensitively.
        image_extension: Extension put in its place.

    Returns:
        Tuple[str, bool]: The rewritten path and whether it changed.
    """
    if path.lower().endswith(legacy_extension.lower()):
        return f"{path[: -len(legacy_extension)]}{image_extension}", True
    return path, False


def texture_file_name(path: str) -> str:
    """Return the file name part of a texture path, either separator.

    A path ending in a separator names a folder and has no file name.
    """
    normalized = normalize_separators(path)
    if not normalized or normalized.endswith("/"):
        return ""
    return PurePosixPath(normalized).name


def texture_lookup_name(path: str) -> str:
    """Return the bare file name, without directory or extension.

    Examples:
        >>> texture_lookup_name("brick\\\\diffuse.png")
        'diffuse'
        >>> texture_lookup_name("brick/diffuse")
        'diffuse'
        >>> texture_lookup_name("brick/")
        ''
    """
    name = texture_file_name(path)
    return PurePosixPath(name).stem if name else ""


def texture_directory(path: str) -> str:
    """Return the lowercase directory part of a texture path, or ''."""
    parent = PurePosixPath(normalize_separators(path).strip("/")).parent
    parent_str = parent.as_posix()
    if parent_str == ".":
        return ""
    return parent_str.lower()


def relative_asset_path(target: Path, anchor_dir: Path) -> str:
    """Express target relative to anchor_dir as a USD asset path.

    Args:
        target: File to reference.
        anchor_dir: Directory of the referencing layer.

    Returns:
        str: './'-prefixed posix path, or an absolute posix path when no
        relative path exists (different drives).
    """
    try:
        relative = os.path.relpath(str(target), str(anchor_dir))
    except ValueError:
        return Path(target).as_posix()
    normalized = normalize_separators(relative)
    if normalized.startswith("../"):
        return normalized
    return f"./{normalized}"


def matches_directory(candidate: Path, directory: Optional[str]) -> bool:
    """Whether candidate's parent folders end with the given directory."""
    if not directory:
        return False
    parent = normalize_separators(str(Path(candidate).parent)).lower().rstrip("/")
    return parent == directory or parent.endswith(f"/{directory}")
