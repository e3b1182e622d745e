import logging
import re
from pathlib import Path
from typing import Dict, Optional

from .exceptions import FileSystemError, VmtParseError
from .filesystem import DefaultFileSystem, FileSystem
from .models import ParsedMaterial, TextureReference
from .texture_keys import vmt_key_slots


logger = logging.getLogger(__name__)


def _key_pattern(key: str) -> "re.Pattern[str]":
    # "$key" "value" or $key "value"; the value is captured non-greedily.
    return re.compile(rf'"?{re.escape(key)}"?\s+"(.*?)"', re.IGNORECASE)


_KEY_PATTERNS = [
    (slot, _key_pattern(key)) for key, slot in vmt_key_slots().items()
]


def parse_vmt(text: str) -> Dict[str, str]:
    """Extract texture paths from VMT text.

    Only the first occurrence of each recognized key is used; keys that do not
    appear are absent from the result.

    Args:
        text: Raw VMT file contents.

    Returns:
        Dict[str, str]: Mapping of slot name to the raw texture path.
    """
    textures: Dict[str, str] = {}
    for slot, pattern in _KEY_PATTERNS:
        match = pattern.search(text)
        if match:
            textures[slot] = match.group(1)
    return textures


def read_vmt(path: Path, filesystem: Optional[FileSystem] = None) -> ParsedMaterial:
    """Read and parse a VMT file.

    Args:
        path: VMT file to read.
        filesystem: Optional file system implementation.

    Returns:
        ParsedMaterial: The material name, source path and texture references.

    Raises:
        VmtParseError: If the file cannot be read or decoded.
    """
    fs = filesystem or DefaultFileSystem()
    path = Path(path)
    try:
        text = fs.read_text(path)
    except FileSystemError as exc:
        raise VmtParseError(
            f"Failed to read VMT file: {path.name}",
            details={"path": str(path), "error": exc.details.get("error", str(exc))},
        ) from exc

    raw_textures = parse_vmt(text)
    logger.debug("Parsed %d texture reference(s) from %s", len(raw_textures), path)
    return ParsedMaterial(
        name=path.stem,
        source_path=path,
        textures={
            slot: TextureReference(slot=slot, raw_path=raw_path)
            for slot, raw_path in raw_textures.items()
        },
    )
