import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, Optional, Tuple, Union

from .exceptions import ConfigurationError
from .texture_keys import DEFAULT_SHADER_NAME


USD_EXTENSIONS = (".usda", ".usd", ".usdc")
DEFAULT_RECORD_EXTENSION = ".usda"
DEFAULT_LEGACY_EXTENSION = ".vtf"
DEFAULT_IMAGE_EXTENSION = ".png"
DEFAULT_MAX_LOG_CHARS = 5000

PathLike = Union[str, Path]


def _normalize_extension(value: str, field_name: str) -> str:
    normalized = str(value).strip().lower()
    if normalized and not normalized.startswith("."):
        normalized = f".{normalized}"
    if len(normalized) < 2 or "/" in normalized or "\\" in normalized:
        raise ConfigurationError(
            "Invalid file extension.",
            details={"field": field_name, "value": value},
        )
    return normalized


@dataclass(frozen=True)
class ConvertSettings:
    """Configuration for a VMT conversion run.

    Attributes:
        source_dir: Folder searched recursively for VMT files.
        destination_dir: Root of the material record tree. Defaults to the
                         source folder so records land next to their VMT.
        texture_dirs: Folders scanned for converted texture images. Defaults
                      to the source folder, plus the destination root when
                      records go elsewhere.
        default_shader: Registered shader name used for new records.
        record_extension: File extension of material records.
        legacy_extension: Texture container extension rewritten on lookup.
        image_extension: Extension substituted for the legacy one.
        max_log_chars: Size ceiling of the conversion log.
    """

    source_dir: Path
    destination_dir: Optional[Path] = None
    texture_dirs: Tuple[Path, ...] = ()
    default_shader: str = DEFAULT_SHADER_NAME
    record_extension: str = DEFAULT_RECORD_EXTENSION
    legacy_extension: str = DEFAULT_LEGACY_EXTENSION
    image_extension: str = DEFAULT_IMAGE_EXTENSION
    max_log_chars: int = DEFAULT_MAX_LOG_CHARS

    @property
    def destination_root(self) -> Path:
        return self.destination_dir or self.source_dir

    @property
    def texture_roots(self) -> Tuple[Path, ...]:
        if self.texture_dirs:
            return self.texture_dirs
        if self.destination_root == self.source_dir:
            return (self.source_dir,)
        return (self.source_dir, self.destination_root)

    @classmethod
    def from_paths(
        cls,
        source_dir: PathLike,
        destination_dir: Optional[PathLike] = None,
        texture_dirs: Iterable[PathLike] = (),
        default_shader: str = DEFAULT_SHADER_NAME,
        record_extension: str = DEFAULT_RECORD_EXTENSION,
        max_log_chars: int = DEFAULT_MAX_LOG_CHARS,
    ) -> "ConvertSettings":
        """Build validated settings from loosely typed values.

        Args:
            source_dir: Folder containing VMT files.
            destination_dir: Optional root for material records.
            texture_dirs: Optional folders holding converted textures.
            default_shader: Shader name used for new records.
            record_extension: Material record extension (a USD extension).
            max_log_chars: Conversion log size ceiling.

        Returns:
            ConvertSettings: Normalized settings.

        Raises:
            ConfigurationError: If a value is invalid.
        """
        extension = _normalize_extension(record_extension, "record_extension")
        if extension not in USD_EXTENSIONS:
            raise ConfigurationError(
                "Material records must use a USD file extension.",
                details={
                    "record_extension": record_extension,
                    "supported_extensions": list(USD_EXTENSIONS),
                },
            )
        if not default_shader or not default_shader.strip():
            raise ConfigurationError("Default shader name cannot be empty.")
        if max_log_chars <= 0:
            raise ConfigurationError(
                "Log size limit must be positive.",
                details={"max_log_chars": max_log_chars},
            )
        return cls(
            source_dir=Path(source_dir),
            destination_dir=Path(destination_dir) if destination_dir else None,
            texture_dirs=tuple(Path(path) for path in texture_dirs),
            default_shader=default_shader.strip(),
            record_extension=extension,
            max_log_chars=max_log_chars,
        )


@dataclass(frozen=True)
class TextureReference:
    """Texture path as written in a VMT file.

    Attributes:
        slot: Texture slot name (albedo, normal, metallic).
        raw_path: Path string exactly as captured from the file.
    """

    slot: str
    raw_path: str


@dataclass(frozen=True)
class ParsedMaterial:
    """Texture references extracted from one VMT file.

    Attributes:
        name: Material name, the VMT file stem.
        source_path: Path of the originating VMT file.
        textures: Mapping of slot name to texture reference. Slots the file
                  does not define are absent.
    """

    name: str
    source_path: Path
    textures: Dict[str, TextureReference] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.textures


@dataclass(frozen=True)
class ResolvedTexture:
    """Outcome of looking up one texture slot in the asset index.

    Attributes:
        slot: Texture slot name.
        raw_path: Path as written in the VMT file.
        lookup_name: Bare file name (no directory, no extension) searched for.
        expected_name: File name expected on disk, used for diagnostics.
        path: Located image file, or None when unresolved.
        substituted: Whether the legacy extension was replaced.
    """

    slot: str
    raw_path: str
    lookup_name: str
    expected_name: str
    path: Optional[Path] = None
    substituted: bool = False

    @property
    def resolved(self) -> bool:
        return self.path is not None


@dataclass(frozen=True)
class ShaderDefinition:
    """Surface shader registered with the asset index.

    Attributes:
        name: Lookup name of the shader.
        shader_id: USD info:id of the surface shader.
    """

    name: str
    shader_id: str


@dataclass
class MaterialRecord:
    """Persisted material asset derived from one VMT file.

    Attributes:
        path: Record file path.
        name: Material prim name.
        shader_id: USD info:id of the surface shader.
        textures: Mapping of slot name to bound texture file.
        is_new: Whether the record is created by the current run.
    """

    path: Path
    name: str
    shader_id: str
    textures: Dict[str, Path] = field(default_factory=dict)
    is_new: bool = False

    def bind(self, slot: str, texture_path: Path) -> None:
        self.textures[slot] = Path(texture_path)


class EventKind(str, Enum):
    PROCESSING = "processing"
    NO_TEXTURES = "no_textures"
    CREATED = "created"
    UPDATED = "updated"
    DIRECTORY_CREATED = "directory_created"
    SHADER_MISSING = "shader_missing"
    LEGACY_SUBSTITUTED = "legacy_substituted"
    BOUND = "bound"
    UNRESOLVED = "unresolved"
    READ_ERROR = "read_error"
    RECORD_ERROR = "record_error"


@dataclass(frozen=True)
class ResolutionEvent:
    """Human-readable progress or diagnostic entry.

    Attributes:
        kind: Event category.
        message: Log line text.
        level: logging level the line is reported at.
        slot: Texture slot the event concerns, if any.
        path: File the event concerns, if any.
    """

    kind: EventKind
    message: str
    level: int = logging.INFO
    slot: Optional[str] = None
    path: Optional[Path] = None


class FileOutcome(str, Enum):
    NO_TEXTURES = "no_textures"
    SHADER_MISSING = "shader_missing"
    RESOLVED = "resolved"
    READ_ERROR = "read_error"
    RECORD_ERROR = "record_error"

    @property
    def is_fatal(self) -> bool:
        return self in (
            FileOutcome.SHADER_MISSING,
            FileOutcome.READ_ERROR,
            FileOutcome.RECORD_ERROR,
        )


@dataclass
class ConversionSummary:
    """Counters reported at the end of a conversion run."""

    files_found: int = 0
    processed: int = 0
    created: int = 0
    updated: int = 0
    skipped: int = 0
    failed: int = 0
    textures_bound: int = 0
    textures_unresolved: int = 0
    records_saved: int = 0
    cancelled: bool = False

    @property
    def succeeded(self) -> bool:
        return self.failed == 0 and not self.cancelled

    def describe(self) -> str:
        return (
            f"{self.processed}/{self.files_found} files processed: "
            f"{self.created} created, {self.updated} updated, "
            f"{self.skipped} skipped, {self.failed} failed; "
            f"{self.textures_bound} textures bound, "
            f"{self.textures_unresolved} unresolved."
        )
