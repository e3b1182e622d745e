"""Resolve parsed VMT texture references into material records."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

from .asset_index import AssetIndex
from .exceptions import FileSystemError, MaterialRecordError, ValidationError
from .filesystem import DefaultFileSystem, FileSystem
from .models import (
    ConvertSettings,
    EventKind,
    FileOutcome,
    MaterialRecord,
    ParsedMaterial,
    ResolutionEvent,
    ResolvedTexture,
    TextureReference,
)
from .record_paths import build_record_path
from .report import ConversionLog
from .texture_keys import TEXTURE_SLOTS, shader_input_for_slot
from .texture_paths import (
    matches_directory,
    substitute_legacy_extension,
    texture_directory,
    texture_file_name,
    texture_lookup_name,
)


logger = logging.getLogger(__name__)

_Emit = Callable[..., ResolutionEvent]


@dataclass(frozen=True)
class ResolutionResult:
    """Outcome of resolving one VMT file.

    Attributes:
        outcome: Terminal state reached for the file.
        record: Created or updated record, None when nothing was written.
        events: Events emitted while resolving, in order.
        textures: Per-slot lookup results.
    """

    outcome: FileOutcome
    record: Optional[MaterialRecord]
    events: Tuple[ResolutionEvent, ...]
    textures: Tuple[ResolvedTexture, ...] = ()

    @property
    def bound(self) -> Tuple[ResolvedTexture, ...]:
        return tuple(texture for texture in self.textures if texture.resolved)

    @property
    def unresolved(self) -> Tuple[ResolvedTexture, ...]:
        return tuple(texture for texture in self.textures if not texture.resolved)


class MaterialResolver:
    """Create or update the material record for a parsed VMT.

    Attributes:
        settings: Conversion settings (paths, default shader, extensions).
        sink: Conversion log receiving every event.
        filesystem: File system used for directory creation.
    """

    def __init__(
        self,
        settings: ConvertSettings,
        sink: Optional[ConversionLog] = None,
        filesystem: Optional[FileSystem] = None,
    ) -> None:
        self.settings = settings
        self.sink = sink or ConversionLog(max_chars=settings.max_log_chars)
        self.filesystem = filesystem or DefaultFileSystem()

    def record_path_for(self, source_path: Path) -> Path:
        return build_record_path(
            source_path,
            self.settings.source_dir,
            self.settings.destination_root,
            self.settings.record_extension,
        )

    def resolve(
        self, parsed: ParsedMaterial, asset_index: AssetIndex
    ) -> ResolutionResult:
        """Resolve textures and write the material record for one file.

        Args:
            parsed: Texture references extracted from the VMT.
            asset_index: Index used to find records, images and shaders.

        Returns:
            ResolutionResult: Terminal outcome, record and emitted events.
        """
        events: List[ResolutionEvent] = []

        def emit(
            kind: EventKind,
            message: str,
            level: int = logging.INFO,
            slot: Optional[str] = None,
            path: Optional[Path] = None,
        ) -> ResolutionEvent:
            event = ResolutionEvent(
                kind=kind, message=message, level=level, slot=slot, path=path
            )
            events.append(event)
            return self.sink.emit(event)

        if parsed.is_empty:
            emit(EventKind.NO_TEXTURES, "No textures found in VMT file. Skipping.")
            return ResolutionResult(FileOutcome.NO_TEXTURES, None, tuple(events))

        try:
            record_path = self.record_path_for(parsed.source_path)
            record = self._open_record(parsed, record_path, asset_index, emit)
        except (MaterialRecordError, FileSystemError, ValidationError) as exc:
            emit(
                EventKind.RECORD_ERROR,
                f"  - Could not prepare material record: {exc.message}",
                level=logging.ERROR,
                path=parsed.source_path,
            )
            return ResolutionResult(FileOutcome.RECORD_ERROR, None, tuple(events))

        if record is None:
            return ResolutionResult(FileOutcome.SHADER_MISSING, None, tuple(events))

        resolved: List[ResolvedTexture] = []
        for slot in TEXTURE_SLOTS:
            reference = parsed.textures.get(slot)
            if reference is None:
                continue
            texture = self.resolve_texture(reference, asset_index, emit)
            resolved.append(texture)
            input_name = shader_input_for_slot(record.shader_id, slot) or slot
            if texture.path is not None:
                record.bind(slot, texture.path)
                emit(
                    EventKind.BOUND,
                    f"  - Assigned '{texture.path.name}' to '{input_name}'.",
                    slot=slot,
                    path=texture.path,
                )
            else:
                emit(
                    EventKind.UNRESOLVED,
                    f"  - Texture for '{input_name}' not found in the project. "
                    f"(Expected: {texture.expected_name})",
                    level=logging.WARNING,
                    slot=slot,
                )

        try:
            if record.is_new:
                asset_index.create_record(record)
            else:
                asset_index.mark_dirty(record)
        except MaterialRecordError as exc:
            emit(
                EventKind.RECORD_ERROR,
                f"  - Could not write material record: {exc.message}",
                level=logging.ERROR,
                path=record.path,
            )
            return ResolutionResult(
                FileOutcome.RECORD_ERROR, None, tuple(events), tuple(resolved)
            )

        return ResolutionResult(
            FileOutcome.RESOLVED, record, tuple(events), tuple(resolved)
        )

    def resolve_texture(
        self,
        reference: TextureReference,
        asset_index: AssetIndex,
        emit: Optional[_Emit] = None,
    ) -> ResolvedTexture:
        """Look up the converted image for one texture reference.

        Args:
            reference: Slot and raw path from the VMT.
            asset_index: Index searched for image assets.
            emit: Optional event callback for the extension substitution note.

        Returns:
            ResolvedTexture: The match, or an unresolved marker.
        """
        lookup_path, substituted = substitute_legacy_extension(
            reference.raw_path,
            self.settings.legacy_extension,
            self.settings.image_extension,
        )
        if substituted and emit is not None:
            legacy = self.settings.legacy_extension.lstrip(".").upper()
            image = self.settings.image_extension.lstrip(".").upper()
            emit(
                EventKind.LEGACY_SUBSTITUTED,
                f"  - VMT specified a {legacy} texture. "
                f"Looking for a converted {image} at '{lookup_path}'.",
                slot=reference.slot,
            )

        lookup_name = texture_lookup_name(lookup_path)
        matches = asset_index.find_images(lookup_name) if lookup_name else []
        return ResolvedTexture(
            slot=reference.slot,
            raw_path=reference.raw_path,
            lookup_name=lookup_name,
            expected_name=texture_file_name(lookup_path),
            path=_pick_match(matches, lookup_path),
            substituted=substituted,
        )

    def _open_record(
        self,
        parsed: ParsedMaterial,
        record_path: Path,
        asset_index: AssetIndex,
        emit: _Emit,
    ) -> Optional[MaterialRecord]:
        if asset_index.record_exists(record_path):
            record = asset_index.load_record(record_path)
            record.is_new = False
            emit(
                EventKind.UPDATED,
                "  - Material file already exists. Updating.",
                path=record_path,
            )
            return record

        shader_name = self.settings.default_shader
        shader = asset_index.find_shader(shader_name)
        if shader is None:
            emit(
                EventKind.SHADER_MISSING,
                f"  - Could not find the '{shader_name}' shader. Skipping.",
                level=logging.ERROR,
            )
            return None

        parent = record_path.parent
        if not self.filesystem.path_exists(parent):
            self.filesystem.ensure_directory(parent)
            emit(
                EventKind.DIRECTORY_CREATED,
                f"  - Created directory: {parent}",
                path=parent,
            )

        emit(EventKind.CREATED, "  - Creating new material file.", path=record_path)
        return MaterialRecord(
            path=record_path,
            name=parsed.name,
            shader_id=shader.shader_id,
            is_new=True,
        )


def _pick_match(matches: Sequence[Path], lookup_path: str) -> Optional[Path]:
    if not matches:
        return None
    if len(matches) == 1:
        return matches[0]
    directory = texture_directory(lookup_path)
    for candidate in matches:
        if matches_directory(candidate, directory):
            return candidate
    logger.debug(
        "%d images named like '%s'; using the first: %s",
        len(matches),
        lookup_path,
        matches[0],
    )
    return matches[0]
