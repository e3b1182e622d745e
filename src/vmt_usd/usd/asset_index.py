"""Asset index backed by USD record layers and texture folders."""

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from pxr import Tf, Usd

from ..core.exceptions import (
    ConfigurationError,
    FileSystemError,
    MaterialRecordError,
)
from ..core.filesystem import DefaultFileSystem, FileSystem
from ..core.models import MaterialRecord, ShaderDefinition
from ..core.texture_keys import DEFAULT_SHADER_REGISTRY, SHADER_SLOT_INPUTS
from .material_writer import MaterialRecordWriter, read_record


logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".tga", ".tif", ".tiff", ".exr", ".bmp")


class UsdAssetIndex:
    """Find textures and shaders, and persist material records as USD layers.

    Image assets are discovered by scanning the texture roots once, on first
    lookup. Shaders come from a name to USD shader id registry.

    Attributes:
        texture_roots: Folders scanned for converted texture images.
    """

    def __init__(
        self,
        texture_roots: Sequence[Path],
        shaders: Optional[Mapping[str, str]] = None,
        filesystem: Optional[FileSystem] = None,
    ) -> None:
        self.texture_roots = tuple(Path(root) for root in texture_roots)
        self._fs = filesystem or DefaultFileSystem()
        self._shaders: Dict[str, str] = {}
        for name, shader_id in (
            DEFAULT_SHADER_REGISTRY if shaders is None else shaders
        ).items():
            self.register_shader(name, shader_id)
        self._images: Optional[Dict[str, List[Path]]] = None
        self._dirty: Dict[Path, MaterialRecord] = {}

    def register_shader(self, name: str, shader_id: str) -> None:
        if shader_id not in SHADER_SLOT_INPUTS:
            raise ConfigurationError(
                "Unsupported surface shader id.",
                details={
                    "name": name,
                    "shader_id": shader_id,
                    "supported_ids": sorted(SHADER_SLOT_INPUTS),
                },
            )
        self._shaders[name] = shader_id

    def _image_table(self) -> Dict[str, List[Path]]:
        if self._images is None:
            table: Dict[str, List[Path]] = {}
            for root in self.texture_roots:
                if not self._fs.path_exists(root):
                    logger.warning("Texture folder does not exist: %s", root)
                    continue
                try:
                    images = list(_iter_images(self._fs, root))
                except FileSystemError as exc:
                    logger.warning("Skipping texture folder %s: %s", root, exc.message)
                    continue
                for image in images:
                    table.setdefault(image.stem.lower(), []).append(image)
            self._images = table
            logger.debug(
                "Indexed %d image name(s) under %d folder(s).",
                len(table),
                len(self.texture_roots),
            )
        return self._images

    def record_exists(self, path: Path) -> bool:
        return self._fs.path_exists(path)

    def load_record(self, path: Path) -> MaterialRecord:
        stage = _open_stage(path)
        try:
            return read_record(stage, Path(path))
        except Tf.ErrorException as exc:
            raise MaterialRecordError(
                f"Failed to read material record: {path}",
                details={"path": str(path), "error": str(exc)},
            ) from exc

    def find_images(self, name: str) -> List[Path]:
        return list(self._image_table().get(name.lower(), []))

    def find_shader(self, name: str) -> Optional[ShaderDefinition]:
        shader_id = self._shaders.get(name)
        if shader_id is None:
            return None
        return ShaderDefinition(name=name, shader_id=shader_id)

    def create_record(self, record: MaterialRecord) -> None:
        if self._fs.path_exists(record.path):
            raise MaterialRecordError(
                "Material record already exists.",
                details={"path": str(record.path)},
            )
        try:
            stage = Usd.Stage.CreateNew(str(record.path))
            MaterialRecordWriter(stage, record).create()
            _save_layer(stage, record.path)
        except Tf.ErrorException as exc:
            raise MaterialRecordError(
                f"Failed to create material record: {record.path}",
                details={"path": str(record.path), "error": str(exc)},
            ) from exc
        logger.debug("Created material record %s", record.path)

    def mark_dirty(self, record: MaterialRecord) -> None:
        self._dirty[record.path] = record

    def save(self) -> int:
        """Write every record marked dirty.

        Returns:
            int: Number of records written.

        Raises:
            MaterialRecordError: If any record failed; the others are still
                written.
        """
        saved = 0
        failures: Dict[str, str] = {}
        for path, record in list(self._dirty.items()):
            try:
                _write_existing(path, record)
                saved += 1
            except MaterialRecordError as exc:
                failures[str(path)] = exc.message
        self._dirty.clear()
        if failures:
            raise MaterialRecordError(
                f"Failed to save {len(failures)} material record(s).",
                details={"failures": failures},
            )
        return saved


def _open_stage(path: Path) -> Usd.Stage:
    try:
        stage = Usd.Stage.Open(str(path))
    except Tf.ErrorException as exc:
        raise MaterialRecordError(
            f"Failed to open material record: {path}",
            details={"path": str(path), "error": str(exc)},
        ) from exc
    if not stage:
        raise MaterialRecordError(
            f"Failed to open material record: {path}",
            details={"path": str(path)},
        )
    return stage


def _save_layer(stage: Usd.Stage, path: Path) -> None:
    if not stage.GetRootLayer().Save():
        raise MaterialRecordError(
            f"Failed to save material record: {path}",
            details={"path": str(path)},
        )


def _write_existing(path: Path, record: MaterialRecord) -> None:
    stage = _open_stage(path)
    try:
        MaterialRecordWriter(stage, record).update()
        _save_layer(stage, path)
    except Tf.ErrorException as exc:
        raise MaterialRecordError(
            f"Failed to write material record: {path}",
            details={"path": str(path), "error": str(exc)},
        ) from exc


def _iter_images(fs: FileSystem, root: Path) -> Iterable[Path]:
    for extension in IMAGE_EXTENSIONS:
        yield from fs.iter_files(root, extension)
