from pathlib import Path

import pytest

from vmt_usd.core.models import ConvertSettings, MaterialRecord, ShaderDefinition
from vmt_usd.core.texture_keys import DEFAULT_SHADER_REGISTRY


class FakeAssetIndex:
    """In-memory test double for the asset index protocol."""

    def __init__(self, images=(), shaders=None, records=None):
        """Initialize the fake index state.

        Args:
            images: Image paths the index knows about, in index order.
            shaders: Mapping of shader name to id (defaults to the registry).
            records: Mapping of path to existing MaterialRecord.
        """
        self.images = [Path(image) for image in images]
        self.shaders = dict(DEFAULT_SHADER_REGISTRY if shaders is None else shaders)
        self.records = dict(records or {})
        self.created = []
        self.dirty = []
        self.saved = 0
        self.image_queries = []

    def record_exists(self, path):
        return Path(path) in self.records

    def load_record(self, path):
        stored = self.records[Path(path)]
        return MaterialRecord(
            path=stored.path,
            name=stored.name,
            shader_id=stored.shader_id,
            textures=dict(stored.textures),
        )

    def find_images(self, name):
        self.image_queries.append(name)
        return [image for image in self.images if image.stem.lower() == name.lower()]

    def find_shader(self, name):
        shader_id = self.shaders.get(name)
        if shader_id is None:
            return None
        return ShaderDefinition(name=name, shader_id=shader_id)

    def create_record(self, record):
        self.created.append(record)
        self.records[record.path] = record

    def mark_dirty(self, record):
        self.dirty.append(record)

    def save(self):
        count = len(self.dirty)
        for record in self.dirty:
            self.records[record.path] = record
        self.saved += count
        self.dirty = []
        return count


@pytest.fixture
def fake_index_factory():
    return FakeAssetIndex


@pytest.fixture
def source_dir(tmp_path):
    root = tmp_path / "materials"
    root.mkdir()
    return root


@pytest.fixture
def settings(source_dir):
    return ConvertSettings(source_dir=source_dir)


def write_vmt(root, relative, text):
    path = Path(root) / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


@pytest.fixture
def make_vmt():
    return write_vmt


BRICK_VMT = """"LightmappedGeneric"
{
    "$basetexture" "brick/diffuse.vtf"
    "$bumpmap" "brick/normal.vtf"
    "$surfaceprop" "brick"
}
"""


@pytest.fixture
def brick_vmt():
    return BRICK_VMT
