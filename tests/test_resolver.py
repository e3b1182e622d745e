from pathlib import Path

import pytest

from vmt_usd.core.models import (
    ConvertSettings,
    EventKind,
    FileOutcome,
    MaterialRecord,
    ParsedMaterial,
    TextureReference,
)
from vmt_usd.core.report import ConversionLog
from vmt_usd.core.resolver import MaterialResolver


def _parsed(source_dir, relative, **textures):
    return ParsedMaterial(
        name=Path(relative).stem,
        source_path=source_dir / relative,
        textures={
            slot: TextureReference(slot=slot, raw_path=raw)
            for slot, raw in textures.items()
        },
    )


def _kinds(result):
    return [event.kind for event in result.events]


@pytest.fixture
def resolver(settings):
    return MaterialResolver(settings, sink=ConversionLog())


def test_resolve_binds_converted_textures(resolver, source_dir, fake_index_factory):
    """Ensure VTF references resolve to converted PNGs and bind their slots."""
    index = fake_index_factory(
        images=[source_dir / "tex/diffuse.png", source_dir / "tex/normal.png"]
    )
    parsed = _parsed(
        source_dir,
        "models/brick.vmt",
        albedo="brick/diffuse.vtf",
        normal="brick/normal.vtf",
    )

    result = resolver.resolve(parsed, index)

    assert result.outcome is FileOutcome.RESOLVED
    assert result.record.path == source_dir / "models" / "brick.usda"
    assert result.record.is_new is True
    assert result.record.shader_id == "UsdPreviewSurface"
    assert result.record.textures == {
        "albedo": source_dir / "tex/diffuse.png",
        "normal": source_dir / "tex/normal.png",
    }
    assert "metallic" not in result.record.textures
    assert index.created == [result.record]
    assert _kinds(result).count(EventKind.BOUND) == 2
    assert _kinds(result).count(EventKind.LEGACY_SUBSTITUTED) == 2
    assert (source_dir / "models").is_dir()


def test_resolve_rewrites_vtf_lookup_name(resolver, source_dir, fake_index_factory):
    """Ensure foo/bar.vtf is looked up as bar with bar.png expected."""
    index = fake_index_factory()
    parsed = _parsed(source_dir, "foo.vmt", albedo="foo/bar.vtf")

    result = resolver.resolve(parsed, index)

    assert index.image_queries == ["bar"]
    texture = result.textures[0]
    assert texture.lookup_name == "bar"
    assert texture.expected_name == "bar.png"
    assert texture.substituted is True
    assert texture.resolved is False


def test_resolve_without_textures_is_a_no_op(resolver, source_dir, fake_index_factory):
    """Ensure a material with no texture keys writes nothing."""
    index = fake_index_factory()
    parsed = _parsed(source_dir, "models/empty.vmt")

    result = resolver.resolve(parsed, index)

    assert result.outcome is FileOutcome.NO_TEXTURES
    assert result.record is None
    assert _kinds(result) == [EventKind.NO_TEXTURES]
    assert index.created == []
    assert not (source_dir / "models").exists()


def test_resolve_reports_unresolved_texture(resolver, source_dir, fake_index_factory):
    """Ensure a missing texture warns but the record is still written."""
    index = fake_index_factory(images=[source_dir / "diffuse.png"])
    parsed = _parsed(
        source_dir,
        "brick.vmt",
        albedo="brick/diffuse",
        metallic="brick/exponent.vtf",
    )

    result = resolver.resolve(parsed, index)

    assert result.outcome is FileOutcome.RESOLVED
    unresolved = [e for e in result.events if e.kind is EventKind.UNRESOLVED]
    assert len(unresolved) == 1
    assert unresolved[0].slot == "metallic"
    assert "'metallic'" in unresolved[0].message
    assert "exponent.png" in unresolved[0].message
    assert [t.slot for t in result.unresolved] == ["metallic"]
    assert [t.slot for t in result.bound] == ["albedo"]


def test_resolve_folder_reference_stays_unresolved(
    resolver, source_dir, fake_index_factory
):
    """Ensure a path naming a folder is not matched against an image of that name."""
    index = fake_index_factory(images=[source_dir / "brick.png"])
    parsed = _parsed(source_dir, "wall.vmt", albedo="brick/")

    result = resolver.resolve(parsed, index)

    assert result.outcome is FileOutcome.RESOLVED
    assert [t.slot for t in result.unresolved] == ["albedo"]
    assert result.record.textures == {}
    assert index.image_queries == []


def test_resolve_fails_closed_without_shader(
    source_dir, settings, fake_index_factory
):
    """Ensure new records are not created when the shader is unregistered."""
    sink = ConversionLog()
    resolver = MaterialResolver(settings, sink=sink)
    index = fake_index_factory(images=[source_dir / "diffuse.png"], shaders={})
    parsed = _parsed(source_dir, "models/brick.vmt", albedo="brick/diffuse.vtf")

    result = resolver.resolve(parsed, index)

    assert result.outcome is FileOutcome.SHADER_MISSING
    assert result.record is None
    assert result.textures == ()
    assert index.created == []
    assert index.image_queries == []
    assert not (source_dir / "models").exists()
    assert "ERROR: Could not find the 'UsdPreviewSurface' shader" in sink.text


def test_resolve_updates_existing_record_without_shader(
    resolver, source_dir, fake_index_factory
):
    """Ensure existing records update even when no shader is registered."""
    record_path = source_dir / "brick.usda"
    existing = MaterialRecord(
        path=record_path,
        name="brick",
        shader_id="ND_standard_surface_surfaceshader",
        textures={"metallic": source_dir / "old_metal.png"},
    )
    index = fake_index_factory(
        images=[source_dir / "diffuse.png"],
        shaders={},
        records={record_path: existing},
    )
    parsed = _parsed(source_dir, "brick.vmt", albedo="brick/diffuse.vtf")

    result = resolver.resolve(parsed, index)

    assert result.outcome is FileOutcome.RESOLVED
    assert result.record.is_new is False
    assert index.created == []
    assert index.dirty == [result.record]
    assert result.record.textures == {
        "albedo": source_dir / "diffuse.png",
        "metallic": source_dir / "old_metal.png",
    }
    assert EventKind.UPDATED in _kinds(result)
    bound = [e for e in result.events if e.kind is EventKind.BOUND]
    assert bound[0].message == "  - Assigned 'diffuse.png' to 'base_color'."


def test_resolve_is_idempotent(resolver, source_dir, fake_index_factory):
    """Ensure a second run updates the same record with the same outcomes."""
    index = fake_index_factory(images=[source_dir / "diffuse.png"])
    parsed = _parsed(
        source_dir, "brick.vmt", albedo="brick/diffuse.vtf", normal="brick/n.vtf"
    )

    first = resolver.resolve(parsed, index)
    second = resolver.resolve(parsed, index)

    assert first.record.path == second.record.path
    assert EventKind.CREATED in _kinds(first)
    assert EventKind.UPDATED in _kinds(second)
    assert len(index.created) == 1
    assert [(t.slot, t.path) for t in first.textures] == [
        (t.slot, t.path) for t in second.textures
    ]


def test_resolve_prefers_same_directory_match(
    resolver, source_dir, fake_index_factory
):
    """Ensure ambiguous names prefer an image in the referenced folder."""
    other = source_dir / "props/diffuse.png"
    same = source_dir / "textures/brick/diffuse.png"
    index = fake_index_factory(images=[other, same])
    parsed = _parsed(source_dir, "brick.vmt", albedo="Brick\\Diffuse.vtf")

    result = resolver.resolve(parsed, index)

    assert result.record.textures["albedo"] == same


def test_resolve_ambiguous_name_uses_first_match(
    resolver, source_dir, fake_index_factory
):
    """Ensure the first match wins when no folder matches."""
    first = source_dir / "a/diffuse.png"
    second = source_dir / "b/diffuse.png"
    index = fake_index_factory(images=[first, second])
    parsed = _parsed(source_dir, "brick.vmt", albedo="brick/diffuse.vtf")

    result = resolver.resolve(parsed, index)

    assert result.record.textures["albedo"] == first


def test_resolve_remaps_into_destination_tree(tmp_path, fake_index_factory):
    """Ensure records keep their relative path under the destination root."""
    source = tmp_path / "vmt"
    dest = tmp_path / "assets"
    settings = ConvertSettings(source_dir=source, destination_dir=dest)
    resolver = MaterialResolver(settings, sink=ConversionLog())
    index = fake_index_factory(images=[tmp_path / "diffuse.png"])
    parsed = _parsed(source, "models/props/crate.vmt", albedo="crate/diffuse")

    result = resolver.resolve(parsed, index)

    assert result.record.path == dest / "models" / "props" / "crate.usda"
    assert (dest / "models" / "props").is_dir()
    assert EventKind.DIRECTORY_CREATED in _kinds(result)


def test_resolve_outside_source_folder_is_record_error(
    resolver, tmp_path, fake_index_factory
):
    """Ensure a source file outside the source folder is rejected per file."""
    index = fake_index_factory()
    parsed = _parsed(tmp_path / "elsewhere", "brick.vmt", albedo="brick/diffuse")

    result = resolver.resolve(parsed, index)

    assert result.outcome is FileOutcome.RECORD_ERROR
    assert result.record is None
    assert index.created == []
