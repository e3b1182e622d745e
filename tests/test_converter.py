import pytest

from vmt_usd.core.converter import convert_folder
from vmt_usd.core.exceptions import NoInputFilesError
from vmt_usd.core.models import EventKind
from vmt_usd.core.report import ConversionLog


def test_convert_folder_raises_without_vmt_files(
    settings, source_dir, fake_index_factory
):
    """Ensure an empty source folder aborts the run."""
    (source_dir / "readme.txt").write_text("not a material")
    sink = ConversionLog()

    with pytest.raises(NoInputFilesError) as exc_info:
        convert_folder(fake_index_factory(), settings, sink=sink)

    assert exc_info.value.details["source_dir"] == str(source_dir)
    assert "No .vmt files found" in sink.text


def test_convert_folder_end_to_end(
    settings, source_dir, make_vmt, brick_vmt, fake_index_factory
):
    """Ensure the brick example binds albedo and normal and skips metallic."""
    make_vmt(source_dir, "models/brick.vmt", brick_vmt)
    index = fake_index_factory(
        images=[source_dir / "tex/diffuse.png", source_dir / "tex/normal.png"]
    )
    sink = ConversionLog()

    summary = convert_folder(index, settings, sink=sink)

    assert summary.succeeded
    assert summary.files_found == 1
    assert summary.created == 1
    assert summary.textures_bound == 2
    assert summary.textures_unresolved == 0
    record = index.records[source_dir / "models" / "brick.usda"]
    assert record.textures["albedo"].name == "diffuse.png"
    assert record.textures["normal"].name == "normal.png"
    assert "metallic" not in record.textures
    bound = [e for e in sink.events if e.kind is EventKind.BOUND]
    assert [e.slot for e in bound] == ["albedo", "normal"]
    assert "Processing material: brick" in sink.text
    assert "Material conversion complete!" in sink.text


def test_convert_folder_continues_after_file_errors(
    settings, source_dir, make_vmt, fake_index_factory
):
    """Ensure unreadable and textureless files do not stop the batch."""
    (source_dir / "a_broken.vmt").write_bytes(b"\xff\xfe\x9c")
    make_vmt(source_dir, "b_empty.vmt", '"UnlitGeneric" { "$translucent" "1" }')
    make_vmt(source_dir, "c_ok.vmt", '$basetexture "c/diffuse"')
    index = fake_index_factory(images=[source_dir / "diffuse.png"])
    sink = ConversionLog()

    summary = convert_folder(index, settings, sink=sink)

    assert summary.processed == 3
    assert summary.failed == 1
    assert summary.skipped == 1
    assert summary.created == 1
    assert not summary.succeeded
    assert "ERROR: Error parsing VMT file" in sink.text
    assert [e.kind for e in sink.events][:2] == [
        EventKind.PROCESSING,
        EventKind.READ_ERROR,
    ]
    processed = [e.path.name for e in sink.events if e.kind is EventKind.PROCESSING]
    assert processed == ["a_broken.vmt", "b_empty.vmt", "c_ok.vmt"]


def test_convert_folder_counts_shader_failures(
    settings, source_dir, make_vmt, fake_index_factory
):
    """Ensure a missing shader is a per-file failure, not a run abort."""
    make_vmt(source_dir, "one.vmt", '$basetexture "one"')
    make_vmt(source_dir, "two.vmt", '$basetexture "two"')
    index = fake_index_factory(shaders={})

    summary = convert_folder(index, settings, sink=ConversionLog())

    assert summary.processed == 2
    assert summary.failed == 2
    assert not summary.succeeded


def test_convert_folder_is_idempotent(
    settings, source_dir, make_vmt, brick_vmt, fake_index_factory
):
    """Ensure a second run updates instead of duplicating records."""
    make_vmt(source_dir, "models/brick.vmt", brick_vmt)
    index = fake_index_factory(images=[source_dir / "diffuse.png"])

    first = convert_folder(index, settings, sink=ConversionLog())
    second = convert_folder(index, settings, sink=ConversionLog())

    assert (first.created, first.updated) == (1, 0)
    assert (second.created, second.updated) == (0, 1)
    assert second.records_saved == 1
    assert len(index.created) == 1
    assert (first.textures_bound, first.textures_unresolved) == (
        second.textures_bound,
        second.textures_unresolved,
    )


def test_convert_folder_reports_progress(
    settings, source_dir, make_vmt, fake_index_factory
):
    """Ensure the progress callback runs once per file in sorted order."""
    for name in ("b.vmt", "a.vmt", "sub/c.VMT"):
        make_vmt(source_dir, name, '$basetexture "x"')
    calls = []

    convert_folder(
        fake_index_factory(),
        settings,
        sink=ConversionLog(),
        progress=lambda done, total, path: calls.append((done, total, path.name)),
    )

    assert calls == [(1, 3, "a.vmt"), (2, 3, "b.vmt"), (3, 3, "c.VMT")]


def test_convert_folder_honors_cancellation(
    settings, source_dir, make_vmt, fake_index_factory
):
    """Ensure cancellation stops between files and still reports a summary."""
    for name in ("a.vmt", "b.vmt", "c.vmt"):
        make_vmt(source_dir, name, '$basetexture "x"')
    processed = []
    sink = ConversionLog()

    summary = convert_folder(
        fake_index_factory(),
        settings,
        sink=sink,
        progress=lambda done, total, path: processed.append(path.name),
        should_cancel=lambda: len(processed) >= 1,
    )

    assert processed == ["a.vmt"]
    assert summary.cancelled
    assert summary.processed == 1
    assert not summary.succeeded
    assert "Conversion cancelled after 1 of 3 files." in sink.text
    assert "Material conversion stopped." in sink.text
