import logging
from pathlib import Path
from typing import Callable, Optional

from .asset_index import AssetIndex
from .exceptions import MaterialRecordError, NoInputFilesError, VmtParseError
from .filesystem import DefaultFileSystem, FileSystem
from .models import (
    ConversionSummary,
    ConvertSettings,
    EventKind,
    FileOutcome,
    ResolutionEvent,
)
from .report import ConversionLog
from .resolver import MaterialResolver
from .vmt_parser import read_vmt


VMT_EXTENSION = ".vmt"

ProgressCallback = Callable[[int, int, Path], None]
CancelCheck = Callable[[], bool]


def convert_folder(
    asset_index: AssetIndex,
    settings: ConvertSettings,
    sink: Optional[ConversionLog] = None,
    filesystem: Optional[FileSystem] = None,
    progress: Optional[ProgressCallback] = None,
    should_cancel: Optional[CancelCheck] = None,
) -> ConversionSummary:
    """Convert every VMT file below the source folder.

    Files are processed one at a time in sorted order. Per-file and
    per-texture failures are logged to the sink and never abort the batch.

    Args:
        asset_index: Index that finds and persists material records.
        settings: Conversion settings, including the source folder.
        sink: Optional conversion log; a new one is created if omitted.
        filesystem: Optional file system implementation.
        progress: Optional callback invoked after each file with
                  (files done, total files, file path).
        should_cancel: Optional check run before each file; returning True
                       stops the batch after saving what was converted.

    Returns:
        ConversionSummary: Counters for the run.

    Raises:
        NoInputFilesError: If the source folder holds no VMT files.
    """
    sink = sink or ConversionLog(max_chars=settings.max_log_chars)
    fs = filesystem or DefaultFileSystem()
    resolver = MaterialResolver(settings, sink=sink, filesystem=fs)

    sink.write("Starting material conversion...")
    vmt_files = fs.iter_files(settings.source_dir, VMT_EXTENSION)
    if not vmt_files:
        sink.write("No .vmt files found in the selected folder.", logging.ERROR)
        raise NoInputFilesError(settings.source_dir)

    total = len(vmt_files)
    summary = ConversionSummary(files_found=total)
    sink.write(f"Found {total} VMT files to process.")

    for index, vmt_path in enumerate(vmt_files, start=1):
        if should_cancel is not None and should_cancel():
            summary.cancelled = True
            sink.write(
                f"Conversion cancelled after {summary.processed} of {total} files.",
                logging.WARNING,
            )
            break

        sink.emit(
            ResolutionEvent(
                kind=EventKind.PROCESSING,
                message=f"\nProcessing material: {vmt_path.stem}",
                path=vmt_path,
            )
        )
        try:
            parsed = read_vmt(vmt_path, fs)
        except VmtParseError as exc:
            reason = exc.details.get("error", exc.message)
            sink.emit(
                ResolutionEvent(
                    kind=EventKind.READ_ERROR,
                    message=f"  - Error parsing VMT file: {reason}",
                    level=logging.ERROR,
                    path=vmt_path,
                )
            )
            summary.failed += 1
        else:
            result = resolver.resolve(parsed, asset_index)
            if result.outcome is FileOutcome.RESOLVED and result.record is not None:
                if result.record.is_new:
                    summary.created += 1
                else:
                    summary.updated += 1
            elif result.outcome is FileOutcome.NO_TEXTURES:
                summary.skipped += 1
            elif result.outcome.is_fatal:
                summary.failed += 1
            summary.textures_bound += len(result.bound)
            summary.textures_unresolved += len(result.unresolved)

        summary.processed += 1
        if progress is not None:
            progress(index, total, vmt_path)

    try:
        summary.records_saved = asset_index.save()
    except MaterialRecordError as exc:
        sink.write(f"Failed to save updated materials: {exc.message}", logging.ERROR)
        summary.failed += 1

    if summary.cancelled:
        sink.write(
            f"\nMaterial conversion stopped. {summary.describe()}", logging.WARNING
        )
    else:
        sink.write(f"\nMaterial conversion complete! {summary.describe()}")
    return summary
