"""Command line entry point: ``vmt-usd convert <source-folder>``."""

from __future__ import annotations

import argparse
import logging
import signal
import threading
from pathlib import Path
from typing import Optional, Sequence

from .core.converter import convert_folder
from .core.exceptions import NoInputFilesError, VmtUSDError
from .core.models import (
    DEFAULT_MAX_LOG_CHARS,
    DEFAULT_RECORD_EXTENSION,
    ConvertSettings,
)
from .core.report import ConversionLog
from .core.texture_keys import DEFAULT_SHADER_NAME
from .logging_utils import configure_logging, level_for_verbosity
from .usd.asset_index import UsdAssetIndex
from .version import get_version


logger = logging.getLogger(__name__)

EXIT_SUCCESS = 0
EXIT_FAILURE = 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vmt-usd",
        description="Convert Source engine VMT materials into USD material layers.",
    )
    parser.add_argument("--version", action="version", version=get_version())
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument(
        "-v", "--verbose", action="store_true", help="Show debug output."
    )
    verbosity.add_argument(
        "-q", "--quiet", action="store_true", help="Only show warnings and errors."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    convert = subparsers.add_parser(
        "convert", help="Convert every .vmt file below a folder."
    )
    convert.add_argument("source", type=Path, help="Folder searched for .vmt files.")
    convert.add_argument(
        "--dest",
        type=Path,
        default=None,
        help="Root folder for material records (defaults to the source folder).",
    )
    convert.add_argument(
        "--textures",
        type=Path,
        action="append",
        default=[],
        help="Folder holding converted textures. Repeatable "
        "(defaults to the source folder, plus --dest when given).",
    )
    convert.add_argument(
        "--shader",
        default=DEFAULT_SHADER_NAME,
        help=f"Shader used for new materials (default: {DEFAULT_SHADER_NAME}).",
    )
    convert.add_argument(
        "--extension",
        default=DEFAULT_RECORD_EXTENSION,
        help=f"Material record extension (default: {DEFAULT_RECORD_EXTENSION}).",
    )
    convert.add_argument(
        "--log-limit",
        type=int,
        default=DEFAULT_MAX_LOG_CHARS,
        help="Characters kept in the conversion log "
        f"(default: {DEFAULT_MAX_LOG_CHARS}).",
    )
    convert.set_defaults(func=_run_convert)
    return parser


def _install_cancel_handler(cancel: threading.Event):
    if threading.current_thread() is not threading.main_thread():
        return None

    def _handle_sigint(_signum, _frame) -> None:
        logger.warning("Interrupt received; stopping after the current file.")
        cancel.set()

    return signal.signal(signal.SIGINT, _handle_sigint)


def _run_convert(args: argparse.Namespace) -> int:
    try:
        settings = ConvertSettings.from_paths(
            args.source,
            destination_dir=args.dest,
            texture_dirs=args.textures,
            default_shader=args.shader,
            record_extension=args.extension,
            max_log_chars=args.log_limit,
        )
    except VmtUSDError as exc:
        logger.error("%s", exc)
        return EXIT_FAILURE

    if not settings.source_dir.is_dir():
        logger.error("Source folder not found: %s", settings.source_dir)
        return EXIT_FAILURE

    asset_index = UsdAssetIndex(settings.texture_roots)
    sink = ConversionLog(max_chars=settings.max_log_chars)
    cancel = threading.Event()

    def _progress(done: int, total: int, path: Path) -> None:
        logger.debug("Progress: %d/%d (%s)", done, total, path.name)

    previous_handler = _install_cancel_handler(cancel)
    try:
        summary = convert_folder(
            asset_index,
            settings,
            sink=sink,
            progress=_progress,
            should_cancel=cancel.is_set,
        )
    except NoInputFilesError:
        return EXIT_FAILURE
    except VmtUSDError as exc:
        logger.error("%s", exc)
        return EXIT_FAILURE
    finally:
        if previous_handler is not None:
            signal.signal(signal.SIGINT, previous_handler)

    return EXIT_SUCCESS if summary.succeeded else EXIT_FAILURE


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(level_for_verbosity(args.verbose, args.quiet))
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
