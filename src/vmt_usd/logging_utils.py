"""Console logging for the ``vmt-usd`` command."""

from __future__ import annotations

import logging
import sys


PACKAGE_LOGGER_NAME = "vmt_usd"
_CONSOLE_HANDLER_NAME = "vmt_usd_console"
_CONSOLE_FORMAT = "[VmtUSD] %(levelname)s: %(message)s"


def level_for_verbosity(verbose: bool = False, quiet: bool = False) -> int:
    if verbose:
        return logging.DEBUG
    if quiet:
        return logging.WARNING
    return logging.INFO


def _console_handler(package_logger: logging.Logger) -> logging.Handler:
    for handler in package_logger.handlers:
        if handler.get_name() == _CONSOLE_HANDLER_NAME:
            return handler

    handler = logging.StreamHandler(sys.stdout)
    handler.set_name(_CONSOLE_HANDLER_NAME)
    handler.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    package_logger.addHandler(handler)
    return handler


def configure_logging(level: int = logging.INFO) -> logging.Logger:
    """Route package log records to stdout at the given level.

    Safe to call repeatedly; the console handler is only attached once and
    its level follows the latest call.

    Args:
        level: Minimum level shown on the console.

    Returns:
        logging.Logger: The package logger.
    """
    package_logger = logging.getLogger(PACKAGE_LOGGER_NAME)
    package_logger.setLevel(level)
    _console_handler(package_logger).setLevel(level)
    package_logger.propagate = False
    return package_logger
