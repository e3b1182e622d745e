"""Package version lookup."""
from __future__ import annotations

from importlib import metadata
from pathlib import Path
import re


DISTRIBUTION_NAME = "vmt-usd"
UNKNOWN_VERSION = "0+unknown"

_PYPROJECT = Path(__file__).resolve().parents[2] / "pyproject.toml"
_PROJECT_VERSION = re.compile(
    r'^\[project\][^\[]*?^version\s*=\s*"(?P<version>[^"]+)"',
    re.MULTILINE | re.DOTALL,
)


def get_version() -> str:
    """Installed distribution version, else the checkout's pyproject version."""
    try:
        return metadata.version(DISTRIBUTION_NAME)
    except metadata.PackageNotFoundError:
        pass

    try:
        match = _PROJECT_VERSION.search(_PYPROJECT.read_text(encoding="utf-8"))
    except OSError:
        return UNKNOWN_VERSION
    return match.group("version") if match else UNKNOWN_VERSION


__all__ = ["get_version"]
