from __future__ import annotations

from datetime import datetime
from pathlib import Path
import sys

DOCS_DIR = Path(__file__).resolve().parent
SRC_DIR = DOCS_DIR.parent / "src"

sys.path.insert(0, str(SRC_DIR))

from vmt_usd.version import get_version  # noqa: E402


project = "vmt-usd"
author = "vmt-usd contributors"
release = get_version()
copyright = f"{datetime.now().year}, {author}"

extensions = [
    "myst_parser",
    "sphinx.ext.autodoc",
    "sphinx.ext.napoleon",
    "sphinx.ext.viewcode",
]

source_suffix = {
    ".rst": "restructuredtext",
    ".md": "markdown",
}

exclude_patterns = ["_build", "Thumbs.db", ".DS_Store"]

myst_enable_extensions = ["colon_fence"]

autodoc_typehints = "description"
autodoc_member_order = "bysource"
autodoc_mock_imports = ["pxr"]
