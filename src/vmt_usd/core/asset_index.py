"""Asset index protocol used by the material resolver."""

from pathlib import Path
from typing import List, Optional, Protocol

from .models import MaterialRecord, ShaderDefinition


class AssetIndex(Protocol):
    """Catalog of material records, texture images and shaders.

    The resolver only talks to the asset store through this protocol so it can
    run against an in-memory index in tests.
    """

    def record_exists(self, path: Path) -> bool:
        """Check whether a material record exists at path."""
        ...

    def load_record(self, path: Path) -> MaterialRecord:
        """Load the material record stored at path.

        Raises:
            MaterialRecordError: If the record cannot be read.
        """
        ...

    def find_images(self, name: str) -> List[Path]:
        """Return image assets whose bare file name matches name.

        Args:
            name: File name without directory or extension.

        Returns:
            List[Path]: Matches in index order, possibly empty.
        """
        ...

    def find_shader(self, name: str) -> Optional[ShaderDefinition]:
        """Look up a surface shader by name, or None if not registered."""
        ...

    def create_record(self, record: MaterialRecord) -> None:
        """Persist a new material record.

        Raises:
            MaterialRecordError: If the record cannot be written.
        """
        ...

    def mark_dirty(self, record: MaterialRecord) -> None:
        """Queue an existing record to be written on the next save."""
        ...

    def save(self) -> int:
        """Write all records marked dirty.

        Returns:
            int: Number of records written.
        """
        ...
