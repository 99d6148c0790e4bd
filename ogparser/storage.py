"""Upload directory access with path to URL mapping."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional, Union

from .exceptions import StorageWriteError

logger = logging.getLogger("ogparser")


class UploadStorage:
    """Write-if-absent access to a public upload directory.

    Files under ``directory`` are served at ``base_url``; ``url_for`` swaps
    one prefix for the other.
    """

    def __init__(self, directory: Union[str, Path], base_url: str) -> None:
        self.directory = Path(directory)
        self.base_url = base_url.rstrip("/")

    def path_for(self, name: str) -> Path:
        return self.directory / name

    def exists(self, name: str) -> bool:
        return self.path_for(name).is_file()

    def url_for(self, path: Path) -> str:
        relative = Path(path).relative_to(self.directory)
        return f"{self.base_url}/{relative.as_posix()}"

    def find_existing(self, *names: str) -> Optional[Path]:
        """Return the first of ``names`` already present on disk."""
        for name in names:
            if self.exists(name):
                return self.path_for(name)
        return None

    def write(self, name: str, data: bytes, mode: int = 0o644) -> Path:
        """Write ``data`` to ``name`` and apply ``mode``; raise StorageWriteError on failure."""
        destination = self.path_for(name)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            destination.write_bytes(data)
            os.chmod(destination, mode)
        except OSError as exc:
            raise StorageWriteError(f"Failed to write {destination}: {exc}") from exc
        if not destination.is_file():
            raise StorageWriteError(f"{destination} missing after write")
        logger.debug("Wrote %d bytes to %s", len(data), destination)
        return destination
