"""Local filesystem storage for backup directories."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List


class LocalBackupStorage:
    """Reads and writes snapshot files on the local filesystem.

    Methods let ``OSError`` propagate; the exporter and importer translate it
    into their own error types.
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def write_file(self, path: Path, data: bytes) -> None:
        """Write ``data`` to ``path``, replacing any previous content."""
        Path(path).write_bytes(data)
        self.logger.debug("Wrote %d bytes to %s", len(data), path)

    def read_file(self, path: Path) -> bytes:
        return Path(path).read_bytes()

    def glob(self, directory: Path, pattern: str) -> List[Path]:
        """Files in ``directory`` matching ``pattern``, sorted by name."""
        return sorted(Path(directory).glob(pattern))

    def list_dir(self, directory: Path) -> List[Path]:
        """Entries of ``directory`` sorted by name."""
        return sorted(Path(directory).iterdir())

    def exists(self, path: Path) -> bool:
        return Path(path).exists()

    def is_dir(self, path: Path) -> bool:
        return Path(path).is_dir()

    def ensure_dir(self, path: Path) -> Path:
        """Create a directory (and parents) if it does not exist yet."""
        directory = Path(path)
        directory.mkdir(parents=True, exist_ok=True)
        return directory
