"""Atomic file writing for the cache collaborator."""

import hashlib
from dataclasses import dataclass
from pathlib import Path

import structlog


logger = structlog.get_logger()


@dataclass(frozen=True)
class WrittenFile:
    """Information about a written cache file.

    Attributes:
        path: Path relative to the cache directory.
        bytes_written: Number of bytes written.
        sha256: SHA-256 checksum of content.
    """

    path: str
    bytes_written: int
    sha256: str


class AtomicWriter:
    """Writes files through a temporary sibling and a rename.

    Readers see either the complete old file or the complete new file,
    never a partial write.
    """

    def __init__(self, base_dir: Path) -> None:
        """Initialize the atomic writer.

        Args:
            base_dir: Base directory for relative path calculation.
        """
        self._base_dir = base_dir
        self._log = logger.bind(component="atomic_writer")

    def write(self, path: Path, content: str) -> WrittenFile:
        """Write content to file with atomic semantics.

        Args:
            path: Target file path.
            content: Content to write (encoded as UTF-8).

        Returns:
            WrittenFile with relative path, size and checksum.

        Raises:
            OSError: If the file cannot be written or renamed.
        """
        content_bytes = content.encode("utf-8")
        sha256 = hashlib.sha256(content_bytes).hexdigest()

        path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = path.with_suffix(path.suffix + ".tmp")
        temp_path.write_bytes(content_bytes)
        temp_path.replace(path)

        try:
            relative_path = str(path.relative_to(self._base_dir))
        except ValueError:
            relative_path = str(path)

        self._log.debug(
            "file_written",
            path=relative_path,
            bytes=len(content_bytes),
            sha256=sha256[:12],
        )
        return WrittenFile(
            path=relative_path,
            bytes_written=len(content_bytes),
            sha256=sha256,
        )
