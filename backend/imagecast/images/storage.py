"""Upload directory management and file persistence.

Files are stored flat in the upload directory as
``{nanosecond_timestamp}-{sanitized_original_name}``. Nothing else is
tracked: the directory listing is the index.
"""
import logging
import os
import shutil
import time
import unicodedata
from pathlib import Path
from typing import BinaryIO, List, Optional, Union

from .errors import InvalidRequestError, StartupError, StorageError

logger = logging.getLogger(__name__)

PROBE_FILENAME = ".write-probe"

# Leaves room for the timestamp prefix under the usual 255-byte NAME_MAX.
MAX_NAME_BYTES = 200


def ensure_upload_dir(upload_dir: Union[str, Path]) -> Path:
    """Create *upload_dir* if needed and prove it is writable.

    Raises:
        StartupError: If the directory cannot be created or written to.
    """
    path = Path(upload_dir)
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise StartupError(f"Failed to create upload directory {path}: {exc}") from exc

    probe = path / PROBE_FILENAME
    try:
        probe.write_bytes(b"test")
        probe.unlink()
    except OSError as exc:
        raise StartupError(f"Upload directory not writable {path}: {exc}") from exc

    logger.info("Upload directory ready: %s", path.resolve())
    return path


def sanitize_filename(filename: Optional[str]) -> str:
    """Reduce a client-supplied filename to a safe single path component.

    Raises:
        InvalidRequestError: If nothing usable is left.
    """
    normalized = unicodedata.normalize("NFC", filename or "")
    cleaned = "".join(ch for ch in normalized if unicodedata.category(ch)[0] != "C")
    candidate = cleaned.replace("\\", "/").rsplit("/", 1)[-1]
    candidate = candidate.strip(" .")
    if not candidate:
        raise InvalidRequestError("Invalid filename")

    if len(candidate.encode("utf-8")) > MAX_NAME_BYTES:
        stem, dot, ext = candidate.rpartition(".")
        suffix = f"{dot}{ext}" if stem and len(ext) <= 16 else ""
        base = stem if suffix else candidate
        budget = MAX_NAME_BYTES - len(suffix.encode("utf-8"))
        base = base.encode("utf-8")[:budget].decode("utf-8", errors="ignore")
        candidate = f"{base}{suffix}"
    return candidate


class ImageStore:
    """Reads and writes uploads under a single directory."""

    def __init__(self, upload_dir: Union[str, Path]) -> None:
        self._upload_dir = Path(upload_dir)

    @property
    def upload_dir(self) -> Path:
        return self._upload_dir

    def persist(self, stream: BinaryIO, original_name: Optional[str]) -> str:
        """Copy *stream* into the upload directory under a unique name.

        Partial files are left in place if the copy fails.

        Returns:
            The generated filename.

        Raises:
            InvalidRequestError: If *original_name* sanitizes to nothing.
            StorageError: If the file cannot be created or written.
        """
        safe_name = sanitize_filename(original_name)
        filename = f"{time.time_ns()}-{safe_name}"
        dst_path = self._upload_dir / filename

        try:
            dst = open(dst_path, "wb")
        except OSError as exc:
            logger.error("Failed to create %s: %s", dst_path, exc)
            raise StorageError("Error creating file on server") from exc

        with dst:
            try:
                shutil.copyfileobj(stream, dst)
                size = dst.tell()
            except OSError as exc:
                logger.error("Failed to write %s: %s", dst_path, exc)
                raise StorageError("Error saving file content") from exc

        logger.info("Stored upload %s (%d bytes)", filename, size)
        return filename

    def list_files(self) -> List[str]:
        """Return the sorted names of all non-directory entries."""
        try:
            with os.scandir(self._upload_dir) as entries:
                names = [e.name for e in entries if not e.is_dir(follow_symlinks=False)]
        except OSError as exc:
            logger.error("Failed to list %s: %s", self._upload_dir, exc)
            raise StorageError("Error reading upload directory") from exc
        return sorted(names)

    def resolve(self, filename: str) -> Optional[Path]:
        """Return the path for *filename*, or None if it escapes the directory."""
        if not filename:
            return None
        root = self._upload_dir.resolve()
        try:
            candidate = (root / filename).resolve()
        except (OSError, ValueError):
            return None
        if candidate == root or not candidate.is_relative_to(root):
            return None
        return candidate

    def exists(self, filename: str) -> bool:
        """True if *filename* names a regular file in the upload directory."""
        path = self.resolve(filename)
        if path is None:
            return False
        try:
            return path.is_file()
        except (OSError, ValueError):
            return False
