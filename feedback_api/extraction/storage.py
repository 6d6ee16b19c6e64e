"""Upload storage below a single root directory."""

import logging
import os
import re
from pathlib import Path
from typing import BinaryIO, Optional

from .adapters import ContentProcessingError

logger = logging.getLogger(__name__)

MAX_FILENAME_LENGTH = 255
CHUNK_SIZE = 8192
_REPLACED = re.compile(r"[\s*:!@#$%^&()+=\[\]{};',~`|\"<>?]")
_DROPPED = re.compile(r"[^\w.\-]")


def safe_filename(filename: Optional[str]) -> str:
    """
    Reduce an uploaded filename to a safe basename.

    Example:
        >>> safe_filename("My Essay (draft).pdf")
        'My_Essay__draft_.pdf'
    """
    if not filename or not isinstance(filename, str):
        return "unnamed_file"

    basename = filename.replace("\\", "/").rsplit("/", 1)[-1]
    cleaned = _DROPPED.sub("", _REPLACED.sub("_", basename)).strip("_.- ")
    if not cleaned:
        return "unnamed_file"

    if len(cleaned) > MAX_FILENAME_LENGTH:
        stem, ext = os.path.splitext(cleaned)
        cleaned = stem[:MAX_FILENAME_LENGTH - len(ext) - 1] + ext
    return cleaned


class UploadStore:
    """Saves files under ``root`` and hands back paths relative to it."""

    def __init__(self, root: Path):
        self.root = root
        self.root.mkdir(parents=True, exist_ok=True)

    def _unique_path(self, directory: Path, name: str) -> Path:
        candidate = directory / name
        stem, ext = os.path.splitext(name)
        counter = 1
        while candidate.exists():
            candidate = directory / f"{stem}_{counter}{ext}"
            counter += 1
        return candidate

    def save(self, file: BinaryIO, filename: str, subdir: Optional[str] = None) -> str:
        directory = self.root / safe_filename(subdir) if subdir else self.root
        try:
            directory.mkdir(parents=True, exist_ok=True)
            path = self._unique_path(directory, safe_filename(filename))
            file.seek(0)
            with open(path, "wb") as out:
                while chunk := file.read(CHUNK_SIZE):
                    out.write(chunk)
        except OSError as e:
            logger.error(f"Failed to save {filename}: {e}")
            raise ContentProcessingError(f"Failed to save file {filename}: {e}") from e
        finally:
            file.seek(0)
        logger.debug(f"Saved upload to {path}")
        return path.relative_to(self.root).as_posix()

    def delete(self, relative_path: Optional[str]) -> bool:
        """Remove a stored file; paths escaping the root are ignored."""
        if not relative_path:
            return False
        path = (self.root / relative_path).resolve()
        if not path.is_relative_to(self.root) or not path.is_file():
            return False
        try:
            path.unlink()
        except OSError as e:
            logger.warning(f"Could not delete {path}: {e}")
            return False
        logger.debug(f"Deleted {path}")
        return True
