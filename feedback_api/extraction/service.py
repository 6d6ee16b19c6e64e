"""
Submission file processing.

Checks an upload against the size limit, extracts its text with the adapter
for its type, then stores a copy through the upload store.

Example:
    >>> processor = ContentProcessor()
    >>> with open('essay.pdf', 'rb') as f:
    ...     result = await processor.process_file(f, 'essay.pdf')
    >>> result.content
"""

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Any, Optional, BinaryIO

from .adapters import (
    get_adapter,
    guess_mime_type,
    ContentProcessingError,
    FileTooLargeError,
    UnsupportedFileTypeError,
    InvalidFileError
)
from .storage import UploadStore

logger = logging.getLogger(__name__)


@dataclass
class ProcessedFile:
    filename: str
    content: str
    mime_type: str
    file_size: int
    file_path: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    processing_time: float = 0.0


def _size_of(file: BinaryIO) -> int:
    file.seek(0, 2)
    size = file.tell()
    file.seek(0)
    return size


class ContentProcessor:
    """
    Turns uploaded submission files into text.

    Args:
        upload_dir: Directory path where uploaded files will be stored.
        max_file_size: Maximum allowed file size in bytes.
    """

    def __init__(self, upload_dir: str = "uploads", max_file_size: int = 10 * 1024 * 1024):
        self.upload_dir = Path(upload_dir).resolve()
        self.max_file_size = max_file_size
        self.store = UploadStore(self.upload_dir)
        logger.info(f"ContentProcessor storing uploads in {self.upload_dir}")

    async def process_file(
        self,
        file: BinaryIO,
        filename: str,
        save_file: bool = True,
        subdir: Optional[str] = None,
        **adapter_kwargs: Any
    ) -> ProcessedFile:
        """
        Extract text and metadata from an upload and optionally keep a copy.

        Args:
            file: File-like object containing the file data.
            filename: Original filename (used for extension detection).
            save_file: Whether to store the file.
            subdir: Optional directory below the upload directory to save into.
            **adapter_kwargs: Additional arguments to pass to the adapter.

        Raises:
            FileTooLargeError: If the file exceeds max_file_size.
            UnsupportedFileTypeError: If no adapter handles the file type.
            InvalidFileError: If the file is invalid or corrupted.
            ContentProcessingError: For other processing errors.
        """
        started = time.monotonic()
        file_size = _size_of(file)
        if file_size > self.max_file_size:
            raise FileTooLargeError(file_size, self.max_file_size)

        mime_type = guess_mime_type(filename) or "application/octet-stream"
        adapter = get_adapter(filename)
        if adapter is None:
            raise UnsupportedFileTypeError(
                file_type=mime_type,
                message=f"No adapter available for file type: {mime_type}"
            )
        if not await adapter.is_valid(file):
            raise InvalidFileError(filename=filename, message="File is invalid or corrupted")

        try:
            file.seek(0)
            content = await adapter.extract_text(file, **adapter_kwargs)
            file.seek(0)
            metadata = await adapter.extract_metadata(file)
        except ContentProcessingError:
            raise
        except Exception as e:
            logger.error(f"Unexpected error processing {filename}: {e}", exc_info=True)
            raise ContentProcessingError(
                f"An unexpected error occurred while processing {filename}: {e}"
            ) from e

        result = ProcessedFile(
            filename=filename,
            content=content,
            mime_type=mime_type,
            file_size=file_size,
            metadata=metadata,
        )
        if save_file:
            result.file_path = self.store.save(file, filename, subdir=subdir)
        result.processing_time = round(time.monotonic() - started, 4)
        logger.info(
            f"Extracted {len(content)} characters from {filename} "
            f"({adapter.__class__.__name__}, {result.processing_time:.2f}s)"
        )
        return result

    def delete_file(self, relative_path: Optional[str]) -> bool:
        return self.store.delete(relative_path)
