"""Submission file storage and text extraction."""
from functools import lru_cache

from feedback_api.config import UPLOAD_DIR, MAX_UPLOAD_SIZE
from .adapters import (
    ContentProcessingError,
    FileTooLargeError,
    InvalidFileError,
    UnsupportedFileTypeError,
)
from .service import ContentProcessor, ProcessedFile
from .storage import UploadStore, safe_filename


@lru_cache
def get_content_processor() -> ContentProcessor:
    """Dependency returning the shared content processor."""
    return ContentProcessor(upload_dir=UPLOAD_DIR, max_file_size=MAX_UPLOAD_SIZE)


__all__ = [
    'ContentProcessor',
    'ProcessedFile',
    'UploadStore',
    'safe_filename',
    'ContentProcessingError',
    'FileTooLargeError',
    'InvalidFileError',
    'UnsupportedFileTypeError',
    'get_content_processor',
]
