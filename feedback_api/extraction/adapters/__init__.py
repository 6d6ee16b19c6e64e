"""
Text extraction adapters for submission files.

Students may upload plain text (including markdown, CSV, JSON and source
files), PDF and DOCX. The adapter is chosen from the filename's MIME type.
"""

import mimetypes
from typing import List, Optional, Type

from .base import (
    ContentAdapter,
    ContentProcessingError,
    FileTooLargeError,
    InvalidFileError,
    UnsupportedFileTypeError,
)
from .docx_adapter import DocxAdapter
from .pdf_adapter import PDFAdapter
from .text_adapter import TextAdapter

ADAPTERS: List[Type[ContentAdapter]] = [TextAdapter, PDFAdapter, DocxAdapter]


def guess_mime_type(filename: str) -> Optional[str]:
    mime_type, _ = mimetypes.guess_type(filename)
    if mime_type is None and filename.lower().endswith(".md"):
        return "text/markdown"
    return mime_type


def get_adapter(filename: str) -> Optional[ContentAdapter]:
    """Adapter instance for the file's type, or None when the type is not accepted."""
    mime_type = guess_mime_type(filename)
    if not mime_type:
        return None
    for adapter_cls in ADAPTERS:
        if adapter_cls.handles(mime_type):
            return adapter_cls()
    return None


__all__ = [
    'ADAPTERS',
    'ContentAdapter',
    'ContentProcessingError',
    'DocxAdapter',
    'FileTooLargeError',
    'InvalidFileError',
    'PDFAdapter',
    'TextAdapter',
    'UnsupportedFileTypeError',
    'get_adapter',
    'guess_mime_type',
]
