"""Adapter base class and the extraction error hierarchy."""

from abc import ABC, abstractmethod
from typing import Any, BinaryIO, Callable, Dict, Tuple, Type


class ContentProcessingError(Exception):
    """Base exception for content processing errors."""
    pass


class UnsupportedFileTypeError(ContentProcessingError):
    def __init__(self, file_type: str, message: str = ""):
        self.file_type = file_type
        self.message = message or f"Unsupported file type: {file_type}"
        super().__init__(self.message)


class InvalidFileError(ContentProcessingError):
    def __init__(self, filename: str, message: str = ""):
        self.filename = filename
        self.message = message or f"Invalid or corrupted file: {filename}"
        super().__init__(self.message)


class FileTooLargeError(ContentProcessingError):
    def __init__(self, size: int, max_size: int):
        self.size = size
        self.max_size = max_size
        super().__init__(f"File size {size} exceeds maximum allowed size of {max_size} bytes")


def read_all(file: BinaryIO) -> bytes:
    """Whole file contents, leaving the handle rewound."""
    file.seek(0)
    try:
        return file.read()
    finally:
        file.seek(0)


class ContentAdapter(ABC):
    """
    Extracts text from one family of file types.

    Subclasses work on the raw bytes; the async wrappers read the upload and
    turn the subclass's ``parse_errors`` into ContentProcessingError.
    """

    label = "file"
    mime_types: Tuple[str, ...] = ()
    parse_errors: Tuple[Type[Exception], ...] = ()

    @classmethod
    def handles(cls, mime_type: str) -> bool:
        return mime_type in cls.mime_types

    @abstractmethod
    def text_from_bytes(self, data: bytes, **kwargs) -> str:
        pass

    @abstractmethod
    def metadata_from_bytes(self, data: bytes) -> Dict[str, Any]:
        pass

    @abstractmethod
    def accepts(self, data: bytes) -> bool:
        """Cheap structural check run before extraction."""
        pass

    def _guarded(self, action: str, step: Callable, *args, **kwargs):
        try:
            return step(*args, **kwargs)
        except self.parse_errors as e:
            raise ContentProcessingError(f"Error {action} {self.label}: {e}") from e

    async def extract_text(self, file: BinaryIO, **kwargs) -> str:
        return self._guarded("extracting text from", self.text_from_bytes, read_all(file), **kwargs)

    async def extract_metadata(self, file: BinaryIO) -> Dict[str, Any]:
        data = read_all(file)
        metadata = self._guarded("reading metadata of", self.metadata_from_bytes, data)
        metadata.setdefault("size_bytes", len(data))
        return metadata

    async def is_valid(self, file: BinaryIO) -> bool:
        return self.accepts(read_all(file))
