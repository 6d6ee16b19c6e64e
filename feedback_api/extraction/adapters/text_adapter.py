"""Plain text, markdown, data and source files."""

from typing import Any, Dict

from .base import ContentAdapter

PREVIEW_LINES = 5


class TextAdapter(ContentAdapter):
    label = "text file"
    mime_types = (
        'text/plain',
        'text/markdown',
        'text/x-markdown',
        'text/csv',
        'text/x-python',
        'application/json',
    )
    parse_errors = (UnicodeDecodeError,)

    def text_from_bytes(self, data: bytes, **kwargs) -> str:
        return data.decode('utf-8')

    def metadata_from_bytes(self, data: bytes) -> Dict[str, Any]:
        text = data.decode('utf-8', errors='replace')
        lines = text.splitlines()
        return {
            'line_count': len(lines),
            'word_count': len(text.split()),
            'preview': '\n'.join(line.strip() for line in lines[:PREVIEW_LINES]),
            'encoding': 'utf-8',
        }

    def accepts(self, data: bytes) -> bool:
        try:
            data.decode('utf-8')
        except UnicodeDecodeError:
            return False
        return True
