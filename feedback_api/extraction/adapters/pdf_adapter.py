"""PDF files, read with PyMuPDF."""

from typing import Any, Dict

import fitz  # PyMuPDF

from .base import ContentAdapter

PREVIEW_CHARS = 500


class PDFAdapter(ContentAdapter):
    label = "PDF"
    mime_types = (
        'application/pdf',
        'application/x-pdf',
        'application/acrobat',
        'application/vnd.pdf',
        'text/pdf',
        'text/x-pdf',
    )
    # PyMuPDF raises FileDataError (a RuntimeError) for damaged documents
    parse_errors = (RuntimeError, ValueError)

    @staticmethod
    def _open(data: bytes):
        return fitz.open(stream=data, filetype="pdf")

    def text_from_bytes(self, data: bytes, **kwargs) -> str:
        with self._open(data) as doc:
            return "\n\n".join(page.get_text("text") for page in doc)

    def metadata_from_bytes(self, data: bytes) -> Dict[str, Any]:
        with self._open(data) as doc:
            info = doc.metadata or {}
            page_texts = [page.get_text("text") or "" for page in doc]

        with_text = sum(1 for text in page_texts if text.strip())
        return {
            'page_count': len(page_texts),
            'author': info.get('author', ''),
            'title': info.get('title', ''),
            'creation_date': info.get('creationDate', ''),
            'preview': page_texts[0][:PREVIEW_CHARS] if page_texts else "",
            # Share of pages with a text layer; scanned PDFs score low
            'confidence_score': with_text / len(page_texts) if page_texts else 0.0,
        }

    def accepts(self, data: bytes) -> bool:
        return data[:4] == b'%PDF'
