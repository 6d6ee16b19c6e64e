"""DOCX files, read straight from the OOXML package."""

import io
import zipfile
import xml.etree.ElementTree as ET
from typing import Any, Dict

from .base import ContentAdapter

WORD_NS = {'w': 'http://schemas.openxmlformats.org/wordprocessingml/2006/main'}
CORE_NS = {
    'cp': 'http://schemas.openxmlformats.org/package/2006/metadata/core-properties',
    'dc': 'http://purl.org/dc/elements/1.1/',
    'dcterms': 'http://purl.org/dc/terms/',
}
REQUIRED_PARTS = ('[Content_Types].xml', 'word/document.xml')
CORE_PROPERTIES = {
    'title': 'dc:title',
    'creator': 'dc:creator',
    'last_modified_by': 'cp:lastModifiedBy',
    'created': 'dcterms:created',
}


class DocxAdapter(ContentAdapter):
    label = "DOCX"
    mime_types = (
        'application/vnd.openxmlformats-officedocument.wordprocessingml.document',
        'application/vnd.ms-word.document.macroenabled.12',
    )
    parse_errors = (zipfile.BadZipFile, KeyError, ET.ParseError)

    def text_from_bytes(self, data: bytes, **kwargs) -> str:
        with zipfile.ZipFile(io.BytesIO(data)) as package:
            root = ET.fromstring(package.read('word/document.xml'))
        paragraphs = (
            ''.join(run.text or '' for run in para.iterfind('.//w:t', WORD_NS))
            for para in root.iterfind('.//w:p', WORD_NS)
        )
        return '\n\n'.join(p for p in paragraphs if p.strip())

    def metadata_from_bytes(self, data: bytes) -> Dict[str, Any]:
        metadata: Dict[str, Any] = {}
        with zipfile.ZipFile(io.BytesIO(data)) as package:
            if 'docProps/core.xml' in package.namelist():
                core = ET.fromstring(package.read('docProps/core.xml'))
                for key, tag in CORE_PROPERTIES.items():
                    element = core.find(tag, CORE_NS)
                    if element is not None and element.text:
                        metadata[key] = element.text

        text = self.text_from_bytes(data)
        metadata.update({
            'word_count': len(text.split()),
            'preview': text[:500],
            'file_type': 'DOCX',
        })
        return metadata

    def accepts(self, data: bytes) -> bool:
        if data[:4] != b'PK\x03\x04':
            return False
        try:
            with zipfile.ZipFile(io.BytesIO(data)) as package:
                names = set(package.namelist())
        except zipfile.BadZipFile:
            return False
        return all(part in names for part in REQUIRED_PARTS)
