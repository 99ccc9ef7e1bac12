"""
Text extractors keyed by file extension.

Adding a format means implementing :class:`TextExtractor` and adding an
entry to ``DEFAULT_EXTRACTORS``; the resolver and tools pick it up from
there.
"""

import io
import logging
import os
from abc import ABC, abstractmethod
from typing import Dict, Mapping, Optional, Tuple, Union

from pypdf import PdfReader

from .errors import ExtractionError, UnsupportedFormatError


logger = logging.getLogger(__name__)

PDF_EXTENSION = "pdf"
DOCX_EXTENSION = "docx"
DOC_EXTENSION = "doc"
TXT_EXTENSION = "txt"

DEFAULT_MIME_TYPE = "application/octet-stream"

MIME_TYPES: Dict[str, str] = {
    PDF_EXTENSION: "application/pdf",
    DOCX_EXTENSION: "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    DOC_EXTENSION: "application/msword",
    TXT_EXTENSION: "text/plain",
}


class TextExtractor(ABC):
    """Turns the bytes of one document format into plain text."""

    @property
    @abstractmethod
    def extractor_type(self) -> str:
        pass

    @abstractmethod
    def extract(self, data: bytes) -> str:
        """
        Extract text from raw file bytes.

        Raises:
            ExtractionError: the bytes could not be decoded as this format.
        """
        pass


class PdfExtractor(TextExtractor):
    """PDF text extraction backed by pypdf."""

    @property
    def extractor_type(self) -> str:
        return "PdfExtractor"

    def extract(self, data: bytes) -> str:
        # pypdf raises a range of exception types on malformed input.
        try:
            reader = PdfReader(io.BytesIO(data))
            pages = [page.extract_text() or "" for page in reader.pages]
        except Exception as e:
            raise ExtractionError(f"Failed to extract text from PDF: {e}") from e

        logger.debug("Extracted %d page(s) from PDF", len(pages))
        return "\n".join(pages)


DEFAULT_EXTRACTORS: Dict[str, TextExtractor] = {
    PDF_EXTENSION: PdfExtractor(),
}

SUPPORTED_EXTENSIONS: Tuple[str, ...] = tuple(DEFAULT_EXTRACTORS)


def get_mime_type(extension: str) -> str:
    """MIME type for an extension (case-insensitive)."""
    return MIME_TYPES.get(extension.lower(), DEFAULT_MIME_TYPE)


def file_extension(path: Union[str, "os.PathLike[str]"]) -> Optional[str]:
    """Extension without the dot, or None. Dot-files have no extension."""
    _, ext = os.path.splitext(os.path.basename(os.fspath(path)))
    return ext[1:] if ext else None


def get_extractor(
    path: Union[str, "os.PathLike[str]"],
    extractors: Optional[Mapping[str, TextExtractor]] = None,
) -> TextExtractor:
    """
    Select the extractor for ``path`` by its extension.

    Raises:
        UnsupportedFormatError: no extension, or none registered for it.
    """
    if extractors is None:
        extractors = DEFAULT_EXTRACTORS

    ext = file_extension(path)
    if ext is None:
        raise UnsupportedFormatError(f"File has no extension: {os.fspath(path)}")

    extractor = extractors.get(ext.lower())
    if extractor is None:
        supported = ", ".join(sorted(extractors)) or "none"
        raise UnsupportedFormatError(
            f"Unsupported file format: {ext}. Supported formats: {supported}"
        )
    return extractor


def extract_file(path: str, extractor: TextExtractor) -> str:
    """Read ``path`` and run ``extractor`` over its bytes."""
    try:
        with open(path, "rb") as f:
            data = f.read()
    except OSError as e:
        raise ExtractionError(f"Failed to read file: {path}") from e

    try:
        return extractor.extract(data)
    except ExtractionError as e:
        raise ExtractionError(f"Failed to extract text from file: {path}") from e
