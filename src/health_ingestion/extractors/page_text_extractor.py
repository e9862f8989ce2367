# src/health_ingestion/extractors/page_text_extractor.py
"""
Page-level text extraction from PDF lab reports.

Extraction cascade (in order of preference):
1. pypdfium2: Fast, good Unicode support (accents in Portuguese reports)
2. PyPDF2: Fallback, widely compatible

Each page's text is flattened to a single space-joined line: the downstream
regexes treat a page as one blob, so line breaks carry no meaning.

An unreadable PDF is the only fatal error of the extraction pipeline and is
raised as PDFExtractionError. Pages that yield no text are kept (empty) so
page numbering stays aligned with the document.
"""

from io import BytesIO
from pathlib import Path
from typing import List, Optional, Union
from dataclasses import dataclass, field
import logging
import re

import pypdfium2
import PyPDF2

from ..config import extraction_settings
from src.utils.exceptions import PDFExtractionError

_WHITESPACE = re.compile(r"\s+")

PdfSource = Union[Path, str, bytes]


@dataclass
class PageText:
    """Text extracted from a single page (1-indexed)."""
    page_number: int
    text: str
    char_count: int = 0
    method: str = "unknown"


@dataclass
class PageTextResult:
    """All pages of one document plus extraction metadata."""
    pages: List[PageText] = field(default_factory=list)
    method: str = "unknown"
    page_count: int = 0
    low_text_pages: List[int] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def texts(self) -> List[str]:
        return [p.text for p in self.pages]


def flatten_text(text: Optional[str]) -> str:
    """Collapse all whitespace runs (including newlines) to single spaces."""
    if not text:
        return ""
    return _WHITESPACE.sub(" ", text).strip()


class PageTextExtractor:
    """
    Turns a PDF into one flattened text string per page.

    Primary: pypdfium2
    Fallback: PyPDF2

    Flags pages with little text (likely scanned images) in the result,
    without failing: OCR is outside this extractor.
    """

    def __init__(self, min_page_chars: Optional[int] = None):
        self.logger = logging.getLogger(__name__)
        self.min_page_chars = (
            min_page_chars if min_page_chars is not None
            else extraction_settings.MIN_PAGE_CHARS
        )

    def extract_pages(self, source: PdfSource, password: Optional[str] = None) -> List[str]:
        """
        Extract flattened text for every page.

        Args:
            source: PDF path or raw PDF bytes
            password: Password for encrypted PDFs

        Returns:
            One string per page, in page order

        Raises:
            PDFExtractionError: the PDF could not be read by any backend
        """
        return self.extract_detailed(source, password).texts

    def extract_detailed(
        self,
        source: PdfSource,
        password: Optional[str] = None
    ) -> PageTextResult:
        """
        Extract pages with backend and low-text metadata.

        Raises:
            PDFExtractionError: both backends failed
        """
        label = "<bytes>" if isinstance(source, bytes) else str(source)
        result = PageTextResult()

        if not isinstance(source, bytes) and not Path(source).exists():
            raise PDFExtractionError(f"PDF not found: {label}", path=label)

        self.logger.debug(f"Extracting page text from {label}")

        try:
            result.pages = self._extract_with_pypdfium2(source, password)
            result.method = "pypdfium2"

        except Exception as e:
            self.logger.warning(f"pypdfium2 failed, trying PyPDF2: {e}")
            result.warnings.append(f"pypdfium2 failed: {e}")

            try:
                result.pages = self._extract_with_pypdf2(source, password)
                result.method = "pypdf2"

            except Exception as e2:
                self.logger.error(f"PyPDF2 also failed: {e2}")
                raise PDFExtractionError(
                    f"Could not read PDF {label}. pypdfium2: {e}, PyPDF2: {e2}",
                    path=label
                ) from e2

        result.page_count = len(result.pages)
        if result.page_count == 0:
            raise PDFExtractionError(f"PDF has no pages: {label}", path=label)

        result.low_text_pages = [
            p.page_number for p in result.pages if p.char_count < self.min_page_chars
        ]
        if result.low_text_pages:
            self.logger.warning(
                f"{len(result.low_text_pages)} page(s) with < {self.min_page_chars} chars "
                f"(possibly scanned): {result.low_text_pages}"
            )

        self.logger.info(
            f"{result.method} extracted {sum(p.char_count for p in result.pages)} chars "
            f"from {result.page_count} pages"
        )
        return result

    def _extract_with_pypdfium2(
        self,
        source: PdfSource,
        password: Optional[str] = None
    ) -> List[PageText]:
        """Extract text using pypdfium2."""
        pdf_input = source if isinstance(source, bytes) else str(source)
        pdf = pypdfium2.PdfDocument(pdf_input, password=password)

        pages = []
        try:
            for index in range(len(pdf)):
                page = pdf[index]
                try:
                    textpage = page.get_textpage()
                    text = flatten_text(textpage.get_text_range())
                except Exception as e:
                    self.logger.debug(f"pypdfium2 could not read page {index + 1}: {e}")
                    text = ""

                pages.append(PageText(
                    page_number=index + 1,
                    text=text,
                    char_count=len(text),
                    method="pypdfium2"
                ))
        finally:
            pdf.close()

        return pages

    def _extract_with_pypdf2(
        self,
        source: PdfSource,
        password: Optional[str] = None
    ) -> List[PageText]:
        """Extract text using PyPDF2."""
        stream = BytesIO(source) if isinstance(source, bytes) else open(source, 'rb')

        pages = []
        with stream:
            reader = PyPDF2.PdfReader(stream)

            if reader.is_encrypted:
                if not reader.decrypt(password or ""):
                    raise PDFExtractionError("PDF is encrypted and requires a password")

            for index, page in enumerate(reader.pages):
                try:
                    text = flatten_text(page.extract_text())
                except Exception as e:
                    self.logger.debug(f"PyPDF2 could not read page {index + 1}: {e}")
                    text = ""

                pages.append(PageText(
                    page_number=index + 1,
                    text=text,
                    char_count=len(text),
                    method="pypdf2"
                ))

        return pages
