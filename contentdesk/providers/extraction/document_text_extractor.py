"""PDF and DOCX text extraction.

PDFs are read with PyMuPDF (``fitz``) page by page; DOCX files with
python-docx, joining paragraph text with newlines.  Both parse in-memory
bytes, so callers run them via ``asyncio.to_thread``.
"""

from __future__ import annotations

import io

import docx
import fitz  # PyMuPDF -- the "fitz" import name is a PyMuPDF convention
import structlog

from contentdesk.interfaces.text_extractor import IDocumentTextExtractor
from contentdesk.utils.errors import EmptyExtractionError

logger = structlog.get_logger(logger_name=__name__)


class DocumentTextExtractor(IDocumentTextExtractor):
    """Extracts plain text from PDF and DOCX bytes."""

    def extract_pdf_pages(self, data: bytes) -> list[str]:
        """Return the text of each PDF page with extractable text, in order.

        Raises
        ------
        EmptyExtractionError
            If the bytes are not a readable PDF.
        """
        try:
            doc = fitz.open(stream=data, filetype="pdf")
        except Exception as exc:
            logger.error("pdf_open_failed", size=len(data), error=str(exc))
            raise EmptyExtractionError(f"Could not open PDF: {exc}") from exc

        pages: list[str] = []
        try:
            for page in doc:
                text = page.get_text("text").strip()
                if text:
                    pages.append(text)
        finally:
            doc.close()

        if not pages:
            logger.warning("pdf_no_text_extracted", size=len(data))
        return pages

    def extract_docx_text(self, data: bytes) -> str:
        try:
            document = docx.Document(io.BytesIO(data))
        except Exception as exc:
            logger.error("docx_open_failed", size=len(data), error=str(exc))
            raise EmptyExtractionError(f"Could not open DOCX: {exc}") from exc

        text = "\n".join(paragraph.text for paragraph in document.paragraphs)
        logger.info("docx_extracted", paragraphs=len(document.paragraphs), chars=len(text))
        return text
