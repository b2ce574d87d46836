"""Document text extraction (PyMuPDF for PDF, python-docx for DOCX)."""

from contentdesk.providers.extraction.document_text_extractor import DocumentTextExtractor

__all__ = ["DocumentTextExtractor"]
