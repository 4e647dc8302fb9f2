"""Document loading service for PDF processing."""
import logging
import uuid
from datetime import datetime, timezone
from typing import List

import fitz  # PyMuPDF

from models.document import Document, Page
from services.errors import DocumentLoadError

logger = logging.getLogger(__name__)

class DocumentLoader:
    """Extracts per-page text from uploaded PDF files."""

    def load_bytes(self, data: bytes, filename: str) -> Document:
        """
        Load a PDF from memory and extract text page-by-page.

        Args:
            data: Raw PDF bytes
            filename: Original file name, kept as the document name

        Returns:
            Document with one Page per PDF page

        Raises:
            DocumentLoadError: If the bytes are not a readable PDF or it has
                no pages
        """
        if not data:
            raise DocumentLoadError("No file content provided")

        try:
            pdf_document = fitz.open(stream=data, filetype="pdf")
        except Exception as e:
            logger.error(f"Failed to open PDF {filename}: {str(e)}")
            raise DocumentLoadError(f"Failed to process document: {filename}") from e

        try:
            pages = self._extract_pages(pdf_document)
        finally:
            pdf_document.close()

        if not pages:
            raise DocumentLoadError(f"Document has no pages: {filename}")

        document = Document(
            document_id=self._generate_document_id(),
            name=filename,
            pages=pages,
            date_uploaded=datetime.now(timezone.utc).isoformat()
        )
        logger.info(f"Loaded {filename}: {document.page_count} pages")
        return document

    def _extract_pages(self, pdf_document) -> List[Page]:
        pages = []

        for page_num in range(len(pdf_document)):
            text = pdf_document[page_num].get_text()

            pages.append(Page(
                page_number=page_num + 1,  # 1-indexed
                text=text,
                word_count=len(text.split())
            ))

        return pages

    def _generate_document_id(self) -> str:
        return f"doc_{uuid.uuid4().hex[:12]}"
