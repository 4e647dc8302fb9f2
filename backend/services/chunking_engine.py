"""Chunking engine that splits page text into overlapping passages."""
import logging
from typing import List, Sequence, Tuple

from models.document import Page
from models.chunk import Chunk
from services.errors import EmptyDocumentError
from config import CHUNK_SIZE, CHUNK_OVERLAP

logger = logging.getLogger(__name__)

class ChunkingEngine:
    """Segments document pages into retrievable chunks that remember their page."""

    # Natural break points, strongest first
    SEPARATORS = ["\n\n", "\n", ". ", "? ", "! ", " "]

    def __init__(self, chunk_size: int = CHUNK_SIZE, chunk_overlap: int = CHUNK_OVERLAP):
        """
        Initialize ChunkingEngine.

        Args:
            chunk_size: Maximum chunk length in characters
            chunk_overlap: Characters shared by consecutive chunks of a page

        Raises:
            ValueError: If the sizes cannot produce advancing windows
        """
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        if chunk_overlap < 0:
            raise ValueError("chunk_overlap cannot be negative")
        if chunk_overlap >= chunk_size / 2:
            raise ValueError("chunk_overlap must be smaller than half of chunk_size")

        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap

    def chunk_pages(self, pages: Sequence[Page]) -> List[Chunk]:
        """
        Chunk every page of a document, preserving document order.

        Chunks never span two pages. Empty pages are skipped but keep their
        place in the page numbering.

        Args:
            pages: Pages of one document

        Returns:
            List of Chunk objects tagged with their page number

        Raises:
            EmptyDocumentError: If no page produced a chunk
        """
        all_chunks: List[Chunk] = []

        for page in pages:
            if not page.text or not page.text.strip():
                logger.warning(f"Skipping empty page {page.page_number}")
                continue

            all_chunks.extend(self._chunk_page(page))

        if not all_chunks:
            logger.error(f"No chunks created from {len(pages)} pages")
            raise EmptyDocumentError()

        logger.info(f"Created {len(all_chunks)} chunks from {len(pages)} pages")
        return all_chunks

    def _chunk_page(self, page: Page) -> List[Chunk]:
        """
        Chunk a single page.

        Args:
            page: Page with non-blank text

        Returns:
            List of chunks for this page
        """
        chunks: List[Chunk] = []

        for start, end in self._window_bounds(page.text):
            # Whitespace-only windows are kept so the offsets stay contiguous
            chunks.append(Chunk(
                content=page.text[start:end],
                page_number=page.page_number,
                chunk_index=len(chunks),
                start_char=start
            ))

        return chunks

    def _window_bounds(self, text: str) -> List[Tuple[int, int]]:
        """
        Compute the [start, end) offsets of every window over the text.

        Each window after the first starts chunk_overlap characters before
        the previous one ended.
        """
        bounds = []
        start = 0
        length = len(text)

        while start < length:
            end = self._find_break(text, start)
            bounds.append((start, end))
            if end >= length:
                break

            next_start = end - self.chunk_overlap
            start = next_start if next_start > start else end

        return bounds

    def _find_break(self, text: str, start: int) -> int:
        """
        Pick the end offset of the window starting at `start`.

        Searches the second half of the window backwards for the strongest
        separator and cuts right after it, so chunks end on paragraph,
        sentence or word boundaries. Without any separator the window is cut
        at exactly chunk_size characters.
        """
        hard_end = start + self.chunk_size
        if hard_end >= len(text):
            return len(text)

        earliest = start + self.chunk_size // 2
        for separator in self.SEPARATORS:
            index = text.rfind(separator, earliest, hard_end)
            if index != -1:
                return index + len(separator)

        return hard_end
