"""Chunk data models."""
from dataclasses import dataclass

@dataclass(frozen=True)
class Chunk:
    """Represents a passage of one page, the unit of retrieval."""
    content: str
    page_number: int
    chunk_index: int = 0  # position within its page
    start_char: int = 0  # offset of content in the page text

    @property
    def chunk_id(self) -> str:
        return f"{self.page_number}_{self.chunk_index}"

@dataclass(frozen=True)
class ScoredChunk:
    """Chunk with its cosine similarity to the query."""
    chunk: Chunk
    score: float  # -1.0 to 1.0
