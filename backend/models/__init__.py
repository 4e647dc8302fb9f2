"""Data models for the PDF question answering backend."""
from .document import Document, Page
from .chunk import Chunk, ScoredChunk
from .citation import Citation, HighlightRange
from .provider import ProviderConfig, ProviderKind
from .qa import QAResult, SessionState

__all__ = [
    "Document",
    "Page",
    "Chunk",
    "ScoredChunk",
    "Citation",
    "HighlightRange",
    "ProviderConfig",
    "ProviderKind",
    "QAResult",
    "SessionState",
]
