"""Question answering result models."""
from dataclasses import dataclass, field
from enum import Enum
from typing import List

from models.citation import Citation


class SessionState(str, Enum):
    """Stages a single question passes through."""
    IDLE = "idle"
    CHUNKING_DOCUMENT = "chunking_document"
    EMBEDDING_DOCUMENTS = "embedding_documents"
    EMBEDDING_QUERY = "embedding_query"
    SEARCHING = "searching"
    PROMPT_BUILDING = "prompt_building"
    GENERATING = "generating"
    EXTRACTING_CITATIONS = "extracting_citations"
    DONE = "done"
    FAILED = "failed"


@dataclass
class QAResult:
    """Grounded answer with the citations that support it."""
    answer: str
    citations: List[Citation]
    model_used: str = ""
    chunks_retrieved: int = 0
    states: List[SessionState] = field(default_factory=list)
