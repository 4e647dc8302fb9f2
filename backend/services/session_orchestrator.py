"""Per-question orchestration of the retrieval-augmented answer pipeline."""
import logging
from typing import Callable, List, Optional, Sequence

from models.chunk import Chunk, ScoredChunk
from models.provider import ProviderConfig
from models.qa import QAResult, SessionState
from services.chunking_engine import ChunkingEngine
from services.citation_extractor import CitationExtractor
from services.document_store import InMemoryDocumentStore
from services.embedding_model import EmbeddingProvider, build_embedding_provider
from services.errors import (
    DocumentNotFoundError,
    EmbeddingProviderError,
    InvalidRequestError,
    QAError,
)
from services.llm_client import AnswerGenerator, build_generator
from services.prompt_builder import PromptBuilder
from services.vector_store import InMemoryVectorStore
from config import DEFAULT_TOP_K

logger = logging.getLogger(__name__)


class _Session:
    """State trace of a single question."""

    def __init__(self, document_id: str):
        self.document_id = document_id
        self.states: List[SessionState] = []

    @property
    def state(self) -> SessionState:
        return self.states[-1]

    def advance(self, state: SessionState) -> None:
        self.states.append(state)
        logger.info(
            f"Session for document {self.document_id}: {state.value}",
            extra={"document_id": self.document_id, "state": state.value}
        )


class SessionOrchestrator:
    """
    Answers one question about one stored document.

    Every call walks the states IDLE, CHUNKING_DOCUMENT, EMBEDDING_DOCUMENTS,
    EMBEDDING_QUERY, SEARCHING, PROMPT_BUILDING, GENERATING,
    EXTRACTING_CITATIONS and DONE. A failure in any state moves the session to
    FAILED and re-raises the typed error with `stage` set to the failing
    state. Nothing is retried and nothing is carried over between calls: the
    chunks and the index are rebuilt for every question.
    """

    def __init__(
        self,
        document_store: InMemoryDocumentStore,
        chunking_engine: Optional[ChunkingEngine] = None,
        prompt_builder: Optional[PromptBuilder] = None,
        citation_extractor: Optional[CitationExtractor] = None,
        embedding_factory: Callable[[ProviderConfig], EmbeddingProvider] = build_embedding_provider,
        generator_factory: Callable[[ProviderConfig], AnswerGenerator] = build_generator,
        top_k: int = DEFAULT_TOP_K
    ):
        """
        Initialize the orchestrator.

        Args:
            document_store: Store the documents are read from
            chunking_engine: Chunker, defaults to configured sizes
            prompt_builder: Prompt assembler
            citation_extractor: Citation extractor
            embedding_factory: Builds the embedding provider for a request
            generator_factory: Builds the answer generator for a request
            top_k: Default number of chunks placed in the prompt
        """
        self.document_store = document_store
        self.chunking_engine = chunking_engine or ChunkingEngine()
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.citation_extractor = citation_extractor or CitationExtractor()
        self.embedding_factory = embedding_factory
        self.generator_factory = generator_factory
        self.top_k = top_k

    def answer_question(
        self,
        document_id: str,
        question: str,
        provider_config: ProviderConfig,
        top_k: Optional[int] = None
    ) -> QAResult:
        """
        Produce a grounded, cited answer.

        Args:
            document_id: Id of a stored document
            question: User question
            provider_config: Vendor selection and credentials
            top_k: Chunks to retrieve, defaults to the orchestrator's top_k

        Returns:
            QAResult with answer, citations and the visited states

        Raises:
            QAError: The typed error of the failing step
        """
        if top_k is None:
            top_k = self.top_k
        session = _Session(document_id)
        session.advance(SessionState.IDLE)

        try:
            if not question or not question.strip():
                raise InvalidRequestError("Question field is required and cannot be empty")
            if top_k <= 0:
                raise InvalidRequestError("top_k must be positive", {"top_k": top_k})

            document = self.document_store.get(document_id)
            if document is None:
                raise DocumentNotFoundError(document_id)

            # Both are built before any vendor call so that missing
            # credentials fail the request up front
            generator = self.generator_factory(provider_config)
            embedder = self.embedding_factory(provider_config)

            session.advance(SessionState.CHUNKING_DOCUMENT)
            chunks = self.chunking_engine.chunk_pages(document.pages)

            session.advance(SessionState.EMBEDDING_DOCUMENTS)
            index = self._build_index(embedder, chunks)

            session.advance(SessionState.EMBEDDING_QUERY)
            query_embedding = embedder.embed_query(question)

            session.advance(SessionState.SEARCHING)
            scored_chunks = self._search(index, query_embedding, top_k)

            session.advance(SessionState.PROMPT_BUILDING)
            prompt = self.prompt_builder.build_prompt(question, scored_chunks)

            session.advance(SessionState.GENERATING)
            response = generator.generate(prompt)

            session.advance(SessionState.EXTRACTING_CITATIONS)
            citations = self.citation_extractor.extract(response.text, scored_chunks, question)

            session.advance(SessionState.DONE)

        except QAError as e:
            e.stage = session.state.value
            session.advance(SessionState.FAILED)
            logger.error(
                f"Question failed while {e.stage}: {e.message}",
                extra={"error_code": e.code, "error_details": e.details, "stage": e.stage}
            )
            raise
        except Exception as e:
            stage = session.state.value
            session.advance(SessionState.FAILED)
            logger.error(f"Unexpected error while {stage}: {e}", exc_info=True)
            raise

        return QAResult(
            answer=response.text,
            citations=citations,
            model_used=response.model_used,
            chunks_retrieved=len(scored_chunks),
            states=list(session.states)
        )

    @staticmethod
    def _build_index(embedder: EmbeddingProvider, chunks: Sequence[Chunk]) -> InMemoryVectorStore:
        embeddings = embedder.embed_documents([chunk.content for chunk in chunks])
        try:
            return InMemoryVectorStore(chunks, embeddings)
        except ValueError as e:
            raise EmbeddingProviderError(f"Inconsistent document embeddings: {str(e)}") from e

    @staticmethod
    def _search(index: InMemoryVectorStore, query_embedding: Sequence[float], top_k: int) -> List[ScoredChunk]:
        try:
            return index.search(query_embedding, top_k=top_k)
        except ValueError as e:
            raise EmbeddingProviderError(f"Query embedding does not match the index: {str(e)}") from e
