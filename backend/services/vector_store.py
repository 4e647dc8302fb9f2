"""In-memory vector store with exhaustive cosine similarity search."""
import logging
from typing import List, Protocol, Sequence

import numpy as np

from models.chunk import Chunk, ScoredChunk

logger = logging.getLogger(__name__)


def cosine_similarity(vec_a: Sequence[float], vec_b: Sequence[float]) -> float:
    """
    Cosine similarity of two vectors.

    Returns 0.0 when either vector has zero norm.

    Raises:
        ValueError: If the vectors differ in length
    """
    a = np.asarray(vec_a, dtype=np.float64)
    b = np.asarray(vec_b, dtype=np.float64)
    if a.shape != b.shape:
        raise ValueError("Vectors must have the same length")

    norm_a = np.linalg.norm(a)
    norm_b = np.linalg.norm(b)
    if norm_a == 0 or norm_b == 0:
        return 0.0

    return float(np.clip(np.dot(a, b) / (norm_a * norm_b), -1.0, 1.0))


class SimilarityIndex(Protocol):
    """Nearest-neighbour search over the chunks of one request."""

    def search(self, query_embedding: Sequence[float], top_k: int) -> List[ScoredChunk]:
        ...


class InMemoryVectorStore:
    """
    Brute-force cosine index over one document's chunks.

    Built once per question and discarded afterwards. A single document yields
    at most a few thousand chunks, so an exact scan over a numpy matrix is
    both fast enough and fully deterministic.
    """

    def __init__(self, chunks: Sequence[Chunk], embeddings: Sequence[Sequence[float]]):
        """
        Build the index from parallel lists.

        Args:
            chunks: Chunks in document order
            embeddings: embeddings[i] is the vector of chunks[i]

        Raises:
            ValueError: If the lists differ in length, are empty, or the
                vectors differ in dimension
        """
        if len(chunks) != len(embeddings):
            raise ValueError(
                f"Got {len(chunks)} chunks but {len(embeddings)} embeddings"
            )
        if not chunks:
            raise ValueError("Chunks list cannot be empty")

        dimensions = {len(vector) for vector in embeddings}
        if len(dimensions) != 1:
            raise ValueError("All embeddings must have the same dimension")

        self.chunks = list(chunks)
        self.matrix = np.asarray(embeddings, dtype=np.float64)
        self.norms = np.linalg.norm(self.matrix, axis=1)

        logger.debug(f"Indexed {len(self.chunks)} chunks with dimension {self.dimension}")

    @property
    def dimension(self) -> int:
        return int(self.matrix.shape[1])

    def __len__(self) -> int:
        return len(self.chunks)

    def search(self, query_embedding: Sequence[float], top_k: int = 4) -> List[ScoredChunk]:
        """
        Find the chunks most similar to the query.

        Args:
            query_embedding: Embedding vector for the question
            top_k: Number of chunks to return; larger values return every chunk

        Returns:
            ScoredChunk list sorted by score descending, ties kept in
            document order

        Raises:
            ValueError: If top_k is not positive or the query dimension differs
        """
        if top_k <= 0:
            raise ValueError("top_k must be positive")

        query = np.asarray(query_embedding, dtype=np.float64)
        if query.shape != (self.dimension,):
            raise ValueError(
                f"Query embedding has dimension {query.size}, index has {self.dimension}"
            )

        query_norm = np.linalg.norm(query)
        denominators = self.norms * query_norm
        dots = self.matrix @ query
        scores = np.zeros(len(self.chunks), dtype=np.float64)
        np.divide(dots, denominators, out=scores, where=denominators != 0)
        np.clip(scores, -1.0, 1.0, out=scores)

        order = np.argsort(-scores, kind="stable")[:top_k]
        results = [
            ScoredChunk(chunk=self.chunks[index], score=float(scores[index]))
            for index in order
        ]

        logger.debug(f"Found {len(results)} chunks for query (top_k={top_k})")
        return results
