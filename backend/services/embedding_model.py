"""Embedding providers backed by the OpenAI and Voyage AI HTTP APIs."""
import time
import logging
from typing import Any, Dict, Iterator, List, Optional, Protocol, Sequence

import httpx

from models.provider import ProviderConfig, ProviderKind
from services.errors import (
    BatchSizeExceededError,
    EmbeddingProviderError,
    MissingEmbeddingCredentialsError,
)
from config import (
    OPENAI_EMBEDDING_BATCH_SIZE,
    OPENAI_EMBEDDING_MODEL,
    OPENAI_EMBEDDING_URL,
    REQUEST_TIMEOUT,
    VOYAGE_API_KEY,
    VOYAGE_EMBEDDING_BATCH_SIZE,
    VOYAGE_EMBEDDING_MODEL,
    VOYAGE_EMBEDDING_URL,
)

logger = logging.getLogger(__name__)


class EmbeddingProvider(Protocol):
    """Maps text to dense vectors."""

    def embed_query(self, text: str) -> List[float]:
        ...

    def embed_documents(self, texts: Sequence[str]) -> List[List[float]]:
        ...


def iter_batches(texts: Sequence[str], batch_size: int) -> Iterator[List[str]]:
    """Yield consecutive slices of at most batch_size texts."""
    for offset in range(0, len(texts), batch_size):
        yield list(texts[offset:offset + batch_size])


def _post_embeddings(
    url: str,
    api_key: str,
    payload: Dict[str, Any],
    expected: int,
    vendor: str,
    timeout: float
) -> List[List[float]]:
    """
    Send one embeddings request and return vectors in input order.

    Both vendors answer with {"data": [{"embedding": [...], "index": i}, ...]}.

    Raises:
        EmbeddingProviderError: On transport failure, non-200 status or a
            response that does not hold one vector per input
    """
    headers = {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json"
    }

    start_time = time.time()
    try:
        with httpx.Client(timeout=timeout) as client:
            response = client.post(url, headers=headers, json=payload)
    except httpx.TimeoutException:
        error_msg = f"{vendor} embeddings request timed out after {timeout}s"
        logger.error(error_msg)
        raise EmbeddingProviderError(error_msg)
    except httpx.RequestError as e:
        error_msg = f"{vendor} embeddings network error: {str(e)}"
        logger.error(error_msg)
        raise EmbeddingProviderError(error_msg)

    elapsed = time.time() - start_time

    if response.status_code != 200:
        error_msg = f"{vendor} API error: {response.status_code} - {response.text}"
        logger.error(
            f"{vendor} embeddings request failed with status {response.status_code}",
            extra={"error_code": EmbeddingProviderError.code, "status": response.status_code}
        )
        raise EmbeddingProviderError(error_msg, status=response.status_code)

    try:
        items = sorted(response.json()["data"], key=lambda item: item["index"])
        embeddings = [item["embedding"] for item in items]
    except (KeyError, TypeError, ValueError) as e:
        raise EmbeddingProviderError(
            f"Malformed {vendor} embeddings response: {str(e)}",
            status=response.status_code
        )

    if len(embeddings) != expected:
        raise EmbeddingProviderError(
            f"{vendor} returned {len(embeddings)} embeddings for {expected} texts",
            status=response.status_code
        )

    logger.debug(f"Generated {expected} {vendor} embeddings in {elapsed:.2f}s")
    return embeddings


class OpenAIEmbeddings:
    """Embedding provider for the OpenAI embeddings endpoint."""

    def __init__(
        self,
        api_key: str,
        model_name: str = OPENAI_EMBEDDING_MODEL,
        max_batch_size: int = OPENAI_EMBEDDING_BATCH_SIZE,
        timeout: float = REQUEST_TIMEOUT,
        api_url: str = OPENAI_EMBEDDING_URL
    ):
        """
        Initialize the OpenAI embedding client.

        Args:
            api_key: OpenAI API key
            model_name: Embedding model identifier
            max_batch_size: Most texts accepted by a single request
            timeout: Request timeout in seconds
            api_url: Embeddings endpoint
        """
        if not api_key:
            raise ValueError("An OpenAI API key is required for embeddings")

        self.api_key = api_key
        self.model_name = model_name
        self.max_batch_size = max_batch_size
        self.timeout = timeout
        self.api_url = api_url

    def embed_query(self, text: str) -> List[float]:
        if not text or not text.strip():
            raise ValueError("Text cannot be empty")
        return self.embed_batch([text])[0]

    def embed_documents(self, texts: Sequence[str]) -> List[List[float]]:
        if not texts:
            raise ValueError("Texts list cannot be empty")

        embeddings: List[List[float]] = []
        for batch in iter_batches(texts, self.max_batch_size):
            embeddings.extend(self.embed_batch(batch))
        return embeddings

    def embed_batch(self, texts: Sequence[str]) -> List[List[float]]:
        """
        Embed texts with exactly one API call.

        Raises:
            BatchSizeExceededError: If texts exceed max_batch_size
            EmbeddingProviderError: If the API call fails
        """
        if len(texts) > self.max_batch_size:
            raise BatchSizeExceededError(len(texts), self.max_batch_size)

        payload = {"input": list(texts), "model": self.model_name}
        return _post_embeddings(self.api_url, self.api_key, payload, len(texts), "OpenAI", self.timeout)


class VoyageEmbeddings:
    """
    Embedding provider for the Voyage AI embeddings endpoint.

    Voyage distinguishes between texts stored for retrieval ("document") and
    the text being searched with ("query"), so the two operations send a
    different input_type.
    """

    def __init__(
        self,
        api_key: str,
        model_name: str = VOYAGE_EMBEDDING_MODEL,
        max_batch_size: int = VOYAGE_EMBEDDING_BATCH_SIZE,
        timeout: float = REQUEST_TIMEOUT,
        api_url: str = VOYAGE_EMBEDDING_URL
    ):
        if not api_key:
            raise ValueError("A Voyage AI API key is required for embeddings")

        self.api_key = api_key
        self.model_name = model_name
        self.max_batch_size = max_batch_size
        self.timeout = timeout
        self.api_url = api_url

    def embed_query(self, text: str) -> List[float]:
        if not text or not text.strip():
            raise ValueError("Text cannot be empty")
        return self.embed_batch([text], input_type="query")[0]

    def embed_documents(self, texts: Sequence[str]) -> List[List[float]]:
        if not texts:
            raise ValueError("Texts list cannot be empty")

        embeddings: List[List[float]] = []
        for batch in iter_batches(texts, self.max_batch_size):
            embeddings.extend(self.embed_batch(batch, input_type="document"))
        return embeddings

    def embed_batch(self, texts: Sequence[str], input_type: Optional[str] = "document") -> List[List[float]]:
        """
        Embed texts with exactly one API call.

        Raises:
            BatchSizeExceededError: If texts exceed max_batch_size
            EmbeddingProviderError: If the API call fails
        """
        if len(texts) > self.max_batch_size:
            raise BatchSizeExceededError(len(texts), self.max_batch_size)

        payload = {
            "input": list(texts),
            "model": self.model_name,
            "input_type": input_type,
        }
        return _post_embeddings(self.api_url, self.api_key, payload, len(texts), "Voyage AI", self.timeout)


def build_embedding_provider(config: ProviderConfig) -> EmbeddingProvider:
    """
    Select the embedding provider for a request.

    OpenAI requests embed with the same key. Anthropic and Groq have no
    embedding endpoint, so they need a Voyage AI key from the request or the
    VOYAGE_API_KEY environment variable.

    Raises:
        MissingEmbeddingCredentialsError: If a required Voyage key is absent
    """
    if config.kind == ProviderKind.OPENAI:
        return OpenAIEmbeddings(api_key=config.api_key)

    voyage_key = config.auxiliary_embedding_key or VOYAGE_API_KEY
    if not voyage_key:
        raise MissingEmbeddingCredentialsError(config.kind.value)
    return VoyageEmbeddings(api_key=voyage_key)
