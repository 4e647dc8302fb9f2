"""Typed errors raised by the question answering pipeline."""
from typing import Any, Dict, Optional


class QAError(Exception):
    """
    Base class for every failure the pipeline reports to its caller.

    Attributes:
        code: Stable error kind, preserved in API responses
        message: Human readable description
        details: Structured extra data for the client
        http_status: Status the HTTP layer answers with
        stage: Orchestrator state the error was raised in, if any
    """

    code = "QA_ERROR"
    http_status = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = details or {}
        self.stage: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_kind": self.code,
            "message": self.message,
            "details": self.details,
        }


class InvalidRequestError(QAError):
    code = "INVALID_REQUEST"
    http_status = 400


class DocumentNotFoundError(QAError):
    code = "DOCUMENT_NOT_FOUND"
    http_status = 404

    def __init__(self, document_id: str):
        super().__init__(
            f"Document not found: {document_id}",
            {"document_id": document_id},
        )
        self.document_id = document_id


class DocumentLoadError(QAError):
    code = "INVALID_DOCUMENT"
    http_status = 400


class EmptyDocumentError(QAError):
    code = "EMPTY_DOCUMENT"
    http_status = 422

    def __init__(self, message: str = "Document has no content to analyze"):
        super().__init__(message)


class MissingEmbeddingCredentialsError(QAError):
    code = "MISSING_EMBEDDING_CREDENTIALS"
    http_status = 400

    def __init__(self, provider: str):
        super().__init__(
            f"A Voyage AI API key is required to embed documents for the {provider} provider",
            {"provider": provider},
        )


class BatchSizeExceededError(QAError):
    code = "BATCH_SIZE_EXCEEDED"
    http_status = 500

    def __init__(self, size: int, limit: int):
        super().__init__(
            f"Maximum of {limit} texts can be embedded at once, got {size}",
            {"batch_size": size, "limit": limit},
        )


class EmbeddingProviderError(QAError):
    code = "EMBEDDING_PROVIDER_ERROR"
    http_status = 502

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message, {"status": status})
        self.status = status


class AuthenticationError(QAError):
    code = "AUTHENTICATION_ERROR"
    http_status = 401

    def __init__(self, message: str = "Authentication failed. Please check your API key.", provider: Optional[str] = None):
        super().__init__(message, {"provider": provider} if provider else {})


class ContextLengthExceededError(QAError):
    code = "CONTEXT_LENGTH_EXCEEDED"
    http_status = 400

    def __init__(self, max_tokens: int, used_tokens: int):
        super().__init__(
            f"The document and question require {used_tokens} tokens, "
            f"but the model only supports {max_tokens} tokens",
            {"max_tokens": max_tokens, "used_tokens": used_tokens},
        )
        self.max_tokens = max_tokens
        self.used_tokens = used_tokens


class GenerationError(QAError):
    code = "GENERATION_ERROR"
    http_status = 502

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message, {"status": status})
        self.status = status


class ModelCatalogError(QAError):
    code = "MODEL_CATALOG_ERROR"
    http_status = 502

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message, {"status": status})
        self.status = status
