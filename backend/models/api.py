"""API request and response schemas."""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from models.provider import ProviderConfig, ProviderKind


class ApiKeyConfig(BaseModel):
    """Provider selection sent with every question."""
    provider: ProviderKind
    api_key: str = Field(..., min_length=1)
    model: Optional[str] = None
    voyage_api_key: Optional[str] = None

    def to_provider_config(self) -> ProviderConfig:
        return ProviderConfig(
            kind=self.provider,
            api_key=self.api_key,
            model=self.model or None,
            auxiliary_embedding_key=self.voyage_api_key or None,
        )


class ChatRequest(BaseModel):
    """Question about one stored document."""
    document_id: str = Field(..., min_length=1)
    question: str = Field(..., min_length=1)
    provider_config: ApiKeyConfig
    top_k: Optional[int] = Field(default=None, gt=0)


class HighlightRangeOut(BaseModel):
    start: int
    end: int


class CitationOut(BaseModel):
    page_number: int
    display_text: str
    full_text: str
    highlight_range: HighlightRangeOut


class ChatResponse(BaseModel):
    """Grounded answer with citations."""
    answer: str
    citations: List[CitationOut]
    model_used: str
    chunks_retrieved: int


class PageOut(BaseModel):
    page_number: int
    text: str


class DocumentSummary(BaseModel):
    document_id: str
    name: str
    page_count: int
    date_uploaded: str


class DocumentDetail(DocumentSummary):
    pages: List[PageOut]


class ModelInfo(BaseModel):
    id: str
    name: str


class ModelListResponse(BaseModel):
    models: List[ModelInfo]


class ErrorResponse(BaseModel):
    """Body returned for every handled failure."""
    error_kind: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)
