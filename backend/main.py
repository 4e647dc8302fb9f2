"""Main entry point for the PDF question answering API."""
import logging
from typing import List, Optional

from fastapi import APIRouter, FastAPI, File, Header, Query, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from config import CORS_ORIGINS, LOG_FORMAT, LOG_LEVEL, PORT
from logger import setup_logging
from models.api import (
    ChatRequest,
    ChatResponse,
    CitationOut,
    DocumentDetail,
    DocumentSummary,
    ErrorResponse,
    ModelInfo,
    ModelListResponse,
    PageOut,
)
from models.document import Document
from models.provider import ProviderKind
from services.document_loader import DocumentLoader
from services.document_store import InMemoryDocumentStore
from services.errors import DocumentLoadError, DocumentNotFoundError, QAError
from services.model_catalog import ModelCatalog
from services.session_orchestrator import SessionOrchestrator

# Initialize logging
logger = logging.getLogger(__name__)

router = APIRouter()


def _summary(document: Document) -> DocumentSummary:
    return DocumentSummary(
        document_id=document.document_id,
        name=document.name,
        page_count=document.page_count,
        date_uploaded=document.date_uploaded
    )


@router.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "message": "PDF Question Answering API"}


@router.get("/health")
async def health():
    """Detailed health check."""
    return {
        "status": "healthy",
        "service": "pdf-qa-backend",
        "version": "1.0.0"
    }


@router.post("/documents", response_model=DocumentSummary, status_code=201)
def upload_document(request: Request, file: UploadFile = File(...)) -> DocumentSummary:
    """
    Upload a PDF and store its per-page text.

    Re-uploading a file with the same name replaces the stored copy and keeps
    its document id.
    """
    filename = file.filename or "document.pdf"
    if not filename.lower().endswith(".pdf") and file.content_type != "application/pdf":
        raise DocumentLoadError(f"Only PDF files are supported: {filename}")

    data = file.file.read()
    document = request.app.state.document_loader.load_bytes(data, filename)
    stored = request.app.state.document_store.put(document)
    return _summary(stored)


@router.get("/documents", response_model=List[DocumentSummary])
def list_documents(request: Request) -> List[DocumentSummary]:
    """List stored documents."""
    return [_summary(document) for document in request.app.state.document_store.list()]


@router.get("/documents/{document_id}", response_model=DocumentDetail)
def get_document(document_id: str, request: Request) -> DocumentDetail:
    """Return a stored document with its page texts."""
    document = request.app.state.document_store.get(document_id)
    if document is None:
        raise DocumentNotFoundError(document_id)

    return DocumentDetail(
        **_summary(document).model_dump(),
        pages=[PageOut(page_number=page.page_number, text=page.text) for page in document.pages]
    )


@router.delete("/documents/{document_id}", status_code=204)
def delete_document(document_id: str, request: Request) -> Response:
    """Remove a stored document."""
    if not request.app.state.document_store.delete(document_id):
        raise DocumentNotFoundError(document_id)
    return Response(status_code=204)


@router.post(
    "/chat",
    response_model=ChatResponse,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        502: {"model": ErrorResponse}
    }
)
def chat_endpoint(payload: ChatRequest, request: Request):
    """
    Answer a question about a stored document.

    Runs the full retrieval pipeline: chunking, embedding, similarity search,
    prompt assembly, generation and citation extraction.

    Args:
        payload: Document id, question and provider configuration

    Returns:
        ChatResponse with answer and citations, or an error body with
        error_kind, message and details
    """
    logger.info(f"Processing question for document {payload.document_id}: {payload.question[:100]}")

    try:
        result = request.app.state.orchestrator.answer_question(
            document_id=payload.document_id,
            question=payload.question,
            provider_config=payload.provider_config.to_provider_config(),
            top_k=payload.top_k
        )
    except QAError:
        # Rendered by the QAError handler with its own status and kind
        raise
    except Exception as e:
        logger.error(f"Unexpected error processing question: {e}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "error_kind": "INTERNAL_ERROR",
                "message": f"Internal server error: {str(e)}",
                "details": {}
            }
        )

    return ChatResponse(
        answer=result.answer,
        citations=[CitationOut(**citation.to_dict()) for citation in result.citations],
        model_used=result.model_used,
        chunks_retrieved=result.chunks_retrieved
    )


@router.get("/models", response_model=ModelListResponse)
def list_models(
    request: Request,
    provider: ProviderKind = Query(...),
    x_api_key: Optional[str] = Header(default=None)
) -> ModelListResponse:
    """List the chat models the caller's key can use."""
    models = request.app.state.model_catalog.list_models(provider, x_api_key or "")
    return ModelListResponse(models=[ModelInfo(**model) for model in models])


async def qa_error_handler(request: Request, exc: QAError) -> JSONResponse:
    logger.warning(f"Request failed with {exc.code}: {exc.message}")
    return JSONResponse(status_code=exc.http_status, content=exc.to_dict())


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=422,
        content={
            "error_kind": "INVALID_REQUEST",
            "message": "Request validation failed",
            "details": {"errors": errors}
        }
    )


def create_app(
    document_store: Optional[InMemoryDocumentStore] = None,
    orchestrator: Optional[SessionOrchestrator] = None,
    document_loader: Optional[DocumentLoader] = None,
    model_catalog: Optional[ModelCatalog] = None,
    configure_logging: bool = True
) -> FastAPI:
    """
    Build the API application.

    The document store is owned by the app and shared by every request;
    pass one in to control its lifetime (tests do).
    """
    if configure_logging:
        setup_logging(LOG_LEVEL, json_format=LOG_FORMAT == "json")

    if document_store is None:
        document_store = InMemoryDocumentStore()
    if orchestrator is None:
        orchestrator = SessionOrchestrator(document_store)

    app = FastAPI(
        title="PDF Question Answering",
        description="Ask questions about uploaded PDFs and get answers with page citations",
        version="1.0.0"
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.document_store = document_store
    app.state.orchestrator = orchestrator
    app.state.document_loader = document_loader or DocumentLoader()
    app.state.model_catalog = model_catalog or ModelCatalog()

    app.add_exception_handler(QAError, qa_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.include_router(router)

    logger.info("PDF question answering API initialized")
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    logger.info(f"Starting PDF question answering API on port {PORT}")
    uvicorn.run(app, host="0.0.0.0", port=PORT)
