"""Services for the PDF question answering backend."""
from .document_loader import DocumentLoader
from .document_store import InMemoryDocumentStore
from .chunking_engine import ChunkingEngine
from .embedding_model import EmbeddingProvider, OpenAIEmbeddings, VoyageEmbeddings, build_embedding_provider
from .vector_store import InMemoryVectorStore, cosine_similarity
from .prompt_builder import PromptBuilder
from .llm_client import LLMResponse, OpenAIGenerator, AnthropicGenerator, GroqGenerator, build_generator
from .citation_extractor import CitationExtractor
from .session_orchestrator import SessionOrchestrator
from .model_catalog import ModelCatalog

__all__ = ['DocumentLoader', 'InMemoryDocumentStore', 'ChunkingEngine', 'EmbeddingProvider', 'OpenAIEmbeddings', 'VoyageEmbeddings', 'build_embedding_provider', 'InMemoryVectorStore', 'cosine_similarity', 'PromptBuilder', 'LLMResponse', 'OpenAIGenerator', 'AnthropicGenerator', 'GroqGenerator', 'build_generator', 'CitationExtractor', 'SessionOrchestrator', 'ModelCatalog']
