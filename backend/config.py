"""Configuration management for the PDF question answering backend."""
import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Server Configuration
PORT = int(os.getenv("PORT", "8000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = os.getenv("LOG_FORMAT", "json")  # "json" or "text"

# CORS Configuration
CORS_ORIGINS = os.getenv(
    "CORS_ORIGINS",
    "http://localhost:3000,http://localhost:3001"
).split(",")

# Optional auxiliary embedding key, used when the request does not carry one
VOYAGE_API_KEY = os.getenv("VOYAGE_API_KEY")

# Generation defaults per provider
DEFAULT_OPENAI_MODEL = "gpt-3.5-turbo"
DEFAULT_ANTHROPIC_MODEL = "claude-3-sonnet-20240229"
DEFAULT_GROQ_MODEL = "llama-3.1-8b-instant"
MAX_OUTPUT_TOKENS = int(os.getenv("MAX_OUTPUT_TOKENS", "1024"))

# Embedding Configuration
OPENAI_EMBEDDING_MODEL = "text-embedding-ada-002"
OPENAI_EMBEDDING_URL = "https://api.openai.com/v1/embeddings"
OPENAI_EMBEDDING_BATCH_SIZE = 2048
VOYAGE_EMBEDDING_MODEL = "voyage-3-large"
VOYAGE_EMBEDDING_URL = "https://api.voyageai.com/v1/embeddings"
VOYAGE_EMBEDDING_BATCH_SIZE = 128

# Transport timeout for every vendor call, in seconds
REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT", "60"))

# Chunking Configuration
CHUNK_SIZE = 1000  # characters
CHUNK_OVERLAP = 100  # characters

# Retrieval Configuration
DEFAULT_TOP_K = int(os.getenv("DEFAULT_TOP_K", "100"))
FALLBACK_CITATION_COUNT = 3
