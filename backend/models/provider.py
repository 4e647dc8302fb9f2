"""Provider configuration models."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class ProviderKind(str, Enum):
    """Chat model vendors an answer can be generated with."""
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GROQ = "groq"


@dataclass(frozen=True)
class ProviderConfig:
    """
    Per-request vendor selection and credentials.

    Keys are excluded from repr so the config can be logged safely.

    Attributes:
        kind: Vendor used for answer generation
        api_key: Key for the generation vendor
        model: Chat model id, or None for the vendor default
        auxiliary_embedding_key: Voyage key, required when the generation
            vendor has no embedding endpoint of its own
    """
    kind: ProviderKind
    api_key: str = field(repr=False)
    model: Optional[str] = None
    auxiliary_embedding_key: Optional[str] = field(default=None, repr=False)
