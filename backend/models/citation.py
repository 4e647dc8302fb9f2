"""Citation data models."""
from dataclasses import dataclass, asdict
from typing import Any, Dict

@dataclass(frozen=True)
class HighlightRange:
    """Character offsets into a citation's full text, end exclusive."""
    start: int
    end: int

@dataclass(frozen=True)
class Citation:
    """Pointer from an answer back to the passage that supports it."""
    page_number: int
    display_text: str
    full_text: str
    highlight_range: HighlightRange

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
