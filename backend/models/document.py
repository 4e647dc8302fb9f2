"""Document data models."""
from dataclasses import dataclass, field
from typing import List

@dataclass(frozen=True)
class Page:
    """Represents a single page from a document."""
    page_number: int  # 1-indexed
    text: str
    word_count: int = 0

@dataclass
class Document:
    """Represents a loaded PDF document."""
    document_id: str
    name: str
    pages: List[Page]
    date_uploaded: str = ""
    text: str = field(init=False)

    def __post_init__(self):
        self.text = "\n".join(page.text for page in self.pages)

    @property
    def page_count(self) -> int:
        return len(self.pages)
