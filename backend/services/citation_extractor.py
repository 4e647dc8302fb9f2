"""
Citation extraction for generated answers.

The generator answers in free text and cites pages with the [PAGE n] markers
it was shown in the prompt. This module reconciles those mentions with the
retrieved chunks and works out which part of each chunk to highlight:

1. Scan the answer for page mentions.
2. Keep the retrieved chunks from the mentioned pages, or fall back to the
   best scoring chunks when no usable page was cited.
3. Inside every kept chunk, locate the highlight by phrase match, then
   keyword match, then default to the chunk's opening.

Everything here is a pure function of its inputs, so the same answer,
chunks and question always produce identical citations.
"""
import logging
import re
from typing import List, Optional, Pattern, Sequence, Set

from models.chunk import ScoredChunk
from models.citation import Citation, HighlightRange
from config import FALLBACK_CITATION_COUNT

logger = logging.getLogger(__name__)

# "[PAGE 3]", "[ page 3 ]"
_BRACKETED_PAGE = re.compile(r"\[\s*page\s*(\d+)\s*\]", re.IGNORECASE)
# "page 3", "PAGE 3", "pages 2, 3 and 5", "page 2 & page 4". Listed numbers
# past the first are capped at 3 digits so "page 2, 2023 results" is page 2 only.
_BARE_PAGES = re.compile(
    r"\bpages?\s*(\d+(?:\s*(?:,|and|&)\s*(?:pages?\s*)?\d{1,3}(?!\d))*)",
    re.IGNORECASE,
)
_NUMBER = re.compile(r"\d+")
_WORD = re.compile(r"\w+")

STOP_WORDS = frozenset({"what", "where", "when", "how", "the", "this", "that", "with"})

MIN_PHRASE_WORDS = 3
MAX_PHRASE_WORDS = 6
PHRASE_MIN_CONTEXT = 100
KEYWORD_CONTEXT = 150
DEFAULT_HIGHLIGHT_LENGTH = 300
DISPLAY_TEXT_LENGTH = 150


def find_page_mentions(answer_text: str) -> Set[int]:
    """Return the distinct page numbers the answer cites."""
    pages: Set[int] = set()

    for match in _BRACKETED_PAGE.finditer(answer_text):
        pages.add(int(match.group(1)))

    for match in _BARE_PAGES.finditer(answer_text):
        pages.update(int(number) for number in _NUMBER.findall(match.group(1)))

    return pages


def is_keyword(word: str) -> bool:
    return len(word) > 3 and word.lower() not in STOP_WORDS


def _phrase_pattern(words: Sequence[str]) -> Pattern:
    # Any run of whitespace or punctuation may separate the words in the text
    return re.compile(
        r"\b" + r"\W+".join(re.escape(word) for word in words) + r"\b",
        re.IGNORECASE,
    )


def _clamp(start: int, end: int, length: int) -> HighlightRange:
    start = max(0, min(start, length))
    end = max(start, min(end, length))
    return HighlightRange(start=start, end=end)


def phrase_highlight(content: str, question_words: Sequence[str]) -> Optional[HighlightRange]:
    """
    Highlight around the longest question phrase found in the content.

    Phrases of 3 to 6 consecutive question words are tried longest first,
    left to right. Phrases made only of short or stop words are skipped.
    """
    longest = min(MAX_PHRASE_WORDS, len(question_words))

    for size in range(longest, MIN_PHRASE_WORDS - 1, -1):
        for offset in range(len(question_words) - size + 1):
            phrase = question_words[offset:offset + size]
            if not any(is_keyword(word) for word in phrase):
                continue

            match = _phrase_pattern(phrase).search(content)
            if match:
                padding = max(PHRASE_MIN_CONTEXT, match.end() - match.start())
                return _clamp(match.start() - padding, match.end() + padding, len(content))

    return None


def keyword_highlight(content: str, question_words: Sequence[str]) -> Optional[HighlightRange]:
    """Highlight around the first question keyword found in the content."""
    lowered = content.lower()

    for word in question_words:
        if not is_keyword(word):
            continue

        index = lowered.find(word.lower())
        if index >= 0:
            return _clamp(index - KEYWORD_CONTEXT, index + len(word) + KEYWORD_CONTEXT, len(content))

    return None


def locate_highlight(content: str, question: str) -> HighlightRange:
    """
    Pick the highlight range for one chunk.

    Tries a phrase match, then a keyword match, and otherwise highlights the
    opening of the chunk. The range always lies within the content.
    """
    question_words = _WORD.findall(question)

    highlight = phrase_highlight(content, question_words)
    if highlight is None:
        highlight = keyword_highlight(content, question_words)
    if highlight is None:
        highlight = _clamp(0, DEFAULT_HIGHLIGHT_LENGTH, len(content))

    return highlight


def display_excerpt(content: str) -> str:
    """Short single-line excerpt for compact citation lists."""
    text = " ".join(content.split())
    if len(text) <= DISPLAY_TEXT_LENGTH:
        return text
    return text[:DISPLAY_TEXT_LENGTH].rstrip() + "..."


class CitationExtractor:
    """Turns a generated answer into citations over the retrieved chunks."""

    def __init__(self, fallback_count: int = FALLBACK_CITATION_COUNT):
        """
        Initialize CitationExtractor.

        Args:
            fallback_count: Chunks cited when the answer names no usable page
        """
        self.fallback_count = fallback_count

    def select_chunks(self, answer_text: str, scored_chunks: Sequence[ScoredChunk]) -> List[ScoredChunk]:
        """
        Keep the chunks from pages the answer cites.

        A citation of a page that was not in the context, or no parseable
        citation at all, falls back to the best scoring chunks.
        """
        mentioned_pages = find_page_mentions(answer_text)
        selected = [
            scored for scored in scored_chunks
            if scored.chunk.page_number in mentioned_pages
        ]

        if selected:
            logger.debug(f"Answer cites pages {sorted(mentioned_pages)}: {len(selected)} chunks")
            return selected

        logger.warning(
            f"Answer cites no page from the context (mentioned: {sorted(mentioned_pages)}), "
            f"falling back to top {self.fallback_count} chunks"
        )
        ranked = sorted(scored_chunks, key=lambda scored: scored.score, reverse=True)
        return ranked[:self.fallback_count]

    def extract(self, answer_text: str, scored_chunks: Sequence[ScoredChunk], question: str) -> List[Citation]:
        """
        Build citations for an answer.

        Args:
            answer_text: Generated answer
            scored_chunks: Chunks that were placed in the prompt
            question: User question, used to localise highlights

        Returns:
            Citations in the order of the selected chunks
        """
        citations = []

        for scored in self.select_chunks(answer_text, scored_chunks):
            content = scored.chunk.content
            citations.append(Citation(
                page_number=scored.chunk.page_number,
                display_text=display_excerpt(content),
                full_text=content,
                highlight_range=locate_highlight(content, question)
            ))

        logger.info(f"Extracted {len(citations)} citations")
        return citations
