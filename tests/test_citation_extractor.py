"""Unit tests for CitationExtractor."""
import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

import pytest
from models.chunk import Chunk, ScoredChunk
from models.citation import Citation, HighlightRange
from services.citation_extractor import (
    CitationExtractor,
    display_excerpt,
    find_page_mentions,
    locate_highlight,
)


def scored(content, page, score=0.5, index=0):
    return ScoredChunk(chunk=Chunk(content=content, page_number=page, chunk_index=index), score=score)


class TestFindPageMentions:
    """Tests for page mention parsing."""

    def test_bracketed_markers(self):
        assert find_page_mentions("Revenue grew [PAGE 2] and costs fell [page 7].") == {2, 7}

    def test_bare_mentions(self):
        assert find_page_mentions("As stated on page 4, and again on Page 10.") == {4, 10}

    def test_page_lists(self):
        assert find_page_mentions("See pages 2, 3 and 5.") == {2, 3, 5}
        assert find_page_mentions("Compare page 2 & page 6.") == {2, 6}

    def test_list_ignores_unrelated_numbers(self):
        assert find_page_mentions("As shown on page 2, 2023 results were strong.") == {2}
        assert find_page_mentions("See page 4 and 2024 guidance.") == {4}

    def test_no_mentions(self):
        assert find_page_mentions("The document does not say.") == set()

    def test_ignores_words_containing_page(self):
        assert find_page_mentions("The homepage 3 layout is described.") == set()


class TestLocateHighlight:
    """Tests for highlight localisation."""

    def test_keyword_match(self):
        """Test the first question keyword found anchors the highlight."""
        content = "Revenue grew 12% in Q3."

        highlight = locate_highlight(content, "What happened to revenue in Q3?")

        assert highlight == HighlightRange(start=0, end=len(content))
        assert "Revenue" in content[highlight.start:highlight.end]

    def test_phrase_match_takes_priority(self):
        """Test a matched question phrase is centred with at least 100 chars of context."""
        content = ("Intro text. " * 20) + "The quarterly revenue growth was strong." + (" Trailing text." * 20)
        phrase_start = content.index("quarterly revenue growth")
        phrase_end = phrase_start + len("quarterly revenue growth")

        highlight = locate_highlight(content, "Why was quarterly revenue growth strong?")

        assert highlight == HighlightRange(start=phrase_start - 100, end=phrase_end + 100)

    def test_phrase_match_tolerates_punctuation(self):
        content = "Net income, operating margin: both improved."

        highlight = locate_highlight(content, "How did net income operating margin change?")

        assert content[highlight.start:highlight.end] == content

    def test_keyword_context_is_bounded(self):
        content = ("a " * 200) + "dividend" + (" b" * 200)
        index = content.index("dividend")

        highlight = locate_highlight(content, "Was a dividend paid?")

        assert highlight == HighlightRange(start=index - 150, end=index + len("dividend") + 150)

    def test_default_highlight_when_nothing_matches(self):
        """Test chunks with no question words highlight their first 300 characters."""
        content = "z" * 500

        assert locate_highlight(content, "Who is the CEO?") == HighlightRange(start=0, end=300)
        assert locate_highlight("short", "Who is the CEO?") == HighlightRange(start=0, end=5)

    def test_stop_words_are_not_keywords(self):
        content = "Something about that and this with where."

        assert locate_highlight(content, "what where when with this that") == HighlightRange(start=0, end=len(content))

    @pytest.mark.parametrize("question", [
        "What happened to revenue in Q3?",
        "Revenue",
        "",
        "tail end of the chunk text",
    ])
    def test_range_always_within_content(self, question):
        content = "Revenue grew. The tail end of the chunk text is here."

        highlight = locate_highlight(content, question)

        assert 0 <= highlight.start <= highlight.end <= len(content)


class TestDisplayExcerpt:
    """Tests for display_excerpt."""

    def test_short_text_unchanged(self):
        assert display_excerpt("Revenue grew 12% in Q3.") == "Revenue grew 12% in Q3."

    def test_whitespace_collapsed(self):
        assert display_excerpt("Revenue\n\n  grew\t12%") == "Revenue grew 12%"

    def test_long_text_truncated(self):
        excerpt = display_excerpt("word " * 100)

        assert excerpt.endswith("...")
        assert len(excerpt) <= 153


class TestCitationExtractor:
    """Test suite for CitationExtractor."""

    def test_cited_page_produces_citation(self):
        """Test an answer citing [PAGE 2] yields a citation for that chunk."""
        extractor = CitationExtractor()
        chunks = [scored("Revenue grew 12% in Q3.", 2, 0.91)]

        citations = extractor.extract("Revenue grew 12%. [PAGE 2]", chunks, "What happened to revenue in Q3?")

        assert citations == [Citation(
            page_number=2,
            display_text="Revenue grew 12% in Q3.",
            full_text="Revenue grew 12% in Q3.",
            highlight_range=HighlightRange(start=0, end=23)
        )]

    def test_keeps_all_chunks_of_cited_pages_in_order(self):
        extractor = CitationExtractor()
        chunks = [
            scored("Second page, first chunk.", 2, 0.3, 0),
            scored("First page.", 1, 0.9),
            scored("Second page, second chunk.", 2, 0.8, 1),
        ]

        citations = extractor.extract("The answer [PAGE 2].", chunks, "question")

        assert [citation.full_text for citation in citations] == [
            "Second page, first chunk.",
            "Second page, second chunk.",
        ]

    def test_fallback_to_top_scoring_chunks(self):
        """Test an answer without page references cites the top 3 chunks by score."""
        extractor = CitationExtractor()
        chunks = [
            scored("c0", 1, 0.2),
            scored("c1", 2, 0.9),
            scored("c2", 3, 0.5),
            scored("c3", 4, 0.9),
            scored("c4", 5, 0.1),
        ]

        citations = extractor.extract("The document describes several things.", chunks, "question")

        assert len(citations) == 3
        assert [citation.full_text for citation in citations] == ["c1", "c3", "c2"]

    def test_fallback_when_cited_page_not_retrieved(self):
        extractor = CitationExtractor()
        chunks = [scored(f"c{i}", i + 1, 0.1 * i) for i in range(4)]

        citations = extractor.extract("See [PAGE 9].", chunks, "question")

        assert [citation.page_number for citation in citations] == [4, 3, 2]

    def test_fallback_count_is_configurable(self):
        extractor = CitationExtractor(fallback_count=1)
        chunks = [scored("low", 1, 0.1), scored("high", 2, 0.7)]

        citations = extractor.extract("No references.", chunks, "question")

        assert [citation.full_text for citation in citations] == ["high"]

    def test_no_chunks_no_citations(self):
        assert CitationExtractor().extract("Answer [PAGE 1].", [], "question") == []

    def test_extraction_is_idempotent(self):
        extractor = CitationExtractor()
        chunks = [scored("Operating costs fell on page one.", 1, 0.4), scored("Revenue grew 12% in Q3.", 2, 0.8)]
        answer = "Costs fell (page 1) while revenue grew [PAGE 2]."

        first = extractor.extract(answer, chunks, "What happened to revenue and costs?")
        second = extractor.extract(answer, chunks, "What happened to revenue and costs?")

        assert first == second
        assert [citation.page_number for citation in first] == [1, 2]

    def test_citation_serialises(self):
        citation = CitationExtractor().extract("[PAGE 2]", [scored("Revenue grew.", 2)], "revenue")[0]

        assert citation.to_dict() == {
            "page_number": 2,
            "display_text": "Revenue grew.",
            "full_text": "Revenue grew.",
            "highlight_range": {"start": 0, "end": 13},
        }
