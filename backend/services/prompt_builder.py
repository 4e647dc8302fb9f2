"""Grounding prompt construction."""
from typing import Sequence

from models.chunk import ScoredChunk

# Page marker placed before every context passage. The citation extractor
# parses the same token back out of the answer.
PAGE_MARKER = "[PAGE {page_number}]"


def format_page_marker(page_number: int) -> str:
    return PAGE_MARKER.format(page_number=page_number)


class PromptBuilder:
    """Formats retrieved passages and the question into one grounding prompt."""

    INSTRUCTIONS = """Provide a helpful response based solely on the context above.
If the context does not contain enough information to answer, say so clearly instead of guessing.
Be detailed but concise.

IMPORTANT: When citing information, use ONLY the exact page markers as provided in the context, in the form [PAGE X].
Always cite the source page when you reference information from the context.
ONLY cite page numbers that are explicitly provided in the context sections above.
Format your response in Markdown."""

    @staticmethod
    def build_context(scored_chunks: Sequence[ScoredChunk]) -> str:
        """
        Render passages with their page markers, in the given order.

        Args:
            scored_chunks: Retrieved chunks, usually by descending relevance

        Returns:
            Context block with passages separated by a blank line
        """
        return "\n\n".join(
            f"{format_page_marker(scored.chunk.page_number)}\n{scored.chunk.content}"
            for scored in scored_chunks
        )

    @classmethod
    def build_prompt(cls, question: str, scored_chunks: Sequence[ScoredChunk]) -> str:
        """
        Build the full prompt sent to the answer generator.

        Passages are never truncated. A prompt that is too long for the model
        surfaces as a context length error from the generator.

        Args:
            question: User question, included verbatim
            scored_chunks: Retrieved chunks

        Returns:
            Complete prompt string
        """
        context = cls.build_context(scored_chunks)

        prompt = f"""You are an AI assistant that helps users understand PDF documents.

CONTEXT:
{context}

USER QUESTION:
{question}

{cls.INSTRUCTIONS}"""

        return prompt
