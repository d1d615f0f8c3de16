"""Prompt templates for knowledge-base augmented prompts."""

from __future__ import annotations

from .context_builder import RetrievalContext

KNOWLEDGE_BLOCK = """KNOWLEDGE BASE CONTEXT ({summary}):

{context}

---

CONTEXT METADATA:
{sources}
Average relevance: {average}

---

INSTRUCTIONS FOR USING THIS CONTEXT:
1. PRIMARY SOURCE: Use the above context as your primary source of information.
2. ATTRIBUTION: Cite documents by title when you rely on them (e.g. "According to your document '{first_title}'...").
3. RELEVANCE: Focus on the most relevant excerpts and information.
4. SUPPLEMENTATION: Only if the context does not fully answer the question, supplement with general knowledge and label it clearly.
5. TRANSPARENCY: Be explicit about what comes from the knowledge base and what comes from general knowledge.
6. ACCURACY: If documents contradict each other, acknowledge it and ask for clarification."""


def format_source_line(title: str, doc_type: str, category: str | None, similarity: float) -> str:
    kind = f"{doc_type}, {category}" if category else doc_type
    return f'- "{title}" ({kind}) - {similarity * 100:.1f}% match'


def build_augmented_prompt(base_prompt: str, context: RetrievalContext, query: str) -> str:
    """
    Append the knowledge-base block to base_prompt.

    Returns base_prompt unchanged when the context has no relevant content.
    The output depends only on the arguments.
    """
    if not context.has_relevant_content:
        return base_prompt

    sources = "\n".join(
        format_source_line(s.title, s.type, s.category, s.similarity) for s in context.sources
    )
    block = KNOWLEDGE_BLOCK.format(
        summary=context.context_summary,
        context=context.context,
        sources=sources,
        average=f"{context.average_similarity * 100:.1f}%",
        first_title=context.sources[0].title if context.sources else "",
    )
    return f"{base_prompt}\n\n{block}"
