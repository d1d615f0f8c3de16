"""
Tests for excerpt extraction, context building and prompt augmentation.
"""

from __future__ import annotations

import pytest

from knowledge_engine.generation import (
    ERROR_SUMMARY,
    NO_CONTENT_SUMMARY,
    RetrievalContext,
    Source,
    assemble,
    build_augmented_prompt,
    build_context,
    format_metadata,
    summarize_excerpts,
    summarize_sources,
)
from knowledge_engine.rag import IndexedDocument, ScoredResult, extract_excerpts
from knowledge_engine.rag.excerpts import split_sentences


BODY = (
    "Express Entry is the main pathway for skilled workers. Short one. "
    "Candidates receive a CRS score based on age and language! "
    "Provinces run their own programs too?"
)


def _source(**overrides) -> Source:
    fields = dict(
        id="doc_001",
        title="Express Entry System",
        type="document",
        category="Immigration",
        tags=["pr", "ee"],
        similarity=0.875,
        excerpts=["Express Entry is the main pathway for skilled workers"],
    )
    fields.update(overrides)
    return Source(**fields)


# --- Excerpts ---


def test_split_sentences_drops_short_fragments():
    assert split_sentences(BODY) == [
        "Express Entry is the main pathway for skilled workers",
        "Candidates receive a CRS score based on age and language",
        "Provinces run their own programs too",
    ]


def test_extract_excerpts_ranks_by_query_word_overlap():
    excerpts = extract_excerpts(BODY, "express entry score", max_excerpts=3)
    assert excerpts == [
        "Express Entry is the main pathway for skilled workers",
        "Candidates receive a CRS score based on age and language",
    ]


def test_extract_excerpts_respects_max():
    assert extract_excerpts(BODY, "express entry score", max_excerpts=1) == [
        "Express Entry is the main pathway for skilled workers"
    ]
    assert extract_excerpts(BODY, "express", max_excerpts=0) == []


def test_extract_excerpts_hard_ceiling():
    body = ". ".join(f"Sentence number {i} mentions the visa office" for i in range(20))
    excerpts = extract_excerpts(body, "visa", max_excerpts=50)
    assert len(excerpts) == 8
    # ties keep document order
    assert excerpts[0].startswith("Sentence number 0 ")


def test_extract_excerpts_counts_distinct_words_once():
    body = "The visa visa visa office is closed today. The visa office and the passport desk are open."
    excerpts = extract_excerpts(body, "visa visa passport", max_excerpts=2)
    assert excerpts[0] == "The visa office and the passport desk are open"


def test_extract_excerpts_without_query_words():
    assert extract_excerpts(BODY, "a an of", max_excerpts=3) == []


# --- Context ---


def test_summarize_excerpts_truncates_long_text():
    long = "x" * 200
    summary = summarize_excerpts([long])
    assert len(summary) == 150
    assert summary.endswith("...")
    assert summarize_excerpts(["y" * 150]) == "y" * 150
    assert summarize_excerpts([]) == ""


def test_format_metadata():
    assert format_metadata(_source()) == "Category: Immigration | Tags: pr, ee | Similarity: 87.5%"
    assert format_metadata(_source(category=None, tags=[])) == "Similarity: 87.5%"


def test_build_context_numbers_and_separates_blocks():
    context = build_context([_source(), _source(id="doc_002", title="Job Search Tips", type="template", excerpts=[])])
    blocks = context.split("\n\n" + "─" * 80 + "\n\n")
    assert len(blocks) == 2
    assert blocks[0].splitlines() == [
        "[1] Express Entry System (document)",
        "Category: Immigration | Tags: pr, ee | Similarity: 87.5%",
        "Summary: Express Entry is the main pathway for skilled workers",
    ]
    assert blocks[1].startswith("[2] Job Search Tips (template)\n")
    assert blocks[1].endswith("Summary: ")
    assert build_context([]) == ""


def test_summarize_sources():
    sources = [
        _source(),
        _source(id="2", type="template", category="Employment"),
        _source(id="3", type="document", category=None),
    ]
    assert summarize_sources(sources) == (
        "Found 3 relevant document(s) (document, template) from categories: Immigration, Employment"
    )
    assert summarize_sources([_source(category=None)]) == "Found 1 relevant document(s) (document)"


def test_assemble_builds_context():
    doc = IndexedDocument(id="doc_001", title="Express Entry System", body=BODY, category="Immigration")
    other = IndexedDocument(id="doc_002", title="Provincial Programs", body=BODY, type="config")
    results = [ScoredResult(doc, 0.9, "bm25"), ScoredResult(other, 0.5, "bm25")]

    context = assemble(results, "express entry", max_excerpts=3)

    assert context.has_relevant_content is True
    assert context.total_sources == 2 == len(context.sources)
    assert context.average_similarity == pytest.approx(0.7)
    assert [s.id for s in context.sources] == ["doc_001", "doc_002"]
    assert context.sources[0].excerpts == ["Express Entry is the main pathway for skilled workers"]
    assert context.context.startswith("[1] Express Entry System (document)")
    assert context.context_summary == "Found 2 relevant document(s) (document, config) from categories: Immigration"


def test_assemble_empty():
    context = assemble([], "anything", max_excerpts=3)
    assert context.has_relevant_content is False
    assert context.context == ""
    assert context.context_summary == NO_CONTENT_SUMMARY
    assert context.total_sources == 0
    assert context.average_similarity == 0


def test_retrieval_context_to_dict():
    data = RetrievalContext.empty(ERROR_SUMMARY).to_dict()
    assert data == {
        "has_relevant_content": False,
        "context": "",
        "context_summary": ERROR_SUMMARY,
        "sources": [],
        "total_sources": 0,
        "average_similarity": 0.0,
    }


# --- Prompt ---


def _context() -> RetrievalContext:
    sources = [_source(), _source(id="doc_002", title="Job Search Tips", category=None, similarity=0.5)]
    return RetrievalContext(
        has_relevant_content=True,
        context=build_context(sources),
        context_summary=summarize_sources(sources),
        sources=sources,
        total_sources=2,
        average_similarity=0.69,
    )


def test_build_augmented_prompt_without_content_returns_base():
    assert build_augmented_prompt("You are helpful.", RetrievalContext.empty(), "hi") == "You are helpful."


def test_build_augmented_prompt_contents():
    prompt = build_augmented_prompt("You are helpful.", _context(), "express entry")
    assert prompt.startswith("You are helpful.\n\nKNOWLEDGE BASE CONTEXT (Found 2 relevant document(s)")
    assert "[1] Express Entry System (document)" in prompt
    assert '- "Express Entry System" (document, Immigration) - 87.5% match' in prompt
    assert '- "Job Search Tips" (document) - 50.0% match' in prompt
    assert "Average relevance: 69.0%" in prompt
    assert "According to your document 'Express Entry System'" in prompt
    assert "PRIMARY SOURCE" in prompt


def test_build_augmented_prompt_is_deterministic():
    first = build_augmented_prompt("Base", _context(), "q")
    second = build_augmented_prompt("Base", _context(), "q")
    assert first == second
