"""Tests for page resolution, the minimum-length filter and strategy selection."""
import pytest

from chunking.chunker import DocumentChunker, build_chunker, finalize_chunks
from chunking.config import ChunkingSettings
from chunking.pages import extract_page_number, resolve_page_numbers
from chunking.strategies import ChunkingStrategy, ParagraphChunkerStrategy, SemanticChunkerStrategy

CONTENT = (
    "--- Page 1 ---\nAlpha text here.\n\n"
    "--- Page 2 ---\nBeta text here.\n\n"
    "--- Page 3 ---\nGamma text here.\n\n"
)


class FixedStrategy(ChunkingStrategy):
    def __init__(self, chunks: list[str]) -> None:
        self.chunks = chunks

    async def chunk(self, text: str) -> list[str]:
        return list(self.chunks)


def _settings(**kwargs) -> ChunkingSettings:
    return ChunkingSettings(_env_file=None, **kwargs)


def test_extract_page_number() -> None:
    assert extract_page_number("intro --- Page 7 --- body") == 7
    assert extract_page_number("no marker") is None


def test_resolve_page_numbers_by_position() -> None:
    pages = resolve_page_numbers(
        CONTENT,
        ["--- Page 1 ---\nAlpha text here.", "Beta text here.", "Gamma text here."],
    )
    assert pages == [1, 2, 3]


def test_unlocated_chunk_inherits_previous_page() -> None:
    pages = resolve_page_numbers(CONTENT, ["Beta text here.", "rewritten beyond recognition"])
    assert pages == [2, 2]


def test_content_without_markers_has_no_pages() -> None:
    assert resolve_page_numbers("plain text only", ["plain text only"]) == [None]


def test_short_chunks_are_dropped_and_survivors_renumbered() -> None:
    raw = ["a" * 150, "short", "b" * 150, "c" * 150]
    chunks = finalize_chunks(raw, 11, 100, [1, 1, 2, 3])

    assert [c.chunk_id for c in chunks] == ["11_chunk_0", "11_chunk_1", "11_chunk_2"]
    assert [c.index for c in chunks] == [0, 1, 2]
    assert [c.page_number for c in chunks] == [1, 2, 3]
    assert [c.text[0] for c in chunks] == ["a", "b", "c"]
    assert all(c.source_document_id == 11 for c in chunks)


def test_min_length_counts_stripped_text() -> None:
    assert finalize_chunks(["   " + "x" * 9 + "   "], 1, 10) == []


@pytest.mark.asyncio
async def test_document_chunker_assigns_pages() -> None:
    raw = ["--- Page 1 ---\nAlpha text here.", "Gamma text here."]
    chunks = await DocumentChunker(FixedStrategy(raw), min_chunk_chars=5).chunk_text(CONTENT, 4)
    assert [(c.chunk_id, c.page_number) for c in chunks] == [("4_chunk_0", 1), ("4_chunk_1", 3)]


def test_build_paragraph_chunker_needs_no_embedder() -> None:
    chunker = build_chunker(_settings(strategy="paragraph", paragraph_overlap=50), None)
    assert isinstance(chunker._strategy, ParagraphChunkerStrategy)


def test_build_semantic_chunker_requires_embedder() -> None:
    with pytest.raises(ValueError):
        build_chunker(_settings(strategy="semantic"), None)


def test_build_semantic_chunker() -> None:
    chunker = build_chunker(_settings(strategy="semantic", threshold_type="gradient"), object())
    assert isinstance(chunker._strategy, SemanticChunkerStrategy)
