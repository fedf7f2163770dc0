"""Strategy selection and the minimum-length post-filter."""
import structlog

from chunking.config import ChunkingSettings
from chunking.pages import resolve_page_numbers
from chunking.strategies import ChunkingStrategy, ParagraphChunkerStrategy, SemanticChunkerStrategy
from chunking.strategies.base import CHARS_PER_TOKEN
from shared.chunks import TextChunk, make_chunk_id
from shared.embedder import EmbeddingGenerator

log = structlog.get_logger()


def finalize_chunks(
    raw_chunks: list[str],
    document_id: int,
    min_chunk_chars: int,
    pages: list[int | None] | None = None,
) -> list[TextChunk]:
    """Drop chunks shorter than min_chunk_chars and number the survivors 0..k-1."""
    out: list[TextChunk] = []
    for i, raw in enumerate(raw_chunks):
        text = raw.strip()
        if len(text) < min_chunk_chars:
            continue
        ordinal = len(out)
        out.append(
            TextChunk(
                chunk_id=make_chunk_id(document_id, ordinal),
                text=text,
                index=ordinal,
                source_document_id=document_id,
                page_number=pages[i] if pages else None,
            )
        )
    dropped = len(raw_chunks) - len(out)
    if dropped:
        log.debug("chunks_filtered_short", document_id=document_id, dropped=dropped, min_chars=min_chunk_chars)
    return out


class DocumentChunker:
    def __init__(self, strategy: ChunkingStrategy, min_chunk_chars: int = 100) -> None:
        self._strategy = strategy
        self._min_chunk_chars = min_chunk_chars

    async def chunk_text(self, text: str, document_id: int) -> list[TextChunk]:
        raw = await self._strategy.chunk(text)
        pages = resolve_page_numbers(text, raw)
        return finalize_chunks(raw, document_id, self._min_chunk_chars, pages)


def build_chunker(settings: ChunkingSettings, generator: EmbeddingGenerator | None) -> DocumentChunker:
    if settings.strategy == "semantic":
        if generator is None:
            raise ValueError("semantic chunking requires an embedding generator")
        strategy: ChunkingStrategy = SemanticChunkerStrategy(
            generator,
            threshold_type=settings.threshold_type,
            threshold_amount=settings.threshold_amount,
            buffer_size=settings.buffer_size,
            max_chunk_tokens=settings.max_chunk_tokens,
        )
    elif settings.strategy == "paragraph":
        strategy = ParagraphChunkerStrategy(
            max_chars=settings.max_chunk_tokens * CHARS_PER_TOKEN,
            overlap=settings.paragraph_overlap,
        )
    else:
        raise ValueError(f"Unknown chunking strategy: {settings.strategy}")
    return DocumentChunker(strategy, settings.min_chunk_chars)
