"""Embedding-driven chunking: split where consecutive sentence windows drift apart."""
import structlog

from chunking.strategies.base import CHARS_PER_TOKEN, ChunkingStrategy
from chunking.strategies.paragraph import ParagraphChunkerStrategy
from chunking.strategies.text import split_sentences
from chunking.strategies.thresholds import (
    PERCENTILE,
    breakpoint_indices,
    combine_with_neighbours,
    cosine_distances,
)
from shared.embedder import EmbeddingGenerator

log = structlog.get_logger()


class SemanticChunkerStrategy(ChunkingStrategy):
    def __init__(
        self,
        generator: EmbeddingGenerator,
        threshold_type: str = PERCENTILE,
        threshold_amount: float | None = None,
        buffer_size: int = 2,
        max_chunk_tokens: int = 1024,
    ) -> None:
        self._generator = generator
        self._threshold_type = threshold_type
        self._threshold_amount = threshold_amount
        self._buffer_size = buffer_size
        self._max_chars = max_chunk_tokens * CHARS_PER_TOKEN
        self._oversize = ParagraphChunkerStrategy(max_chars=self._max_chars)

    async def chunk(self, text: str) -> list[str]:
        sentences = split_sentences(text)
        if not sentences:
            return []
        groups = [sentences]
        if len(sentences) > 1:
            windows = combine_with_neighbours(sentences, self._buffer_size)
            vectors = await self._generator.generate(windows)
            breaks = breakpoint_indices(
                cosine_distances(vectors), self._threshold_type, self._threshold_amount
            )
            groups = []
            start = 0
            for i in breaks:
                groups.append(sentences[start:i + 1])
                start = i + 1
            groups.append(sentences[start:])

        chunks: list[str] = []
        for group in groups:
            joined = " ".join(group)
            if len(joined) > self._max_chars:
                chunks.extend(self._oversize.split(joined))
            else:
                chunks.append(joined)
        log.debug("semantic_chunks", sentences=len(sentences), chunks=len(chunks))
        return chunks
