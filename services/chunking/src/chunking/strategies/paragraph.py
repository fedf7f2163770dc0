"""Size-bounded chunking on paragraph, then sentence, then word boundaries."""
from collections.abc import Iterator

from chunking.strategies.base import ChunkingStrategy
from chunking.strategies.text import cut_at_boundary, split_paragraphs, split_sentences


class ParagraphChunkerStrategy(ChunkingStrategy):
    """Packs whole paragraphs into chunks of at most max_chars.

    Paragraphs larger than max_chars are broken into sentences, and sentences
    larger than that are cut at the last whitespace before the limit, so no
    chunk ends mid-word. With overlap > 0 each chunk starts with the tail of
    the previous one.
    """

    def __init__(self, max_chars: int = 4096, overlap: int = 0) -> None:
        self._max_chars = max(max_chars, 100)
        self._overlap = min(max(0, overlap), self._max_chars // 2)

    async def chunk(self, text: str) -> list[str]:
        return self.split(text)

    def split(self, text: str) -> list[str]:
        if not text or not text.strip():
            return []
        chunks: list[str] = []
        parts: list[str] = []
        size = 0
        for unit in self._units(text):
            added = len(unit) + (2 if parts else 0)
            if parts and size + added > self._max_chars:
                chunks.append("\n\n".join(parts))
                tail = self._tail(chunks[-1])
                if tail and len(tail) + 2 + len(unit) <= self._max_chars:
                    parts, size = [tail], len(tail)
                else:
                    parts, size = [], 0
                added = len(unit) + (2 if parts else 0)
            parts.append(unit)
            size += added
        if parts:
            chunks.append("\n\n".join(parts))
        return chunks

    def _units(self, text: str) -> Iterator[str]:
        for paragraph in split_paragraphs(text):
            if len(paragraph) <= self._max_chars:
                yield paragraph
                continue
            for sentence in split_sentences(paragraph):
                rest = sentence
                while rest:
                    head, rest = cut_at_boundary(rest, self._max_chars)
                    yield head

    def _tail(self, chunk: str) -> str:
        if not self._overlap:
            return ""
        tail = chunk[-self._overlap:]
        space = tail.find(" ")
        return tail[space + 1:].strip() if space >= 0 else tail.strip()
