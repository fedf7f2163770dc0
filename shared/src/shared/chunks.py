"""Chunk value object passed from the chunker to persistence and publishing."""
from dataclasses import dataclass


def make_chunk_id(document_id: int, ordinal: int) -> str:
    return f"{document_id}_chunk_{ordinal}"


@dataclass(frozen=True)
class TextChunk:
    chunk_id: str
    text: str
    index: int
    source_document_id: int
    page_number: int | None = None
