"""Chunking strategy interface."""
from abc import ABC, abstractmethod

CHARS_PER_TOKEN = 4


class ChunkingStrategy(ABC):
    @abstractmethod
    async def chunk(self, text: str) -> list[str]:
        """Split text into chunk strings, in document order."""
        ...
