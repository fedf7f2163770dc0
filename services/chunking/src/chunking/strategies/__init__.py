from chunking.strategies.base import ChunkingStrategy
from chunking.strategies.paragraph import ParagraphChunkerStrategy
from chunking.strategies.semantic import SemanticChunkerStrategy

__all__ = ["ChunkingStrategy", "ParagraphChunkerStrategy", "SemanticChunkerStrategy"]
