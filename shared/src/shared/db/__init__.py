"""Relational store: models, repositories, session factory."""
from shared.db.models import Base, DocumentChunk, ExtractedDocument, FileChangeRecord, MessageEmbedding
from shared.db.repositories import (
    ChunkRepository,
    ExtractedDocumentRepository,
    FileChangeRepository,
    MessageEmbeddingRepository,
    UpsertedDocument,
)
from shared.db.session import create_session_factory

__all__ = [
    "Base",
    "ChunkRepository",
    "DocumentChunk",
    "ExtractedDocument",
    "ExtractedDocumentRepository",
    "FileChangeRecord",
    "FileChangeRepository",
    "MessageEmbedding",
    "MessageEmbeddingRepository",
    "UpsertedDocument",
    "create_session_factory",
]
