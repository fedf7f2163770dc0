"""Embed a chunk and dual-write it into the document collection."""
import structlog

from embedding.dual_store import ChunkTwin, DualStoreWriter
from shared.db.models import utcnow
from shared.embedder import EmbeddingGenerator
from shared.messages import ChunkReadyForEmbeddingMessage

log = structlog.get_logger()


def chunk_payload(message: ChunkReadyForEmbeddingMessage) -> dict:
    """Qdrant payload; keys mirror the message contract."""
    return {
        "chunkId": message.chunk_id,
        "chunkIndex": message.chunk_index,
        "chunkText": message.chunk_text,
        "documentId": message.document_id,
        "fileName": message.file_name,
        "filePath": message.file_path,
        "relativeDirectory": message.relative_directory,
        "rulesetId": message.ruleset_id,
        "documentKind": message.document_kind,
        "fileSize": message.file_size,
        "pageCount": message.page_count,
        "pageNumber": message.page_number,
        "crackedAt": message.cracked_at.isoformat(),
        "embeddedAt": utcnow().isoformat(),
    }


class DocumentEmbeddingService:
    def __init__(self, generator: EmbeddingGenerator, writer: DualStoreWriter, collection: str) -> None:
        self._generator = generator
        self._writer = writer
        self._collection = collection

    async def process_chunk(self, message: ChunkReadyForEmbeddingMessage) -> int | None:
        if not message.chunk_text or not message.chunk_text.strip():
            raise ValueError(f"Chunk {message.chunk_id} has no text to embed")
        vector = await self._generator.generate_one(message.chunk_text)
        point_id = await self._writer.store_embedding(
            message.chunk_id,
            vector,
            chunk_payload(message),
            self._collection,
            ChunkTwin(message.chunk_id, message.document_id, message.chunk_text),
        )
        if point_id is None:
            return None
        log.info(
            "chunk_embedded",
            chunk_id=message.chunk_id,
            document_id=message.document_id,
            point_id=point_id,
        )
        return point_id
