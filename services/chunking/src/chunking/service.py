"""Chunk a cracked document, persist the chunks and queue each one for embedding."""
import asyncio
from dataclasses import dataclass

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from chunking.chunker import DocumentChunker
from shared.bus import MessageBroker
from shared.db import ChunkRepository, ExtractedDocumentRepository
from shared.errors import ChunkPublishError, DocumentNotFoundError, EmptyChunkSetError, WorkInterrupted
from shared.messages import ChunkReadyForEmbeddingMessage, DocumentReadyForChunkingMessage
from shared.qdrant import QdrantStore

log = structlog.get_logger()


@dataclass
class ChunkingResult:
    document_id: int
    total: int
    queued: int
    failed: int
    removed: int


class DocumentChunkingService:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        broker: MessageBroker,
        chunker: DocumentChunker,
        qdrant: QdrantStore | None = None,
        document_collection: str = "document-embeddings",
    ) -> None:
        self._session_factory = session_factory
        self._broker = broker
        self._chunker = chunker
        self._qdrant = qdrant
        self._collection = document_collection

    async def process_document(
        self,
        message: DocumentReadyForChunkingMessage,
        stop_event: asyncio.Event | None = None,
    ) -> ChunkingResult | None:
        async with self._session_factory() as session:
            document = await ExtractedDocumentRepository(session).get_by_id(message.document_id)
        if document is None:
            raise DocumentNotFoundError(f"Cracked document {message.document_id} not found")
        if not document.content or not document.content.strip():
            log.warning("chunking_skipped_empty", document_id=document.id, file_path=document.file_path)
            return None

        chunks = await self._chunker.chunk_text(document.content, document.id)
        if not chunks:
            raise EmptyChunkSetError(f"Document {document.id} produced no chunks above the minimum length")

        # Points of chunks beyond the new count would otherwise linger as orphans.
        if self._qdrant is not None:
            await self._qdrant.delete_document_chunks(self._collection, document.id, len(chunks))
        async with self._session_factory() as session:
            chunk_repo = ChunkRepository(session)
            await chunk_repo.upsert_chunks(document.id, chunks)
            removed = await chunk_repo.delete_from_index(document.id, len(chunks))
            await ExtractedDocumentRepository(session).begin_chunking(document.id, len(chunks))
            await session.commit()

        queued = failed = 0
        for chunk in chunks:
            if stop_event is not None and stop_event.is_set():
                raise WorkInterrupted(
                    f"Stopped after queueing {queued} of {len(chunks)} chunks of document {document.id}"
                )
            try:
                await self._broker.publish(
                    ChunkReadyForEmbeddingMessage(
                        chunk_id=chunk.chunk_id,
                        chunk_index=chunk.index,
                        chunk_text=chunk.text,
                        document_id=document.id,
                        file_name=message.file_name,
                        file_path=message.file_path,
                        relative_directory=message.relative_directory,
                        file_size=message.file_size,
                        page_count=message.page_count,
                        cracked_at=message.cracked_at,
                        page_number=chunk.page_number,
                        total_chunks=len(chunks),
                        document_kind=message.document_kind,
                        ruleset_id=message.ruleset_id,
                    )
                )
                queued += 1
            except Exception:
                failed += 1
                log.exception("chunk_publish_failed", chunk_id=chunk.chunk_id)

        if queued == 0:
            raise ChunkPublishError(f"No chunks of document {document.id} could be queued")
        log.info(
            "document_chunked",
            document_id=document.id,
            chunks=len(chunks),
            queued=queued,
            failed=failed,
            removed=removed,
        )
        return ChunkingResult(document.id, len(chunks), queued, failed, removed)
