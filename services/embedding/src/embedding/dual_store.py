"""Write one vector to Qdrant and its relational twin to Postgres."""
from datetime import datetime
from typing import Any, Protocol
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from shared.db import ChunkRepository, ExtractedDocumentRepository, MessageEmbeddingRepository
from shared.db.models import utcnow
from shared.embedder import EmbeddingGenerator
from shared.metrics import EMBEDDINGS_STORED
from shared.point_ids import derive_point_id
from shared.qdrant import QdrantStore

log = structlog.get_logger()


class EmbeddingTwin(Protocol):
    async def is_current(self, session: AsyncSession) -> bool: ...

    async def save(
        self, session: AsyncSession, point_id: str, vector: list[float], embedded_at: datetime
    ) -> None: ...


class ChunkTwin:
    """Embedding columns of a document_chunks row; closes out the document when it was the last one.

    The row is only written while it still holds the text that was embedded,
    so a redelivered message from before a re-chunk cannot overwrite the
    vector of the current text.
    """

    def __init__(self, chunk_id: str, document_id: int, chunk_text: str) -> None:
        self.chunk_id = chunk_id
        self.document_id = document_id
        self.chunk_text = chunk_text

    async def is_current(self, session: AsyncSession) -> bool:
        return await ChunkRepository(session).is_current(self.chunk_id, self.chunk_text)

    async def save(
        self, session: AsyncSession, point_id: str, vector: list[float], embedded_at: datetime
    ) -> None:
        written = await ChunkRepository(session).set_embedding(
            self.chunk_id, self.chunk_text, point_id, vector, embedded_at
        )
        if not written:
            log.warning("chunk_row_stale", chunk_id=self.chunk_id, document_id=self.document_id)
            return
        if await ExtractedDocumentRepository(session).mark_processed_if_complete(self.document_id):
            log.info("document_fully_processed", document_id=self.document_id)


class MessageTwin:
    def __init__(self, message_id: UUID) -> None:
        self.message_id = message_id

    async def is_current(self, session: AsyncSession) -> bool:
        return True

    async def save(
        self, session: AsyncSession, point_id: str, vector: list[float], embedded_at: datetime
    ) -> None:
        await MessageEmbeddingRepository(session).upsert(self.message_id, point_id, vector, embedded_at)


class DualStoreWriter:
    """Idempotent dual write keyed by external id.

    The Qdrant point id is derived from the external id, and both the point
    and the twin row are upserts, so replaying a message converges on the
    same state. There is no two-phase commit: a failure between the stores
    is repaired by the retry. A twin that no longer matches the message is
    skipped in both stores.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        qdrant: QdrantStore,
        generator: EmbeddingGenerator,
    ) -> None:
        self._session_factory = session_factory
        self._qdrant = qdrant
        self._generator = generator

    async def store_embedding(
        self,
        external_id: str,
        vector: list[float],
        payload: dict[str, Any],
        collection: str,
        twin: EmbeddingTwin,
    ) -> int | None:
        """Returns the point id, or None when the twin was stale and nothing was written."""
        point_id = derive_point_id(external_id)
        async with self._session_factory() as session:
            current = await twin.is_current(session)
        if not current:
            log.warning("embedding_skipped_stale", external_id=external_id, collection=collection)
            return None
        await self._qdrant.ensure_collection(collection, await self._generator.dimensions())
        await self._qdrant.upsert_point(collection, point_id, vector, payload)
        async with self._session_factory() as session:
            await twin.save(session, str(point_id), vector, utcnow())
            await session.commit()
        EMBEDDINGS_STORED.labels(collection=collection).inc()
        log.debug("embedding_stored", external_id=external_id, point_id=point_id, collection=collection)
        return point_id
