"""Repositories for the ingest schema. All writes are keyed upserts."""
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from sqlalchemy import case, delete, false, null, select, text, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from shared.chunks import TextChunk
from shared.db.models import DocumentChunk, ExtractedDocument, FileChangeRecord, MessageEmbedding, utcnow


class FileChangeRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_path(self, file_path: str) -> FileChangeRecord | None:
        result = await self._session.execute(
            select(FileChangeRecord).where(FileChangeRecord.file_path == file_path)
        )
        return result.scalar_one_or_none()

    async def upsert(
        self,
        file_path: str,
        content_hash: str,
        ruleset_id: str,
        document_kind: str,
        scanned_at: datetime | None = None,
    ) -> None:
        scanned_at = scanned_at or utcnow()
        stmt = insert(FileChangeRecord).values(
            file_path=file_path,
            content_hash=content_hash,
            last_scanned_at=scanned_at,
            ruleset_id=ruleset_id,
            document_kind=document_kind,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["file_path"],
            set_={
                "content_hash": stmt.excluded.content_hash,
                "last_scanned_at": stmt.excluded.last_scanned_at,
                "ruleset_id": stmt.excluded.ruleset_id,
                "document_kind": stmt.excluded.document_kind,
            },
        )
        await self._session.execute(stmt)
        await self._session.flush()

    async def touch(
        self,
        record: FileChangeRecord,
        ruleset_id: str,
        document_kind: str,
        scanned_at: datetime | None = None,
    ) -> None:
        """Refresh scan time and classification; the stored hash is left alone."""
        record.last_scanned_at = scanned_at or utcnow()
        record.ruleset_id = ruleset_id
        record.document_kind = document_kind
        await self._session.flush()


@dataclass
class UpsertedDocument:
    id: int
    is_processed: bool


class ExtractedDocumentRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, document_id: int) -> ExtractedDocument | None:
        result = await self._session.execute(
            select(ExtractedDocument).where(ExtractedDocument.id == document_id)
        )
        return result.scalar_one_or_none()

    async def has_content(self, file_path: str) -> bool:
        """True when the file was cracked into non-blank text."""
        result = await self._session.execute(
            select(ExtractedDocument.content).where(ExtractedDocument.file_path == file_path)
        )
        content = result.scalar_one_or_none()
        return bool(content and content.strip())

    async def upsert(
        self,
        *,
        file_path: str,
        relative_directory: str | None,
        file_name: str,
        content: str,
        page_count: int,
        file_size: int,
        ruleset_id: str,
        document_kind: str,
        cracked_at: datetime,
    ) -> UpsertedDocument:
        """Insert or update by file_path. is_processed is reset only when content changed."""
        table = ExtractedDocument.__table__
        stmt = insert(ExtractedDocument).values(
            file_path=file_path,
            relative_directory=relative_directory,
            file_name=file_name,
            content=content,
            page_count=page_count,
            file_size=file_size,
            cracked_at=cracked_at,
            ruleset_id=ruleset_id,
            document_kind=document_kind,
            is_processed=False,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["file_path"],
            set_={
                "relative_directory": stmt.excluded.relative_directory,
                "file_name": stmt.excluded.file_name,
                "content": stmt.excluded.content,
                "page_count": stmt.excluded.page_count,
                "file_size": stmt.excluded.file_size,
                "cracked_at": stmt.excluded.cracked_at,
                "ruleset_id": stmt.excluded.ruleset_id,
                "document_kind": stmt.excluded.document_kind,
                "is_processed": case(
                    (table.c.content.is_distinct_from(stmt.excluded.content), false()),
                    else_=table.c.is_processed,
                ),
            },
        ).returning(table.c.id, table.c.is_processed)
        row = (await self._session.execute(stmt)).one()
        await self._session.flush()
        return UpsertedDocument(id=row.id, is_processed=row.is_processed)

    async def begin_chunking(self, document_id: int, total_chunks: int) -> None:
        await self._session.execute(
            update(ExtractedDocument)
            .where(ExtractedDocument.id == document_id)
            .values(total_chunks=total_chunks, is_processed=False)
        )
        await self._session.flush()

    async def mark_processed_if_complete(self, document_id: int) -> bool:
        """Set is_processed once every chunk of the document has an embedding twin."""
        result = await self._session.execute(
            text("""
                UPDATE ingest.cracked_documents d
                SET is_processed = true
                WHERE d.id = :doc_id
                  AND NOT d.is_processed
                  AND d.total_chunks IS NOT NULL
                  AND d.total_chunks = (
                      SELECT count(*) FROM ingest.document_chunks c
                      WHERE c.document_id = d.id AND c.point_id IS NOT NULL
                  )
            """),
            {"doc_id": document_id},
        )
        return result.rowcount > 0


class ChunkRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def upsert_chunks(self, document_id: int, chunks: list[TextChunk]) -> None:
        """Write chunk rows by chunk_id. A rewritten chunk drops its old embedding twin."""
        if not chunks:
            return
        stmt = insert(DocumentChunk).values(
            [
                {
                    "chunk_id": c.chunk_id,
                    "document_id": document_id,
                    "chunk_text": c.text,
                    "chunk_index": c.index,
                    "created_at": utcnow(),
                }
                for c in chunks
            ]
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["chunk_id"],
            set_={
                "chunk_text": stmt.excluded.chunk_text,
                "chunk_index": stmt.excluded.chunk_index,
                "point_id": null(),
                "embedding": null(),
                "embedded_at": null(),
            },
        )
        await self._session.execute(stmt)
        await self._session.flush()

    async def delete_from_index(self, document_id: int, min_index: int) -> int:
        """Remove stale chunks (document shrank). Returns number of rows deleted."""
        result = await self._session.execute(
            delete(DocumentChunk).where(
                DocumentChunk.document_id == document_id,
                DocumentChunk.chunk_index >= min_index,
            )
        )
        return result.rowcount

    async def is_current(self, chunk_id: str, chunk_text: str) -> bool:
        """True when the stored chunk still holds chunk_text (not rewritten by a later chunking run)."""
        result = await self._session.execute(
            select(DocumentChunk.id).where(
                DocumentChunk.chunk_id == chunk_id,
                DocumentChunk.chunk_text == chunk_text,
            )
        )
        return result.scalar_one_or_none() is not None

    async def set_embedding(
        self,
        chunk_id: str,
        chunk_text: str,
        point_id: str,
        vector: list[float],
        embedded_at: datetime,
    ) -> bool:
        """Write the twin only if the row still holds the embedded text. False when stale or gone."""
        result = await self._session.execute(
            update(DocumentChunk)
            .where(
                DocumentChunk.chunk_id == chunk_id,
                DocumentChunk.chunk_text == chunk_text,
            )
            .values(point_id=point_id, embedding=vector, embedded_at=embedded_at)
        )
        return result.rowcount > 0


class MessageEmbeddingRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def upsert(
        self, message_id: UUID, point_id: str, vector: list[float], embedded_at: datetime
    ) -> None:
        stmt = insert(MessageEmbedding).values(
            message_id=message_id,
            point_id=point_id,
            embedding=vector,
            embedded_at=embedded_at,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["message_id"],
            set_={
                "point_id": stmt.excluded.point_id,
                "embedding": stmt.excluded.embedding,
                "embedded_at": stmt.excluded.embedded_at,
            },
        )
        await self._session.execute(stmt)
        await self._session.flush()
