"""Repository statements compiled against the postgresql dialect."""
import re
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock
from uuid import UUID

import pytest
from sqlalchemy.dialects import postgresql

from shared.chunks import TextChunk
from shared.db import (
    ChunkRepository,
    ExtractedDocumentRepository,
    FileChangeRepository,
    MessageEmbeddingRepository,
)

NOW = datetime(2026, 3, 1, tzinfo=timezone.utc)


def _session(result: MagicMock | None = None) -> MagicMock:
    session = MagicMock()
    session.execute = AsyncMock(return_value=result if result is not None else MagicMock())
    session.flush = AsyncMock()
    return session


def _compiled(session: MagicMock, call: int = 0):
    stmt = session.execute.await_args_list[call].args[0]
    return stmt.compile(dialect=postgresql.dialect())


def _sql(session: MagicMock, call: int = 0) -> str:
    return " ".join(str(_compiled(session, call)).split())


@pytest.mark.asyncio
async def test_file_lookup_matches_exact_path() -> None:
    session = _session()
    repo = FileChangeRepository(session)
    await repo.get_by_path("/c/Book.pdf")
    await repo.get_by_path("/c/book.pdf")

    sql = _sql(session)
    assert "lower(" not in sql
    assert "document_metadata.file_path = %(file_path_1)s" in sql
    # Case variants are distinct files, each bound verbatim.
    assert _compiled(session, 0).params["file_path_1"] == "/c/Book.pdf"
    assert _compiled(session, 1).params["file_path_1"] == "/c/book.pdf"


@pytest.mark.asyncio
async def test_file_upsert_conflicts_on_the_same_key_as_lookup() -> None:
    session = _session()
    await FileChangeRepository(session).upsert("/c/Book.pdf", "ab" * 32, "dnd5e", "Sourcebook", NOW)

    sql = _sql(session)
    assert "ON CONFLICT (file_path) DO UPDATE" in sql
    assert "content_hash = excluded.content_hash" in sql


@pytest.mark.asyncio
async def test_has_content_matches_exact_path() -> None:
    result = MagicMock()
    result.scalar_one_or_none.return_value = "   "
    session = _session(result)

    assert await ExtractedDocumentRepository(session).has_content("/c/Book.pdf") is False
    sql = _sql(session)
    assert "lower(" not in sql
    assert "cracked_documents.file_path = %(file_path_1)s" in sql


@pytest.mark.asyncio
async def test_document_upsert_resets_processed_flag_only_on_content_change() -> None:
    result = MagicMock()
    result.one.return_value = SimpleNamespace(id=5, is_processed=False)
    session = _session(result)

    stored = await ExtractedDocumentRepository(session).upsert(
        file_path="/c/mm.pdf",
        relative_directory="dnd5e",
        file_name="mm.pdf",
        content="--- Page 1 ---\ntext\n\n",
        page_count=1,
        file_size=10,
        ruleset_id="dnd5e",
        document_kind="Sourcebook",
        cracked_at=NOW,
    )

    assert (stored.id, stored.is_processed) == (5, False)
    sql = _sql(session)
    assert "ON CONFLICT (file_path) DO UPDATE" in sql
    assert re.search(
        r"is_processed = CASE WHEN \(?.*content IS DISTINCT FROM excluded\.content\)? THEN false ELSE .*is_processed END",
        sql,
    )
    assert re.search(r"RETURNING .*\.id, .*\.is_processed$", sql)


@pytest.mark.asyncio
async def test_begin_chunking_sets_total_and_clears_flag() -> None:
    session = _session()
    await ExtractedDocumentRepository(session).begin_chunking(7, 4)

    compiled = _compiled(session)
    assert str(compiled).startswith("UPDATE ingest.cracked_documents SET")
    assert set(compiled.params.values()) >= {4, False, 7}


@pytest.mark.asyncio
async def test_mark_processed_compares_total_with_embedded_chunks() -> None:
    result = MagicMock()
    result.rowcount = 1
    session = _session(result)

    assert await ExtractedDocumentRepository(session).mark_processed_if_complete(7) is True
    sql = _sql(session)
    assert "SET is_processed = true" in sql
    assert "AND NOT d.is_processed" in sql
    assert "d.total_chunks = ( SELECT count(*) FROM ingest.document_chunks c" in sql
    assert "c.point_id IS NOT NULL" in sql
    assert session.execute.await_args.args[1] == {"doc_id": 7}


@pytest.mark.asyncio
async def test_mark_processed_reports_no_change() -> None:
    result = MagicMock()
    result.rowcount = 0
    assert await ExtractedDocumentRepository(_session(result)).mark_processed_if_complete(7) is False


@pytest.mark.asyncio
async def test_chunk_upsert_clears_embedding_twin() -> None:
    session = _session()
    chunks = [
        TextChunk(chunk_id="7_chunk_0", text="first", index=0, source_document_id=7),
        TextChunk(chunk_id="7_chunk_1", text="second", index=1, source_document_id=7),
    ]
    await ChunkRepository(session).upsert_chunks(7, chunks)

    sql = _sql(session)
    assert "ON CONFLICT (chunk_id) DO UPDATE" in sql
    assert "chunk_text = excluded.chunk_text" in sql
    assert "point_id = NULL" in sql
    assert "embedding = NULL" in sql
    assert "embedded_at = NULL" in sql


@pytest.mark.asyncio
async def test_chunk_upsert_without_chunks_is_noop() -> None:
    session = _session()
    await ChunkRepository(session).upsert_chunks(7, [])
    session.execute.assert_not_awaited()


@pytest.mark.asyncio
async def test_delete_from_index_removes_tail_of_document() -> None:
    result = MagicMock()
    result.rowcount = 2
    session = _session(result)

    assert await ChunkRepository(session).delete_from_index(7, 3) == 2
    compiled = _compiled(session)
    sql = " ".join(str(compiled).split())
    assert sql.startswith("DELETE FROM ingest.document_chunks WHERE")
    assert "document_chunks.document_id = %(document_id_1)s" in sql
    assert "document_chunks.chunk_index >= %(chunk_index_1)s" in sql
    assert compiled.params == {"document_id_1": 7, "chunk_index_1": 3}


@pytest.mark.asyncio
async def test_set_embedding_is_guarded_by_chunk_text() -> None:
    result = MagicMock()
    result.rowcount = 0
    session = _session(result)

    written = await ChunkRepository(session).set_embedding("7_chunk_0", "old text", "42", [0.1, 0.2], NOW)

    assert written is False
    compiled = _compiled(session)
    sql = " ".join(str(compiled).split())
    assert "document_chunks.chunk_id = %(chunk_id_1)s" in sql
    assert "document_chunks.chunk_text = %(chunk_text_1)s" in sql
    assert compiled.params["chunk_text_1"] == "old text"


@pytest.mark.asyncio
async def test_is_current_checks_id_and_text() -> None:
    result = MagicMock()
    result.scalar_one_or_none.return_value = None
    session = _session(result)

    assert await ChunkRepository(session).is_current("7_chunk_0", "old text") is False
    compiled = _compiled(session)
    assert compiled.params == {"chunk_id_1": "7_chunk_0", "chunk_text_1": "old text"}


@pytest.mark.asyncio
async def test_message_embedding_upsert_keyed_by_message_id() -> None:
    session = _session()
    await MessageEmbeddingRepository(session).upsert(
        UUID("6f1c2a52-1d1e-4c53-9a1e-0b8f9a1f2c3d"), "42", [0.1, 0.2], NOW
    )

    sql = _sql(session)
    assert "ON CONFLICT (message_id) DO UPDATE" in sql
    assert "point_id = excluded.point_id" in sql
    assert "embedding = excluded.embedding" in sql
