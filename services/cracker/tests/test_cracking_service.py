"""Unit tests for DocumentCrackingService and CrackDocumentHandler."""
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from cracker.handler import CrackDocumentHandler
from cracker.loaders import BaseLoader, LoadedDocument, format_page
from cracker.service import CrackOutcome, DocumentCrackingService
from shared.bus import InMemoryBroker
from shared.db import UpsertedDocument
from shared.messages import CrackDocumentMessage, DocumentReadyForChunkingMessage


class FakePdfLoader(BaseLoader):
    def __init__(self, fail_on: str | None = None) -> None:
        self.fail_on = fail_on

    @property
    def extensions(self) -> tuple[str, ...]:
        return (".pdf",)

    def load(self, path: Path) -> LoadedDocument:
        if self.fail_on and path.name == self.fail_on:
            raise ValueError("corrupt xref table")
        pages = [format_page(i, f"Text of page {i} in {path.name}.") for i in (1, 2, 3)]
        return LoadedDocument(content="".join(pages), page_count=3)


@pytest.fixture
def mock_session_factory() -> MagicMock:
    session = MagicMock()
    session.commit = AsyncMock()
    cm = MagicMock()
    cm.__aenter__ = AsyncMock(return_value=session)
    cm.__aexit__ = AsyncMock(return_value=None)
    factory = MagicMock()
    factory.return_value = cm
    return factory


@pytest.fixture
def pdf(tmp_path: Path) -> Path:
    (tmp_path / "dnd5e").mkdir()
    path = tmp_path / "dnd5e" / "phb.pdf"
    path.write_bytes(b"%PDF-1.7 fake")
    return path


@pytest.mark.asyncio
async def test_new_content_is_stored_and_sent_to_chunking(
    mock_session_factory: MagicMock, pdf: Path
) -> None:
    broker = InMemoryBroker()
    with patch("cracker.service.ExtractedDocumentRepository") as ER:
        ER.return_value.upsert = AsyncMock(return_value=UpsertedDocument(id=11, is_processed=False))
        service = DocumentCrackingService(mock_session_factory, broker, loaders=[FakePdfLoader()])
        result = await service.process_document(str(pdf), "dnd5e")

    assert result.outcome is CrackOutcome.ENQUEUED
    assert result.document_id == 11
    kwargs = ER.return_value.upsert.await_args.kwargs
    assert kwargs["file_path"] == str(pdf)
    assert kwargs["page_count"] == 3
    assert kwargs["content"].startswith("--- Page 1 ---\n")
    assert kwargs["ruleset_id"] == "dnd5e"
    assert kwargs["document_kind"] == "Sourcebook"

    [message] = broker.messages(DocumentReadyForChunkingMessage)
    assert message.document_id == 11
    assert message.file_name == "phb.pdf"
    assert message.file_size == pdf.stat().st_size
    assert message.page_count == 3
    assert message.ruleset_id == "dnd5e"


@pytest.mark.asyncio
async def test_processed_document_is_not_resent(mock_session_factory: MagicMock, pdf: Path) -> None:
    broker = InMemoryBroker()
    with patch("cracker.service.ExtractedDocumentRepository") as ER:
        ER.return_value.upsert = AsyncMock(return_value=UpsertedDocument(id=11, is_processed=True))
        service = DocumentCrackingService(mock_session_factory, broker, loaders=[FakePdfLoader()])
        result = await service.process_document(str(pdf), "dnd5e")

    assert result.outcome is CrackOutcome.ALREADY_PROCESSED
    assert broker.messages(DocumentReadyForChunkingMessage) == []


@pytest.mark.asyncio
async def test_unsupported_file_is_skipped(mock_session_factory: MagicMock, tmp_path: Path) -> None:
    txt = tmp_path / "readme.txt"
    txt.write_text("hello")
    with patch("cracker.service.ExtractedDocumentRepository") as ER:
        ER.return_value.upsert = AsyncMock()
        service = DocumentCrackingService(mock_session_factory, InMemoryBroker(), loaders=[FakePdfLoader()])
        result = await service.process_document(str(txt), None)

    assert result.outcome is CrackOutcome.SKIPPED_UNSUPPORTED
    ER.return_value.upsert.assert_not_awaited()


@pytest.mark.asyncio
async def test_crack_directory_isolates_failures(mock_session_factory: MagicMock, tmp_path: Path) -> None:
    (tmp_path / "a.pdf").write_bytes(b"%PDF a")
    (tmp_path / "b.pdf").write_bytes(b"%PDF b")
    (tmp_path / "notes.txt").write_text("skip me")
    (tmp_path / "pf2e").mkdir()
    (tmp_path / "pf2e" / "core.pdf").write_bytes(b"%PDF core")
    broker = InMemoryBroker()
    with patch("cracker.service.ExtractedDocumentRepository") as ER:
        ER.return_value.upsert = AsyncMock(return_value=UpsertedDocument(id=1, is_processed=False))
        service = DocumentCrackingService(
            mock_session_factory, broker, loaders=[FakePdfLoader(fail_on="b.pdf")]
        )
        summary = await service.crack_directory(str(tmp_path))

    assert (summary.processed, summary.skipped, summary.failed) == (2, 1, 1)
    assert len(broker.messages(DocumentReadyForChunkingMessage)) == 2


@pytest.mark.asyncio
async def test_handler_skips_blank_and_missing_paths(tmp_path: Path) -> None:
    service = MagicMock()
    service.process_document = AsyncMock()
    handler = CrackDocumentHandler(service)

    assert await handler(CrackDocumentMessage(file_path="  ")) is None
    assert await handler(CrackDocumentMessage(file_path=str(tmp_path / "gone.pdf"))) is None
    service.process_document.assert_not_awaited()


@pytest.mark.asyncio
async def test_handler_propagates_other_failures(pdf: Path) -> None:
    service = MagicMock()
    service.process_document = AsyncMock(side_effect=ConnectionError("db down"))
    handler = CrackDocumentHandler(service)

    with pytest.raises(ConnectionError):
        await handler(CrackDocumentMessage(file_path=str(pdf), relative_directory="dnd5e"))
    service.process_document.assert_awaited_once_with(
        str(pdf), "dnd5e", ruleset_id=None, document_kind=None
    )
