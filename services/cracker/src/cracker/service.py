"""Document cracking: extract page text, upsert it, hand changed documents to chunking."""
import asyncio
import enum
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from cracker.loaders import BaseLoader, PDFLoader
from shared.bus import MessageBroker
from shared.classification import determine_document_kind, extract_ruleset_id
from shared.db import ExtractedDocumentRepository
from shared.messages import DocumentReadyForChunkingMessage

log = structlog.get_logger()


class CrackOutcome(str, enum.Enum):
    ENQUEUED = "enqueued"
    ALREADY_PROCESSED = "already_processed"
    SKIPPED_UNSUPPORTED = "skipped_unsupported"


@dataclass
class CrackResult:
    outcome: CrackOutcome
    document_id: int | None = None


@dataclass
class CrackSummary:
    processed: int = 0
    skipped: int = 0
    failed: int = 0
    cancelled: bool = False


class DocumentCrackingService:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        broker: MessageBroker,
        loaders: list[BaseLoader] | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._broker = broker
        self._loaders = loaders or [PDFLoader()]

    def _loader_for(self, path: Path) -> BaseLoader | None:
        for loader in self._loaders:
            if loader.supports(path):
                return loader
        return None

    async def process_document(
        self,
        file_path: str,
        relative_directory: str | None,
        ruleset_id: str | None = None,
        document_kind: str | None = None,
    ) -> CrackResult:
        path = Path(file_path)
        loader = self._loader_for(path)
        if loader is None:
            log.info("crack_skipped_unsupported", file_path=file_path, suffix=path.suffix)
            return CrackResult(CrackOutcome.SKIPPED_UNSUPPORTED)

        ruleset_id = ruleset_id or extract_ruleset_id(relative_directory)
        document_kind = document_kind or determine_document_kind(relative_directory)

        # pypdf extraction is CPU-bound.
        loaded = await asyncio.to_thread(loader.load, path)
        file_size = path.stat().st_size
        cracked_at = datetime.now(timezone.utc)

        async with self._session_factory() as session:
            stored = await ExtractedDocumentRepository(session).upsert(
                file_path=file_path,
                relative_directory=relative_directory,
                file_name=path.name,
                content=loaded.content,
                page_count=loaded.page_count,
                file_size=file_size,
                ruleset_id=ruleset_id,
                document_kind=document_kind,
                cracked_at=cracked_at,
            )
            await session.commit()

        log.info(
            "document_cracked",
            file_path=file_path,
            document_id=stored.id,
            pages=loaded.page_count,
            chars=len(loaded.content),
            is_processed=stored.is_processed,
        )
        if stored.is_processed:
            return CrackResult(CrackOutcome.ALREADY_PROCESSED, stored.id)

        await self._broker.publish(
            DocumentReadyForChunkingMessage(
                document_id=stored.id,
                file_path=file_path,
                file_name=path.name,
                relative_directory=relative_directory,
                file_size=file_size,
                page_count=loaded.page_count,
                cracked_at=cracked_at,
                document_kind=document_kind,
                ruleset_id=ruleset_id,
            )
        )
        return CrackResult(CrackOutcome.ENQUEUED, stored.id)

    async def crack_directory(
        self, content_directory: str, stop_event: asyncio.Event | None = None
    ) -> CrackSummary:
        """Crack every file under content_directory; per-file failures are counted, not raised."""
        root = Path(content_directory)
        if not root.is_dir():
            raise FileNotFoundError(f"Content directory not found: {content_directory}")
        summary = CrackSummary()
        files = sorted(p for p in root.rglob("*") if p.is_file())
        for path in files:
            if stop_event is not None and stop_event.is_set():
                summary.cancelled = True
                break
            rel = path.parent.relative_to(root).as_posix()
            rel_dir = None if rel == "." else rel
            try:
                result = await self.process_document(str(path), rel_dir)
            except Exception:
                summary.failed += 1
                log.exception("crack_failed", file_path=str(path))
                continue
            if result.outcome is CrackOutcome.SKIPPED_UNSUPPORTED:
                summary.skipped += 1
            else:
                summary.processed += 1
        log.info(
            "crack_directory_finished",
            processed=summary.processed,
            skipped=summary.skipped,
            failed=summary.failed,
            cancelled=summary.cancelled,
        )
        return summary
