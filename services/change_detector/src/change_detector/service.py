"""Change detection: hash every supported file and enqueue the ones that need cracking."""
import asyncio
from dataclasses import dataclass
from pathlib import Path

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from change_detector.scanner import DirectoryScanner, compute_file_hash, relative_directory
from shared.bus import MessageBroker
from shared.classification import determine_document_kind, extract_ruleset_id
from shared.db import ExtractedDocumentRepository, FileChangeRepository
from shared.messages import CrackDocumentMessage
from shared.metrics import FILES_SCANNED

log = structlog.get_logger()

NEW = "new"
CHANGED = "changed"
UNCHANGED = "unchanged"
NOT_CRACKED = "retry_not_cracked"


@dataclass
class ScanSummary:
    scanned: int = 0
    enqueued: int = 0
    unchanged: int = 0
    errors: int = 0
    cancelled: bool = False


class DocumentChangeDetector:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        broker: MessageBroker,
        supported_extensions: tuple[str, ...] = (".pdf",),
        scanner: DirectoryScanner | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._broker = broker
        self._extensions = supported_extensions
        self._scanner = scanner or DirectoryScanner()

    async def scan_and_enqueue(
        self, content_directory: str, stop_event: asyncio.Event | None = None
    ) -> ScanSummary:
        if not content_directory or not content_directory.strip():
            raise ValueError("Content directory must be set")
        root = Path(content_directory)
        if not root.is_dir():
            raise FileNotFoundError(f"Content directory not found: {content_directory}")

        summary = ScanSummary()
        log.info("scan_started", root=str(root))
        for directory in self._scanner.iter_directories(root):
            if stop_event is not None and stop_event.is_set():
                summary.cancelled = True
                break
            rel_dir = relative_directory(root, directory)
            for path in self._scanner.get_files(directory, self._extensions):
                if stop_event is not None and stop_event.is_set():
                    summary.cancelled = True
                    break
                summary.scanned += 1
                try:
                    status = await self.process_file(path, rel_dir)
                except Exception:
                    summary.errors += 1
                    FILES_SCANNED.labels(status="error").inc()
                    log.exception("scan_file_failed", file_path=str(path))
                    continue
                FILES_SCANNED.labels(status=status).inc()
                if status == UNCHANGED:
                    summary.unchanged += 1
                else:
                    summary.enqueued += 1
            if summary.cancelled:
                break

        log.info(
            "scan_finished",
            scanned=summary.scanned,
            enqueued=summary.enqueued,
            unchanged=summary.unchanged,
            errors=summary.errors,
            cancelled=summary.cancelled,
        )
        return summary

    async def process_file(self, path: Path, rel_dir: str | None) -> str:
        """Apply the hash decision table to one file. Returns the status label."""
        file_path = str(path)
        content_hash = await asyncio.to_thread(compute_file_hash, path)
        ruleset_id = extract_ruleset_id(rel_dir)
        document_kind = determine_document_kind(rel_dir)

        async with self._session_factory() as session:
            records = FileChangeRepository(session)
            existing = await records.get_by_path(file_path)

            if existing is not None and existing.content_hash == content_hash:
                if await ExtractedDocumentRepository(session).has_content(file_path):
                    await records.touch(existing, ruleset_id, document_kind)
                    await session.commit()
                    log.debug("file_unchanged", file_path=file_path)
                    return UNCHANGED
                # Hash is current but cracking never produced text: enqueue again, keep the hash.
                await self._enqueue(file_path, rel_dir, ruleset_id, document_kind)
                await records.touch(existing, ruleset_id, document_kind)
                await session.commit()
                log.info("file_requeued_not_cracked", file_path=file_path)
                return NOT_CRACKED

            await self._enqueue(file_path, rel_dir, ruleset_id, document_kind)
            await records.upsert(file_path, content_hash, ruleset_id, document_kind)
            await session.commit()
            status = NEW if existing is None else CHANGED
            log.info("file_enqueued", file_path=file_path, status=status, content_hash=content_hash)
            return status

    async def _enqueue(
        self, file_path: str, rel_dir: str | None, ruleset_id: str, document_kind: str
    ) -> None:
        await self._broker.publish(
            CrackDocumentMessage(
                file_path=file_path,
                relative_directory=rel_dir,
                ruleset_id=ruleset_id,
                document_kind=document_kind,
            )
        )
