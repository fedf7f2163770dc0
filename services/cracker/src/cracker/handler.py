"""Queue handler for CrackDocumentMessage."""
from pathlib import Path

import structlog

from cracker.service import CrackResult, DocumentCrackingService
from shared.messages import CrackDocumentMessage

log = structlog.get_logger()


class CrackDocumentHandler:
    """Skips messages that can never succeed; everything else propagates for retry."""

    def __init__(self, service: DocumentCrackingService) -> None:
        self._service = service

    async def __call__(self, message: CrackDocumentMessage) -> CrackResult | None:
        if not message.file_path or not message.file_path.strip():
            log.warning("crack_message_without_path")
            return None
        if not Path(message.file_path).is_file():
            log.warning("crack_file_missing", file_path=message.file_path)
            return None
        return await self._service.process_document(
            message.file_path,
            message.relative_directory,
            ruleset_id=message.ruleset_id,
            document_kind=message.document_kind,
        )
