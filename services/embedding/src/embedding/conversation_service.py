"""Conversation turns: embed and dual-write into the conversation collection."""
import structlog

from embedding.dual_store import DualStoreWriter, MessageTwin
from shared.db.models import utcnow
from shared.embedder import EmbeddingGenerator
from shared.messages import ConversationMessageReadyForEmbeddingMessage

log = structlog.get_logger()


class ConversationEmbeddingService:
    def __init__(self, generator: EmbeddingGenerator, writer: DualStoreWriter, collection: str) -> None:
        self._generator = generator
        self._writer = writer
        self._collection = collection

    async def process_message(self, message: ConversationMessageReadyForEmbeddingMessage) -> int | None:
        if not message.text or not message.text.strip():
            raise ValueError(f"Conversation message {message.message_id} has no text to embed")
        vector = await self._generator.generate_one(message.text)
        payload = {
            "messageId": str(message.message_id),
            "gameId": str(message.game_id),
            "text": message.text,
            "role": message.role,
            "createdAt": message.created_at.isoformat(),
            "embeddedAt": utcnow().isoformat(),
        }
        point_id = await self._writer.store_embedding(
            str(message.message_id), vector, payload, self._collection, MessageTwin(message.message_id)
        )
        log.info("conversation_message_embedded", message_id=str(message.message_id), point_id=point_id)
        return point_id
