"""Embedding worker entrypoint. One process serves either the chunk or the conversation queue."""
import argparse
import asyncio
import sys

import structlog
from pydantic import ValidationError

from embedding.config import EmbeddingSettings
from embedding.conversation_service import ConversationEmbeddingService
from embedding.document_service import DocumentEmbeddingService
from embedding.dual_store import DualStoreWriter
from shared.bus import MessageConsumer, RedisBroker
from shared.config import EmbedderSettings, QdrantSettings
from shared.db import create_session_factory
from shared.embedder import DimensionCache, EmbeddingGenerator
from shared.logging import configure_logging
from shared.messages import ChunkReadyForEmbeddingMessage, ConversationMessageReadyForEmbeddingMessage
from shared.metrics import start_metrics_server
from shared.qdrant import QdrantStore
from shared.worker import install_stop_handlers, retry_policy_from, status_reporter_from

STAGE = "embedding"

log = structlog.get_logger()


async def run_worker(
    settings: EmbeddingSettings, embedder_settings: EmbedderSettings, qdrant_settings: QdrantSettings
) -> int:
    stop_event = asyncio.Event()
    install_stop_handlers(stop_event)
    engine, session_factory = create_session_factory(settings.database_url)
    broker = RedisBroker.from_url(settings.redis_url)
    reporter = status_reporter_from(settings)
    generator = EmbeddingGenerator.from_settings(embedder_settings, DimensionCache())
    qdrant = QdrantStore(qdrant_settings.url, qdrant_settings.api_key, qdrant_settings.timeout)
    writer = DualStoreWriter(session_factory, qdrant, generator)
    if settings.queue == "conversations":
        message_type = ConversationMessageReadyForEmbeddingMessage
        handler = ConversationEmbeddingService(
            generator, writer, qdrant_settings.conversation_collection
        ).process_message
    else:
        message_type = ChunkReadyForEmbeddingMessage
        handler = DocumentEmbeddingService(generator, writer, qdrant_settings.document_collection).process_chunk
    log.info("embedding_worker_config", queue=settings.queue, message_type=message_type.queue_name())
    try:
        consumer = MessageConsumer(
            broker,
            message_type,
            handler,
            stage=STAGE,
            consumer_name=settings.worker_name,
            retry_policy=retry_policy_from(settings),
            reporter=reporter,
            status_interval=settings.status_interval_seconds,
            poll_timeout=settings.poll_timeout_seconds,
        )
        await consumer.run(stop_event)
    finally:
        await qdrant.aclose()
        await generator.aclose()
        await reporter.aclose()
        await broker.close()
        await engine.dispose()
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(prog="embedding-worker")
    parser.add_argument(
        "--queue",
        choices=["chunks", "conversations"],
        help="Queue to consume (default: EMBEDDING_QUEUE or chunks)",
    )
    args = parser.parse_args()
    try:
        overrides = {"queue": args.queue} if args.queue else {}
        settings = EmbeddingSettings(**overrides)
        embedder_settings = EmbedderSettings()
        qdrant_settings = QdrantSettings()
    except ValidationError as e:
        configure_logging(json_logs=True)
        structlog.get_logger().error("invalid_configuration", error=str(e))
        sys.exit(2)
    configure_logging(json_logs=settings.json_logs, level=settings.log_level, service="embedding")
    start_metrics_server(settings.metrics_port)
    sys.exit(asyncio.run(run_worker(settings, embedder_settings, qdrant_settings)))


if __name__ == "__main__":
    main()
