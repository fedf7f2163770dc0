"""Chunking worker entrypoint."""
import asyncio
import functools
import sys

import structlog
from pydantic import ValidationError

from chunking.chunker import build_chunker
from chunking.config import ChunkingSettings
from chunking.service import DocumentChunkingService
from shared.bus import MessageConsumer, RedisBroker
from shared.config import EmbedderSettings, QdrantSettings
from shared.db import create_session_factory
from shared.embedder import DimensionCache, EmbeddingGenerator
from shared.logging import configure_logging
from shared.messages import DocumentReadyForChunkingMessage
from shared.metrics import start_metrics_server
from shared.qdrant import QdrantStore
from shared.worker import install_stop_handlers, retry_policy_from, status_reporter_from

STAGE = "chunking"


async def run_worker(
    settings: ChunkingSettings, embedder_settings: EmbedderSettings | None, qdrant_settings: QdrantSettings
) -> int:
    stop_event = asyncio.Event()
    install_stop_handlers(stop_event)
    engine, session_factory = create_session_factory(settings.database_url)
    broker = RedisBroker.from_url(settings.redis_url)
    reporter = status_reporter_from(settings)
    generator = (
        EmbeddingGenerator.from_settings(embedder_settings, DimensionCache())
        if embedder_settings is not None
        else None
    )
    qdrant = (
        QdrantStore(qdrant_settings.url, qdrant_settings.api_key, qdrant_settings.timeout)
        if settings.cleanup_orphans
        else None
    )
    try:
        service = DocumentChunkingService(
            session_factory,
            broker,
            build_chunker(settings, generator),
            qdrant=qdrant,
            document_collection=qdrant_settings.document_collection,
        )
        consumer = MessageConsumer(
            broker,
            DocumentReadyForChunkingMessage,
            functools.partial(service.process_document, stop_event=stop_event),
            stage=STAGE,
            consumer_name=settings.worker_name,
            retry_policy=retry_policy_from(settings),
            reporter=reporter,
            status_interval=settings.status_interval_seconds,
            poll_timeout=settings.poll_timeout_seconds,
        )
        await consumer.run(stop_event)
    finally:
        if qdrant is not None:
            await qdrant.aclose()
        if generator is not None:
            await generator.aclose()
        await reporter.aclose()
        await broker.close()
        await engine.dispose()
    return 0


def main() -> None:
    try:
        settings = ChunkingSettings()
        # Only the semantic strategy talks to the embedding model.
        embedder_settings = EmbedderSettings() if settings.strategy == "semantic" else None
        qdrant_settings = QdrantSettings()
    except ValidationError as e:
        configure_logging(json_logs=True)
        structlog.get_logger().error("invalid_configuration", error=str(e))
        sys.exit(2)
    configure_logging(json_logs=settings.json_logs, level=settings.log_level, service="chunking")
    start_metrics_server(settings.metrics_port)
    sys.exit(asyncio.run(run_worker(settings, embedder_settings, qdrant_settings)))


if __name__ == "__main__":
    main()
