"""Cracker entrypoint: queue worker by default, or a one-off batch over a directory."""
import argparse
import asyncio
import sys

import structlog
from pydantic import ValidationError

from cracker.config import CrackerSettings
from cracker.handler import CrackDocumentHandler
from cracker.service import DocumentCrackingService
from shared.bus import MessageConsumer, RedisBroker
from shared.db import create_session_factory
from shared.logging import configure_logging
from shared.messages import CrackDocumentMessage
from shared.metrics import start_metrics_server
from shared.worker import install_stop_handlers, retry_policy_from, status_reporter_from

STAGE = "cracking"


async def run_worker(settings: CrackerSettings) -> int:
    stop_event = asyncio.Event()
    install_stop_handlers(stop_event)
    engine, session_factory = create_session_factory(settings.database_url)
    broker = RedisBroker.from_url(settings.redis_url)
    reporter = status_reporter_from(settings)
    try:
        service = DocumentCrackingService(session_factory, broker)
        consumer = MessageConsumer(
            broker,
            CrackDocumentMessage,
            CrackDocumentHandler(service),
            stage=STAGE,
            consumer_name=settings.worker_name,
            retry_policy=retry_policy_from(settings),
            reporter=reporter,
            status_interval=settings.status_interval_seconds,
            poll_timeout=settings.poll_timeout_seconds,
        )
        await consumer.run(stop_event)
    finally:
        await reporter.aclose()
        await broker.close()
        await engine.dispose()
    return 0


async def run_batch(settings: CrackerSettings, directory: str) -> int:
    stop_event = asyncio.Event()
    install_stop_handlers(stop_event)
    engine, session_factory = create_session_factory(settings.database_url)
    broker = RedisBroker.from_url(settings.redis_url)
    try:
        summary = await DocumentCrackingService(session_factory, broker).crack_directory(directory, stop_event)
    finally:
        await broker.close()
        await engine.dispose()
    return 0 if summary.failed == 0 else 1


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="cracker")
    sub = parser.add_subparsers(dest="command")
    sub.add_parser("worker", help="consume CrackDocumentMessage (default)")
    batch = sub.add_parser("crack-all", help="crack every file under a directory")
    batch.add_argument("directory", nargs="?", default=None)
    args = parser.parse_args(argv)

    try:
        settings = CrackerSettings()
    except ValidationError as e:
        configure_logging(json_logs=True)
        structlog.get_logger().error("invalid_configuration", error=str(e))
        sys.exit(2)
    configure_logging(json_logs=settings.json_logs, level=settings.log_level, service="cracker")

    if args.command == "crack-all":
        directory = args.directory or settings.content_directory
        if not directory:
            structlog.get_logger().error("invalid_configuration", error="no directory to crack")
            sys.exit(2)
        sys.exit(asyncio.run(run_batch(settings, directory)))
    start_metrics_server(settings.metrics_port)
    sys.exit(asyncio.run(run_worker(settings)))


if __name__ == "__main__":
    main()
