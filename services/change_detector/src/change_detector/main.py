"""Change detector entrypoint: one scan of the content directory, exit 0 on a clean run."""
import asyncio
import sys

import structlog
from pydantic import ValidationError

from change_detector.config import ChangeDetectorSettings
from change_detector.service import DocumentChangeDetector
from shared.bus import RedisBroker
from shared.db import create_session_factory
from shared.logging import configure_logging
from shared.metrics import start_metrics_server
from shared.worker import install_stop_handlers


async def run_scan(settings: ChangeDetectorSettings) -> int:
    log = structlog.get_logger()
    stop_event = asyncio.Event()
    install_stop_handlers(stop_event)

    engine, session_factory = create_session_factory(settings.database_url)
    broker = RedisBroker.from_url(settings.redis_url)
    try:
        detector = DocumentChangeDetector(
            session_factory,
            broker,
            supported_extensions=settings.supported_extensions,
        )
        summary = await detector.scan_and_enqueue(settings.content_directory, stop_event)
    except (ValueError, FileNotFoundError) as e:
        log.error("scan_aborted", error=str(e))
        return 1
    finally:
        await broker.close()
        await engine.dispose()
    return 0 if summary.errors == 0 else 1


def main() -> None:
    try:
        settings = ChangeDetectorSettings()
    except ValidationError as e:
        configure_logging(json_logs=True)
        structlog.get_logger().error("invalid_configuration", error=str(e))
        sys.exit(2)
    configure_logging(json_logs=settings.json_logs, level=settings.log_level, service="change_detector")
    start_metrics_server(settings.metrics_port)
    sys.exit(asyncio.run(run_scan(settings)))


if __name__ == "__main__":
    main()
