"""Helpers shared by the queue-consuming worker entrypoints."""
import asyncio
import signal

from shared.config import WorkerSettings
from shared.retry import RetryPolicy
from shared.status import PipelineStatusReporter


def install_stop_handlers(stop_event: asyncio.Event) -> None:
    """SIGINT/SIGTERM request a cooperative stop between messages."""
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop_event.set)


def retry_policy_from(settings: WorkerSettings) -> RetryPolicy:
    return RetryPolicy(
        max_attempts=settings.retry_max_attempts,
        initial_delay=settings.retry_initial_delay,
        max_delay=settings.retry_max_delay,
    )


def status_reporter_from(settings: WorkerSettings) -> PipelineStatusReporter:
    return PipelineStatusReporter(settings.api_base_url)
