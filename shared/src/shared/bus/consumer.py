"""Consumer harness: receive, decode, handle with retry, ack or dead-letter, report queue depth."""
import asyncio
import time
from collections.abc import Awaitable, Callable
from contextlib import suppress
from typing import Generic, TypeVar

import structlog
from tenacity import RetryCallState

from shared.bus.base import Delivery, MessageBroker
from shared.errors import InvalidMessageError, WorkInterrupted
from shared.logging import clear_message_context, set_message_context
from shared.messages import PipelineMessage, decode_message
from shared.metrics import MESSAGE_SECONDS, MESSAGES_TOTAL, QUEUE_DEPTH
from shared.retry import RetryPolicy, is_retryable
from shared.status import PipelineStatusReporter

log = structlog.get_logger()

M = TypeVar("M", bound=PipelineMessage)


class MessageConsumer(Generic[M]):
    """Runs one handler over one typed queue until stop_event is set.

    Retryable handler failures are retried in-process with the policy's backoff.
    Non-retryable failures, and retryable ones that exhaust the policy, are
    dead-lettered so one poisoned message never blocks the queue. Everything
    that returns normally is acked. A handler raising WorkInterrupted leaves
    its delivery in-flight; recover() requeues it on the next start.
    """

    def __init__(
        self,
        broker: MessageBroker,
        message_type: type[M],
        handler: Callable[[M], Awaitable[object]],
        *,
        stage: str,
        consumer_name: str,
        retry_policy: RetryPolicy | None = None,
        reporter: PipelineStatusReporter | None = None,
        status_interval: float = 10.0,
        poll_timeout: float = 5.0,
    ) -> None:
        self._broker = broker
        self._message_type = message_type
        self._handler = handler
        self._stage = stage
        self._consumer_name = consumer_name
        self._retry_policy = retry_policy or RetryPolicy()
        self._reporter = reporter
        self._status_interval = status_interval
        self._poll_timeout = poll_timeout

    @property
    def queue(self) -> str:
        return self._message_type.queue_name()

    async def run(self, stop_event: asyncio.Event) -> None:
        recovered = await self._broker.recover(self.queue, self._consumer_name)
        if recovered:
            log.warning("consumer_recovered_inflight", queue=self.queue, count=recovered)
        log.info("consumer_started", queue=self.queue, stage=self._stage, consumer=self._consumer_name)
        status_task = asyncio.create_task(self._report_status(stop_event))
        try:
            while not stop_event.is_set():
                delivery = await self._broker.receive(self.queue, self._consumer_name, self._poll_timeout)
                if delivery is None:
                    continue
                await self.handle_delivery(delivery)
        finally:
            status_task.cancel()
            with suppress(asyncio.CancelledError):
                await status_task
            log.info("consumer_stopped", queue=self.queue)

    async def handle_delivery(self, delivery: Delivery) -> str:
        """Process one delivery and settle it. Returns the outcome label."""
        set_message_context(delivery.envelope.id, self.queue)
        started = time.perf_counter()
        try:
            outcome = await self._settle(delivery)
        finally:
            MESSAGE_SECONDS.labels(queue=self.queue).observe(time.perf_counter() - started)
            clear_message_context()
        MESSAGES_TOTAL.labels(queue=self.queue, outcome=outcome).inc()
        return outcome

    async def _settle(self, delivery: Delivery) -> str:
        try:
            message = decode_message(delivery.envelope, self._message_type)
        except InvalidMessageError as e:
            log.error("consumer_invalid_message", error=str(e))
            await self._broker.dead_letter(delivery, self._consumer_name, str(e))
            return "invalid"

        try:
            await self._retry_policy.run(lambda: self._handler(message), on_retry=self._log_retry)
        except WorkInterrupted as e:
            log.warning("consumer_interrupted", error=str(e))
            return "interrupted"
        except Exception as e:
            retryable = is_retryable(e)
            log.error(
                "consumer_handler_failed",
                error=str(e),
                error_type=type(e).__name__,
                retryable=retryable,
                exc_info=True,
            )
            reason = f"{type(e).__name__}: {e}"
            if retryable:
                reason = f"retries exhausted after {self._retry_policy.max_attempts} attempts; {reason}"
            await self._broker.dead_letter(delivery, self._consumer_name, reason)
            return "dead_lettered"

        await self._broker.ack(delivery, self._consumer_name)
        return "processed"

    def _log_retry(self, state: RetryCallState) -> None:
        exc = state.outcome.exception() if state.outcome else None
        log.warning(
            "consumer_retrying",
            attempt=state.attempt_number,
            max_attempts=self._retry_policy.max_attempts,
            error=str(exc),
        )

    async def _report_status(self, stop_event: asyncio.Event) -> None:
        while not stop_event.is_set():
            try:
                size = await self._broker.queue_size(self.queue)
            except Exception as e:
                log.debug("queue_size_unavailable", queue=self.queue, error=str(e))
            else:
                QUEUE_DEPTH.labels(queue=self.queue).set(size)
                if self._reporter is not None:
                    await self._reporter.report(self._stage, size, self._consumer_name)
            with suppress(asyncio.TimeoutError):
                await asyncio.wait_for(stop_event.wait(), timeout=self._status_interval)
