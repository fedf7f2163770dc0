"""Redis reliable-queue broker: LPUSH to publish, BLMOVE into a per-consumer in-flight list."""
import json
from datetime import datetime, timezone

import redis.asyncio as aioredis
import structlog

from shared.bus.base import Delivery, MessageBroker
from shared.errors import InvalidMessageError
from shared.messages import PipelineMessage, decode_envelope, encode_envelope, make_envelope

log = structlog.get_logger()

KEY_PREFIX = "pipeline"


def queue_key(queue: str) -> str:
    return f"{KEY_PREFIX}:{queue}"


def inflight_key(queue: str, consumer_name: str) -> str:
    return f"{KEY_PREFIX}:{queue}:inflight:{consumer_name}"


def dead_letter_key(queue: str) -> str:
    return f"{KEY_PREFIX}:{queue}:dead"


class RedisBroker(MessageBroker):
    """Process-scoped: one broker per worker, shared by all handlers; close() once on shutdown."""

    def __init__(self, client: aioredis.Redis) -> None:
        self._redis = client

    @classmethod
    def from_url(cls, url: str) -> "RedisBroker":
        return cls(aioredis.from_url(url, decode_responses=True))

    async def publish(self, message: PipelineMessage) -> str:
        envelope = make_envelope(message)
        await self._redis.lpush(queue_key(envelope.type), encode_envelope(envelope))
        return envelope.id

    async def receive(self, queue: str, consumer_name: str, timeout: float) -> Delivery | None:
        raw = await self._redis.blmove(
            queue_key(queue),
            inflight_key(queue, consumer_name),
            timeout,
            src="RIGHT",
            dest="LEFT",
        )
        if raw is None:
            return None
        try:
            envelope = decode_envelope(raw)
        except InvalidMessageError:
            # Unparseable payloads never reach a handler; park them for inspection.
            await self._park(queue, consumer_name, raw, "malformed envelope")
            log.error("bus_malformed_envelope", queue=queue, payload=raw[:200])
            return None
        return Delivery(queue=queue, envelope=envelope, raw=raw)

    async def ack(self, delivery: Delivery, consumer_name: str) -> None:
        await self._redis.lrem(inflight_key(delivery.queue, consumer_name), 1, delivery.raw)

    async def dead_letter(self, delivery: Delivery, consumer_name: str, reason: str) -> None:
        await self._park(delivery.queue, consumer_name, delivery.raw, reason)

    async def _park(self, queue: str, consumer_name: str, raw: str, reason: str) -> None:
        record = json.dumps(
            {
                "reason": reason,
                "consumer": consumer_name,
                "deadLetteredAt": datetime.now(timezone.utc).isoformat(),
                "payload": raw,
            }
        )
        async with self._redis.pipeline(transaction=True) as pipe:
            pipe.lrem(inflight_key(queue, consumer_name), 1, raw)
            pipe.lpush(dead_letter_key(queue), record)
            await pipe.execute()

    async def recover(self, queue: str, consumer_name: str) -> int:
        recovered = 0
        while True:
            raw = await self._redis.lmove(
                inflight_key(queue, consumer_name),
                queue_key(queue),
                src="LEFT",
                dest="RIGHT",
            )
            if raw is None:
                return recovered
            recovered += 1

    async def queue_size(self, queue: str) -> int:
        return int(await self._redis.llen(queue_key(queue)))

    async def close(self) -> None:
        await self._redis.aclose()
