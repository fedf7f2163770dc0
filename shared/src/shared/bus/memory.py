"""In-process broker for local runs and tests."""
import asyncio
from collections import defaultdict, deque

from shared.bus.base import Delivery, MessageBroker
from shared.messages import PipelineMessage, decode_envelope, encode_envelope, make_envelope


class InMemoryBroker(MessageBroker):
    def __init__(self) -> None:
        self.queues: dict[str, deque[str]] = defaultdict(deque)
        self.inflight: dict[tuple[str, str], list[str]] = defaultdict(list)
        self.dead: dict[str, list[tuple[str, str]]] = defaultdict(list)

    async def publish(self, message: PipelineMessage) -> str:
        envelope = make_envelope(message)
        self.queues[envelope.type].append(encode_envelope(envelope))
        return envelope.id

    async def receive(self, queue: str, consumer_name: str, timeout: float) -> Delivery | None:
        pending = self.queues[queue]
        if not pending:
            await asyncio.sleep(min(timeout, 0.01))
            if not pending:
                return None
        raw = pending.popleft()
        self.inflight[(queue, consumer_name)].append(raw)
        return Delivery(queue=queue, envelope=decode_envelope(raw), raw=raw)

    async def ack(self, delivery: Delivery, consumer_name: str) -> None:
        self.inflight[(delivery.queue, consumer_name)].remove(delivery.raw)

    async def dead_letter(self, delivery: Delivery, consumer_name: str, reason: str) -> None:
        self.inflight[(delivery.queue, consumer_name)].remove(delivery.raw)
        self.dead[delivery.queue].append((reason, delivery.raw))

    async def recover(self, queue: str, consumer_name: str) -> int:
        stranded = self.inflight.pop((queue, consumer_name), [])
        self.queues[queue].extendleft(reversed(stranded))
        return len(stranded)

    async def queue_size(self, queue: str) -> int:
        return len(self.queues[queue])

    def messages(self, message_type: type[PipelineMessage]) -> list[PipelineMessage]:
        """Decode everything currently queued for message_type, oldest first."""
        out = []
        for raw in self.queues[message_type.queue_name()]:
            out.append(message_type.model_validate(decode_envelope(raw).body))
        return out
