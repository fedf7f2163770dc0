"""Message broker interface."""
from abc import ABC, abstractmethod
from dataclasses import dataclass

from shared.messages import Envelope, PipelineMessage


@dataclass
class Delivery:
    """One received message, held in-flight until acked or dead-lettered."""

    queue: str
    envelope: Envelope
    raw: str


class MessageBroker(ABC):
    """At-least-once queue transport. Queue name is the message class name."""

    @abstractmethod
    async def publish(self, message: PipelineMessage) -> str:
        """Enqueue message and return its envelope id."""
        ...

    @abstractmethod
    async def receive(self, queue: str, consumer_name: str, timeout: float) -> Delivery | None:
        """Wait up to timeout seconds for the next message; None when the queue stayed empty."""
        ...

    @abstractmethod
    async def ack(self, delivery: Delivery, consumer_name: str) -> None:
        ...

    @abstractmethod
    async def dead_letter(self, delivery: Delivery, consumer_name: str, reason: str) -> None:
        ...

    @abstractmethod
    async def recover(self, queue: str, consumer_name: str) -> int:
        """Requeue messages a previous run of consumer_name left in-flight. Returns count."""
        ...

    @abstractmethod
    async def queue_size(self, queue: str) -> int:
        ...

    async def close(self) -> None:
        return None
