from shared.bus.base import Delivery, MessageBroker
from shared.bus.consumer import MessageConsumer
from shared.bus.memory import InMemoryBroker
from shared.bus.redis_broker import RedisBroker

__all__ = ["Delivery", "InMemoryBroker", "MessageBroker", "MessageConsumer", "RedisBroker"]
