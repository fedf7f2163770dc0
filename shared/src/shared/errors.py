"""Pipeline error taxonomy."""


class PipelineError(Exception):
    """Base class for errors raised by pipeline stages."""


class TransientError(PipelineError):
    """Failure expected to clear on its own; the message should be retried."""


class NonRetryableError(PipelineError):
    """Failure that will recur on every attempt; the message is dead-lettered."""


class EmbeddingGenerationError(NonRetryableError):
    """The embedding model returned no vectors or vectors without a usable length."""


class DocumentNotFoundError(NonRetryableError):
    pass


class EmptyChunkSetError(NonRetryableError):
    """Chunking produced no chunk that survived the minimum length filter."""


class InvalidMessageError(NonRetryableError):
    """Queue payload could not be decoded into its message type."""


class ChunkPublishError(TransientError):
    """None of a document's chunks could be published for embedding."""


class WorkInterrupted(PipelineError):
    """A stop was requested mid-message; the delivery stays in-flight for recovery on restart."""
