"""Queue message contracts and the JSON envelope they travel in."""
from datetime import datetime, timezone
from typing import Any, ClassVar
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from shared.errors import InvalidMessageError


class PipelineMessage(BaseModel):
    """Base for messages on the bus. Serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    registry: ClassVar[dict[str, type["PipelineMessage"]]] = {}

    @classmethod
    def __pydantic_init_subclass__(cls, **kwargs: Any) -> None:
        super().__pydantic_init_subclass__(**kwargs)
        PipelineMessage.registry[cls.__name__] = cls

    @classmethod
    def queue_name(cls) -> str:
        return cls.__name__


class CrackDocumentMessage(PipelineMessage):
    file_path: str
    relative_directory: str | None = None
    ruleset_id: str | None = None
    document_kind: str | None = None


class DocumentReadyForChunkingMessage(PipelineMessage):
    document_id: int
    file_path: str
    file_name: str
    relative_directory: str | None = None
    file_size: int
    page_count: int
    cracked_at: datetime
    document_kind: str
    ruleset_id: str


class ChunkReadyForEmbeddingMessage(PipelineMessage):
    chunk_id: str
    chunk_index: int
    chunk_text: str
    document_id: int
    file_name: str
    file_path: str
    relative_directory: str | None = None
    file_size: int
    page_count: int
    cracked_at: datetime
    page_number: int | None = None
    total_chunks: int | None = None
    document_kind: str | None = None
    ruleset_id: str | None = None


class ConversationMessageReadyForEmbeddingMessage(PipelineMessage):
    message_id: UUID
    game_id: UUID
    text: str
    role: str
    created_at: datetime


class Envelope(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(default_factory=lambda: str(uuid4()))
    type: str
    attempt: int = 0
    published_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    body: dict[str, Any]


def make_envelope(message: PipelineMessage) -> Envelope:
    return Envelope(
        type=type(message).queue_name(),
        body=message.model_dump(mode="json", by_alias=True),
    )


def encode_envelope(envelope: Envelope) -> str:
    return envelope.model_dump_json(by_alias=True)


def decode_envelope(raw: str | bytes) -> Envelope:
    try:
        return Envelope.model_validate_json(raw)
    except ValidationError as e:
        raise InvalidMessageError(f"Malformed envelope: {e}") from e


def decode_message(envelope: Envelope, expected: type[PipelineMessage] | None = None) -> PipelineMessage:
    """Build the typed message carried by envelope; raise InvalidMessageError if it does not fit."""
    message_type = PipelineMessage.registry.get(envelope.type)
    if message_type is None:
        raise InvalidMessageError(f"Unknown message type: {envelope.type}")
    if expected is not None and message_type is not expected:
        raise InvalidMessageError(
            f"Expected {expected.queue_name()} on this queue, got {envelope.type}"
        )
    try:
        return message_type.model_validate(envelope.body)
    except ValidationError as e:
        raise InvalidMessageError(f"Invalid {envelope.type} body: {e}") from e
