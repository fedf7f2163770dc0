"""Embedding worker configuration."""
from typing import Literal

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from shared.config import WorkerSettings, default_worker_name


class EmbeddingSettings(WorkerSettings):
    model_config = SettingsConfigDict(env_prefix="EMBEDDING_")

    worker_name: str = Field(default_factory=lambda: default_worker_name("embedding"))
    queue: Literal["chunks", "conversations"] = "chunks"
