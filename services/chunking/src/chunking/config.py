"""Chunking service configuration."""
from typing import Literal

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from shared.config import WorkerSettings, default_worker_name


class ChunkingSettings(WorkerSettings):
    model_config = SettingsConfigDict(env_prefix="CHUNKING_")

    worker_name: str = Field(default_factory=lambda: default_worker_name("chunking"))
    strategy: Literal["semantic", "paragraph"] = "semantic"
    max_chunk_tokens: int = Field(default=1024, gt=0)
    threshold_type: Literal["percentile", "standard_deviation", "interquartile", "gradient"] = "percentile"
    threshold_amount: float | None = 90.0  # None: policy default
    buffer_size: int = Field(default=2, ge=0)
    min_chunk_chars: int = Field(default=100, ge=0)
    paragraph_overlap: int = Field(default=0, ge=0)
    cleanup_orphans: bool = True
