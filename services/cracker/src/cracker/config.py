"""Cracker service configuration."""
from pydantic import Field
from pydantic_settings import SettingsConfigDict

from shared.config import WorkerSettings, default_worker_name


class CrackerSettings(WorkerSettings):
    model_config = SettingsConfigDict(env_prefix="CRACKER_")

    worker_name: str = Field(default_factory=lambda: default_worker_name("cracker"))
    content_directory: str | None = None  # root for the crack-all batch command
