"""Change detector configuration."""
from pydantic_settings import SettingsConfigDict

from shared.config import WorkerSettings


class ChangeDetectorSettings(WorkerSettings):
    model_config = SettingsConfigDict(env_prefix="CHANGE_DETECTOR_")

    content_directory: str
    supported_extensions: tuple[str, ...] = (".pdf",)
    worker_name: str = "change-detector"
