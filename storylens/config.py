"""Application configuration via environment variables."""

from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    # Server
    port: int = 5000
    cors_origins: List[str] = ["http://localhost:5173", "http://localhost:3000"]
    log_level: str = "INFO"

    # Upload storage
    upload_dir: str = "uploads"
    max_upload_bytes: int = 10 * 1024 * 1024  # 10 MiB

    # Generation capabilities
    story_generator: str = "template"
    narrator: str = "silent"
    story_timeout_seconds: float = 60.0
    audio_timeout_seconds: float = 120.0

    # Pipeline workers
    pipeline_workers: int = 4
    pipeline_queue_size: int = 100

    # Expiry (0 keeps records and uploads for the life of the process)
    story_ttl_hours: float = 0
    janitor_interval_seconds: float = 300.0

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
