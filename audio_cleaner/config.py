"""Application configuration via environment variables."""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_service_role_key: str = ""
    supabase_anon_key: str = ""
    recordings_table: str = "actor_recordings"
    actors_table: str = "actors"

    # Recording store
    store_backend: str = "memory"  # "memory" or "supabase"

    # Noise-reduction processor
    processor_base_url: str = "https://api.audo.ai/v1"
    processor_api_key: str = ""
    processor_timeout_seconds: float = 30.0

    # Push notifications (unset means polling-only mode)
    webhook_url: Optional[str] = None
    webhook_secret: Optional[str] = None

    # Polling
    poll_interval_seconds: float = 10.0
    max_consecutive_poll_failures: int = 5
    auto_poll: bool = True

    # Service
    service_port: int = 8001
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
