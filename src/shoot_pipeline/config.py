"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    storage_bucket: str = "shoots"
    producer_token: str
    public_base_url: str = "http://localhost:8000"
    notification_webhook_url: str | None = None
    handoff_token_hours: int = 36
    final_handoff_token_days: int = 7
    editor_quiet_window_minutes: int = 60
    max_upload_bytes: int = 100 * 1024 * 1024
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    def download_url(self, token: str) -> str:
        """Return the public download link for a token."""
        return f"{self.public_base_url.rstrip('/')}/handoff/download/{token}"

    def editor_upload_url(self, token: str) -> str:
        """Return the public upload link for an editor token."""
        return f"{self.public_base_url.rstrip('/')}/editor/{token}/upload"
