"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

from landmark_guide.services.guide import GuideConfig

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    openai_api_key: str
    identify_model: str = "gpt-5.2"
    history_model: str = "gpt-5-mini"
    narration_model: str = "gpt-4o-mini-tts"
    narration_voice: str = "coral"
    narration_format: str = "mp3"
    request_timeout_seconds: float | None = None
    max_upload_bytes: int = 10 * 1024 * 1024
    session_ttl_seconds: int = 3600
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    def guide_config(self) -> GuideConfig:
        """Return the model and voice selection for the guide pipeline."""
        return GuideConfig(
            identify_model=self.identify_model,
            history_model=self.history_model,
            narration_model=self.narration_model,
            narration_voice=self.narration_voice,
            narration_format=self.narration_format,
        )
