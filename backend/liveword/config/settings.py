from typing import Dict, List

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    # Google Cloud
    GOOGLE_APPLICATION_CREDENTIALS: str | None = Field(None)
    GOOGLE_PROJECT_ID: str | None = Field(None)

    # App
    API_HOST: str = Field("0.0.0.0")
    API_PORT: int = Field(3000)
    DEBUG: bool = Field(False)
    LOG_LEVEL: str = Field("INFO")
    STATIC_DIR: str = Field("public")

    # Transcription
    DEFAULT_TRANSCRIPTION_LANGUAGE: str = Field("en-US")
    SPEECH_MODEL: str | None = Field(None)
    SPEECH_CONTEXT_PHRASES: List[str] = Field(default_factory=list)
    # language code -> seconds before an unanswered interim is promoted to final
    FORCED_FINALIZATION_DELAYS: Dict[str, float] = Field(default_factory=dict)

    # Translation / synthesis
    DEFAULT_TRANSLATION_LANGUAGE: str | None = Field(None)
    TTS_VOICES: Dict[str, str] = Field(default_factory=dict)
    TTS_CACHE_SIZE: int = Field(100)

    # Metrics
    METRICS_ENABLED: bool = Field(False)
    METRICS_PORT: int = Field(8001)

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        env_file_encoding="utf-8"
    )


settings = Settings()
