"""Configuration settings using Pydantic."""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class OpenAISettings(BaseSettings):
    """OpenAI model and speech configuration."""
    model_config = SettingsConfigDict(env_prefix="OPENAI_")

    api_key: str = ""
    model: str = "gpt-4o-mini"
    tts_model: str = "gpt-4o-mini-tts"
    default_voice: str = "coral"
    default_instructions: str = "Speak in an empathetic caring voice."
    audio_format: str = "mp3"
    scoring_max_output_tokens: int = 2000

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)


class ServerSettings(BaseSettings):
    """HTTP server configuration."""
    model_config = SettingsConfigDict(env_prefix="SERVER_")

    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])


class SupabaseSettings(BaseSettings):
    """Supabase configuration."""
    model_config = SettingsConfigDict(env_prefix="SUPABASE_")

    url: str = ""
    service_role_key: str = ""
    contacts_table: str = "contacts"

    @property
    def is_configured(self) -> bool:
        return bool(self.url and self.service_role_key)


class AudioCacheSettings(BaseSettings):
    """On-disk synthesized audio cache."""
    model_config = SettingsConfigDict(env_prefix="AUDIO_CACHE_")

    directory: str = "./data/audio"
    max_files: int = 0  # 0 disables the count bound
    max_age_days: int = 0  # 0 disables expiry


class LoggingSettings(BaseSettings):
    """Logging configuration."""
    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: str = "INFO"
    file: Optional[str] = None


class Settings(BaseSettings):
    """Main application settings."""
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    openai: OpenAISettings = Field(default_factory=OpenAISettings)
    server: ServerSettings = Field(default_factory=ServerSettings)
    supabase: SupabaseSettings = Field(default_factory=SupabaseSettings)
    audio_cache: AudioCacheSettings = Field(default_factory=AudioCacheSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
