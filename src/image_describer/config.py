"""Application configuration."""

import os
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from image_describer.services.descriptions import DEFAULT_PROMPT

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

BACKEND_OPENAI = "openai"
BACKEND_HTTP = "http"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    openai_api_key: str | None = None
    openai_model: str = "gpt-4.1-mini"
    openai_reasoning_effort: str | None = None
    openai_store: bool = False
    description_backend: str = BACKEND_OPENAI
    description_endpoint_url: str | None = None
    description_timeout_seconds: float = 60.0
    description_prompt: str = DEFAULT_PROMPT
    sessions_path: Path = Path(".image_describer/sessions.json")
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_description_backend(raw: str | None) -> str:
    """Normalize the configured description backend name."""
    if raw is None:
        return BACKEND_OPENAI
    cleaned = raw.strip().lower()
    if cleaned in {"", BACKEND_OPENAI}:
        return BACKEND_OPENAI
    if cleaned in {BACKEND_HTTP, "https"}:
        return BACKEND_HTTP
    raise ValueError(f"Unknown description backend: {raw}")
