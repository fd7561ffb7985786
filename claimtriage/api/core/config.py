"""Application configuration loaded from the environment."""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic import AliasChoices, Field, PositiveInt, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_SQLITE_PREFIXES = ("sqlite+aiosqlite:///", "sqlite:///")


class Settings(BaseSettings):
    """Central application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    api_version: str = Field(default="0.1.0", alias="API_VERSION")
    api_host: str = Field(default="127.0.0.1", alias="API_HOST")
    api_port: int = Field(default=4000, alias=AliasChoices("API_PORT", "PORT"))
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    db_url: str = Field(default="sqlite:///./data/claims.db", alias="DB_URL")
    db_timeout: float = Field(default=30.0, alias="DB_TIMEOUT_SECONDS")

    llm_provider: str = Field(default="openrouter", alias="LLM_PROVIDER")
    llm_model: str = Field(default="google/gemini-3-flash", alias="LLM_MODEL")
    prompt_version: str = Field(default="v1", alias="PROMPT_VERSION")
    llm_reasoning_budget: PositiveInt = Field(default=512, alias="LLM_REASONING_BUDGET")
    llm_temperature: float = Field(default=0.2, alias="LLM_TEMPERATURE")
    llm_request_timeout: float = Field(default=60.0, alias="LLM_TIMEOUT_SECONDS")
    llm_connect_timeout: float = Field(default=10.0, alias="LLM_CONNECT_TIMEOUT_SECONDS")

    openai_api_key: str = Field(default="", alias="OPENAI_API_KEY")
    openai_base_url: str = Field(default="https://api.openai.com/v1", alias="OPENAI_BASE_URL")
    openrouter_api_key: str = Field(default="", alias="OPENROUTER_API_KEY")
    openrouter_base_url: str = Field(default="https://openrouter.ai/api/v1", alias="OPENROUTER_BASE_URL")
    ollama_base_url: str = Field(default="http://127.0.0.1:11434", alias="OLLAMA_BASE_URL")

    cors_allow_origins: str = Field(
        default="*",
        alias=AliasChoices("CORS_ALLOW_ORIGINS", "ALLOWED_ORIGINS"),
    )

    @field_validator("llm_temperature", mode="after")
    @classmethod
    def _clamp_temperature(cls, value: float) -> float:
        return max(0.0, min(1.0, value))

    @field_validator("llm_request_timeout", "llm_connect_timeout", "db_timeout", mode="after")
    @classmethod
    def _ensure_positive_float(cls, value: float) -> float:
        return max(0.1, float(value))

    @property
    def allowed_origins(self) -> List[str]:
        """Comma separated ``CORS_ALLOW_ORIGINS`` as a list, ``["*"]`` when empty."""

        items = [item.strip() for item in self.cors_allow_origins.split(",") if item.strip()]
        return items or ["*"]

    @property
    def database_path(self) -> Path:
        """Filesystem path of the SQLite database named by ``db_url``."""

        for prefix in _SQLITE_PREFIXES:
            if self.db_url.startswith(prefix):
                return Path(self.db_url[len(prefix):]).resolve()
        raise ValueError(f"Unsupported DB_URL: {self.db_url}")


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
