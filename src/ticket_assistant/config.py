"""Configuration models for the ticket assistant."""

from __future__ import annotations

from typing import Literal

from pydantic import AliasChoices, BaseModel, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class RetrievalConfig(BaseModel):
    """Configures the per-request vector retrieval step."""

    recent_limit: int = Field(default=10, ge=1)
    top_k: int = Field(default=1, ge=1)


class ConversationConfig(BaseModel):
    """Configures the tool-calling conversation loop."""

    max_turns: int = Field(default=1, ge=0)
    list_limit: int = Field(default=5, ge=1)


class Settings(BaseSettings):
    """Process settings loaded from environment variables and ``.env``.

    API keys are optional: without one, the corresponding API surface reports
    itself as unconfigured instead of refusing to start.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    llm_provider: Literal["google", "openai"] = "google"
    llm_model: str = "gemini-2.5-flash"
    openai_model: str = "gpt-4o-mini"
    embedding_model: str = "models/text-embedding-004"
    google_api_key: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices("GOOGLE_API_KEY", "GEMINI_API_KEY"),
    )
    openai_api_key: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices("OPENAI_API_KEY"),
    )

    database_path: str = "tickets.db"
    rag_service_url: str | None = None
    rag_service_timeout: float = Field(default=30.0, gt=0.0)

    max_turns: int = Field(default=1, ge=0)
    recent_limit: int = Field(default=10, ge=1)
    log_level: str = "INFO"

    def retrieval_config(self) -> RetrievalConfig:
        return RetrievalConfig(recent_limit=self.recent_limit)

    def conversation_config(self) -> ConversationConfig:
        return ConversationConfig(max_turns=self.max_turns)
