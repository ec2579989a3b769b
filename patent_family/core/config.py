"""Application configuration via environment variables."""

from functools import lru_cache
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings loaded from environment variables."""

    app_name: str = Field("Patent Family Builder", description="Human-readable service name.")
    environment: str = Field("dev", description="Deployment environment tag.")
    debug: bool = Field(False, description="Enable FastAPI debug mode.")
    log_level: str = Field("INFO", description="Root logging level.")

    api_v1_prefix: str = Field("/api", description="Root prefix for versioned API routes.")
    allowed_hosts: List[str] = Field(
        default_factory=lambda: ["*"], description="Origins allowed to access the service."
    )

    database_url: str = Field(
        "sqlite:///./patent_family.db",
        description="SQLAlchemy database URL backing the key-value collection store.",
    )
    session_key: str = Field(
        "patent_family", description="Key under which the family collection is persisted."
    )

    registry_base_url: str = Field(
        "https://search.patentsview.org/api/v1",
        description="Base URL of the authoritative patent registry JSON API.",
    )
    registry_api_key: Optional[str] = Field(
        None, description="API key sent to the registry as X-Api-Key."
    )
    document_base_url: str = Field(
        "https://patents.google.com",
        description="Base URL of the HTML patent document store.",
    )
    document_kind_suffixes: List[str] = Field(
        default_factory=lambda: ["B2", "B1", "A1", "A2", "E"],
        description="Kind codes appended to the identifier when guessing document URLs.",
    )
    http_timeout_seconds: float = Field(30.0, description="Timeout for outbound HTTP requests.")
    import_delay_seconds: float = Field(
        1.5, description="Pause between consecutive items of a batch family import."
    )

    openai_api_key: Optional[str] = Field(
        None, description="API key used for the analysis model."
    )
    openai_base_url: Optional[str] = Field(
        None, description="Optional override for OpenAI-compatible endpoints."
    )
    openai_model: str = Field(
        "gpt-4o-mini",
        description="Model used for claim extraction, summarization and classification.",
    )
    openai_max_tokens: int = Field(1024, description="Completion token cap per analysis call.")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )


@lru_cache()
def get_settings() -> Settings:
    """Provide a cached Settings instance."""

    return Settings()
