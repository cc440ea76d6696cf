from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from samplefinder.exceptions import ConfigError


class AppConfig(BaseModel):
    """Application-specific configuration values."""

    name: str = "SampleFinder"
    env: str = "development"
    debug: bool = True
    port: int = 8000
    log_level: str = "INFO"
    log_file: Optional[str] = None
    # Transport settings for FastMCP: "stdio" (default), "http", or "sse"
    transport: Literal["stdio", "http", "sse"] = "stdio"
    host: str = "127.0.0.1"


class DatabaseConfig(BaseModel):
    """Database configuration values."""

    # In-memory by default; point at a file to keep the index between runs
    url: str = "sqlite+pysqlite:///:memory:"
    echo: bool = False


class CorpusConfig(BaseModel):
    """Where the samples bundle comes from and how sample links are built."""

    path: Optional[str] = None  # local samples.json
    url: Optional[str] = None  # remote samples.json, used when path is unset
    sample_base_url: str = "https://developers.arcgis.com/kotlin/sample-code"
    screenshot_base_url: str = (
        "https://raw.githubusercontent.com/Esri/arcgis-maps-sdk-kotlin-samples/v.next"
    )
    timeout: float = 30.0


class SearchConfig(BaseModel):
    """Ranking parameters."""

    bm25_b: float = Field(default=0.75, ge=0.0, le=1.0)
    bm25_k1: float = Field(default=1.2, ge=0.0)
    default_limit: int = Field(default=20, ge=1)


class Settings(BaseSettings):
    """Top-level settings loaded from environment variables and .env only."""

    model_config = SettingsConfigDict(
        env_prefix="SAMPLEFINDER_",
        env_nested_delimiter="__",
        env_file=".env",
        extra="ignore",
    )

    app: AppConfig = AppConfig()
    database: DatabaseConfig = DatabaseConfig()
    corpus: CorpusConfig = CorpusConfig()
    search: SearchConfig = SearchConfig()


def load_settings() -> Settings:
    """Load settings from environment variables and .env only.

    Raises `ConfigError` when a value fails validation.
    """
    try:
        return Settings()  # type: ignore[call-arg]
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc
