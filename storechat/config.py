"""
StoreChat settings.

Every value comes from the environment (or a local ``.env``), grouped by
prefix:

    LLM_*        completion endpoint (OpenAI)
    DATABASE_*   primary and read-only PostgreSQL roles
    PIPELINE_*   question, LIMIT and row bounds plus the table whitelist
    LOG_*        logging

Usage:
    from storechat.config import get_settings

    settings = get_settings()
    settings.pipeline.default_limit  # 100
"""

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Literal
from urllib.parse import urlparse

from dotenv import load_dotenv
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_ALLOWED_TABLES = [
    "orders",
    "order_items",
    "products",
    "customers",
    "categories",
    "coupons",
]

# Third-party loggers that are chatty at INFO
_QUIET_LOGGERS = ("asyncpg", "httpx", "openai")


def _env_config(prefix: str) -> SettingsConfigDict:
    return SettingsConfigDict(env_prefix=prefix, env_file=".env", extra="ignore")


class LLMSettings(BaseSettings):
    """OpenAI completion endpoint."""

    openai_api_key: str | None = Field(None, min_length=20, description="OpenAI API key")
    openai_model: str = Field("gpt-4o", description="Chat model used for SQL generation")
    max_tokens: int = Field(1024, gt=0, le=16000, description="Completion token budget")
    timeout: int = Field(30, gt=0, description="Completion wall-clock bound in seconds")

    model_config = _env_config("LLM_")

    @field_validator("openai_api_key")
    @classmethod
    def check_key_prefix(cls, v: str | None) -> str | None:
        if v and not v.startswith("sk-"):
            raise ValueError("OpenAI API key must start with 'sk-'")
        return v


class DatabaseSettings(BaseSettings):
    """
    PostgreSQL roles.

    ``url`` is the primary role used for store statistics; ``readonly_url``
    is the SELECT-only role generated SQL runs under.
    """

    url: str | None = Field(None, description="Primary role URL")
    readonly_url: str | None = Field(None, description="SELECT-only role URL")
    pool_min_size: int = Field(1, ge=1, le=20)
    pool_max_size: int = Field(5, ge=1, le=20)
    statement_timeout_ms: int = Field(
        5000,
        gt=0,
        le=60000,
        description="Server-side statement_timeout for the read-only role",
    )

    model_config = _env_config("DATABASE_")

    @field_validator("url", "readonly_url", mode="before")
    @classmethod
    def blank_as_none(cls, v: str | None) -> str | None:
        return None if v == "" else v

    @field_validator("url", "readonly_url")
    @classmethod
    def check_postgres_url(cls, v: str | None) -> str | None:
        if v is None:
            return v
        parsed = urlparse(v)
        if parsed.scheme not in ("postgres", "postgresql"):
            raise ValueError("Database URLs must use the postgresql scheme.")
        if not parsed.hostname:
            raise ValueError("Database URLs must include a host.")
        return v

    @model_validator(mode="after")
    def check_pool_bounds(self) -> "DatabaseSettings":
        if self.pool_min_size > self.pool_max_size:
            raise ValueError(
                f"pool_min_size ({self.pool_min_size}) must not exceed "
                f"pool_max_size ({self.pool_max_size})"
            )
        return self


class PipelineSettings(BaseSettings):
    """Question, LIMIT and row bounds plus the tenant safety policy."""

    max_question_length: int = Field(2000, gt=0, le=10000)
    default_limit: int = Field(100, gt=0, description="LIMIT appended when SQL has none")
    max_limit: int = Field(1000, gt=0, description="Largest LIMIT generated SQL may keep")
    max_rows: int = Field(1000, gt=0, description="Rows kept before truncation")
    allowed_tables: list[str] = Field(default_factory=lambda: list(DEFAULT_ALLOWED_TABLES))
    tenant_column: str = Field("store_id", pattern=r"^[a-z_][a-z0-9_]*$")

    model_config = _env_config("PIPELINE_")

    @field_validator("allowed_tables")
    @classmethod
    def normalize_tables(cls, v: list[str]) -> list[str]:
        tables = [t.strip().lower() for t in v if t.strip()]
        if not tables:
            raise ValueError("allowed_tables must not be empty")
        return tables

    @model_validator(mode="after")
    def check_limits(self) -> "PipelineSettings":
        if self.default_limit > self.max_limit:
            raise ValueError(
                f"default_limit ({self.default_limit}) must not exceed "
                f"max_limit ({self.max_limit})"
            )
        return self


class LoggingSettings(BaseSettings):
    """Root logging setup for the CLI process."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: str = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
    date_format: str = "%H:%M:%S"
    file: Path | None = Field(None, description="Also write logs to this file")

    model_config = _env_config("LOG_")

    def configure(self) -> None:
        """Install handlers on the root logger, replacing any existing ones."""
        handlers: list[logging.Handler] = [logging.StreamHandler()]
        if self.file is not None:
            self.file.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(self.file))

        logging.basicConfig(
            level=self.level,
            format=self.format,
            datefmt=self.date_format,
            handlers=handlers,
            force=True,
        )
        if self.level != "DEBUG":
            for name in _QUIET_LOGGERS:
                logging.getLogger(name).setLevel(logging.WARNING)


class Settings(BaseSettings):
    """
    All StoreChat settings; each nested group reads its own prefix.

    Example:
        >>> Settings().pipeline.max_rows
        1000
    """

    llm: LLMSettings = Field(default_factory=LLMSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    pipeline: PipelineSettings = Field(default_factory=PipelineSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


_PROJECT_DOTENV = Path(__file__).resolve().parents[1] / ".env"


def _load_project_dotenv() -> None:
    # STORECHAT_ENV_SOURCE=environment ignores the project .env (tests, containers)
    source = os.getenv("STORECHAT_ENV_SOURCE", "dotenv").lower()
    if source in ("dotenv", "file") and _PROJECT_DOTENV.exists():
        load_dotenv(_PROJECT_DOTENV, override=True)


@lru_cache
def get_settings() -> Settings:
    """Settings for this process, built once."""
    _load_project_dotenv()
    settings = Settings()
    logging.getLogger(__name__).debug(
        "Settings loaded",
        extra={
            "llm_model": settings.llm.openai_model,
            "statement_timeout_ms": settings.database.statement_timeout_ms,
        },
    )
    return settings


def clear_settings_cache() -> None:
    """Forget cached settings so the next get_settings() rereads the environment."""
    get_settings.cache_clear()
