"""Centralized application settings loaded from environment variables.

All configuration is defined once here. Other modules should import
``get_settings()`` rather than calling ``os.getenv()`` directly.
"""

from __future__ import annotations

import logging

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application-wide configuration backed by environment variables.

    Field names are **lowercased** versions of the env-var names.
    ``pydantic-settings`` maps them automatically (case-insensitive).

    Example::

        settings = Settings()  # reads .env + real env
        model_id = settings.completion_model_id
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # -- Completion backend ------------------------------------------------

    completion_model_id: str = "anthropic.claude-v2"
    """Model identifier; the text before the first '.' selects the provider family."""

    bedrock_region: str = "us-east-1"
    """Region used to derive the default runtime endpoint."""

    bedrock_endpoint: str | None = None
    """Explicit runtime endpoint. Overrides the region-derived URL."""

    bedrock_api_key: str = ""
    """Bearer API key sent with every invoke request."""

    request_timeout_seconds: float = 60.0
    """Per-request timeout for the completion transport."""

    # -- Database ----------------------------------------------------------

    database_url: str = ""
    """SQLAlchemy connection URL. Empty → in-memory SQLite."""

    sql_use_azure_ad: bool = False
    """Authenticate ODBC connections with an Azure AD access token."""

    azure_client_id: str | None = None
    """Managed-identity client ID (None → system-assigned)."""

    max_result_rows: int | None = None
    """Upper bound on rows fetched per statement (None → all rows)."""

    # -- Token budget ------------------------------------------------------

    max_output_tokens: int = 300
    """Largest generation length requested from the backend."""

    token_safety_margin: int = 64
    """Tokens held back from the context window on every call."""

    min_generation_tokens: int = 1
    """Smallest acceptable generation budget before failing the call."""

    enforce_token_budget: bool = True
    """Size ``max_tokens`` against the model context window on each call."""

    # -- Operational -------------------------------------------------------

    prompts_dir: str | None = None
    """Directory holding ``*.md`` prompt templates (None → packaged prompts)."""

    log_level: str = "INFO"
    """Root logging level applied by ``configure_logging()``."""


def get_settings() -> Settings:
    """Return a cached ``Settings`` instance.

    Uses a module-level singleton so the ``.env`` file is read at most
    once per process.

    Returns:
        The global ``Settings`` object.
    """
    return _settings


def configure_logging(level: str | int | None = None) -> None:
    """Configure root logging and reduce noise from client libraries.

    Args:
        level: Logging level name or number. Defaults to ``Settings.log_level``.
    """
    logging.basicConfig(level=level or _settings.log_level, force=True)

    logging.getLogger("azure").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


_settings = Settings()
