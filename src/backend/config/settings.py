"""Centralized application settings loaded from environment variables.

All configuration is defined once here. Other modules should import
``get_settings()`` rather than calling ``os.getenv()`` directly.
"""

from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application-wide configuration backed by environment variables.

    Field names are **lowercased** versions of the env-var names.
    ``pydantic-settings`` maps them automatically (case-insensitive).

    Example::

        settings = Settings()  # reads .env + real env
        threshold = settings.delegation_confidence_threshold
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # -- Azure AI / Foundry ------------------------------------------------

    azure_ai_project_endpoint: str = ""
    """Foundry project endpoint URL."""

    azure_ai_model_deployment_name: str = "gpt-4o-mini"
    """Default model deployment used for chat and general queries."""

    azure_ai_orchestrator_model: str | None = None
    """Model override for the orchestrator. Falls back to default."""

    azure_client_id: str | None = None
    """Managed-identity client ID (None → system-assigned)."""

    # -- Remote agent handlers ---------------------------------------------

    agent_functions_base_url: str = ""
    """Base URL under which the connector/analyst/curator handlers live."""

    agent_functions_api_key: str = ""
    """Key sent as ``apikey`` and bearer token to the agent handlers."""

    agent_handler_timeout_seconds: float = 30.0
    """HTTP timeout for a single handler invocation."""

    # -- Azure SQL (durable task log) --------------------------------------

    azure_sql_server: str = ""
    """SQL Server hostname. Empty → in-memory task log."""

    azure_sql_database: str = "BamaBot"
    """Target database name."""

    task_log_table: str = "orchestrator_task_logs"
    """Table holding one row per orchestrator invocation."""

    # -- Thresholds / Tuning -----------------------------------------------

    delegation_confidence_threshold: float = 0.6
    """Classification confidence a chat turn must exceed to be delegated."""

    chat_history_turns: int = 5
    """Number of recent turns rendered into the classification prompt."""

    # -- Session policy ----------------------------------------------------

    session_ttl_seconds: int = 24 * 60 * 60
    """Idle time after which a session expires."""

    max_session_cache_size: int = 1000
    """Upper bound on sessions held in memory (LRU eviction)."""

    max_context_entries_per_session: int = 200
    """Upper bound on context entries kept per session (oldest evicted)."""

    # -- Operational -------------------------------------------------------

    cors_allow_origins: list[str] = ["*"]
    """Origins allowed by the CORS middleware."""

    enable_instrumentation: bool = False
    """Enable Application Insights tracing."""

    applicationinsights_connection_string: str | None = None
    """App Insights connection string (None → tracing disabled)."""

    enable_sensitive_data: bool = False
    """Include prompts and responses in traces."""


def get_settings() -> Settings:
    """Return a cached ``Settings`` instance.

    Uses ``lru_cache`` semantics via a module-level singleton so the
    ``.env`` file is read at most once per process.

    Returns:
        The global ``Settings`` object.
    """
    return _settings


_settings = Settings()
