"""Orchestrator client container for dependency injection.

``OrchestratorClients`` bundles every I/O dependency the orchestrator
needs. Production code constructs it via ``create_orchestrator_clients()``
from real Azure and HTTP clients; tests construct it from in-memory fakes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from config.settings import Settings
from entities.context_store import InMemorySessionStore
from entities.shared.clients import (
    AgentCompletionService,
    AzureSqlTaskLog,
    HttpAgentHandlerClient,
    InMemoryTaskLog,
    create_chat_agent,
)
from entities.shared.protocols import (
    AgentHandlerClient,
    CompletionService,
    SessionStore,
    TaskLogStore,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# OrchestratorClients dataclass
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class OrchestratorClients:
    """Immutable bundle of all I/O dependencies for the orchestrator.

    All fields use Protocol types, enabling full dependency injection.

    Args:
        completion: Language-model completion service.
        handlers: Client for the remote agent handlers.
        task_log: Durable log of orchestrator invocations.
        sessions: Session and context store.
    """

    completion: CompletionService
    handlers: AgentHandlerClient
    task_log: TaskLogStore
    sessions: SessionStore


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


def create_task_log(settings: Settings) -> TaskLogStore:
    """Azure SQL task log when a server is configured, otherwise in-memory."""
    if settings.azure_sql_server:
        logger.info(
            "Task log: Azure SQL %s/%s (table %s)",
            settings.azure_sql_server,
            settings.azure_sql_database,
            settings.task_log_table,
        )
        return AzureSqlTaskLog(
            server=settings.azure_sql_server,
            database=settings.azure_sql_database,
            table=settings.task_log_table,
            client_id=settings.azure_client_id,
        )
    logger.warning("AZURE_SQL_SERVER not set; task log is in-memory only")
    return InMemoryTaskLog()


def create_orchestrator_clients(settings: Settings) -> OrchestratorClients:
    """Build an ``OrchestratorClients`` from application ``Settings``.

    Creates the ``ChatAgent``-backed completion service, the HTTP handler
    client, the task log, and a fresh session store. No module-level
    singletons are created; each call produces a self-contained bundle.

    Args:
        settings: Centralised application configuration.

    Returns:
        Fully-initialised ``OrchestratorClients``.
    """
    completion = AgentCompletionService(create_chat_agent(settings))

    if not settings.agent_functions_base_url:
        logger.warning("AGENT_FUNCTIONS_BASE_URL not set; delegated tasks will fail")
    handlers = HttpAgentHandlerClient(
        base_url=settings.agent_functions_base_url,
        api_key=settings.agent_functions_api_key,
        timeout=settings.agent_handler_timeout_seconds,
    )

    sessions = InMemorySessionStore(
        ttl_seconds=settings.session_ttl_seconds,
        max_sessions=settings.max_session_cache_size,
        max_entries_per_session=settings.max_context_entries_per_session,
    )

    return OrchestratorClients(
        completion=completion,
        handlers=handlers,
        task_log=create_task_log(settings),
        sessions=sessions,
    )
