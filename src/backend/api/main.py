"""
FastAPI server for the BamaBot agent orchestrator.

This module handles application setup, lifespan management, and middleware configuration.
Route handlers are organized in the routers/ package.

The API exposes one orchestrator endpoint:
- AgentOrchestrator: logs every invocation, dispatches by task name, and
  answers with a uniform envelope
- Chat turns keep per-session context in the session store and may be
  delegated to the connector/analyst/curator agent handlers
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from api.monitoring import configure_observability, is_observability_enabled
from api.routers import orchestrator_router, sessions_router
from config.settings import Settings, get_settings
from dotenv import load_dotenv
from entities.orchestrator import AgentOrchestrator
from entities.shared.clients import AzureSqlTaskLog
from entities.workflow.clients import OrchestratorClients, create_orchestrator_clients
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

load_dotenv()

# Configure logging - use force=True to prevent duplicate handlers
logger = logging.getLogger(__name__)
logging.basicConfig(level=logging.INFO, force=True)

# Reduce noise from Azure SDK and other libraries
logging.getLogger("azure").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)
# Reduce agent_framework verbosity (it logs all message content at INFO level)
logging.getLogger("agent_framework").setLevel(logging.WARNING)

CORS_ALLOW_HEADERS = ["authorization", "x-client-info", "apikey", "content-type"]

# Configure observability before creating the app
configure_observability()


def build_orchestrator(clients: OrchestratorClients, settings: Settings) -> AgentOrchestrator:
    """Wire an ``AgentOrchestrator`` from a client bundle and settings."""
    return AgentOrchestrator(
        completion=clients.completion,
        handlers=clients.handlers,
        task_log=clients.task_log,
        sessions=clients.sessions,
        history_turns=settings.chat_history_turns,
        confidence_threshold=settings.delegation_confidence_threshold,
    )


@asynccontextmanager
async def lifespan(application: FastAPI) -> AsyncIterator[None]:
    """
    Application lifespan handler.

    Builds the orchestrator and its clients on startup. A configuration
    error leaves the orchestrator unset so the endpoint answers 503 while
    ``/health`` still responds.
    """
    logger.info("BamaBot orchestrator API starting")

    if is_observability_enabled():
        logger.info("OpenTelemetry observability is ENABLED")
    else:
        logger.info(
            "OpenTelemetry observability is disabled (set ENABLE_INSTRUMENTATION=true to enable)"
        )

    if getattr(application.state, "orchestrator", None) is None:
        settings = get_settings()
        try:
            clients = create_orchestrator_clients(settings)
        except ValueError as e:
            logger.error("Orchestrator not initialized: %s", e)
        else:
            if isinstance(clients.task_log, AzureSqlTaskLog):
                try:
                    await clients.task_log.ensure_table()
                except Exception:
                    logger.exception("Could not verify task log table %s", settings.task_log_table)
            application.state.orchestrator = build_orchestrator(clients, settings)
            logger.info(
                "Orchestrator ready (threshold=%.2f, history_turns=%d)",
                settings.delegation_confidence_threshold,
                settings.chat_history_turns,
            )

    yield

    logger.info("Application shutdown complete")


# Create FastAPI application
app = FastAPI(title="BamaBot Agent Orchestrator", lifespan=lifespan)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_allow_origins,
    allow_methods=["POST", "GET", "OPTIONS"],
    allow_headers=CORS_ALLOW_HEADERS,
)

# Include routers
app.include_router(orchestrator_router)
app.include_router(sessions_router)


@app.get("/health")
async def health_check() -> dict[str, object]:
    """Health check endpoint."""
    orchestrator_ready = getattr(app.state, "orchestrator", None) is not None
    return {"status": "healthy", "orchestrator_ready": orchestrator_ready}


if __name__ == "__main__":
    uvicorn.run("api.main:app", host="0.0.0.0", port=8000, reload=True)  # noqa: S104
