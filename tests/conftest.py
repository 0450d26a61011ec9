"""Shared test fixtures for the BamaBot orchestrator."""

import json
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

# Ensure src/backend/ is on the path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src" / "backend"))

from config.settings import Settings
from entities.context_store import InMemorySessionStore
from entities.orchestrator import AgentOrchestrator
from entities.shared.clients import InMemoryTaskLog
from entities.shared.errors import AgentHandlerError

# ---------------------------------------------------------------------------
# Protocol fakes
# ---------------------------------------------------------------------------

TEST_PERSONA = "You are BamaBot, a guide to Alabama's business ecosystem."


def classified(
    reply: str,
    intent: str = "general_chat",
    task: str = "none",
    confidence: float = 0.3,
    entities: dict[str, Any] | None = None,
) -> str:
    """Build a model completion in the reply-then-classification format."""
    block = json.dumps(
        {
            "intent": intent,
            "entities": entities or {},
            "suggested_next_task": task,
            "confidence_score": confidence,
        }
    )
    return f"{reply}\nClassification: {block}"


class FakeCompletionService:
    """In-memory fake satisfying the ``CompletionService`` protocol.

    Returns queued completions in order (repeating the last one) and
    records every prompt for assertions.
    """

    def __init__(self, *completions: str, error: Exception | None = None) -> None:
        self.completions: list[str] = list(completions) or [""]
        self.error = error
        self.prompts: list[str] = []

    async def complete(self, prompt: str) -> str:
        """Record *prompt* and return the next canned completion."""
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        if len(self.completions) > 1:
            return self.completions.pop(0)
        return self.completions[0]


class FakeAgentHandlerClient:
    """In-memory fake satisfying the ``AgentHandlerClient`` protocol.

    ``responses`` maps handler name to either returned data or an
    ``AgentHandlerError`` to raise. Every call is recorded.
    """

    def __init__(self, responses: dict[str, Any] | None = None) -> None:
        self.responses: dict[str, Any] = responses or {}
        self.calls: list[tuple[str, dict[str, Any]]] = []

    async def invoke(self, handler: str, body: dict[str, Any]) -> Any:  # noqa: ANN401
        """Record the call and return (or raise) the canned response."""
        self.calls.append((handler, body))
        response = self.responses.get(handler)
        if isinstance(response, Exception):
            raise response
        return response


# ---------------------------------------------------------------------------
# Pytest fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def test_settings() -> Settings:
    """Return a ``Settings`` instance populated with safe test defaults."""
    return Settings(
        azure_ai_project_endpoint="https://test.services.ai.azure.com/api/projects/test",
        azure_ai_model_deployment_name="test-model",
        agent_functions_base_url="https://handlers.test/functions/v1",
        agent_functions_api_key="test-key",
        azure_sql_server="",
    )


@pytest.fixture
def session_store() -> InMemorySessionStore:
    """Return an empty ``InMemorySessionStore``."""
    return InMemorySessionStore()


@pytest.fixture
def task_log() -> InMemoryTaskLog:
    """Return an empty ``InMemoryTaskLog``."""
    return InMemoryTaskLog()


@pytest.fixture
def fake_handlers() -> FakeAgentHandlerClient:
    """Return a ``FakeAgentHandlerClient`` with no canned responses."""
    return FakeAgentHandlerClient()


@pytest.fixture
def make_orchestrator(
    session_store: InMemorySessionStore,
    task_log: InMemoryTaskLog,
    fake_handlers: FakeAgentHandlerClient,
) -> Callable[..., AgentOrchestrator]:
    """Factory building an ``AgentOrchestrator`` around in-memory fakes."""

    def _make(
        completion: FakeCompletionService | None = None,
        handlers: FakeAgentHandlerClient | None = None,
    ) -> AgentOrchestrator:
        return AgentOrchestrator(
            completion=completion or FakeCompletionService(classified("Hi there!")),
            handlers=handlers or fake_handlers,
            task_log=task_log,
            sessions=session_store,
            persona=TEST_PERSONA,
        )

    return _make


def handler_error(handler: str, message: str, status_code: int = 400) -> AgentHandlerError:
    """Build the error a rejecting handler client raises."""
    return AgentHandlerError(handler, message, status_code)
