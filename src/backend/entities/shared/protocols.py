"""Protocol interfaces for I/O boundaries.

These protocols enable dependency injection for testability.
Production implementations wrap Azure / HTTP clients; test fakes
return canned data with zero network or filesystem access.
"""

from __future__ import annotations

import asyncio
from typing import Any, Protocol, runtime_checkable

from models import ContextEntry, Session, TaskLogRecord, TaskStatus


@runtime_checkable
class CompletionService(Protocol):
    """Single-turn text completion against a language model."""

    async def complete(self, prompt: str) -> str:
        """Return the model's completion for *prompt*.

        Args:
            prompt: Fully rendered prompt text.

        Returns:
            Completion text (may be empty).
        """
        ...


@runtime_checkable
class AgentHandlerClient(Protocol):
    """Invokes a named remote agent handler.

    Raises ``AgentHandlerError`` when the handler fails or rejects the task.
    """

    async def invoke(self, handler: str, body: dict[str, Any]) -> Any:  # noqa: ANN401
        """Invoke *handler* with a ``{task, payload, clientContext, sessionId}`` body.

        Args:
            handler: Handler name, e.g. ``connector-agent-handler``.
            body: JSON request body.

        Returns:
            The handler's ``data`` field.
        """
        ...


@runtime_checkable
class TaskLogStore(Protocol):
    """Durable log of orchestrator task executions."""

    async def start(self, record: TaskLogRecord) -> str:
        """Insert a ``processing`` row and return its identifier."""
        ...

    async def finish(
        self,
        log_id: str,
        status: TaskStatus,
        response_data: Any = None,  # noqa: ANN401
        error_details: str | None = None,
    ) -> None:
        """Update a row to its terminal status."""
        ...


@runtime_checkable
class SessionStore(Protocol):
    """Per-session conversational context storage."""

    async def create_session(
        self,
        user_id: str | None = None,
        session_id: str | None = None,
        initial_contexts: list[ContextEntry] | None = None,
    ) -> Session:
        """Create (or reactivate) a session, seeding it with *initial_contexts*."""
        ...

    async def get_session_context(self, session_id: str) -> Session | None:
        """Return the session, or ``None`` when it does not exist."""
        ...

    async def add_context(self, session_id: str, entry: ContextEntry) -> ContextEntry:
        """Append *entry* to the session log."""
        ...

    async def get_chat_history_for_llm(self, session_id: str, max_turns: int) -> str:
        """Render recent user/bot turns for prompt injection."""
        ...

    def session_lock(self, session_id: str) -> asyncio.Lock:
        """Lock serialising turns of one session."""
        ...
