"""TaskRouter: decides whether and how a classified turn is delegated.

Two routing paths live here:

1. Chat delegation: a classified turn is delegated only when the model
   suggested a known task with confidence above the threshold. Missing
   entities turn into a clarifying question instead of a handler call.
2. Direct dispatch: non-chat task names are mapped by prefix to a remote
   handler with no confidence gating.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from entities.shared.errors import AgentHandlerError
from entities.shared.protocols import AgentHandlerClient
from models import ClassificationResult, ClassifiedTurn

from .tasks import ANALYST_HANDLER, CONNECTOR_HANDLER, CURATOR_HANDLER, DELEGATED_TASKS, DelegatedTask

logger = logging.getLogger(__name__)

REMOTE_HANDLER_PREFIXES: dict[str, str] = {
    "connector_": CONNECTOR_HANDLER,
    "analyst_": ANALYST_HANDLER,
    "curator_": CURATOR_HANDLER,
}

DELEGATION_ERROR_NOTE = (
    "(I tried to pull more details from one of our specialist agents, but it ran into a "
    "problem. Please try again in a moment.)"
)


class DelegationState(str, Enum):
    """Where a chat turn ended up after routing."""

    SKIPPED = "delegation_skipped"
    CLARIFICATION = "clarification_requested"
    DELEGATED_OK = "delegated_ok"
    DELEGATED_ERROR = "delegated_error"


@dataclass
class DelegationOutcome:
    """Result of routing one classified turn."""

    state: DelegationState
    text_response: str
    task: DelegatedTask | None = None
    data: Any = None
    error: str | None = None

    @property
    def invoked(self) -> bool:
        """True when a remote handler was called."""
        return self.state in (DelegationState.DELEGATED_OK, DelegationState.DELEGATED_ERROR)

    def to_dict(self) -> dict[str, Any]:
        """JSON-safe summary returned in the response data."""
        result: dict[str, Any] = {"state": self.state.value}
        if self.task is not None:
            result["task"] = self.task.kind  # type: ignore[attr-defined]
            result["handler"] = self.task.handler
            result["payload"] = self.task.to_payload()
        if self.data is not None:
            result["data"] = self.data
        if self.error is not None:
            result["error"] = self.error
        return result


def remote_handler_for(task_name: str) -> str | None:
    """Remote handler serving *task_name* by prefix, or ``None``."""
    for prefix, handler in REMOTE_HANDLER_PREFIXES.items():
        if task_name.startswith(prefix):
            return handler
    return None


class TaskRouter:
    """Routes classified chat turns and directly named tasks to agent handlers."""

    def __init__(self, handlers: AgentHandlerClient, confidence_threshold: float = 0.6) -> None:
        self.handlers = handlers
        self.confidence_threshold = confidence_threshold

    def should_delegate(self, classification: ClassificationResult) -> bool:
        """Gate: a suggested task and confidence strictly above the threshold."""
        return (
            classification.wants_delegation
            and classification.confidence_score > self.confidence_threshold
        )

    async def route_classified(
        self,
        turn: ClassifiedTurn,
        session_id: str,
        client_context: dict[str, Any] | None = None,
    ) -> DelegationOutcome:
        """Delegate a classified turn if the gate allows it.

        Handler failures are folded into the reply; they never raise.
        """
        classification = turn.classification
        if not self.should_delegate(classification):
            logger.info(
                "Delegation skipped for session %s (task=%s, confidence=%.2f)",
                session_id,
                classification.suggested_next_task,
                classification.confidence_score,
            )
            return DelegationOutcome(DelegationState.SKIPPED, turn.text_response)

        task_cls = DELEGATED_TASKS.get(classification.suggested_next_task)
        if task_cls is None:
            logger.warning(
                "Model suggested unknown task %s; not delegating",
                classification.suggested_next_task,
            )
            return DelegationOutcome(DelegationState.SKIPPED, turn.text_response)

        task = task_cls.from_entities(classification.entities)
        if task is None:
            logger.info(
                "Missing entities for %s (entities=%s); asking for clarification",
                classification.suggested_next_task,
                classification.entities,
            )
            return DelegationOutcome(DelegationState.CLARIFICATION, task_cls.clarifying_question)

        try:
            data = await self.invoke(
                task.handler,
                classification.suggested_next_task,
                task.to_payload(),
                client_context,
                session_id,
            )
        except AgentHandlerError as e:
            logger.error(
                "Delegation to %s failed for session %s: %s", task.handler, session_id, e.message
            )
            return DelegationOutcome(
                DelegationState.DELEGATED_ERROR,
                f"{turn.text_response}\n\n{DELEGATION_ERROR_NOTE}",
                task=task,
                error=e.message,
            )

        return DelegationOutcome(
            DelegationState.DELEGATED_OK,
            task.summarize(data),
            task=task,
            data=data,
        )

    async def dispatch_remote(
        self,
        task_name: str,
        payload: dict[str, Any],
        client_context: dict[str, Any] | None,
        session_id: str,
    ) -> Any:  # noqa: ANN401
        """Send a directly named ``connector_*``/``analyst_*``/``curator_*`` task.

        Returns the handler's data. Raises ``AgentHandlerError`` on failure
        and ``LookupError`` when no handler serves the prefix.
        """
        handler = remote_handler_for(task_name)
        if handler is None:
            raise LookupError(task_name)
        return await self.invoke(handler, task_name, payload, client_context, session_id)

    async def invoke(
        self,
        handler: str,
        task_name: str,
        payload: dict[str, Any],
        client_context: dict[str, Any] | None,
        session_id: str,
    ) -> Any:  # noqa: ANN401
        """Invoke *handler* with the standard request body."""
        logger.info("Invoking %s for task %s (session %s)", handler, task_name, session_id)
        return await self.handlers.invoke(
            handler,
            {
                "task": task_name,
                "payload": payload,
                "clientContext": client_context or {},
                "sessionId": session_id,
            },
        )
