"""
Agent orchestrator: the single entry point behind the orchestrator endpoint.

Every invocation is logged to the durable task log, dispatched by task name,
and answered with the uniform envelope:

- ``connector_*`` / ``analyst_*`` / ``curator_*`` go straight to the matching
  remote handler.
- ``bamabot_chat_interaction`` runs a chat turn: classify with session
  history, optionally delegate, record both turns in the session store.
- ``general_query`` is answered directly by the language model.
"""

import logging
from typing import Any

from entities.classifier import IntentClassifier
from entities.router import DELEGATED_TASKS, DelegationOutcome, TaskRouter, remote_handler_for
from entities.router.tasks import ANALYST_HANDLER, CONNECTOR_HANDLER, CURATOR_HANDLER
from entities.shared.errors import InvalidPayloadError, OrchestratorError, UnknownTaskError
from entities.shared.protocols import (
    AgentHandlerClient,
    CompletionService,
    SessionStore,
    TaskLogStore,
)
from models import (
    ClassifiedTurn,
    ContextEntry,
    ContextSource,
    OrchestratorRequest,
    OrchestratorResponse,
    TaskLogRecord,
    TaskStatus,
)

logger = logging.getLogger(__name__)

CHAT_TASK = "bamabot_chat_interaction"
GENERAL_QUERY_TASK = "general_query"

GENERAL_QUERY_FALLBACK = (
    "I'm BamaBot, and I'm here to help with Alabama's business ecosystem. "
    "Could you rephrase your question?"
)

_HANDLER_SOURCES = {
    CONNECTOR_HANDLER: ContextSource.CONNECTOR,
    ANALYST_HANDLER: ContextSource.ANALYST,
    CURATOR_HANDLER: ContextSource.CURATOR,
}


def _query_text(payload: dict[str, Any], task: str) -> str:
    query_text = payload.get("queryText")
    if not isinstance(query_text, str) or not query_text.strip():
        raise InvalidPayloadError(f"payload.queryText is required for {task}")
    return query_text.strip()


class AgentOrchestrator:
    """
    Dispatches orchestrator tasks and wraps the result in the envelope.

    Responsibilities:
    1. Write the task log row before work starts and close it afterwards
    2. Route by task name (remote handler, chat turn, or general query)
    3. Keep per-session conversational context for chat turns
    4. Map every failure to an error envelope with a status code
    """

    def __init__(
        self,
        completion: CompletionService,
        handlers: AgentHandlerClient,
        task_log: TaskLogStore,
        sessions: SessionStore,
        history_turns: int = 5,
        confidence_threshold: float = 0.6,
        persona: str | None = None,
    ) -> None:
        """
        Initialize the orchestrator.

        Args:
            completion: Language-model completion service.
            handlers: Client for the remote agent handlers.
            task_log: Durable log of invocations.
            sessions: Session context store.
            history_turns: Recent user/bot exchanges rendered into the chat prompt.
            confidence_threshold: Confidence a chat turn must exceed to delegate.
            persona: Prompt preamble; defaults to the bundled BamaBot prompt.
        """
        self.completion = completion
        self.task_log = task_log
        self.sessions = sessions
        self.router = TaskRouter(handlers, confidence_threshold=confidence_threshold)
        self.classifier = IntentClassifier(
            completion,
            sessions,
            history_turns=history_turns,
            task_names=DELEGATED_TASKS.keys(),
            persona=persona,
        )

    # ------------------------------------------------------------------
    # Envelope
    # ------------------------------------------------------------------

    async def execute(self, request: OrchestratorRequest) -> tuple[OrchestratorResponse, int]:
        """Run one validated request.

        Returns:
            Tuple of (envelope, HTTP status code).
        """
        logger.info(
            "Received task %s for session %s (user_id=%s)",
            request.task,
            request.session_id,
            request.user_id,
        )

        record = TaskLogRecord(
            session_id=request.session_id,
            user_id=request.user_id,
            task_name=request.task,
            input_payload=request.payload,
            client_context=request.client_context,
        )
        try:
            log_id = await self.task_log.start(record)
        except Exception as e:
            logger.error("Failed to write task log for %s: %s", request.task, e, exc_info=True)
            return (
                OrchestratorResponse.fail(
                    f"Failed to log task: {e}", request.session_id, request.task
                ),
                500,
            )

        try:
            data = await self.dispatch(request)
        except OrchestratorError as e:
            status_code = e.status_code or 500
            logger.error(
                "Task %s failed for session %s: %s (status %d)",
                request.task,
                request.session_id,
                e.message,
                status_code,
            )
            await self._finish(log_id, TaskStatus.ERROR, error_details=e.message)
            return OrchestratorResponse.fail(e.message, request.session_id, request.task), status_code
        except Exception as e:
            message = str(e) or type(e).__name__
            logger.exception("Unexpected error in task %s", request.task)
            await self._finish(log_id, TaskStatus.ERROR, error_details=message)
            return OrchestratorResponse.fail(message, request.session_id, request.task), 500

        await self._finish(log_id, TaskStatus.COMPLETED, response_data=data)
        logger.info("Task %s completed for session %s", request.task, request.session_id)
        return OrchestratorResponse.ok(data, request.session_id, request.task), 200

    async def _finish(
        self,
        log_id: str,
        status: TaskStatus,
        response_data: Any = None,  # noqa: ANN401
        error_details: str | None = None,
    ) -> None:
        try:
            await self.task_log.finish(
                log_id, status, response_data=response_data, error_details=error_details
            )
        except Exception:
            logger.error("Failed to update task log %s to %s", log_id, status.value, exc_info=True)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    async def dispatch(self, request: OrchestratorRequest) -> Any:  # noqa: ANN401
        """Route *request* by task name and return the response ``data``.

        Raises:
            UnknownTaskError: No route matches the task name.
        """
        task = request.task
        if remote_handler_for(task) is not None:
            return await self.router.dispatch_remote(
                task, request.payload, request.client_context, request.session_id
            )
        if task == CHAT_TASK:
            return await self.handle_chat(request)
        if task == GENERAL_QUERY_TASK:
            return await self.handle_general_query(request)
        raise UnknownTaskError(task)

    async def handle_chat(self, request: OrchestratorRequest) -> dict[str, Any]:
        """Run one BamaBot chat turn.

        Turns of the same session are serialised so the second turn always
        sees the first turn's entries in its history.
        """
        query_text = _query_text(request.payload, CHAT_TASK)
        client_context = request.client_context or {}
        session_id = request.session_id

        async with self.sessions.session_lock(session_id):
            await self.sessions.create_session(user_id=request.user_id, session_id=session_id)

            turn = await self.classifier.classify(
                session_id, request.user_id, query_text, client_context
            )
            outcome = await self.router.route_classified(turn, session_id, client_context)
            await self._record_turn(request, query_text, turn, outcome)

        classification = turn.classification.model_dump()
        return {
            "agent": "bamabot",
            "textResponse": outcome.text_response,
            "classification": classification,
            "delegation": outcome.to_dict(),
            "sessionId": session_id,
        }

    async def _record_turn(
        self,
        request: OrchestratorRequest,
        query_text: str,
        turn: ClassifiedTurn,
        outcome: DelegationOutcome,
    ) -> None:
        classification = turn.classification
        client_type = (request.client_context or {}).get("clientType")

        await self.sessions.add_context(
            request.session_id,
            ContextEntry(
                source=ContextSource.USER,
                intent=classification.intent,
                chat_message_text=query_text,
                entities=dict(classification.entities),
                metadata={
                    "clientType": client_type,
                    "classification": classification.model_dump(),
                    "classificationParsed": turn.parsed,
                },
                user_id=request.user_id,
            ),
        )

        if outcome.invoked and outcome.task is not None:
            await self.sessions.add_context(
                request.session_id,
                ContextEntry(
                    source=_HANDLER_SOURCES[outcome.task.handler],
                    intent=classification.suggested_next_task,
                    entities=dict(classification.entities),
                    metadata={
                        "payload": outcome.task.to_payload(),
                        "data": outcome.data,
                        "error": outcome.error,
                    },
                    user_id=request.user_id,
                ),
            )

        await self.sessions.add_context(
            request.session_id,
            ContextEntry(
                source=ContextSource.BAMABOT,
                intent=classification.intent,
                chat_message_text=outcome.text_response,
                metadata={"clientType": client_type, "delegation": outcome.state.value},
            ),
        )

    async def handle_general_query(self, request: OrchestratorRequest) -> dict[str, Any]:
        """Answer a one-off question with the model, without session history."""
        query_text = _query_text(request.payload, GENERAL_QUERY_TASK)
        prompt = (
            f"{self.classifier.persona}\n\n"
            "Answer the user's question directly and concisely. "
            "Do not add a classification block.\n\n"
            f"User question: {query_text}"
        )
        text = (await self.completion.complete(prompt)).strip()
        if not text:
            logger.warning("General query returned no text for session %s", request.session_id)
        return {"agent": "general_bot", "textResponse": text or GENERAL_QUERY_FALLBACK}
