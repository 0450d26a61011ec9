"""
Orchestrator API route.

``POST /api/orchestrator`` accepts ``{sessionId, userId?, task, payload,
clientContext?}`` and always answers with the envelope
``{success, data?, error?, sessionId, taskId, timestamp}``. Malformed
requests are rejected with 400 before anything is written to the task log.
"""

import json
import logging

from entities.orchestrator import AgentOrchestrator
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from models import OrchestratorRequest, OrchestratorResponse
from pydantic import ValidationError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["orchestrator"])


def _validation_message(error: ValidationError) -> str:
    """Summarise the first validation failure as ``field: message``."""
    first = error.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ())) or "body"
    return f"Invalid request: {location}: {first.get('msg', 'invalid value')}"


@router.post("/orchestrator")
async def orchestrate(request: Request) -> JSONResponse:
    """Validate, log, dispatch, and answer one orchestrator invocation."""
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        logger.warning("Rejected orchestrator request with malformed JSON body")
        return JSONResponse(
            status_code=400,
            content=OrchestratorResponse.fail("Invalid request: body is not valid JSON").to_wire(),
        )

    try:
        orchestrator_request = OrchestratorRequest.model_validate(body)
    except ValidationError as e:
        message = _validation_message(e)
        logger.warning("Rejected orchestrator request: %s", message)
        session_id = body.get("sessionId") if isinstance(body, dict) else None
        task = body.get("task") if isinstance(body, dict) else None
        return JSONResponse(
            status_code=400,
            content=OrchestratorResponse.fail(
                message,
                session_id if isinstance(session_id, str) and session_id else None,
                task if isinstance(task, str) and task else None,
            ).to_wire(),
        )

    orchestrator: AgentOrchestrator | None = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        logger.error("Orchestrator not initialized, rejecting task %s", orchestrator_request.task)
        return JSONResponse(
            status_code=503,
            content=OrchestratorResponse.fail(
                "Orchestrator not initialized",
                orchestrator_request.session_id,
                orchestrator_request.task,
            ).to_wire(),
        )

    response, status_code = await orchestrator.execute(orchestrator_request)
    return JSONResponse(status_code=status_code, content=response.to_wire())
