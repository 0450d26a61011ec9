"""
Session inspection routes.

Read-only views of the session context store, used by clients that want to
render a conversation or debug what BamaBot remembers.
"""

import logging

from api.dependencies import get_session_store
from entities.shared.protocols import SessionStore
from fastapi import APIRouter, Depends, HTTPException, Query

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/sessions", tags=["sessions"])


@router.get("/{session_id}")
async def get_session(
    session_id: str,
    store: SessionStore = Depends(get_session_store),
) -> dict:
    """Return a session with all of its context entries."""
    session = await store.get_session_context(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return session.to_dict()


@router.get("/{session_id}/history")
async def get_history(
    session_id: str,
    max_turns: int = Query(default=5, ge=0, le=100),
    store: SessionStore = Depends(get_session_store),
) -> dict:
    """Return the rendered chat history as it would be shown to the model."""
    session = await store.get_session_context(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    history = await store.get_chat_history_for_llm(session_id, max_turns)
    return {"sessionId": session_id, "maxTurns": max_turns, "history": history}
