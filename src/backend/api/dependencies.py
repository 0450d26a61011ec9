"""
FastAPI dependencies for shared resources held on ``app.state``.
"""

import logging

from entities.shared.protocols import SessionStore
from fastapi import HTTPException, Request

logger = logging.getLogger(__name__)


def get_session_store(request: Request) -> SessionStore:
    """
    Get the session context store from app state.

    Raises HTTPException 503 if not initialized.
    """
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        raise HTTPException(status_code=503, detail="Session store not initialized")
    return orchestrator.sessions
