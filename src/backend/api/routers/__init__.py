"""
API routers package.
"""

from api.routers.orchestrator import router as orchestrator_router
from api.routers.sessions import router as sessions_router

__all__ = ["orchestrator_router", "sessions_router"]
