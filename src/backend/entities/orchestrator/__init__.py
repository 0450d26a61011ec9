"""AgentOrchestrator: task dispatch, chat turns, and the response envelope.

Usage:
    from entities.orchestrator import AgentOrchestrator

    orchestrator = AgentOrchestrator(completion, handlers, task_log, sessions)
    response, status_code = await orchestrator.execute(request)
"""

from .orchestrator import (
    CHAT_TASK,
    GENERAL_QUERY_FALLBACK,
    GENERAL_QUERY_TASK,
    AgentOrchestrator,
)

__all__ = [
    "CHAT_TASK",
    "GENERAL_QUERY_FALLBACK",
    "GENERAL_QUERY_TASK",
    "AgentOrchestrator",
]
