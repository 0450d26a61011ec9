"""
Shared models for entities.

These models are used across the context store, classifier, router
and API layer. All models are re-exported here.
"""

from .classification import NO_TASK, ClassificationResult, ClassifiedTurn
from .context import ContextEntry, ContextSource, Session, SessionStatus
from .envelope import OrchestratorRequest, OrchestratorResponse, utc_timestamp
from .task_log import TaskLogRecord, TaskStatus

__all__ = [
    # Classification
    "NO_TASK",
    "ClassificationResult",
    "ClassifiedTurn",
    # Context store
    "ContextEntry",
    "ContextSource",
    "Session",
    "SessionStatus",
    # Envelope
    "OrchestratorRequest",
    "OrchestratorResponse",
    "utc_timestamp",
    # Task log
    "TaskLogRecord",
    "TaskStatus",
]
