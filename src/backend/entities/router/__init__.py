"""TaskRouter: chat delegation and direct task dispatch.

Usage:
    from entities.router import TaskRouter

    router = TaskRouter(handler_client, confidence_threshold=0.6)
"""

from .router import (
    DELEGATION_ERROR_NOTE,
    DelegationOutcome,
    DelegationState,
    TaskRouter,
    remote_handler_for,
)
from .tasks import (
    DELEGATED_TASKS,
    DelegatedTask,
    EnrichBusinessProfile,
    FetchCompanyNews,
    FindAndScoreBusinesses,
    IndustryGrowth,
)

__all__ = [
    "DELEGATED_TASKS",
    "DELEGATION_ERROR_NOTE",
    "DelegatedTask",
    "DelegationOutcome",
    "DelegationState",
    "EnrichBusinessProfile",
    "FetchCompanyNews",
    "FindAndScoreBusinesses",
    "IndustryGrowth",
    "TaskRouter",
    "remote_handler_for",
]
