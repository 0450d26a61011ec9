"""Shared protocols, errors, and clients for the orchestrator."""

from .clients import AgentCompletionService, AzureSqlTaskLog, HttpAgentHandlerClient, InMemoryTaskLog
from .errors import (
    AgentHandlerError,
    ClassificationParseError,
    InvalidPayloadError,
    OrchestratorError,
    SessionNotFoundError,
    UnknownTaskError,
)

__all__ = [
    "AgentCompletionService",
    "AgentHandlerError",
    "AzureSqlTaskLog",
    "ClassificationParseError",
    "HttpAgentHandlerClient",
    "InMemoryTaskLog",
    "InvalidPayloadError",
    "OrchestratorError",
    "SessionNotFoundError",
    "UnknownTaskError",
]
