"""Shared clients for the language model, agent handlers, and task log."""

from .agent_handlers import HttpAgentHandlerClient
from .completion import AgentCompletionService, create_chat_agent
from .task_log import AzureSqlTaskLog, InMemoryTaskLog, get_azure_sql_token

__all__ = [
    "AgentCompletionService",
    "AzureSqlTaskLog",
    "HttpAgentHandlerClient",
    "InMemoryTaskLog",
    "create_chat_agent",
    "get_azure_sql_token",
]
