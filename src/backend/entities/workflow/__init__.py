"""
Orchestrator wiring.

``OrchestratorClients`` / ``create_orchestrator_clients`` provide dependency
injection for the ``AgentOrchestrator``: production code builds real Azure
and HTTP clients from ``Settings``; tests pass in-memory fakes.
"""

from .clients import OrchestratorClients, create_orchestrator_clients, create_task_log

__all__ = [
    "OrchestratorClients",
    "create_orchestrator_clients",
    "create_task_log",
]
