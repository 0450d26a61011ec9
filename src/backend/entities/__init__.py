"""
Entities package.

Each subdirectory represents one part of the orchestrator:
- orchestrator/: AgentOrchestrator for task dispatch and the response envelope
- classifier/: IntentClassifier producing a reply plus a classification
- router/: TaskRouter for chat delegation and direct handler dispatch
- context_store/: Per-session conversational context
- workflow/: Client container and factory wiring everything together
- shared/: Protocols, errors, and I/O clients

Shared models are available from the ``models`` package.
"""
