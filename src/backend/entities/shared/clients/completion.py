"""
Language-model completion service backed by Microsoft Agent Framework.

The orchestrator only needs single-turn text completion, so the
``ChatAgent`` is run without a thread; conversation history is rendered
into the prompt by the classifier instead.
"""

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from agent_framework import ChatAgent
    from config.settings import Settings

logger = logging.getLogger(__name__)


class AgentCompletionService:
    """``CompletionService`` wrapping a pre-configured ``ChatAgent``."""

    def __init__(self, agent: "ChatAgent") -> None:
        self.agent = agent

    async def complete(self, prompt: str) -> str:
        """Run the agent once and return its text (empty string if none)."""
        result = await self.agent.run(prompt)
        text = result.text or ""
        logger.debug("Completion returned %d characters", len(text))
        return text


def create_chat_agent(settings: "Settings") -> "ChatAgent":
    """Build the ``ChatAgent`` used for chat and general queries.

    Raises:
        ValueError: ``AZURE_AI_PROJECT_ENDPOINT`` is not set.
    """
    endpoint = settings.azure_ai_project_endpoint
    if not endpoint:
        raise ValueError("AZURE_AI_PROJECT_ENDPOINT not set")

    from agent_framework import ChatAgent
    from agent_framework_azure_ai import AzureAIClient
    from azure.identity.aio import DefaultAzureCredential

    client_id = settings.azure_client_id
    if client_id:
        credential = DefaultAzureCredential(managed_identity_client_id=client_id)
    else:
        credential = DefaultAzureCredential()

    model = settings.azure_ai_orchestrator_model or settings.azure_ai_model_deployment_name

    ai_client = AzureAIClient(
        project_endpoint=endpoint,
        credential=credential,
        model_deployment_name=model,
        use_latest_version=True,
    )

    logger.info("Created BamaBot chat agent (model=%s)", model)
    return ChatAgent(name="BamaBot", chat_client=ai_client)
