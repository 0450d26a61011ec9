"""
HTTP client for the remote agent handlers.

Each handler (``connector-agent-handler``, ``analyst-agent-handler``,
``curator-agent-handler``) is a serverless function under a common base
URL. It accepts ``{task, payload, clientContext, sessionId}`` and replies
``{success, data}`` or ``{success: false, error}`` with an HTTP status.
"""

import logging
from typing import Any

import httpx

from entities.shared.errors import AgentHandlerError

logger = logging.getLogger(__name__)


class HttpAgentHandlerClient:
    """``AgentHandlerClient`` that POSTs to ``{base_url}/{handler}``.

    Usage:
        client = HttpAgentHandlerClient("https://example.supabase.co/functions/v1", api_key)
        data = await client.invoke("connector-agent-handler", body)
    """

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the handler client.

        Args:
            base_url: URL prefix shared by all handlers.
            api_key: Sent as ``apikey`` header and bearer token when set.
            timeout: Per-request timeout in seconds.
            transport: Optional httpx transport (tests use ``httpx.MockTransport``).
        """
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self.api_key:
            headers["apikey"] = self.api_key
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def invoke(self, handler: str, body: dict[str, Any]) -> Any:  # noqa: ANN401
        """
        Invoke a remote handler and return its ``data``.

        Raises:
            AgentHandlerError: Transport failure (502), handler not configured
                (503), or a handler-reported error (handler's HTTP status).
        """
        if not self.base_url:
            raise AgentHandlerError(handler, "Agent handler base URL is not configured", 503)

        url = f"{self.base_url}/{handler}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(url, json=body, headers=self._headers())
        except httpx.HTTPError as e:
            logger.error("Handler %s unreachable: %s", handler, e)
            raise AgentHandlerError(handler, f"{handler} is unreachable: {e}", 502) from e

        try:
            result = response.json()
        except ValueError:
            result = None

        if (
            response.is_success
            and isinstance(result, dict)
            and result.get("success", True) is not False
        ):
            logger.info("Handler %s succeeded (task=%s)", handler, body.get("task"))
            return result.get("data")

        error = result.get("error") if isinstance(result, dict) else None
        message = error or f"{handler} returned HTTP {response.status_code}"
        status_code = response.status_code if response.status_code >= 400 else 502
        logger.warning(
            "Handler %s rejected task %s: %s (status %d)",
            handler,
            body.get("task"),
            message,
            status_code,
        )
        raise AgentHandlerError(handler, message, status_code)
