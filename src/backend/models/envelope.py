"""
Request/response envelope models for the orchestrator endpoint.

Every invocation is validated into an ``OrchestratorRequest`` and every
reply, success or failure, is serialized from an ``OrchestratorResponse``
so callers can branch solely on ``success``.
"""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def utc_timestamp() -> str:
    """Return the current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class OrchestratorRequest(BaseModel):
    """Inbound orchestrator request body."""

    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(alias="sessionId", min_length=1, description="Conversation session ID")
    user_id: str | None = Field(default=None, alias="userId", description="Owning user, if known")
    task: str = Field(min_length=1, description="Task name used for routing")
    payload: dict[str, Any] = Field(description="Task-specific input object")
    client_context: dict[str, Any] | None = Field(
        default=None, alias="clientContext", description="Caller metadata (client type, UI hints)"
    )

    @field_validator("session_id", "task")
    @classmethod
    def _strip_non_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


class OrchestratorResponse(BaseModel):
    """Uniform success/error envelope returned to every caller."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    data: Any = None
    error: str | None = None
    session_id: str | None = Field(default=None, alias="sessionId")
    task_id: str | None = Field(default=None, alias="taskId")
    timestamp: str = Field(default_factory=utc_timestamp)

    @classmethod
    def ok(cls, data: Any, session_id: str, task: str) -> "OrchestratorResponse":  # noqa: ANN401
        """Build a success envelope."""
        return cls(success=True, data=data, session_id=session_id, task_id=task)

    @classmethod
    def fail(
        cls, error: str, session_id: str | None = None, task: str | None = None
    ) -> "OrchestratorResponse":
        """Build an error envelope."""
        return cls(success=False, error=error, session_id=session_id, task_id=task)

    def to_wire(self) -> dict[str, Any]:
        """Serialize with camelCase keys, omitting absent optional fields."""
        return self.model_dump(by_alias=True, exclude_none=True)
