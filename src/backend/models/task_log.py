"""
Durable orchestrator task log models.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class TaskStatus(str, Enum):
    """Status transitions of a task log row: processing → completed | error."""

    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


class TaskLogRecord(BaseModel):
    """One orchestrator invocation as written to the task log."""

    session_id: str
    user_id: str | None = None
    task_name: str
    input_payload: dict[str, Any] = Field(default_factory=dict)
    client_context: dict[str, Any] | None = None
    status: TaskStatus = TaskStatus.PROCESSING
    response_data: Any = None
    error_details: str | None = None
