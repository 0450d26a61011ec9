"""
Session and context-entry models held by the session context store.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class ContextSource(str, Enum):
    """Who produced a context entry."""

    USER = "user"
    BAMABOT = "bamabot"
    CONNECTOR = "connector"
    ANALYST = "analyst"
    CURATOR = "curator"


class SessionStatus(str, Enum):
    """Lifecycle state of a session."""

    ACTIVE = "active"
    EXPIRED = "expired"


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _context_id() -> str:
    return f"ctx_{uuid.uuid4().hex[:16]}"


@dataclass
class ContextEntry:
    """One recorded turn (user message or bot reply) in a session."""

    source: ContextSource
    intent: str = ""
    chat_message_text: str | None = None
    entities: dict[str, Any] = field(default_factory=dict)
    metadata: dict[str, Any] = field(default_factory=dict)
    user_id: str | None = None

    # Assigned by the store on append
    id: str = field(default_factory=_context_id)
    session_id: str = ""
    timestamp: datetime = field(default_factory=_now)

    def to_dict(self) -> dict[str, Any]:
        """JSON-safe representation."""
        return {
            "id": self.id,
            "sessionId": self.session_id,
            "userId": self.user_id,
            "source": self.source.value,
            "intent": self.intent,
            "chatMessageText": self.chat_message_text,
            "entities": self.entities,
            "metadata": self.metadata,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class Session:
    """A logical conversation thread accumulating context entries."""

    session_id: str
    user_id: str | None = None
    created_at: datetime = field(default_factory=_now)
    last_activity_at: datetime = field(default_factory=_now)
    status: SessionStatus = SessionStatus.ACTIVE
    contexts: list[ContextEntry] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """JSON-safe representation."""
        return {
            "sessionId": self.session_id,
            "userId": self.user_id,
            "createdAt": self.created_at.isoformat(),
            "lastActivityAt": self.last_activity_at.isoformat(),
            "status": self.status.value,
            "contexts": [c.to_dict() for c in self.contexts],
        }
