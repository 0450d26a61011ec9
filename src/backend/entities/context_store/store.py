"""
In-memory session context store.

Each conversation (identified by session_id) gets an ordered, bounded
log of context entries. The store bounds its memory use with three
configurable policies: an idle TTL per session, an LRU cap on the number of
sessions, and a cap on entries per session (oldest evicted first).

In production with multiple instances, swap this for a ``SessionStore``
implementation backed by a shared database.
"""

import asyncio
import logging
import time
import uuid
from collections import OrderedDict
from datetime import datetime, timezone
from threading import Lock
from typing import Any

from entities.shared.errors import SessionNotFoundError
from models import ContextEntry, ContextSource, Session, SessionStatus

logger = logging.getLogger(__name__)

_HISTORY_SPEAKERS = {
    ContextSource.USER: "User",
    ContextSource.BAMABOT: "BamaBot",
}

# Entity slots each specialised agent cares about
_AGENT_ENTITY_KEYS: dict[ContextSource, frozenset[str]] = {
    ContextSource.CONNECTOR: frozenset(
        {"industry", "location", "business_type", "query_text_for_semantic_search"}
    ),
    ContextSource.ANALYST: frozenset({"industry", "location", "naics_code", "sector"}),
    ContextSource.CURATOR: frozenset({"company_id", "company_name", "domain"}),
}


class InMemorySessionStore:
    """Process-local ``SessionStore`` guarded by a lock.

    Usage:
        store = InMemorySessionStore(ttl_seconds=3600)
        session = await store.create_session(user_id="u1")
        await store.add_context(session.session_id, ContextEntry(source=ContextSource.USER))
    """

    def __init__(
        self,
        ttl_seconds: int = 24 * 60 * 60,
        max_sessions: int = 1000,
        max_entries_per_session: int = 200,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self.max_sessions = max_sessions
        self.max_entries_per_session = max_entries_per_session
        # session_id -> (session, last activity as monotonic seconds)
        self._sessions: OrderedDict[str, tuple[Session, float]] = OrderedDict()
        self._turn_locks: dict[str, asyncio.Lock] = {}
        self._lock = Lock()

    # ------------------------------------------------------------------
    # Core contract
    # ------------------------------------------------------------------

    async def create_session(
        self,
        user_id: str | None = None,
        session_id: str | None = None,
        initial_contexts: list[ContextEntry] | None = None,
    ) -> Session:
        """Create a session, or reactivate an existing one with the same ID.

        An existing session keeps its entries; its activity time is refreshed
        and it adopts *user_id* if it had no owner yet. *initial_contexts* are
        appended in order either way.
        """
        final_id = session_id or str(uuid.uuid4())

        with self._lock:
            existing = self._get_live_unlocked(final_id)
            if existing is not None:
                if user_id and not existing.user_id:
                    existing.user_id = user_id
                existing.status = SessionStatus.ACTIVE
                for entry in initial_contexts or ():
                    self._append_unlocked(existing, entry)
                self._touch_unlocked(existing)
                logger.info("Session %s exists, refreshed activity", final_id)
                return existing

            session = Session(session_id=final_id, user_id=user_id)
            for entry in initial_contexts or ():
                self._append_unlocked(session, entry)
            self._sessions[final_id] = (session, time.monotonic())
            logger.info(
                "Created session %s (user_id=%s, cache size: %d)",
                final_id,
                user_id,
                len(self._sessions),
            )

            self._cleanup_expired_unlocked()
            while len(self._sessions) > self.max_sessions:
                evicted_id, _ = self._sessions.popitem(last=False)
                self._drop_turn_lock_unlocked(evicted_id)
                logger.info("Evicted LRU session: session_id=%s", evicted_id)

            return session

    async def get_session_context(self, session_id: str) -> Session | None:
        """Look up a session; ``None`` when unknown or expired."""
        if not session_id:
            return None
        with self._lock:
            return self._get_live_unlocked(session_id)

    async def add_context(self, session_id: str, entry: ContextEntry) -> ContextEntry:
        """Append *entry* to the session's log.

        Raises:
            SessionNotFoundError: The session does not exist.
        """
        with self._lock:
            session = self._get_live_unlocked(session_id)
            if session is None:
                raise SessionNotFoundError(session_id)

            self._append_unlocked(session, entry)
            self._touch_unlocked(session)

        logger.info(
            "Context added to session %s (source=%s, intent=%s)",
            session_id,
            entry.source.value,
            entry.intent,
        )
        return entry

    async def get_chat_history_for_llm(self, session_id: str, max_turns: int) -> str:
        """Render the most recent *max_turns* exchanges, oldest first.

        One turn is a user message plus the bot reply, so up to
        ``2 * max_turns`` entries carrying message text are rendered, one
        ``User: ...`` / ``BamaBot: ...`` line each.
        """
        if max_turns <= 0:
            return ""

        session = await self.get_session_context(session_id)
        if session is None:
            return ""

        with self._lock:
            relevant = [
                ctx
                for ctx in session.contexts
                if ctx.chat_message_text and ctx.source in _HISTORY_SPEAKERS
            ]
        recent = relevant[-max_turns * 2 :]
        return "\n".join(
            f"{_HISTORY_SPEAKERS[ctx.source]}: {ctx.chat_message_text}" for ctx in recent
        )

    def session_lock(self, session_id: str) -> asyncio.Lock:
        """Return the lock that serialises chat turns for *session_id*."""
        with self._lock:
            lock = self._turn_locks.get(session_id)
            if lock is None:
                lock = asyncio.Lock()
                self._turn_locks[session_id] = lock
            return lock

    # ------------------------------------------------------------------
    # Context queries
    # ------------------------------------------------------------------

    async def get_latest_context(
        self, session_id: str, source: ContextSource | None = None
    ) -> ContextEntry | None:
        """Return the newest entry, optionally restricted to one source."""
        session = await self.get_session_context(session_id)
        if session is None:
            return None
        with self._lock:
            contexts = [c for c in session.contexts if source is None or c.source == source]
        return contexts[-1] if contexts else None

    async def get_context_for_agent(
        self, session_id: str, agent: ContextSource
    ) -> list[ContextEntry]:
        """Entries relevant to a specialised agent.

        An entry is relevant when the agent produced it, or when it carries at
        least one entity slot the agent consumes.
        """
        keys = _AGENT_ENTITY_KEYS.get(agent)
        if keys is None:
            raise ValueError(f"Not a specialised agent: {agent.value}")

        session = await self.get_session_context(session_id)
        if session is None:
            return []
        with self._lock:
            return [
                ctx
                for ctx in session.contexts
                if ctx.source == agent or keys.intersection(ctx.entities)
            ]

    async def merge_contexts(self, session_id: str) -> ContextEntry | None:
        """Fold all entries of a session into one summary entry.

        The first non-empty intent and message text win; entities and
        metadata are unioned with later entries overriding earlier ones.
        """
        session = await self.get_session_context(session_id)
        if session is None or not session.contexts:
            return None

        intent = ""
        text: str | None = None
        entities: dict[str, Any] = {}
        metadata: dict[str, Any] = {}
        with self._lock:
            for ctx in session.contexts:
                intent = intent or ctx.intent
                if text is None and ctx.chat_message_text:
                    text = ctx.chat_message_text
                entities.update(ctx.entities)
                metadata.update(ctx.metadata)

        return ContextEntry(
            id=f"merged_{uuid.uuid4().hex[:12]}",
            session_id=session_id,
            source=ContextSource.USER,
            intent=intent,
            chat_message_text=text,
            entities=entities,
            metadata=metadata,
            user_id=session.user_id,
        )

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def cleanup_expired_sessions(self) -> int:
        """Drop every session idle for longer than the TTL.

        Returns:
            Number of sessions removed.
        """
        with self._lock:
            return self._cleanup_expired_unlocked()

    def clear_session(self, session_id: str) -> bool:
        """Remove a session. Returns True if it existed."""
        with self._lock:
            self._drop_turn_lock_unlocked(session_id)
            if self._sessions.pop(session_id, None) is not None:
                logger.info("Cleared session %s", session_id)
                return True
            return False

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    # ------------------------------------------------------------------
    # Internals (must hold self._lock)
    # ------------------------------------------------------------------

    def _get_live_unlocked(self, session_id: str) -> Session | None:
        entry = self._sessions.get(session_id)
        if entry is None:
            return None

        session, last_seen = entry
        if time.monotonic() - last_seen > self.ttl_seconds:
            session.status = SessionStatus.EXPIRED
            del self._sessions[session_id]
            self._drop_turn_lock_unlocked(session_id)
            logger.info("Session expired for session_id=%s", session_id)
            return None

        self._sessions.move_to_end(session_id)
        return session

    def _touch_unlocked(self, session: Session) -> None:
        session.last_activity_at = datetime.now(timezone.utc)
        self._sessions[session.session_id] = (session, time.monotonic())
        self._sessions.move_to_end(session.session_id)

    def _cleanup_expired_unlocked(self) -> int:
        now = time.monotonic()
        expired = [
            sid for sid, (_, last_seen) in self._sessions.items() if now - last_seen > self.ttl_seconds
        ]
        for sid in expired:
            session, _ = self._sessions.pop(sid)
            session.status = SessionStatus.EXPIRED
            self._drop_turn_lock_unlocked(sid)
        if expired:
            logger.info("Cleaned up %d expired sessions", len(expired))
        return len(expired)

    def _append_unlocked(self, session: Session, entry: ContextEntry) -> None:
        entry.session_id = session.session_id
        if entry.user_id is None:
            entry.user_id = session.user_id
        session.contexts.append(entry)

        overflow = len(session.contexts) - self.max_entries_per_session
        if overflow > 0:
            del session.contexts[:overflow]
            logger.debug(
                "Evicted %d oldest entries from session %s", overflow, session.session_id
            )

    def _drop_turn_lock_unlocked(self, session_id: str) -> None:
        # A held lock stays so turns already queued on it remain serialised
        lock = self._turn_locks.get(session_id)
        if lock is not None and not lock.locked():
            del self._turn_locks[session_id]
