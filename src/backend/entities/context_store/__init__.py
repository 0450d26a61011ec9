"""Session context store: per-session conversational memory.

Usage:
    from entities.context_store import InMemorySessionStore

    store = InMemorySessionStore()
"""

from .store import InMemorySessionStore

__all__ = ["InMemorySessionStore"]
