"""In-memory registry of running enhancement workflows.

Sessions live in process memory only; a restart drops every open wizard.
Idle sessions are evicted lazily after ``ttl_seconds``.
"""

import logging
import time
import uuid
from threading import Lock

from catalog_enhancer.workflow import EnhancementWorkflow

from app.config import settings

logger = logging.getLogger(__name__)


class SessionStore:
    def __init__(self, ttl_seconds: int | None = None) -> None:
        self._ttl = ttl_seconds if ttl_seconds is not None else settings.session_ttl_seconds
        self._sessions: dict[str, tuple[EnhancementWorkflow, float]] = {}
        self._lock = Lock()

    def _evict_expired(self) -> None:
        cutoff = time.monotonic() - self._ttl
        expired = [sid for sid, (_, seen) in self._sessions.items() if seen < cutoff]
        for sid in expired:
            del self._sessions[sid]
        if expired:
            logger.info("Evicted idle sessions", extra={"count": len(expired)})

    def create(self, workflow: EnhancementWorkflow) -> str:
        session_id = uuid.uuid4().hex
        with self._lock:
            self._evict_expired()
            self._sessions[session_id] = (workflow, time.monotonic())
        return session_id

    def get(self, session_id: str) -> EnhancementWorkflow | None:
        with self._lock:
            self._evict_expired()
            entry = self._sessions.get(session_id)
            if entry is None:
                return None
            self._sessions[session_id] = (entry[0], time.monotonic())
            return entry[0]

    def remove(self, session_id: str) -> None:
        with self._lock:
            self._sessions.pop(session_id, None)

    def __len__(self) -> int:
        return len(self._sessions)


_sessions: SessionStore | None = None


def get_session_store() -> SessionStore:
    """Return the module-level SessionStore singleton."""
    global _sessions
    if _sessions is None:
        _sessions = SessionStore()
    return _sessions
