"""In-memory editing session store with TTL cleanup.

WHY: The HTTP API serves many browser tabs, each editing one video. Every
tab gets its own EditingSession; the store maps session ids to them. There
is no persistence beyond the editing run, so a dict is enough.

HOW: SessionRecord wraps an EditingSession with its id and timestamps.
SessionStore guards its dict with a threading.Lock (sync FastAPI handlers
run in a thread pool) and drops sessions idle for longer than the TTL.

RULES:
- Session ids are UUID4 hex strings generated by add()
- get() bumps last_accessed_at; TTL is measured from the last access
- add() raises ValueError when max_sessions is reached
- The store lock guards the dict only; each record's own lock guards its
  EditingSession
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from subtitle_editor.config import MAX_SESSIONS, SESSION_TTL_S
from subtitle_editor.core.session import EditingSession

logger = logging.getLogger(__name__)


@dataclass
class SessionRecord:
    """One stored editing session.

    Attributes:
        id: UUID4 hex string, immutable after creation.
        session: The live EditingSession.
        created_at: Epoch seconds when the session was stored.
        last_accessed_at: Epoch seconds of the last get().
        lock: Held around every call into session, so requests for the same
            session run one at a time.
    """

    id: str
    session: EditingSession
    created_at: float
    last_accessed_at: float
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)


class SessionStore:
    """Thread-safe in-memory store of editing sessions."""

    def __init__(
        self,
        ttl_seconds: int = SESSION_TTL_S,
        max_sessions: int = MAX_SESSIONS,
    ) -> None:
        self._sessions: Dict[str, SessionRecord] = {}
        self._lock = threading.Lock()
        self._ttl_seconds = ttl_seconds
        self.max_sessions = max_sessions

    def add(self, session: EditingSession) -> SessionRecord:
        """Store a session under a new id.

        Raises:
            ValueError: If the store already holds max_sessions sessions.
        """
        with self._lock:
            if len(self._sessions) >= self.max_sessions:
                raise ValueError(
                    "Maximum number of editing sessions ({}) reached".format(
                        self.max_sessions
                    )
                )
            now = time.time()
            record = SessionRecord(
                id=uuid.uuid4().hex,
                session=session,
                created_at=now,
                last_accessed_at=now,
            )
            self._sessions[record.id] = record

        logger.info("Created session %s for %s", record.id, session.video_reference.url)
        return record

    def get(self, session_id: str) -> Optional[SessionRecord]:
        """Return the record for session_id (None if unknown) and mark it used."""
        with self._lock:
            record = self._sessions.get(session_id)
            if record is not None:
                record.last_accessed_at = time.time()
            return record

    def list_sessions(self) -> List[SessionRecord]:
        """Snapshot of all records, oldest first."""
        with self._lock:
            return sorted(self._sessions.values(), key=lambda r: r.created_at)

    def delete(self, session_id: str) -> bool:
        with self._lock:
            record = self._sessions.pop(session_id, None)
        if record is None:
            return False
        logger.info("Deleted session %s", session_id)
        return True

    def cleanup_expired(self) -> int:
        """Remove sessions idle for longer than the TTL; return how many."""
        now = time.time()
        expired: List[SessionRecord] = []

        with self._lock:
            for session_id, record in list(self._sessions.items()):
                if now - record.last_accessed_at > self._ttl_seconds:
                    expired.append(self._sessions.pop(session_id))

        for record in expired:
            logger.info(
                "Expired session %s (idle %.0fs)", record.id, now - record.last_accessed_at
            )
        return len(expired)
