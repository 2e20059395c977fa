"""
Planning Session Manager.

Keeps the planning sessions of all users in memory with an inactivity timeout.
Each session is independent; nothing here coordinates two planners editing the
same store and period, which is left to the persistence layer.

Session Lifecycle:
    1. Planner opens a store/period -> session created
    2. Every request touching the session refreshes its timeout
    3. Session expires after PLANNING_SESSION_TIMEOUT seconds of inactivity
    4. Background cleanup removes expired sessions
"""

from datetime import datetime, timedelta
from typing import Dict, Optional
import threading
import logging

from shiftplanner.error_handlers.exceptions import ResourceNotFoundException
from .planning_session import PlanningSession


DEFAULT_TIMEOUT_SECONDS = 1800


class ManagedSession:
    """
    A planning session together with its activity bookkeeping.

    Attributes:
        session (PlanningSession): The planning state
        created_at (datetime): When the session was created
        last_activity (datetime): Last time the session was accessed
        expires_at (datetime): When the session will expire
        lock (threading.RLock): Serializes mutations of this session
    """

    def __init__(self, session: PlanningSession, timeout_seconds: int):
        self.session = session
        self.timeout = timedelta(seconds=timeout_seconds)
        self.created_at = datetime.utcnow()
        self.lock = threading.RLock()
        self.refresh()

    def refresh(self):
        """Extend expiry by the timeout from now."""
        self.last_activity = datetime.utcnow()
        self.expires_at = self.last_activity + self.timeout

    def is_expired(self) -> bool:
        return datetime.utcnow() > self.expires_at

    def get_time_remaining(self) -> int:
        """Seconds until expiry (0 if expired)."""
        if self.is_expired():
            return 0
        return int((self.expires_at - datetime.utcnow()).total_seconds())


class PlanningSessionManager:
    """
    Thread-safe registry of planning sessions.

    Attributes:
        sessions (Dict[str, ManagedSession]): Active sessions by id
        lock (threading.Lock): Guards the registry itself
        timeout_seconds (int): Inactivity timeout applied to new sessions
    """

    def __init__(self, timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS):
        self.sessions: Dict[str, ManagedSession] = {}
        self.lock = threading.Lock()
        self.timeout_seconds = timeout_seconds
        self.logger = logging.getLogger(__name__)

    def init_app(self, app):
        """Read the timeout from config and register on the app."""
        self.timeout_seconds = app.config.get('PLANNING_SESSION_TIMEOUT', DEFAULT_TIMEOUT_SECONDS)
        app.extensions['planning_sessions'] = self

    def add(self, session: PlanningSession) -> ManagedSession:
        """Register a session, replacing any session with the same id."""
        with self.lock:
            managed = ManagedSession(session, self.timeout_seconds)
            self.sessions[session.id] = managed
            self.logger.info(
                f"Created planning session {session.id} for store {session.store_id} "
                f"({session.period_start.isoformat()}..{session.period_end.isoformat()})"
            )
            return managed

    def get(self, session_id: str) -> ManagedSession:
        """
        Fetch a live session and refresh its timeout.

        Raises:
            ResourceNotFoundException: If the session is unknown or expired
        """
        with self.lock:
            managed = self.sessions.get(session_id)
            if managed is not None and managed.is_expired():
                self.logger.info(f"Planning session {session_id} expired")
                del self.sessions[session_id]
                managed = None
            if managed is None:
                raise ResourceNotFoundException(
                    f"Planning session {session_id} not found or expired",
                    details={'session_id': session_id}
                )
            managed.refresh()
            return managed

    def find(self, session_id: str) -> Optional[ManagedSession]:
        try:
            return self.get(session_id)
        except ResourceNotFoundException:
            return None

    def remove(self, session_id: str) -> bool:
        with self.lock:
            if self.sessions.pop(session_id, None) is not None:
                self.logger.info(f"Removed planning session {session_id}")
                return True
            return False

    def cleanup_expired_sessions(self) -> int:
        """Remove all expired sessions. Returns the number removed."""
        with self.lock:
            expired = [sid for sid, managed in self.sessions.items() if managed.is_expired()]
            for sid in expired:
                del self.sessions[sid]
        if expired:
            self.logger.info(f"Cleaned up {len(expired)} expired planning sessions")
        return len(expired)

    def get_active_session_count(self) -> int:
        with self.lock:
            return sum(1 for managed in self.sessions.values() if not managed.is_expired())


# Global instance
session_manager = PlanningSessionManager()
