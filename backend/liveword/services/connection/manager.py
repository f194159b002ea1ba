"""
Connection Manager

Bookkeeping for live client sessions:
- Registration on connect, removal on close
- Lookup and counts for the health endpoint
- Closing every session on shutdown
"""
import asyncio
from typing import Dict, TYPE_CHECKING
import logging

from liveword.services.metrics import active_sessions_gauge

if TYPE_CHECKING:
    from liveword.services.session.session import TranscriptionSession

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Tracks every connected TranscriptionSession in this process."""

    def __init__(self):
        # session_id -> TranscriptionSession
        self._sessions: Dict[str, "TranscriptionSession"] = {}
        self._lock = asyncio.Lock()

    async def connect(self, session: "TranscriptionSession"):
        """Register a new session."""
        async with self._lock:
            self._sessions[session.session_id] = session
            active_sessions_gauge.set(len(self._sessions))

        logger.info(f"Session {session.session_id} connected ({len(self._sessions)} active)")

    async def disconnect(self, session: "TranscriptionSession") -> bool:
        """Remove a session. Returns False if it was not registered."""
        async with self._lock:
            removed = self._sessions.pop(session.session_id, None) is not None
            active_sessions_gauge.set(len(self._sessions))

        if removed:
            logger.info(f"Session {session.session_id} disconnected ({len(self._sessions)} active)")
        return removed

    async def close_all(self):
        """Close every session (for shutdown)."""
        async with self._lock:
            sessions = list(self._sessions.values())

        if sessions:
            logger.info(f"Closing {len(sessions)} sessions...")
        for session in sessions:
            await session.close(reason="shutdown")

    def get_active_session_count(self) -> int:
        """Get number of connected sessions."""
        return len(self._sessions)
