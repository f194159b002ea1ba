"""
Broadcast Registry - which sessions want translations, and into what.

Process-wide mapping of session -> translation target language. A session
is present only after it has sent setTranslation; it is removed on stop or
disconnect. entries() returns a snapshot so a fan-out iterating it is never
disturbed by a concurrent removal.
"""

import logging
from typing import Dict, List, Optional, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from liveword.services.session.session import TranscriptionSession

logger = logging.getLogger(__name__)


class BroadcastRegistry:
    """Session -> target language, at most one entry per session."""

    def __init__(self):
        self._targets: Dict["TranscriptionSession", Optional[str]] = {}

    def upsert(self, session: "TranscriptionSession", target_language: Optional[str]):
        """Insert or update a session's target language."""
        is_new = session not in self._targets
        previous = self._targets.get(session)
        self._targets[session] = target_language
        if is_new or previous != target_language:
            logger.info(f"[Registry] {session.session_id} -> {target_language} ({len(self._targets)} listeners)")

    def remove(self, session: "TranscriptionSession") -> bool:
        """Drop a session; no-op if it was never registered."""
        if self._targets.pop(session, _MISSING) is _MISSING:
            return False
        logger.info(f"[Registry] {session.session_id} removed ({len(self._targets)} listeners)")
        return True

    def entries(self) -> List[Tuple["TranscriptionSession", Optional[str]]]:
        """Snapshot of (session, target_language) at call time."""
        return list(self._targets.items())

    def __contains__(self, session) -> bool:
        return session in self._targets

    def __len__(self) -> int:
        return len(self._targets)


_MISSING = object()

# Global singleton instance
broadcast_registry = BroadcastRegistry()
