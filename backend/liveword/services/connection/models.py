"""
Connection Models

Wrapper around a client WebSocket whose send/close methods never raise.
"""
from datetime import datetime
from typing import Dict, Any, Optional
import logging

from fastapi import WebSocket

from liveword.config.constants import WS_NORMAL_CLOSURE

logger = logging.getLogger(__name__)


class ClientConnection:
    """Represents a single browser WebSocket connection."""

    def __init__(self, websocket: WebSocket, connection_id: str):
        self.websocket = websocket
        self.connection_id = connection_id
        self.connected_at = datetime.utcnow()
        self.is_closed = False

    async def send_json(self, data: Dict[str, Any]) -> bool:
        """Send JSON message to this connection."""
        if self.is_closed:
            return False
        try:
            await self.websocket.send_json(data)
            return True
        except Exception as e:
            logger.error(f"Error sending JSON to {self.connection_id}: {e}")
            return False

    async def send_bytes(self, data: bytes) -> bool:
        """Send binary data (audio) to this connection."""
        if self.is_closed:
            return False
        try:
            await self.websocket.send_bytes(data)
            return True
        except Exception as e:
            logger.error(f"Error sending bytes to {self.connection_id}: {e}")
            return False

    async def close(self, code: int = WS_NORMAL_CLOSURE, reason: Optional[str] = None) -> bool:
        """Close the socket once; later calls are no-ops."""
        if self.is_closed:
            return False
        self.is_closed = True
        try:
            await self.websocket.close(code=code, reason=reason)
            return True
        except Exception as e:
            logger.debug(f"Close on {self.connection_id} ignored: {e}")
            return False
