"""
WebSocket Router - Connection Gateway

Thin composition root: accepts the browser connection, builds a
TranscriptionSession for it and hands over. All protocol handling lives
in the session.
"""
import logging
import uuid

from fastapi import APIRouter, Depends, WebSocket

from liveword.api.deps import get_broadcaster, get_registry, get_stream_factory
from liveword.services.connection import ClientConnection, connection_manager
from liveword.services.session import BroadcastRegistry, TranscriptionSession
from liveword.services.session.session import StreamFactory
from liveword.services.translation import TranslationBroadcaster

logger = logging.getLogger(__name__)

router = APIRouter()


@router.websocket("/")
@router.websocket("/ws")
async def ws_endpoint(
    websocket: WebSocket,
    registry: BroadcastRegistry = Depends(get_registry),
    broadcaster: TranslationBroadcaster = Depends(get_broadcaster),
    stream_factory: StreamFactory = Depends(get_stream_factory),
):
    """
    WebSocket endpoint for live transcription.

    Binary Messages:
        - opus/webm audio frames for the STT stream

    Message Types (JSON):
        - setLanguage: {"language": "en-US"}
        - setTranslation: {"targetLanguage": "ES", "synthesize": true}
        - start_transcription
        - stop / stopSession

    Outbound:
        - {"transcript": str, "is_final": bool}
        - {"type": "translation", "translation": str}
        - {"type": "stt_ready", "language": str}
        - {"error": str}
        - binary mp3 frames (synthesized translations)
    """
    await websocket.accept()
    session_id = uuid.uuid4().hex[:8]
    logger.info(f"ws: client connected ({session_id})")

    session = TranscriptionSession(
        connection=ClientConnection(websocket, session_id),
        registry=registry,
        broadcaster=broadcaster,
        stream_factory=stream_factory,
        session_id=session_id,
    )
    await connection_manager.connect(session)
    try:
        await session.run()
    finally:
        await connection_manager.disconnect(session)
