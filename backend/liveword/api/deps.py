"""
Dependencies shared by the WebSocket gateway and the HTTP routes.

Providers are built lazily, once per process. Tests swap them through
app.dependency_overrides.
"""
import functools
import logging
from typing import Optional

from liveword.config.settings import settings
from liveword.services.gcp import GCPSpeechService, GCPTextToSpeechService, GCPTranslationService
from liveword.services.protocols import TextToSpeechProtocol, TranslationProtocol
from liveword.services.session.registry import BroadcastRegistry, broadcast_registry
from liveword.services.stt import SpeechStreamFactory
from liveword.services.translation import TranslationBroadcaster, TTSCache

logger = logging.getLogger(__name__)


def get_registry() -> BroadcastRegistry:
    return broadcast_registry


@functools.lru_cache(maxsize=1)
def get_translator() -> Optional[TranslationProtocol]:
    """Translation client, or None when the project is not configured."""
    try:
        return GCPTranslationService()
    except RuntimeError as e:
        logger.error(f"❌ Translation disabled: {e}")
        return None


@functools.lru_cache(maxsize=1)
def get_synthesizer() -> TextToSpeechProtocol:
    return GCPTextToSpeechService()


@functools.lru_cache(maxsize=1)
def get_stream_factory() -> SpeechStreamFactory:
    return SpeechStreamFactory(GCPSpeechService())


@functools.lru_cache(maxsize=1)
def get_broadcaster() -> TranslationBroadcaster:
    return TranslationBroadcaster(
        registry=get_registry(),
        translator=get_translator(),
        synthesizer=get_synthesizer(),
        tts_cache=TTSCache(maxsize=settings.TTS_CACHE_SIZE),
    )
