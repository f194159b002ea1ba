"""
GCP Services Package

Exports the provider adapters and the shared executor used to run their
blocking calls off the event loop.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Optional

from liveword.config.constants import GCP_EXECUTOR_MAX_WORKERS
from liveword.services.gcp.speech import GCPSpeechService, is_stream_limit_error
from liveword.services.gcp.translate import GCPTranslationService, normalize_language_code
from liveword.services.gcp.tts import GCPTextToSpeechService, resolve_tts_locale

_gcp_executor: Optional[ThreadPoolExecutor] = None


def get_gcp_executor() -> ThreadPoolExecutor:
    """Shared pool for blocking Translate / TTS client calls."""
    global _gcp_executor
    if _gcp_executor is None:
        _gcp_executor = ThreadPoolExecutor(
            max_workers=GCP_EXECUTOR_MAX_WORKERS,
            thread_name_prefix="gcp",
        )
    return _gcp_executor


def shutdown_gcp_executor():
    global _gcp_executor
    if _gcp_executor is not None:
        _gcp_executor.shutdown(wait=False, cancel_futures=True)
        _gcp_executor = None


__all__ = [
    "GCPSpeechService",
    "GCPTranslationService",
    "GCPTextToSpeechService",
    "is_stream_limit_error",
    "normalize_language_code",
    "resolve_tts_locale",
    "get_gcp_executor",
    "shutdown_gcp_executor",
]
