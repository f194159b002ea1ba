"""
Application-wide constants for configuration and tuning.

This file centralizes all magic numbers and configuration values
to enable easy tuning and maintain consistency across the backend.

Note: Environment-dependent settings (credentials, ports, language defaults)
belong in settings.py. This file is for operational parameters that rarely
change between environments.
"""

from typing import Dict

# ==============================================================================
# AUDIO CONFIGURATION
# ==============================================================================

# Sample rate of the browser's opus-in-webm stream (Hz)
AUDIO_SAMPLE_RATE: int = 16000

# ==============================================================================
# STREAMING STT
# ==============================================================================

# How often the request generator re-checks the closed flag while idle (seconds)
STT_QUEUE_POLL_INTERVAL_SEC: float = 0.1

# How long end() waits for the provider worker to drain (seconds)
STT_STREAM_END_TIMEOUT_SEC: float = 2.0

# Thread pool size for blocking Translate / TTS calls
GCP_EXECUTOR_MAX_WORKERS: int = 16

# ==============================================================================
# TEXT-TO-SPEECH
# ==============================================================================

# TTS speaking rate (1.0 = normal speed)
TTS_SPEAKING_RATE: float = 1.0

# TTS pitch offset (0.0 = no change)
TTS_PITCH: float = 0.0

# Translation language -> TTS locale, for targets whose locale is not
# simply "<lang>-<LANG>"
TTS_DEFAULT_LOCALES: Dict[str, str] = {
    "en": "en-US",
    "ar": "ar-XA",
    "cs": "cs-CZ",
    "da": "da-DK",
    "el": "el-GR",
    "hi": "hi-IN",
    "ja": "ja-JP",
    "ko": "ko-KR",
    "pt": "pt-BR",
    "sv": "sv-SE",
    "uk": "uk-UA",
    "vi": "vi-VN",
    "zh": "cmn-CN",
    "zh-CN": "cmn-CN",
    "zh-TW": "cmn-TW",
}

# Translation targets that keep their region subtag
TRANSLATION_REGIONAL_CODES = frozenset({"zh-CN", "zh-TW"})

# ==============================================================================
# WEBSOCKET PROTOCOL
# ==============================================================================

# Close code sent when the client asks to stop
WS_NORMAL_CLOSURE: int = 1000
