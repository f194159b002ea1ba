"""
GCP Text-to-Speech Service

Handles Google Cloud Text-to-Speech operations.
"""

from typing import Dict, Optional
from google.cloud import texttospeech

from liveword.config.constants import TTS_DEFAULT_LOCALES, TTS_PITCH, TTS_SPEAKING_RATE
from liveword.config.settings import settings
from liveword.services.gcp.credentials import ensure_credentials
from liveword.services.gcp.translate import normalize_language_code


def resolve_tts_locale(language_code: str) -> str:
    """Turn a translation target ("es", "ZH-TW") into a TTS locale ("es-ES", "cmn-TW")."""
    primary, _, region = language_code.strip().replace("_", "-").partition("-")
    primary = primary.lower()
    if region and primary != "zh":
        return f"{primary}-{region.upper()}"

    code = normalize_language_code(language_code)
    return TTS_DEFAULT_LOCALES.get(code, f"{code}-{code.upper()}")


class GCPTextToSpeechService:
    """Handles Text-to-Speech operations."""

    def __init__(self, voices: Optional[Dict[str, str]] = None):
        ensure_credentials()
        self._client = texttospeech.TextToSpeechClient()
        self.voices = dict(voices if voices is not None else settings.TTS_VOICES)

    def voice_for(self, language_code: str) -> Optional[str]:
        """Configured voice name for a translation target, if any."""
        return self.voices.get(language_code) or self.voices.get(normalize_language_code(language_code))

    def synthesize(
        self,
        text: str,
        *,
        language_code: str,
        voice_name: Optional[str] = None,
    ) -> bytes:
        """Synthesize text to MP3 speech audio."""
        voice_params = texttospeech.VoiceSelectionParams(
            language_code=resolve_tts_locale(language_code),
        )
        voice_name = voice_name or self.voice_for(language_code)
        if voice_name:
            voice_params.name = voice_name

        audio_config = texttospeech.AudioConfig(
            audio_encoding=texttospeech.AudioEncoding.MP3,
            speaking_rate=TTS_SPEAKING_RATE,
            pitch=TTS_PITCH,
        )

        synthesis_input = texttospeech.SynthesisInput(text=text)

        response = self._client.synthesize_speech(
            input=synthesis_input,
            voice=voice_params,
            audio_config=audio_config,
        )

        return response.audio_content
