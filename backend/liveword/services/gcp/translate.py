"""
GCP Translation Service

Handles Google Cloud Translation operations.
"""

from typing import Any, Dict, Optional
from google.cloud import translate

from liveword.config.constants import TRANSLATION_REGIONAL_CODES
from liveword.config.settings import settings
from liveword.services.gcp.credentials import ensure_credentials


def normalize_language_code(code: str) -> str:
    """
    Map a client language code to a Translation API target.

    Browser clients send DeepL-style codes ("ES", "EN-US", "PT-BR"); the
    API wants lower-case ISO-639 codes and only keeps the region for a
    handful of targets such as "zh-TW".
    """
    code = code.strip().replace("_", "-")
    primary, _, region = code.partition("-")
    candidate = f"{primary.lower()}-{region.upper()}" if region else primary.lower()
    if candidate in TRANSLATION_REGIONAL_CODES:
        return candidate
    return primary.lower()


class GCPTranslationService:
    """Handles translation operations."""

    def __init__(self, project_id: Optional[str] = None, location: str = "global"):
        self.project_id = project_id or settings.GOOGLE_PROJECT_ID
        if not self.project_id:
            raise RuntimeError(
                "GOOGLE_PROJECT_ID is not set. Please update .env accordingly."
            )
        self.location = location
        ensure_credentials()
        self._client = translate.TranslationServiceClient()

    @property
    def parent(self) -> str:
        return f"projects/{self.project_id}/locations/{self.location}"

    def _translate(self, text: str, target_language_code: str, source_language_code: Optional[str]):
        request = {
            "parent": self.parent,
            "contents": [text],
            "mime_type": "text/plain",
            "target_language_code": normalize_language_code(target_language_code),
        }
        if source_language_code:
            request["source_language_code"] = normalize_language_code(source_language_code)

        return self._client.translate_text(request=request)

    def translate_text(
        self,
        text: str,
        *,
        target_language_code: str,
        source_language_code: Optional[str] = None,
    ) -> str:
        """Translate text into the target language ("" when nothing comes back)."""
        response = self._translate(text, target_language_code, source_language_code)

        if not response.translations:
            return ""

        return response.translations[0].translated_text

    def translate_raw(self, text: str, target_language_code: str) -> Dict[str, Any]:
        """Translate and return the provider's response as a plain dict."""
        response = self._translate(text, target_language_code, None)
        return translate.TranslateTextResponse.to_dict(response)
