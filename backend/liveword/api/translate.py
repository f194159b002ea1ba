"""
Translate API

Single-shot translation for non-realtime clients.
"""
import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from liveword.api.deps import get_translator
from liveword.schemas.translate import TranslateRequest
from liveword.services.gcp import get_gcp_executor
from liveword.services.protocols import TranslationProtocol

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/translate")
async def translate(
    payload: TranslateRequest,
    translator: Optional[TranslationProtocol] = Depends(get_translator),
):
    """Translate `text` into `target_lang`, returning the provider's raw response."""
    if not payload.text or not payload.target_lang:
        return JSONResponse(status_code=400, content={"error": "Missing text or target_lang"})

    if translator is None:
        logger.error("Translation requested but no provider is configured")
        return JSONResponse(status_code=500, content={"error": "Failed to fetch translation"})

    loop = asyncio.get_running_loop()
    try:
        return await loop.run_in_executor(
            get_gcp_executor(),
            lambda: translator.translate_raw(payload.text, payload.target_lang),
        )
    except Exception as e:
        logger.error(f"Translation Error: {e}")
        return JSONResponse(status_code=500, content={"error": "Failed to fetch translation"})
