"""
Translate API Schemas
"""

from typing import Optional
from pydantic import BaseModel


class TranslateRequest(BaseModel):
    """Body of POST /api/translate; fields are checked by the route for a 400."""
    text: Optional[str] = None
    target_lang: Optional[str] = None
