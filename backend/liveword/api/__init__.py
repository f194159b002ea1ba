from fastapi import APIRouter

from liveword.api import translate

router = APIRouter()

router.include_router(translate.router)
