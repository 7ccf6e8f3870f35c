"""API v1 router aggregator.

All v1 endpoint routers are included here, mounted at /api/v1.
"""

from fastapi import APIRouter

from hh_vibe.api.v1 import chat, professions

router = APIRouter()

router.include_router(chat.router, prefix="/chat", tags=["chat"])
router.include_router(professions.router, prefix="/professions", tags=["professions"])
