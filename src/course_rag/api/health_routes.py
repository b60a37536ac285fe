"""
Liveness probe. Does not touch the store or the upstream providers.
"""

from fastapi import APIRouter

from .. import __version__

router = APIRouter(tags=["health"])


@router.get("/health", summary="Liveness probe")
async def health() -> dict:
    return {"status": "ok", "version": __version__}
