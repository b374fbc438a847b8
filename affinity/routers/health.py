from fastapi import APIRouter

from affinity.core.config import settings

router = APIRouter(prefix="/api/v1/health", tags=["health"])

@router.get("")
async def health():
    return {"status": "ok", "store": settings.store_backend}
