from fastapi import APIRouter

from app.core.health import live_payload, ready_payload
from app.core.limiter import limiter
from app.core.response_envelope import success_envelope

router = APIRouter(tags=["health"])


@router.get("/health/live", summary="Service liveness check")
@limiter.exempt
async def health_live() -> dict:
    return success_envelope(await live_payload())


@router.get("/health/ready", summary="Service readiness check")
@limiter.exempt
async def health_ready() -> dict:
    return success_envelope(await ready_payload())
