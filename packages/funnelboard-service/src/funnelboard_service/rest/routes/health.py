"""Liveness and readiness probes."""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from funnelboard_service.db.engine import get_session_factory

router = APIRouter()


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/health/ready")
async def ready() -> JSONResponse:
    """Ready once the database session factory exists."""
    try:
        get_session_factory()
    except RuntimeError:
        return JSONResponse(status_code=503, content={"status": "starting"})
    return JSONResponse(content={"status": "ready"})
