# backend/roomchat/routes/health.py
"""
Health check and Prometheus endpoints.

Both are public, following standard Prometheus practice.
"""

from fastapi import APIRouter, Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from ..core.config import settings
from ..core.constants import API_VERSION
from ..core.metrics import REGISTRY

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(request: Request) -> dict:
    core = getattr(request.app.state, "realtime", None)
    return {
        "status": "ok",
        "version": API_VERSION,
        "environment": settings.environment,
        "realtime_connections": len(core.registry) if core is not None else 0,
    }


@router.get("/metrics", include_in_schema=False)
async def metrics() -> Response:
    return Response(content=generate_latest(REGISTRY), media_type=CONTENT_TYPE_LATEST)
