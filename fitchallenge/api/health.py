"""Liveness probe."""

from fastapi import APIRouter

from fitchallenge.core.config import settings

router = APIRouter(tags=["health"])


@router.get("/health")
def health() -> dict:
    """Report that the service is up, without touching the store."""
    return {"status": "ok", "service": settings.app_name}
