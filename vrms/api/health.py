"""Health and metrics endpoints."""

from fastapi import APIRouter

from vrms.engine.outbox import outbox_metrics

router = APIRouter()


@router.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "ok"}


@router.get("/metrics")
async def metrics():
    """Basic metrics endpoint for observability."""
    return {"service": "vrms", "version": "0.1.0", "post_commit": outbox_metrics()}
