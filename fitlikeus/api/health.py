"""Liveness, readiness and metrics endpoints."""

import logging

from fastapi import APIRouter, Depends, Response
from fastapi.responses import JSONResponse

from fitlikeus.core.errors import AppError
from fitlikeus.core.logging import get_request_id
from fitlikeus.core.metrics import METRICS
from fitlikeus.core.store import DocumentStore, get_store

logger = logging.getLogger("fitlikeus")

router = APIRouter(tags=["health"])


@router.get("/healthz")
def healthz():
    """Lightweight liveness check (no deps)."""
    return {"status": "ok"}


@router.get("/readyz")
def readyz(store: DocumentStore = Depends(get_store)):
    """Readiness: the document store answers."""
    try:
        ready = store.ping()
    except AppError as e:
        logger.warning("readyz.store_unavailable", extra={"error_code": e.code})
        ready = False
    if not ready:
        return JSONResponse(
            status_code=503,
            content={"status": "unavailable", "store": type(store).__name__, "request_id": get_request_id()},
        )
    return {"status": "ready", "store": type(store).__name__}


@router.get("/metrics")
def metrics_endpoint():
    return Response(content=METRICS.export_prometheus(), media_type="text/plain")
