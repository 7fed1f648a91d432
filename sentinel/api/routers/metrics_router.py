# sentinel/api/routers/metrics_router.py
"""
Prometheus metrics endpoint
"""

import logging

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

# Imported for registration side effects
from sentinel.infra.metrics import chat_metrics, circuit_breaker, gateway_metrics  # noqa: F401

log = logging.getLogger("sentinel.metrics")

router = APIRouter(tags=["monitoring"])


@router.get("/metrics")
async def prometheus_metrics() -> Response:
    """
    Prometheus metrics endpoint

    Exposes gateway connections and frames, room broadcasts, presence,
    persisted messages, push deliveries and circuit breaker states.

    Usage:
        curl http://localhost:5001/metrics
    """
    try:
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
    except Exception as e:
        log.error(f"Failed to generate metrics: {e}", exc_info=True)
        return Response(
            content=f"# Error generating metrics: {str(e)}\n",
            media_type="text/plain",
            status_code=500,
        )
