# backend/artspace/routes/v1/prometheus.py
"""
Prometheus metrics endpoint for monitoring infrastructure.

Exposes the metrics collected by the @measure_operation decorators and
the booking lock/transition counters. Unauthenticated, as is usual for
Prometheus scrape targets; keep it off the public ingress.
"""

from fastapi import APIRouter, HTTPException, Response, status
from prometheus_client import Counter

from ...core.config import settings
from ...monitoring.prometheus_metrics import REGISTRY, prometheus_metrics

router = APIRouter(tags=["monitoring"])

_scrape_counter = Counter(
    "artspace_prometheus_scrapes_total",
    "Total number of Prometheus metrics scrapes",
    registry=REGISTRY,
)


@router.get("/metrics", include_in_schema=False)
def get_metrics() -> Response:
    if not settings.metrics_enabled:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Metrics disabled")
    _scrape_counter.inc()
    return Response(
        content=prometheus_metrics.get_metrics(),
        media_type=prometheus_metrics.get_content_type(),
    )
