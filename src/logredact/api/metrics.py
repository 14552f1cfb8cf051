"""
Prometheus metrics endpoint.
"""

import structlog
from fastapi import APIRouter, Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get(
    "/metrics",
    summary="Prometheus metrics",
    description="""
    Redaction metrics in Prometheus text format:
    - redaction_operations_total{operation}
    - redaction_fields_masked_total{strategy}
    - redaction_pattern_matches_total{pattern}
    - redaction_errors_total{operation}
    - redaction_duration_seconds{operation}
    """,
)
async def get_metrics(request: Request) -> Response:
    """Render the registry the app's redaction metrics are registered on."""
    metrics = getattr(request.app.state, "metrics", None)
    if metrics is None:
        logger.warning("Metrics collector not initialized")
        return Response(content="", media_type=CONTENT_TYPE_LATEST)

    try:
        payload = generate_latest(metrics.registry)
    except Exception as e:
        logger.error("Failed to generate metrics", error_type=type(e).__name__, exc_info=True)
        return Response(content="", status_code=500, media_type=CONTENT_TYPE_LATEST)

    return Response(content=payload, media_type=CONTENT_TYPE_LATEST)
