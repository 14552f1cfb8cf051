"""
Health check endpoints.

- /healthz: Liveness probe (always 200 if service alive)
- /readyz: Readiness probe (200 only once a redaction engine is installed)
"""

from datetime import datetime, timezone
from typing import Any, Dict

import structlog
from fastapi import APIRouter, Request, Response, status

from .. import __version__

logger = structlog.get_logger(__name__)

router = APIRouter()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get(
    "/healthz",
    status_code=200,
    summary="Liveness probe",
    description="""
    Liveness probe endpoint.

    Always returns 200 OK if the service is running.
    """,
)
async def liveness_check() -> Dict[str, Any]:
    """
    Liveness probe - always returns 200 if service is alive.
    """
    return {
        "status": "alive",
        "timestamp": _now(),
        "service": "logredact",
        "version": __version__,
    }


@router.get(
    "/readyz",
    summary="Readiness probe",
    description="""
    Readiness probe endpoint.

    Returns 200 once the redaction engine is installed, with whether it is
    actively redacting. Returns 503 Service Unavailable before that.
    """,
)
async def readiness_check(request: Request, response: Response) -> Dict[str, Any]:
    engine = getattr(request.app.state, "engine", None)

    if engine is None:
        logger.warning("Redaction engine not initialized")
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return {
            "status": "not_ready",
            "reason": "engine_not_initialized",
            "timestamp": _now(),
        }

    response.status_code = status.HTTP_200_OK
    return {
        "status": "ready",
        "timestamp": _now(),
        "checks": {
            "policy_loaded": engine.policy is not None,
            "redaction_active": engine.active,
        },
    }
