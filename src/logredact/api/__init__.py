"""
API endpoints package.

Contains FastAPI routers for all service endpoints:
- /v1/redact/* - Redaction of messages, documents, field maps and objects
- /v1/policy - Active policy summary
- /metrics - Prometheus metrics
- /healthz, /readyz - Health checks
"""
from .healthz import router as healthz_router
from .metrics import router as metrics_router
from .policy import router as policy_router
from .redact import router as redact_router

__all__ = ["healthz_router", "metrics_router", "policy_router", "redact_router"]
