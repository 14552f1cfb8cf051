"""
Policy inspection endpoint.

GET /v1/policy returns what the engine will redact, without the pattern
expressions or the hash salt.
"""

from fastapi import APIRouter, Depends

from ..core.engine import RedactionEngine
from ..models.redaction import ErrorResponse, PolicySummary
from .redact import get_engine

router = APIRouter()


@router.get(
    "/policy",
    response_model=PolicySummary,
    responses={503: {"model": ErrorResponse, "description": "Engine not initialized"}},
    summary="Active redaction policy",
)
async def get_policy(engine: RedactionEngine = Depends(get_engine)) -> PolicySummary:
    policy = engine.policy
    if policy is None:
        return PolicySummary(
            enabled=False,
            active=False,
            mode="disabled",
            field_match="substring",
            placeholder_text="",
            sensitive_fields=[],
            patterns=[],
            field_strategies={},
            max_depth=0,
        )

    return PolicySummary(
        enabled=policy.enabled,
        active=policy.active,
        mode=policy.mode.value,
        field_match=policy.field_match.value,
        placeholder_text=policy.placeholder_text,
        sensitive_fields=sorted(policy.sensitive_fields),
        patterns=list(policy.pattern_names),
        field_strategies={name: strategy.value for name, strategy in policy.field_strategies.items()},
        max_depth=policy.max_depth,
    )
