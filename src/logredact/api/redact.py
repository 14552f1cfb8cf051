"""
Redaction API endpoints.

One endpoint per engine entry point:
- POST /v1/redact/message
- POST /v1/redact/document
- POST /v1/redact/fields
- POST /v1/redact/object
"""

import structlog
from fastapi import APIRouter, Depends, Request

from ..config import get_settings
from ..core.engine import RedactionEngine
from ..core.exceptions import EngineNotReadyError, ValidationError
from ..models.redaction import (
    DocumentRequest,
    DocumentResponse,
    ErrorResponse,
    FieldsRequest,
    FieldsResponse,
    MessageRequest,
    MessageResponse,
    ObjectRequest,
    ObjectResponse,
)

logger = structlog.get_logger(__name__)

router = APIRouter()

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid request"},
    503: {"model": ErrorResponse, "description": "Engine not initialized"},
}


def get_engine(request: Request) -> RedactionEngine:
    """Dependency to get the redaction engine from app state."""
    engine = getattr(request.app.state, "engine", None)
    if engine is None:
        raise EngineNotReadyError()
    return engine


async def check_payload_size(request: Request) -> None:
    """Reject request bodies above the configured limit."""
    settings = getattr(request.app.state, "settings", None) or get_settings()
    limit = settings.server.max_payload_bytes
    body = await request.body()

    if len(body) > limit:
        logger.warning(
            "Payload too large",
            path=request.url.path,
            size_bytes=len(body),
            limit_bytes=limit,
        )
        raise ValidationError(
            f"Payload exceeds {limit} bytes",
            details={"size_bytes": len(body), "limit_bytes": limit},
        )


@router.post(
    "/redact/message",
    response_model=MessageResponse,
    responses=_ERROR_RESPONSES,
    summary="Redact free text",
    dependencies=[Depends(check_payload_size)],
)
async def redact_message(
    payload: MessageRequest,
    engine: RedactionEngine = Depends(get_engine),
) -> MessageResponse:
    """Apply the content patterns to a message."""
    text = engine.redact_message(payload.text)
    return MessageResponse(text=text, redacted=text != payload.text)


@router.post(
    "/redact/document",
    response_model=DocumentResponse,
    responses=_ERROR_RESPONSES,
    summary="Redact a structured document",
    description="""
    Walk a JSON document and redact it.

    Values under sensitive keys are masked wholesale; every other string
    is scanned by the content patterns.
    """,
    dependencies=[Depends(check_payload_size)],
)
async def redact_document(
    payload: DocumentRequest,
    engine: RedactionEngine = Depends(get_engine),
) -> DocumentResponse:
    return DocumentResponse(document=engine.redact_structured(payload.document))


@router.post(
    "/redact/fields",
    response_model=FieldsResponse,
    responses=_ERROR_RESPONSES,
    summary="Redact a flat field map",
    dependencies=[Depends(check_payload_size)],
)
async def redact_fields(
    payload: FieldsRequest,
    engine: RedactionEngine = Depends(get_engine),
) -> FieldsResponse:
    return FieldsResponse(fields=engine.redact_field_map(payload.fields))


@router.post(
    "/redact/object",
    response_model=ObjectResponse,
    responses=_ERROR_RESPONSES,
    summary="Redact any value to text",
    dependencies=[Depends(check_payload_size)],
)
async def redact_object(
    payload: ObjectRequest,
    engine: RedactionEngine = Depends(get_engine),
) -> ObjectResponse:
    return ObjectResponse(text=engine.redact_object(payload.value))
