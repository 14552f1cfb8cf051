"""
Redaction request and response models.

The HTTP surface mirrors the engine entry points one to one.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class MessageRequest(BaseModel):
    """Free text to redact."""

    text: str = Field(description="Message text")


class MessageResponse(BaseModel):
    text: str = Field(description="Redacted message text")
    redacted: bool = Field(description="Whether anything was replaced")


class DocumentRequest(BaseModel):
    """Structured document to redact (any JSON value)."""

    document: Any = Field(description="JSON document")


class DocumentResponse(BaseModel):
    document: Any = Field(description="Redacted document")


class FieldsRequest(BaseModel):
    """Flat map of named values, as log attributes or span tags."""

    fields: Dict[str, Any] = Field(description="Field name to value")


class FieldsResponse(BaseModel):
    fields: Dict[str, Any] = Field(description="Redacted field map")


class ObjectRequest(BaseModel):
    """Arbitrary value to serialize and redact."""

    value: Any = Field(default=None, description="Value to redact")


class ObjectResponse(BaseModel):
    text: str = Field(description="Redacted text rendering of the value")


class PolicySummary(BaseModel):
    """
    Non-secret view of the active policy.

    Pattern expressions and the hash salt are never exposed.
    """

    enabled: bool
    active: bool
    mode: str
    field_match: str
    placeholder_text: str
    sensitive_fields: List[str]
    patterns: List[str] = Field(description="Pattern names in application order")
    field_strategies: Dict[str, str]
    max_depth: int


class ErrorResponse(BaseModel):
    """
    Standard error response model.
    """

    error: str = Field(description="Error code")
    message: str = Field(description="Human-readable error message")
    details: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Additional error details"
    )
