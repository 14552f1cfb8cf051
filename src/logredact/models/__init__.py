"""
Pydantic data models package.

Contains the request and response models of the HTTP API.
"""

from .redaction import (
    DocumentRequest,
    DocumentResponse,
    ErrorResponse,
    FieldsRequest,
    FieldsResponse,
    MessageRequest,
    MessageResponse,
    ObjectRequest,
    ObjectResponse,
    PolicySummary,
)

__all__ = [
    "DocumentRequest",
    "DocumentResponse",
    "ErrorResponse",
    "FieldsRequest",
    "FieldsResponse",
    "MessageRequest",
    "MessageResponse",
    "ObjectRequest",
    "ObjectResponse",
    "PolicySummary",
]
