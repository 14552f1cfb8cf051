"""
logredact - Sensitive-data redaction for logs and traces

Detects sensitive values by field name and by content pattern and masks
them at the process boundary: structlog/stdlib log output and finished
OpenTelemetry spans.
"""

__version__ = "0.1.0"

from .core.engine import (
    RedactionEngine,
    build_engine,
    get_redaction_engine,
    set_redaction_engine,
)
from .core.exceptions import LogRedactException, PolicyError
from .core.log_processor import RedactingHandler, RedactionProcessor, wrap_handlers
from .core.policy import FieldMatchMode, MaskingStrategy, RedactionMode, RedactionPolicy
from .core.span_processor import RedactingSpanProcessor, redact_baggage

__all__ = [
    "FieldMatchMode",
    "LogRedactException",
    "MaskingStrategy",
    "PolicyError",
    "RedactingHandler",
    "RedactingSpanProcessor",
    "RedactionEngine",
    "RedactionMode",
    "RedactionPolicy",
    "RedactionProcessor",
    "build_engine",
    "get_redaction_engine",
    "redact_baggage",
    "set_redaction_engine",
    "wrap_handlers",
]
