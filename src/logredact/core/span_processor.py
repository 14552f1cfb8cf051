"""
Trace-span redaction.

RedactingSpanProcessor wraps the span processor that exports (usually a
BatchSpanProcessor). Spans are redacted once they have finished, never
while instrumentation code is still writing to them: on_end builds a
redacted copy and hands the copy downstream.

Usage::

    provider = TracerProvider(resource=resource)
    provider.add_span_processor(
        RedactingSpanProcessor(BatchSpanProcessor(exporter), engine)
    )
"""

from typing import Any, Optional

import structlog
from opentelemetry import baggage
from opentelemetry.context import Context, get_current
from opentelemetry.sdk.trace import Event, ReadableSpan, Span, SpanProcessor
from opentelemetry.trace import Link, Status, StatusCode
from opentelemetry.util import types

from .engine import RedactionEngine, get_redaction_engine
from .log_processor import _redaction_active

logger = structlog.get_logger(__name__)

BAGGAGE_ATTRIBUTE_PREFIX = "baggage."


def _attribute_value(value: Any) -> Any:
    """Coerce a redacted value back into something OpenTelemetry accepts."""
    if isinstance(value, (str, bool, int, float)):
        return value
    if isinstance(value, (list, tuple)):
        if all(isinstance(item, (str, bool, int, float)) for item in value):
            return tuple(value)
    return str(value)


def redact_attributes(engine: RedactionEngine, attributes: types.Attributes) -> types.Attributes:
    """Field-aware redaction of an attribute map (attribute key = field name)."""
    if not attributes:
        return attributes
    return {
        key: _attribute_value(value)
        for key, value in engine.redact_field_map(attributes).items()
    }


class RedactingSpanProcessor(SpanProcessor):
    """
    Span processor decorator that redacts finished spans.

    Redacted on a copy of each span:
    - name, event names and status description via content patterns
    - span, event and link attributes field-aware

    With ``copy_baggage``, baggage entries present when the span starts
    are recorded as ``baggage.<key>`` attributes and redacted with the rest.
    """

    def __init__(
        self,
        downstream: SpanProcessor,
        engine: Optional[RedactionEngine] = None,
        copy_baggage: bool = False,
    ) -> None:
        self.downstream = downstream
        self._engine = engine
        self.copy_baggage = copy_baggage

    @property
    def engine(self) -> RedactionEngine:
        return self._engine if self._engine is not None else get_redaction_engine()

    def on_start(self, span: Span, parent_context: Optional[Context] = None) -> None:
        if self.copy_baggage:
            for key, value in baggage.get_all(parent_context).items():
                span.set_attribute(f"{BAGGAGE_ATTRIBUTE_PREFIX}{key}", _attribute_value(value))

        self.downstream.on_start(span, parent_context=parent_context)

    def on_end(self, span: ReadableSpan) -> None:
        engine = self.engine
        if not engine.active or _redaction_active.get():
            self.downstream.on_end(span)
            return

        token = _redaction_active.set(True)
        try:
            redacted = self.redact_span(span, engine)
        except Exception as e:
            # Never export the original: drop the span instead.
            logger.warning(
                "Span redaction failed, span dropped",
                error_type=type(e).__name__,
            )
            if engine.metrics is not None:
                engine.metrics.record_error("span")
            return
        finally:
            _redaction_active.reset(token)

        self.downstream.on_end(redacted)

    @staticmethod
    def redact_span(span: ReadableSpan, engine: RedactionEngine) -> ReadableSpan:
        """Build a redacted copy of a finished span."""
        events = [
            Event(
                name=engine.redact_message(event.name),
                attributes=redact_attributes(engine, event.attributes),
                timestamp=event.timestamp,
            )
            for event in span.events
        ]

        links = [
            Link(link.context, attributes=redact_attributes(engine, link.attributes))
            for link in span.links
        ]

        status = span.status
        if status.status_code is StatusCode.ERROR and status.description:
            status = Status(StatusCode.ERROR, engine.redact_message(status.description))

        return ReadableSpan(
            name=engine.redact_message(span.name),
            context=span.context,
            parent=span.parent,
            resource=span.resource,
            attributes=redact_attributes(engine, span.attributes),
            events=events,
            links=links,
            kind=span.kind,
            status=status,
            start_time=span.start_time,
            end_time=span.end_time,
            instrumentation_scope=span.instrumentation_scope,
        )

    def shutdown(self) -> None:
        self.downstream.shutdown()

    def force_flush(self, timeout_millis: int = 30000) -> bool:
        return self.downstream.force_flush(timeout_millis)


def redact_baggage(
    context: Optional[Context] = None,
    engine: Optional[RedactionEngine] = None,
) -> Context:
    """
    Return a context whose baggage values are redacted.

    Call before injecting propagation headers so sensitive baggage does
    not leave the process. Keys are kept; values are masked field-aware.
    """
    engine = engine if engine is not None else get_redaction_engine()
    entries = baggage.get_all(context)

    redacted_context = context
    for key, value in entries.items():
        redacted_value = engine.redact_field(key, value)
        redacted_context = baggage.set_baggage(key, redacted_value, context=redacted_context)

    if redacted_context is None:
        # No baggage and no explicit context
        return get_current()
    return redacted_context
