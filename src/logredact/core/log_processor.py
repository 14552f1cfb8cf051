"""
Log-sink redaction.

Two decorators around the point where a record leaves the process:

- RedactionProcessor: a structlog processor meant to sit directly before
  the renderer (inside ``structlog.stdlib.ProcessorFormatter``), so it runs
  once per record at format time for structlog and stdlib records alike.
- RedactingHandler: wraps any ``logging.Handler`` for stdlib-only setups.
  It redacts a copy of the record and hands the copy to the wrapped
  handler.

Both skip work for records produced while a redaction is already running
on the same thread/task; those are the engine's own diagnostics and carry
no payload values.
"""

import logging
from collections.abc import MutableMapping
from contextvars import ContextVar
from typing import Any, FrozenSet, Iterable, List, Optional

import structlog

from .engine import RedactionEngine, get_redaction_engine

logger = structlog.get_logger(__name__)

_redaction_active: ContextVar[bool] = ContextVar("logredact_redaction_active", default=False)

# Keys structlog adds for rendering; they never carry payload data.
STRUCTURAL_KEYS: FrozenSet[str] = frozenset(
    {
        "timestamp",
        "level",
        "log_level",
        "logger",
        "logger_name",
        "stack_info",
    }
)

# Attributes every LogRecord has; anything else came in through ``extra``.
_RESERVED_RECORD_ATTRS: FrozenSet[str] = frozenset(
    vars(logging.makeLogRecord({}))
) | {"message", "asctime", "taskName", "redacted"}


class RedactionProcessor:
    """
    structlog processor that redacts an event dict in place.

    - ``event`` (the message) goes through the content patterns
    - every other key is redacted field-aware, with the key as field name;
      this covers bound values and merged context variables
    - structural keys and ``_``-prefixed meta keys are left alone
    - a raw ``exc_info`` is rendered into ``exception`` text first, as
      ``format_exc_info`` would, and that text is redacted

    Usage::

        formatter = structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                RedactionProcessor(engine),
                structlog.dev.ConsoleRenderer(),
            ],
        )
    """

    def __init__(
        self,
        engine: Optional[RedactionEngine] = None,
        exempt_keys: Iterable[str] = STRUCTURAL_KEYS,
    ) -> None:
        self._engine = engine
        self.exempt_keys = frozenset(exempt_keys)

    @property
    def engine(self) -> RedactionEngine:
        return self._engine if self._engine is not None else get_redaction_engine()

    def __call__(
        self,
        logger: Any,
        method_name: str,
        event_dict: MutableMapping[str, Any],
    ) -> MutableMapping[str, Any]:
        engine = self.engine
        if not engine.active or _redaction_active.get():
            return event_dict

        token = _redaction_active.set(True)
        try:
            if "exc_info" in event_dict:
                # Render the traceback now so its text can be redacted.
                event_dict = structlog.processors.format_exc_info(logger, method_name, event_dict)

            for key, value in list(event_dict.items()):
                if key in self.exempt_keys or key.startswith("_"):
                    continue

                if key == "event":
                    if isinstance(value, str):
                        event_dict[key] = engine.redact_message(value)
                    else:
                        event_dict[key] = engine.redact_structured(value)
                else:
                    event_dict[key] = engine.redact_field(key, value)
        finally:
            _redaction_active.reset(token)

        return event_dict


class RedactingHandler(logging.Handler):
    """
    Handler decorator that redacts records before the wrapped handler sees them.

    The original record is not modified, so other handlers on the same
    logger are unaffected. The copy is marked ``redacted`` and is passed
    through unchanged by any further RedactingHandler.
    """

    def __init__(
        self,
        target: logging.Handler,
        engine: Optional[RedactionEngine] = None,
        level: int = logging.NOTSET,
    ) -> None:
        super().__init__(level)
        self.target = target
        self._engine = engine
        self._exception_formatter = logging.Formatter()

    @property
    def engine(self) -> RedactionEngine:
        return self._engine if self._engine is not None else get_redaction_engine()

    def setFormatter(self, fmt: Optional[logging.Formatter]) -> None:  # noqa: N802 - stdlib name
        self.target.setFormatter(fmt)

    def emit(self, record: logging.LogRecord) -> None:
        try:
            redacted = self.redact_record(record)
        except Exception:
            self.handleError(record)
            return

        self.target.handle(redacted)

    def redact_record(self, record: logging.LogRecord) -> logging.LogRecord:
        """Return a redacted copy of ``record`` (or the record itself if nothing applies)."""
        engine = self.engine
        if getattr(record, "redacted", False) or not engine.active or _redaction_active.get():
            return record

        token = _redaction_active.set(True)
        try:
            clone = logging.makeLogRecord(record.__dict__)
            clone.msg = engine.redact_message(record.getMessage())
            clone.args = None

            for key, value in record.__dict__.items():
                if key not in _RESERVED_RECORD_ATTRS:
                    setattr(clone, key, engine.redact_field(key, value))

            if record.exc_info:
                exc_text = record.exc_text or self._exception_formatter.formatException(record.exc_info)
                clone.exc_text = engine.redact_message(exc_text)
                # Downstream formatters append exc_text when exc_info is cleared.
                clone.exc_info = None
            elif record.exc_text:
                clone.exc_text = engine.redact_message(record.exc_text)

            if record.stack_info:
                clone.stack_info = engine.redact_message(record.stack_info)

            clone.redacted = True
        finally:
            _redaction_active.reset(token)

        return clone

    def flush(self) -> None:
        self.target.flush()

    def close(self) -> None:
        try:
            self.target.close()
        finally:
            super().close()


def wrap_handlers(
    target_logger: logging.Logger,
    engine: Optional[RedactionEngine] = None,
) -> List[RedactingHandler]:
    """
    Replace every handler on ``target_logger`` with a redacting decorator.

    Handlers that are already RedactingHandlers are left as they are.
    Returns the decorators now installed.
    """
    installed: List[RedactingHandler] = []
    for handler in list(target_logger.handlers):
        if isinstance(handler, RedactingHandler):
            installed.append(handler)
            continue

        wrapper = RedactingHandler(handler, engine=engine, level=handler.level)
        target_logger.removeHandler(handler)
        target_logger.addHandler(wrapper)
        installed.append(wrapper)

    logger.debug(
        "Redacting handlers installed",
        logger_name=target_logger.name,
        handlers=len(installed),
    )
    return installed
