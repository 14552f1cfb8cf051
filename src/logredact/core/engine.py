"""
Redaction engine: the entry points the rest of a service calls.

Orchestrates the policy components:
1. FieldMatcher decides which keys are sensitive
2. Masker masks the values of sensitive keys
3. PatternEngine scrubs free text and string leaves
4. DocumentWalker composes the three over structured values

No entry point raises. A missing policy means pass-through (fail-open);
internal failures degrade to more aggressive redaction of the same value.
"""

import dataclasses
import json
import time
from collections.abc import Mapping
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Optional, Tuple

import structlog

from .masking import Masker, serialize_value
from .matching import FieldMatcher, PatternEngine
from .metrics import RedactionMetrics, RedactionStats
from .policy import RedactionPolicy
from .walker import DocumentWalker

if TYPE_CHECKING:
    from ..config import RedactionSettings

logger = structlog.get_logger(__name__)

_NATIVE_TYPES = (str, bool, int, float, Mapping, list, tuple, set, frozenset)


def _json_default(obj: Any) -> Any:
    """Fallback encoder used when turning arbitrary objects into documents."""
    if isinstance(obj, Enum):
        return obj.value
    if hasattr(obj, "model_dump"):
        return obj.model_dump(mode="json")
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return dataclasses.asdict(obj)
    if isinstance(obj, Mapping):
        return dict(obj)
    if isinstance(obj, (set, frozenset, tuple)):
        return list(obj)
    if isinstance(obj, bytes):
        return obj.decode("utf-8", errors="replace")
    if hasattr(obj, "__dict__") and not isinstance(obj, type):
        return {k: v for k, v in vars(obj).items() if not k.startswith("_")}
    return str(obj)


def to_document(obj: Any) -> Any:
    """Serialize an arbitrary object and parse it back into plain JSON types."""
    return json.loads(json.dumps(obj, default=_json_default, ensure_ascii=False))


def render_document(document: Any) -> str:
    """Compact JSON rendering; strings are returned as-is."""
    if isinstance(document, str):
        return document
    return json.dumps(document, default=str, separators=(",", ":"), ensure_ascii=False)


def _fallback_text(value: Any) -> Optional[str]:
    """Best-effort text for a value the walker could not handle."""
    try:
        return serialize_value(value)
    except Exception:
        pass
    try:
        return str(value)
    except Exception:
        return None


class RedactionEngine:
    """
    Applies a redaction policy to messages, documents, objects and field maps.

    Holds no mutable state after construction; one instance serves every
    thread in the process.
    """

    def __init__(
        self,
        policy: Optional[RedactionPolicy],
        metrics: Optional[RedactionMetrics] = None,
    ) -> None:
        self.policy = policy
        self.metrics = metrics

        if policy is None:
            self.matcher: Optional[FieldMatcher] = None
            self.patterns: Optional[PatternEngine] = None
            self.masker: Optional[Masker] = None
            self.walker: Optional[DocumentWalker] = None
            logger.warning("No redaction policy configured, values pass through unredacted")
            return

        self.matcher = FieldMatcher(policy.sensitive_fields, policy.field_match)
        self.patterns = PatternEngine(policy.patterns, policy.placeholder_text, self.matcher)
        self.masker = Masker(policy)
        self.walker = DocumentWalker(self.matcher, self.patterns, self.masker, policy.max_depth)

        logger.info(
            "Redaction engine initialized",
            active=policy.active,
            mode=policy.mode.value,
            has_metrics=metrics is not None,
        )

    @property
    def active(self) -> bool:
        return self.policy is not None and self.policy.active

    @property
    def placeholder_text(self) -> str:
        return self.policy.placeholder_text if self.policy is not None else ""

    # -- entry points -------------------------------------------------------

    def redact_message(self, text: str) -> str:
        """Apply the content patterns to free text."""
        if not self.active or not isinstance(text, str) or not text:
            return text

        started, stats = self._begin()
        try:
            result = self.patterns.redact_text(text, stats.pattern_matches if stats else None)
        except Exception as e:
            self._failed("message", e)
            return self.placeholder_text

        self._finish("message", stats, started)
        return result

    def redact_structured(self, document: Any) -> Any:
        """
        Redact a structured value (dicts, lists, leaves).

        If the walk fails, the value is serialized and redacted as text,
        so the result may be a string.
        """
        if not self.active:
            return document

        started, stats = self._begin()
        try:
            result = self.walker.walk(document, stats)
        except Exception as e:
            self._failed("structured", e)
            return self._redact_fallback(document)

        self._finish("structured", stats, started)
        return result

    def redact_json(self, text: str) -> str:
        """Parse JSON text, redact it structurally and render it compactly."""
        if not self.active or not isinstance(text, str) or not text:
            return text

        try:
            document = json.loads(text)
        except ValueError:
            return self.redact_message(text)

        started, stats = self._begin()
        try:
            result = json.dumps(
                self.walker.walk(document, stats),
                default=str,
                separators=(",", ":"),
                ensure_ascii=False,
            )
        except Exception as e:
            self._failed("json", e)
            return self.redact_message(text)

        self._finish("json", stats, started)
        return result

    def redact_object(self, obj: Any) -> str:
        """
        Redact any object and return its text form.

        Strings that look like JSON go through ``redact_json``, other strings
        through ``redact_message``. Everything else is serialized to JSON
        (pydantic models, dataclasses and plain objects by their public
        attributes) and redacted structurally.
        """
        if obj is None:
            return ""

        if isinstance(obj, str):
            if obj.lstrip().startswith(("{", "[")):
                return self.redact_json(obj)
            return self.redact_message(obj)

        try:
            document = to_document(obj)
        except Exception as e:
            if not self.active:
                return _fallback_text(obj) or ""
            self._failed("object", e)
            return self._redact_fallback(obj)

        if not self.active:
            return render_document(document)

        if isinstance(document, str):
            return self.redact_message(document)

        started, stats = self._begin()
        try:
            result = render_document(self.walker.walk(document, stats))
        except Exception as e:
            self._failed("object", e)
            return self._redact_fallback(document)

        self._finish("object", stats, started)
        return result

    def redact_field_map(self, fields: Optional[Mapping]) -> Dict[Any, Any]:
        """Redact a flat map of named values (log attributes, span tags)."""
        if fields is None:
            return {}
        if not self.active:
            return dict(fields)

        return {key: self.redact_field(key, value) for key, value in fields.items()}

    def redact_field(self, name: Any, value: Any) -> Any:
        """
        Redact one named value.

        Sensitive names mask the value; otherwise strings and containers
        are redacted in place and other objects are rendered through
        ``redact_object``.
        """
        if not self.active:
            return value

        field_name = str(name)
        if (
            value is not None
            and not isinstance(value, _NATIVE_TYPES)
            and not self.matcher.is_sensitive(field_name)
        ):
            return self.redact_object(value)

        started, stats = self._begin()
        try:
            result = self.walker.redact_field(field_name, value, stats)
        except Exception as e:
            self._failed("field", e)
            return self.placeholder_text

        self._finish("field", stats, started)
        return result

    def is_sensitive_field(self, name: str) -> bool:
        if self.matcher is None:
            return False
        return self.matcher.is_sensitive(name)

    def contains_sensitive_data(self, text: str) -> bool:
        """True if ``text`` mentions a sensitive field name or matches a pattern."""
        if self.policy is None or not isinstance(text, str) or not text:
            return False

        lowered = text.lower()
        if any(field in lowered for field in self.policy.sensitive_fields):
            return True
        return self.patterns.contains_sensitive_data(text)

    # -- internals ----------------------------------------------------------

    def _begin(self) -> Tuple[float, Optional[RedactionStats]]:
        if self.metrics is None:
            return 0.0, None
        return time.perf_counter(), RedactionStats()

    def _finish(self, operation: str, stats: Optional[RedactionStats], started: float) -> None:
        if self.metrics is None:
            return
        try:
            self.metrics.record_operation(operation, stats, started)
        except Exception as e:
            logger.debug("Failed to record redaction metrics", error_type=type(e).__name__)

    def _failed(self, operation: str, error: Exception) -> None:
        # Never log the value: it is exactly what failed to be redacted.
        logger.warning(
            "Redaction failed, degrading output",
            operation=operation,
            error_type=type(error).__name__,
        )
        if self.metrics is not None:
            try:
                self.metrics.record_error(operation)
            except Exception:
                logger.debug("Failed to record redaction error metric", operation=operation)

    def _redact_fallback(self, value: Any) -> str:
        text = _fallback_text(value)
        if text is None:
            return self.placeholder_text
        return self.redact_message(text)


# Global redaction engine instance
_redaction_engine: Optional[RedactionEngine] = None
_passthrough_engine: Optional[RedactionEngine] = None


def get_redaction_engine() -> RedactionEngine:
    """
    Get the process engine.

    Before one is installed, a pass-through engine is returned: a missing
    policy means redaction is disabled, not that logging stops.
    """
    global _passthrough_engine

    if _redaction_engine is not None:
        return _redaction_engine

    if _passthrough_engine is None:
        _passthrough_engine = RedactionEngine(None)
    return _passthrough_engine


def set_redaction_engine(engine: Optional[RedactionEngine]) -> None:
    """Install (or with ``None``, remove) the process engine."""
    global _redaction_engine
    _redaction_engine = engine


def build_engine(
    settings: "RedactionSettings",
    metrics: Optional[RedactionMetrics] = None,
) -> RedactionEngine:
    """
    Build an engine from settings.

    Raises:
        PolicyError: if the policy is invalid; callers at startup let it
            propagate so the process does not run without protection.
    """
    policy = RedactionPolicy.from_settings(settings)
    return RedactionEngine(policy, metrics)
