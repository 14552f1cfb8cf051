"""
Structured document traversal.

Walks dicts, lists and leaves, applying field-name matching, masking and
content patterns with one precedence rule: a sensitive key masks its whole
value and the walk does not descend into it.
"""

from collections.abc import Mapping
from typing import Any, Optional

from .masking import Masker
from .matching import FieldMatcher, PatternEngine
from .metrics import RedactionStats

_SEQUENCE_TYPES = (list, tuple, set, frozenset)
_PASSTHROUGH_TYPES = (bool, int, float, type(None))
_CONTAINER_TYPES = (Mapping,) + _SEQUENCE_TYPES


class DocumentWalker:
    """
    Recursively redacts a structured value.

    - Mapping: sensitive keys are masked wholesale, other values recursed
    - Sequence: every element recursed (the result is a list)
    - str: content patterns applied
    - bool/int/float/None: unchanged
    - anything else: ``str(value)`` is pattern-scanned and replaces the
      value only when redaction changed it
    - a mapping or sequence at ``max_depth`` becomes the placeholder

    Errors are not handled here; the engine owns the fallback.
    """

    def __init__(
        self,
        matcher: FieldMatcher,
        patterns: PatternEngine,
        masker: Masker,
        max_depth: int = 32,
    ) -> None:
        self.matcher = matcher
        self.patterns = patterns
        self.masker = masker
        self.max_depth = max_depth

    def walk(self, node: Any, stats: Optional[RedactionStats] = None) -> Any:
        """Return a redacted copy of ``node``. The input is never mutated."""
        return self._walk(node, 0, stats)

    def redact_field(self, name: str, value: Any, stats: Optional[RedactionStats] = None) -> Any:
        """Redact one named value: mask it if the name is sensitive, else walk it."""
        if self.matcher.is_sensitive(name):
            return self._mask(name, value, stats)
        return self._walk(value, 1, stats)

    def _mask(self, name: str, value: Any, stats: Optional[RedactionStats]) -> Any:
        if stats is not None:
            stats.record_field(self.masker.strategy_for(name).value)
        return self.masker.mask_field(name, value)

    def _text(self, text: str, stats: Optional[RedactionStats]) -> str:
        return self.patterns.redact_text(text, stats.pattern_matches if stats is not None else None)

    def _walk(self, node: Any, depth: int, stats: Optional[RedactionStats]) -> Any:
        if isinstance(node, str):
            return self._text(node, stats)

        if isinstance(node, _PASSTHROUGH_TYPES):
            return node

        if isinstance(node, _CONTAINER_TYPES) and depth >= self.max_depth:
            # Too deep to walk: the keys inside are never checked, so mask it all.
            return self.masker.placeholder_text

        if isinstance(node, Mapping):
            redacted = {}
            for key, value in node.items():
                name = str(key)
                if self.matcher.is_sensitive(name):
                    redacted[key] = self._mask(name, value, stats)
                else:
                    redacted[key] = self._walk(value, depth + 1, stats)
            return redacted

        if isinstance(node, _SEQUENCE_TYPES):
            return [self._walk(item, depth + 1, stats) for item in node]

        text = str(node)
        redacted_text = self._text(text, stats)
        return node if redacted_text == text else redacted_text
