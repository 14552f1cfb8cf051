"""
Field-name and content matching.

FieldMatcher answers "is this key sensitive?"; PatternEngine rewrites free
text by running the policy's ordered patterns over it. Both are read-only
after construction and safe to share between threads.
"""

import re
from functools import lru_cache
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence

from .policy import FieldMatchMode, NamedPattern, normalize_field_name

FIELD_VALUE_COUNTER = "sensitive_field"

# key=value, key: value, "key": "value", 'key': 'value' (python reprs).
# The key may be quoted; a quoted value may be unterminated at end of text.
_FIELD_VALUE_RE = re.compile(
    r"""
    (?P<kq>["']?)(?P<key>[A-Za-z_][\w.\-]*)(?P=kq)
    \s*[:=]\s*
    (?:
        (?P<vq>["'])(?P<quoted>(?:\\[\s\S]|\\$|(?!(?P=vq))[^\\])*)(?:(?P=vq)|$)
      | (?P<bare>(?:(?i:basic|bearer|digest|token)\s+)?[^\s,;&}\]"'{\[]+)
    )
    """,
    re.VERBOSE,
)

# userApiKey -> user, Api, Key; HTTPHeader -> HTTP, Header; card_no2 -> card, no, 2
_TOKEN_RE = re.compile(r"[A-Z]+(?=[A-Z][a-z])|[A-Z]?[a-z]+|[A-Z]+|\d+")


def split_field_tokens(name: str) -> List[str]:
    """Split a field name into lower-case word tokens."""
    return [token.lower() for token in _TOKEN_RE.findall(str(name))]


class FieldMatcher:
    """
    Decides whether a field name is sensitive.

    Matching modes:
    - substring: any sensitive entry occurs inside the lower-cased name
    - token: a contiguous run of the name's word tokens spells an entry
    - exact: the separator-free lower-cased name equals an entry
    """

    def __init__(
        self,
        sensitive_fields: Iterable[str],
        mode: FieldMatchMode = FieldMatchMode.SUBSTRING,
        cache_size: int = 4096,
    ) -> None:
        self.mode = FieldMatchMode.parse(mode)
        self._fields: FrozenSet[str] = frozenset(
            f.strip().lower() for f in sensitive_fields if f and f.strip()
        )
        self._compact: FrozenSet[str] = frozenset(
            normalize_field_name(f) for f in self._fields
        )
        self._max_compact_len = max((len(f) for f in self._compact), default=0)
        self._cached_match = lru_cache(maxsize=cache_size)(self._match)

    @property
    def sensitive_fields(self) -> FrozenSet[str]:
        return self._fields

    def is_sensitive(self, name: Optional[str]) -> bool:
        """Return True if ``name`` designates a sensitive field."""
        if not name or not self._fields:
            return False
        return self._cached_match(str(name))

    def _match(self, name: str) -> bool:
        if self.mode is FieldMatchMode.EXACT:
            return normalize_field_name(name) in self._compact
        if self.mode is FieldMatchMode.TOKEN:
            return self._match_tokens(split_field_tokens(name))

        lowered = name.lower()
        return any(field in lowered for field in self._fields)

    def _match_tokens(self, tokens: Sequence[str]) -> bool:
        for start in range(len(tokens)):
            joined = ""
            for token in tokens[start:]:
                joined += token
                if len(joined) > self._max_compact_len:
                    break
                if joined in self._compact:
                    return True
        return False


class PatternEngine:
    """
    Applies the ordered pattern list to free text.

    Each pattern rewrites the output of the previous one. ``redact_text``
    repeats the pass until the text stops changing, so its result is
    stable under a second application.

    With a field matcher, every pass then replaces the values of
    ``key=value`` and ``"key": "value"`` pairs whose key is sensitive, so
    serialized documents and free text keep the field precedence rule.
    """

    def __init__(
        self,
        patterns: Sequence[NamedPattern],
        placeholder_text: str,
        field_matcher: Optional[FieldMatcher] = None,
    ) -> None:
        self._patterns = tuple(patterns)
        self.placeholder_text = placeholder_text
        self.field_matcher = field_matcher
        # re.sub interprets backslashes in replacement strings
        self._replacement = placeholder_text.replace("\\", "\\\\")
        self._max_passes = len(self._patterns) + 2

    @property
    def patterns(self) -> Sequence[NamedPattern]:
        return self._patterns

    def redact_field_values(self, text: str, counts: Optional[Dict[str, int]] = None) -> str:
        """Replace the values of sensitive ``key=value`` pairs found in ``text``."""
        matcher = self.field_matcher
        if matcher is None or not text:
            return text

        parts: List[str] = []
        pos = 0
        replaced = 0
        while True:
            match = _FIELD_VALUE_RE.search(text, pos)
            if match is None:
                break

            group = "quoted" if match.group("vq") else "bare"
            start, end = match.span(group)
            parts.append(text[pos:start])
            if not self._is_placeholder(text, start, end) and matcher.is_sensitive(match.group("key")):
                parts.append(self.placeholder_text)
                replaced += 1
                pos = end
            else:
                # Rescan from the value: it may hold pairs of its own.
                pos = start

        if not replaced:
            return text

        parts.append(text[pos:])
        if counts is not None:
            counts[FIELD_VALUE_COUNTER] = counts.get(FIELD_VALUE_COUNTER, 0) + replaced
        return "".join(parts)

    def _is_placeholder(self, text: str, start: int, end: int) -> bool:
        # A bare value stops at whitespace, so a spaced placeholder is only
        # partly inside the match.
        placeholder = self.placeholder_text
        return text.startswith(placeholder, start) and end <= start + len(placeholder)

    def apply(self, text: str, counts: Optional[Dict[str, int]] = None) -> str:
        """Run every pattern once, in order, then the field-value pass."""
        for pattern in self._patterns:
            text, replaced = pattern.regex.subn(self._replacement, text)
            if replaced and counts is not None:
                counts[pattern.name] = counts.get(pattern.name, 0) + replaced
        return self.redact_field_values(text, counts)

    def redact_text(self, text: str, counts: Optional[Dict[str, int]] = None) -> str:
        """Apply the patterns until a fixpoint is reached."""
        if not text or (not self._patterns and self.field_matcher is None):
            return text

        current = text
        for _ in range(self._max_passes):
            redacted = self.apply(current, counts)
            if redacted == current:
                break
            current = redacted
        return current

    def contains_sensitive_data(self, text: str) -> bool:
        """True if any pattern matches somewhere in ``text``."""
        if not text:
            return False
        return any(p.regex.search(text) is not None for p in self._patterns)

    def matching_pattern_names(self, text: str) -> List[str]:
        """Names of the patterns that match ``text`` as given (no rewriting)."""
        if not text:
            return []
        return [p.name for p in self._patterns if p.regex.search(text) is not None]
