"""
Redaction policy model.

A policy is built once from configuration and never mutated afterwards, so
it can be shared by any number of threads without locking. Construction is
where every pattern gets compiled and checked; a policy that exists is a
policy that is safe to apply.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Dict, FrozenSet, Iterable, Mapping, Optional, Sequence, Tuple, Union

import structlog

from .defaults import DEFAULT_FIELD_STRATEGIES, DEFAULT_REDACTION_TEXT
from .exceptions import PolicyError

if TYPE_CHECKING:
    from ..config import RedactionSettings

logger = structlog.get_logger(__name__)

_SEPARATORS = re.compile(r"[\s_.\-]+")


def normalize_field_name(name: str) -> str:
    """Lower-case a field name and drop separators (``Credit_Card`` -> ``creditcard``)."""
    return _SEPARATORS.sub("", str(name).lower())


class RedactionMode(str, Enum):
    """How sensitive fields are masked."""

    DISABLED = "disabled"
    FULL = "full"
    PARTIAL = "partial"
    CUSTOM = "custom"

    @classmethod
    def parse(cls, value: Union[str, int, "RedactionMode"]) -> "RedactionMode":
        """Accept enum members, names in any case, or the legacy ordinal (0-3)."""
        if isinstance(value, cls):
            return value
        if isinstance(value, int) and not isinstance(value, bool):
            members = list(cls)
            if 0 <= value < len(members):
                return members[value]
            raise ValueError(f"Unknown redaction mode ordinal: {value}")

        key = normalize_field_name(str(value))
        for member in cls:
            if member.value == key:
                return member
        raise ValueError(f"Unknown redaction mode: {value!r}")


class MaskingStrategy(str, Enum):
    """Output shape for a masked value."""

    FULL_MASK = "full_mask"
    PARTIAL_MASK = "partial_mask"
    HASH = "hash"
    LENGTH = "length"

    @classmethod
    def parse(cls, value: Union[str, "MaskingStrategy"]) -> "MaskingStrategy":
        """Accept ``FullMask``, ``full_mask``, ``full-mask`` and similar spellings."""
        if isinstance(value, cls):
            return value

        key = normalize_field_name(str(value))
        for member in cls:
            if normalize_field_name(member.value) == key:
                return member
        raise ValueError(f"Unknown masking strategy: {value!r}")


class FieldMatchMode(str, Enum):
    """How a field name is compared against the sensitive field list."""

    SUBSTRING = "substring"
    TOKEN = "token"
    EXACT = "exact"

    @classmethod
    def parse(cls, value: Union[str, "FieldMatchMode"]) -> "FieldMatchMode":
        if isinstance(value, cls):
            return value

        key = str(value).strip().lower()
        for member in cls:
            if member.value == key:
                return member
        raise ValueError(f"Unknown field match mode: {value!r}")


@dataclass(frozen=True)
class NamedPattern:
    """A compiled content pattern with its position in the ordered pattern list."""

    name: str
    regex: "re.Pattern[str]"
    priority: int = 0


def compile_pattern(
    name: str,
    pattern: str,
    ignore_case: bool = False,
    priority: int = 0,
) -> NamedPattern:
    """
    Compile one configured pattern.

    Raises:
        PolicyError: if the expression does not compile.
    """
    flags = re.IGNORECASE if ignore_case else 0
    try:
        regex = re.compile(pattern, flags)
    except re.error as e:
        raise PolicyError(
            f"Pattern '{name}' failed to compile: {e}",
            pattern_name=name,
            details={"error": str(e)},
        ) from e

    return NamedPattern(name=name, regex=regex, priority=priority)


@dataclass(frozen=True, eq=False)
class RedactionPolicy:
    """
    Immutable redaction configuration.

    ``field_strategies`` holds the effective strategy map for the policy's
    mode, keyed by normalized field name. ``patterns`` is kept sorted by
    priority; patterns with equal priority keep their declaration order.
    """

    enabled: bool = True
    placeholder_text: str = DEFAULT_REDACTION_TEXT
    sensitive_fields: FrozenSet[str] = frozenset()
    patterns: Tuple[NamedPattern, ...] = ()
    mode: RedactionMode = RedactionMode.FULL
    field_strategies: Mapping[str, MaskingStrategy] = field(default_factory=dict)
    field_match: FieldMatchMode = FieldMatchMode.SUBSTRING
    hash_salt: str = ""
    max_depth: int = 32

    def __post_init__(self) -> None:
        # Frozen dataclass: normalize through object.__setattr__.
        object.__setattr__(
            self,
            "sensitive_fields",
            frozenset(f.strip().lower() for f in self.sensitive_fields if f and f.strip()),
        )
        object.__setattr__(
            self,
            "field_strategies",
            MappingProxyType(
                {
                    normalize_field_name(k): MaskingStrategy.parse(v)
                    for k, v in dict(self.field_strategies).items()
                }
            ),
        )
        object.__setattr__(
            self,
            "patterns",
            tuple(sorted(self.patterns, key=lambda p: p.priority)),
        )
        object.__setattr__(self, "mode", RedactionMode.parse(self.mode))
        object.__setattr__(self, "field_match", FieldMatchMode.parse(self.field_match))

        if self.max_depth < 1:
            raise PolicyError("max_depth must be at least 1", details={"max_depth": self.max_depth})

        self._validate_patterns()

    def _validate_patterns(self) -> None:
        """Reject patterns that would make redaction non-idempotent or unbounded."""
        for pattern in self.patterns:
            if pattern.regex.search("") is not None:
                raise PolicyError(
                    f"Pattern '{pattern.name}' matches the empty string",
                    pattern_name=pattern.name,
                )
            if self.placeholder_text and pattern.regex.search(self.placeholder_text) is not None:
                raise PolicyError(
                    f"Pattern '{pattern.name}' matches the placeholder text",
                    pattern_name=pattern.name,
                    details={"placeholder": self.placeholder_text},
                )

    @property
    def active(self) -> bool:
        """True when redaction should be applied at all."""
        return self.enabled and self.mode is not RedactionMode.DISABLED

    @property
    def pattern_names(self) -> Tuple[str, ...]:
        return tuple(p.name for p in self.patterns)

    @classmethod
    def build(
        cls,
        *,
        enabled: bool = True,
        redaction_text: str = DEFAULT_REDACTION_TEXT,
        sensitive_fields: Iterable[str] = (),
        patterns: Sequence[Mapping[str, Any]] = (),
        mode: Union[str, RedactionMode] = RedactionMode.FULL,
        field_strategies: Optional[Mapping[str, Union[str, MaskingStrategy]]] = None,
        field_match: Union[str, FieldMatchMode] = FieldMatchMode.SUBSTRING,
        hash_salt: str = "",
        max_depth: int = 32,
    ) -> "RedactionPolicy":
        """
        Build a policy from plain configuration values.

        Each pattern entry is a mapping with ``name`` and ``pattern`` and
        optional ``priority`` and ``ignore_case``. Without a priority, an
        entry's priority is its position in the list.

        Raises:
            PolicyError: on any pattern problem. Callers at startup should
                let this propagate.
        """
        compiled = []
        for index, entry in enumerate(patterns):
            priority = entry.get("priority")
            compiled.append(
                compile_pattern(
                    name=entry["name"],
                    pattern=entry["pattern"],
                    ignore_case=bool(entry.get("ignore_case", False)),
                    priority=index if priority is None else int(priority),
                )
            )

        resolved_mode = RedactionMode.parse(mode)
        strategies: Dict[str, Union[str, MaskingStrategy]] = {}
        if resolved_mode is RedactionMode.PARTIAL:
            strategies.update(DEFAULT_FIELD_STRATEGIES)
        strategies.update(
            {normalize_field_name(k): v for k, v in (field_strategies or {}).items()}
        )

        policy = cls(
            enabled=enabled,
            placeholder_text=redaction_text,
            sensitive_fields=frozenset(sensitive_fields),
            patterns=tuple(compiled),
            mode=resolved_mode,
            field_strategies=strategies,
            field_match=field_match,
            hash_salt=hash_salt,
            max_depth=max_depth,
        )

        logger.info(
            "Redaction policy built",
            enabled=policy.enabled,
            mode=policy.mode.value,
            sensitive_fields=len(policy.sensitive_fields),
            patterns=len(policy.patterns),
            field_strategies=len(policy.field_strategies),
            field_match=policy.field_match.value,
        )
        return policy

    @classmethod
    def from_settings(cls, settings: "RedactionSettings") -> "RedactionPolicy":
        """Build the process policy from validated settings."""
        return cls.build(
            enabled=settings.enabled,
            redaction_text=settings.redaction_text,
            sensitive_fields=settings.sensitive_fields,
            patterns=[p.model_dump() for p in settings.patterns],
            mode=settings.mode,
            field_strategies=settings.field_strategies,
            field_match=settings.field_match,
            hash_salt=settings.hash_salt,
            max_depth=settings.max_depth,
        )
