"""
Masking strategies for values of sensitive fields.

A masked value is always a string. The strategy comes from the policy's
field strategy map; partial masking picks its output shape from the field
name first and the value's shape second.
"""

import hashlib
import json
import re
from enum import Enum
from typing import Any, Optional

import structlog

from .policy import MaskingStrategy, RedactionPolicy, normalize_field_name

logger = structlog.get_logger(__name__)

REVEAL_WINDOW = 4
HASH_PREFIX = "sha256:"
HASH_HEX_CHARS = 16

_EMAIL_SHAPE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_NON_DIGITS = re.compile(r"\D")


class PartialCategory(str, Enum):
    """Output shapes for partial masking."""

    EMAIL = "email"
    CARD = "card"
    PHONE = "phone"
    DEFAULT = "default"


_CATEGORY_HINTS = (
    (PartialCategory.EMAIL, ("email", "mail")),
    (PartialCategory.CARD, ("creditcard", "cardnumber", "card", "ccnumber")),
    (PartialCategory.PHONE, ("phone", "mobile", "fax")),
)


def serialize_value(value: Any) -> str:
    """Render any value as the text that masking strategies operate on."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, default=str, separators=(",", ":"), ensure_ascii=False)
    return str(value)


def category_for_field(field_name: Optional[str]) -> Optional[PartialCategory]:
    """Pick a partial-mask category from a field name, if the name says which."""
    if not field_name:
        return None

    normalized = normalize_field_name(field_name)
    for category, hints in _CATEGORY_HINTS:
        if any(hint in normalized for hint in hints):
            return category
    return None


class Masker:
    """
    Applies masking strategies.

    Features:
    - Full masking (placeholder text)
    - Partial masking with email/card/phone/default shapes
    - Deterministic salted hashing for joinable identifiers
    - Length-only output
    """

    def __init__(self, policy: RedactionPolicy) -> None:
        self.policy = policy
        self.placeholder_text = policy.placeholder_text
        # Longest key first so "accountnumber" wins over "account"
        self._strategy_keys = sorted(policy.field_strategies, key=len, reverse=True)

    def strategy_for(self, field_name: Optional[str]) -> MaskingStrategy:
        """
        Resolve the strategy for a sensitive field.

        The normalized field name is looked up exactly, then by the longest
        strategy key it contains. Unknown fields fall back to full masking;
        in FULL mode only configured fields have a map entry.
        """
        if not field_name:
            return MaskingStrategy.FULL_MASK

        normalized = normalize_field_name(field_name)
        strategies = self.policy.field_strategies

        if normalized in strategies:
            return strategies[normalized]

        for key in self._strategy_keys:
            if key and key in normalized:
                return strategies[key]

        return MaskingStrategy.FULL_MASK

    def mask_field(self, field_name: Optional[str], value: Any) -> Any:
        """Mask the value of a sensitive field according to its strategy."""
        if not self.policy.active:
            return value

        try:
            strategy = self.strategy_for(field_name)
            return self.mask(serialize_value(value), strategy, field_name)
        except Exception as e:
            logger.warning(
                "Field masking failed, using placeholder",
                field=field_name,
                error_type=type(e).__name__,
            )
            return self.placeholder_text

    def mask(
        self,
        value: str,
        strategy: MaskingStrategy,
        field_name: Optional[str] = None,
    ) -> str:
        """Apply one masking strategy to ``value``."""
        if strategy is MaskingStrategy.FULL_MASK:
            return self.placeholder_text
        if strategy is MaskingStrategy.PARTIAL_MASK:
            return self._apply_partial_masking(value, field_name)
        if strategy is MaskingStrategy.HASH:
            return self._apply_hash(value)
        if strategy is MaskingStrategy.LENGTH:
            return f"<{len(value)} chars>"

        return self.placeholder_text

    def _apply_partial_masking(self, value: str, field_name: Optional[str]) -> str:
        if not value:
            return self.placeholder_text

        category = category_for_field(field_name)
        if category is None:
            category = PartialCategory.EMAIL if _EMAIL_SHAPE.match(value) else PartialCategory.DEFAULT

        if category is PartialCategory.EMAIL:
            return self._mask_email(value)
        if category is PartialCategory.CARD:
            return self._mask_digits(value, "****-****-****-")
        if category is PartialCategory.PHONE:
            return self._mask_digits(value, "***-***-")

        if len(value) <= REVEAL_WINDOW:
            return self.placeholder_text
        return "****" + value[-REVEAL_WINDOW:]

    def _mask_email(self, email: str) -> str:
        """
        Mask an email address as ``j***@example.com``.

        The first character of the local part and the whole domain stay
        visible. Local parts shorter than two characters would be fully
        revealed, so they get the placeholder instead.
        """
        if "@" not in email:
            return self.placeholder_text

        local_part, domain = email.split("@", 1)
        if len(local_part) < 2 or not domain:
            return self.placeholder_text

        return f"{local_part[0]}***@{domain}"

    def _mask_digits(self, value: str, prefix: str) -> str:
        digits = _NON_DIGITS.sub("", value)
        if len(digits) <= REVEAL_WINDOW:
            return self.placeholder_text
        return prefix + digits[-REVEAL_WINDOW:]

    def _apply_hash(self, value: str) -> str:
        raw = f"{self.policy.hash_salt}{value}".encode("utf-8", errors="replace")
        return HASH_PREFIX + hashlib.sha256(raw).hexdigest()[:HASH_HEX_CHARS]
