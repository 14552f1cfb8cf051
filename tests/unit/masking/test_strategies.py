"""
Tests for masking strategies.

Pins the exact output format of every strategy.
"""

import hashlib

import pytest

from logredact.core.masking import Masker, category_for_field, PartialCategory, serialize_value
from logredact.core.policy import MaskingStrategy


@pytest.fixture
def masker(make_policy) -> Masker:
    return Masker(make_policy(mode="partial", hash_salt="pepper"))


class TestFullMask:
    def test_full_mask_returns_placeholder(self, masker: Masker) -> None:
        assert masker.mask("hunter2", MaskingStrategy.FULL_MASK) == "[REDACTED]"

    def test_full_mode_masks_unconfigured_fields_fully(self, make_policy) -> None:
        masker = Masker(make_policy(mode="full"))
        assert masker.strategy_for("email") is MaskingStrategy.FULL_MASK
        assert masker.mask_field("email", "john.doe@example.com") == "[REDACTED]"

    def test_full_mode_applies_configured_strategies(self, make_policy) -> None:
        masker = Masker(make_policy(mode="full", field_strategies={"email": "PartialMask"}))
        assert masker.strategy_for("email") is MaskingStrategy.PARTIAL_MASK
        assert masker.mask_field("email", "john.doe@example.com") == "j***@example.com"
        # no category defaults in FULL mode
        assert masker.strategy_for("user_id") is MaskingStrategy.FULL_MASK


class TestEmailMasking:
    """Test email masking: first character, stars, full domain."""

    def test_email_masking_format(self, masker: Masker) -> None:
        result = masker.mask("john.doe@example.com", MaskingStrategy.PARTIAL_MASK, "email")
        assert result == "j***@example.com"

    @pytest.mark.parametrize("email,expected", [
        ("alice.smith@company.org", "a***@company.org"),
        ("support@help.co", "s***@help.co"),
        ("ab@x.io", "a***@x.io"),
    ])
    def test_email_masking_variations(self, masker: Masker, email: str, expected: str) -> None:
        assert masker.mask(email, MaskingStrategy.PARTIAL_MASK, "contact_email") == expected

    def test_email_shape_detected_without_field_hint(self, masker: Masker) -> None:
        assert masker.mask("john.doe@example.com", MaskingStrategy.PARTIAL_MASK) == "j***@example.com"

    @pytest.mark.parametrize("value", ["a@b.com", "@domain.com", "user@", "not-an-email"])
    def test_unmaskable_email_gets_placeholder(self, masker: Masker, value: str) -> None:
        assert masker.mask(value, MaskingStrategy.PARTIAL_MASK, "email") == "[REDACTED]"


class TestOtherPartialShapes:
    def test_card_keeps_last_four_digits(self, masker: Masker) -> None:
        result = masker.mask("4111 1111 1111 1234", MaskingStrategy.PARTIAL_MASK, "credit_card")
        assert result == "****-****-****-1234"

    def test_phone_keeps_last_four_digits(self, masker: Masker) -> None:
        result = masker.mask("(555) 123-4567", MaskingStrategy.PARTIAL_MASK, "phone")
        assert result == "***-***-4567"

    def test_default_keeps_last_four_characters(self, masker: Masker) -> None:
        result = masker.mask("ACC-99887766", MaskingStrategy.PARTIAL_MASK, "account_number")
        assert result == "****7766"

    @pytest.mark.parametrize("field,value", [
        ("account_number", "1234"),
        ("credit_card", "12-34"),
        ("phone", "x"),
        ("account_number", ""),
    ])
    def test_short_values_fully_masked(self, masker: Masker, field: str, value: str) -> None:
        assert masker.mask(value, MaskingStrategy.PARTIAL_MASK, field) == "[REDACTED]"

    def test_category_for_field(self) -> None:
        assert category_for_field("user_email") is PartialCategory.EMAIL
        assert category_for_field("cardNumber") is PartialCategory.CARD
        assert category_for_field("mobile_no") is PartialCategory.PHONE
        assert category_for_field("account") is None
        assert category_for_field(None) is None


class TestHashAndLength:
    def test_hash_format(self, masker: Masker) -> None:
        expected = "sha256:" + hashlib.sha256(b"pepper12345").hexdigest()[:16]
        assert masker.mask("12345", MaskingStrategy.HASH) == expected

    def test_hash_is_stable(self, masker: Masker) -> None:
        assert masker.mask("user-1", MaskingStrategy.HASH) == masker.mask("user-1", MaskingStrategy.HASH)

    def test_hash_distinguishes_values(self, masker: Masker) -> None:
        hashes = {masker.mask(f"user-{i}", MaskingStrategy.HASH) for i in range(500)}
        assert len(hashes) == 500

    def test_hash_depends_on_salt(self, make_policy) -> None:
        first = Masker(make_policy(hash_salt="a")).mask("value", MaskingStrategy.HASH)
        second = Masker(make_policy(hash_salt="b")).mask("value", MaskingStrategy.HASH)
        assert first != second

    def test_length(self, masker: Masker) -> None:
        assert masker.mask("hunter22", MaskingStrategy.LENGTH) == "<8 chars>"


class TestStrategyResolution:
    """Test field name to strategy lookup."""

    def test_exact_match(self, masker: Masker) -> None:
        assert masker.strategy_for("customer_id") is MaskingStrategy.HASH
        assert masker.strategy_for("Email") is MaskingStrategy.PARTIAL_MASK

    def test_contained_key(self, masker: Masker) -> None:
        assert masker.strategy_for("user_email") is MaskingStrategy.PARTIAL_MASK
        assert masker.strategy_for("billing_address") is MaskingStrategy.PARTIAL_MASK

    def test_unknown_field_falls_back_to_full_mask(self, masker: Masker) -> None:
        assert masker.strategy_for("mystery") is MaskingStrategy.FULL_MASK
        assert masker.strategy_for(None) is MaskingStrategy.FULL_MASK

    def test_longest_key_wins(self, make_policy) -> None:
        masker = Masker(make_policy(
            mode="custom",
            field_strategies={"account": "Length", "account_number": "Hash"},
        ))
        assert masker.strategy_for("primary_account_number") is MaskingStrategy.HASH
        assert masker.strategy_for("account_type") is MaskingStrategy.LENGTH

    def test_custom_mode_without_map_masks_fully(self, make_policy) -> None:
        masker = Masker(make_policy(mode="custom"))
        assert masker.strategy_for("email") is MaskingStrategy.FULL_MASK


class TestMaskField:
    def test_inactive_policy_returns_value(self, make_policy) -> None:
        masker = Masker(make_policy(mode="disabled"))
        assert masker.mask_field("password", "hunter2") == "hunter2"

    def test_containers_are_serialized(self, make_policy) -> None:
        masker = Masker(make_policy(mode="custom", field_strategies={"payload": "Length"}))
        assert masker.mask_field("payload", {"a": 1}) == "<7 chars>"
        assert masker.mask_field("payload", None) == "<0 chars>"

    def test_failure_yields_placeholder(self, make_policy) -> None:
        class Hostile:
            def __str__(self) -> str:
                raise RuntimeError("boom")

        masker = Masker(make_policy(mode="custom", field_strategies={"payload": "Length"}))
        assert masker.mask_field("payload", Hostile()) == "[REDACTED]"

    def test_serialize_value(self) -> None:
        assert serialize_value(None) == ""
        assert serialize_value("text") == "text"
        assert serialize_value(b"bytes") == "bytes"
        assert serialize_value([1, "a"]) == '[1,"a"]'
        assert serialize_value(42) == "42"
