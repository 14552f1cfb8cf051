"""
Tests for ordered content pattern application.
"""

from typing import Dict

import pytest

from logredact.core.matching import FIELD_VALUE_COUNTER, FieldMatcher, PatternEngine
from logredact.core.policy import compile_pattern

EMAIL = r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}"


def make_engine(*patterns, placeholder: str = "[REDACTED]") -> PatternEngine:
    compiled = [compile_pattern(name, pattern, priority=i) for i, (name, pattern) in enumerate(patterns)]
    return PatternEngine(compiled, placeholder)


class TestPatternEngine:
    """Test pattern replacement and ordering."""

    def test_replaces_every_match(self) -> None:
        engine = make_engine(("email", EMAIL))
        result = engine.redact_text("a@b.com and c@d.org")
        assert result == "[REDACTED] and [REDACTED]"

    def test_text_without_matches_unchanged(self) -> None:
        engine = make_engine(("email", EMAIL))
        assert engine.redact_text("nothing to see") == "nothing to see"

    def test_empty_text(self) -> None:
        engine = make_engine(("email", EMAIL))
        assert engine.redact_text("") == ""

    def test_each_pattern_sees_previous_output(self) -> None:
        counts: Dict[str, int] = {}
        engine = make_engine(("secret", r"secret-\d+"), ("assignment", r"key=\S+"))

        assert engine.apply("key=secret-12", counts) == "[REDACTED]"
        assert counts == {"secret": 1, "assignment": 1}

    def test_order_changes_which_patterns_fire(self) -> None:
        counts: Dict[str, int] = {}
        engine = make_engine(("assignment", r"key=\S+"), ("secret", r"secret-\d+"))

        assert engine.apply("key=secret-12", counts) == "[REDACTED]"
        assert counts == {"assignment": 1}

    def test_redact_text_reaches_fixpoint(self) -> None:
        engine = make_engine(("pair", r"\[R\]-\[R\]"), ("digits", r"\d+"), placeholder="[R]")

        # A single pass leaves a new match for the first pattern behind
        assert engine.apply("[R]-42") == "[R]-[R]"
        assert engine.redact_text("[R]-42") == "[R]"

    def test_redact_text_is_idempotent(self) -> None:
        engine = make_engine(("pair", r"\[R\]-\[R\]"), ("digits", r"\d+"), placeholder="[R]")
        for text in ["[R]-42", "1-2-3", "call 555 now", "[R]-[R]-7"]:
            once = engine.redact_text(text)
            assert engine.redact_text(once) == once

    def test_placeholder_backslashes_are_literal(self) -> None:
        engine = make_engine(("email", EMAIL), placeholder="C:\\redacted\\1")
        assert engine.redact_text("mail a@b.com") == "mail C:\\redacted\\1"

    def test_counts_accumulate(self) -> None:
        counts: Dict[str, int] = {}
        engine = make_engine(("email", EMAIL))
        engine.redact_text("a@b.com c@d.com", counts)
        assert counts == {"email": 2}

    def test_contains_sensitive_data(self) -> None:
        engine = make_engine(("email", EMAIL), ("ssn", r"\b\d{3}-\d{2}-\d{4}\b"))
        assert engine.contains_sensitive_data("ssn 123-45-6789") is True
        assert engine.contains_sensitive_data("all clear") is False
        assert engine.contains_sensitive_data("") is False

    def test_matching_pattern_names(self) -> None:
        engine = make_engine(("email", EMAIL), ("ssn", r"\b\d{3}-\d{2}-\d{4}\b"))
        assert engine.matching_pattern_names("x@y.io 123-45-6789") == ["email", "ssn"]
        assert engine.matching_pattern_names("x@y.io") == ["email"]


class TestSensitiveKeyValues:
    """Values of sensitive keys written into text are replaced."""

    @staticmethod
    def make_engine(*fields: str, placeholder: str = "[REDACTED]") -> PatternEngine:
        email = compile_pattern("email", EMAIL)
        return PatternEngine([email], placeholder, FieldMatcher(fields or ("password", "token")))

    @pytest.mark.parametrize("text,expected", [
        ("password=hunter2", "password=[REDACTED]"),
        ("password = hunter2, next", "password = [REDACTED], next"),
        ('password="hunter 2"', 'password="[REDACTED]"'),
        ('{"db_password": "a\\"b", "host": "x"}', '{"db_password": "[REDACTED]", "host": "x"}'),
        ("token: Bearer abc.def", "token: [REDACTED]"),
        ('password="never closed', 'password="[REDACTED]'),
        ("https://h/cb?token=abc&state=ok", "https://h/cb?token=[REDACTED]&state=ok"),
    ])
    def test_forms(self, text: str, expected: str) -> None:
        assert self.make_engine().redact_text(text) == expected

    def test_runs_after_patterns(self) -> None:
        counts: Dict[str, int] = {}
        result = self.make_engine().redact_text("password=a@b.com user=bob", counts)
        assert result == "password=[REDACTED] user=bob"
        assert counts == {"email": 1}

    def test_counts_field_values(self) -> None:
        counts: Dict[str, int] = {}
        self.make_engine().redact_text("password=x token=y", counts)
        assert counts == {FIELD_VALUE_COUNTER: 2}

    def test_spaced_placeholder_is_stable(self) -> None:
        engine = self.make_engine(placeholder="<redacted value>")
        once = engine.redact_text("password=hunter2 ok")
        assert once == "password=<redacted value> ok"
        assert engine.redact_text(once) == once

    def test_without_matcher_text_untouched(self) -> None:
        engine = PatternEngine([], "[REDACTED]")
        assert engine.redact_text("password=hunter2") == "password=hunter2"
