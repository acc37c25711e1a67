"""
Unit tests for Oolong built-in functors and type sanitizers.

Generated models call these through the VALIDATORS, MODIFIERS and COMPOSERS
tables and the `sanitize` dispatcher.
"""

import datetime

import pytest

from oolong.errors import ModelValidationError
from oolong.lib.builtins import (
    COMPOSERS,
    DSL_FUNCTOR_SIG,
    MODIFIERS,
    VALIDATORS,
    describe_arity,
    is_builtin,
    is_empty,
    sanitize,
)
from oolong.lib.types import FunctorKind


class TestValidators:
    """Test string and numeric validators."""

    def test_is_email(self):
        assert VALIDATORS["isEmail"]("user@example.com")
        assert not VALIDATORS["isEmail"]("user@")
        assert not VALIDATORS["isEmail"](None)

    def test_is_url(self):
        assert VALIDATORS["isURL"]("https://example.com/path?q=1")
        assert not VALIDATORS["isURL"]("example")

    def test_is_mobile_phone(self):
        """Separators are ignored, a leading + is allowed."""
        assert VALIDATORS["isMobilePhone"]("+61 (412) 345-678")
        assert not VALIDATORS["isMobilePhone"]("12ab")

    def test_is_length(self):
        assert VALIDATORS["isLength"]("secret12", 8, 64)
        assert not VALIDATORS["isLength"]("short", 8, 64)
        assert VALIDATORS["isLength"]("anything", 1)

    def test_is_uuid(self):
        assert VALIDATORS["isUUID"]("8d3f7c1e-4c43-4f8e-9a0c-2a3c1d6c9b11")
        assert not VALIDATORS["isUUID"]("not-a-uuid")

    def test_numeric_ranges(self):
        assert VALIDATORS["min"](5, 5)
        assert not VALIDATORS["max"](6, 5)
        assert VALIDATORS["range"](3, 1, 5)

    def test_is_int(self):
        assert VALIDATORS["isInt"]("42")
        assert not VALIDATORS["isInt"](4.2)
        assert not VALIDATORS["isInt"](True)

    def test_is_in(self):
        assert VALIDATORS["isIn"]("a", ["a", "b"])


class TestModifiers:

    def test_trim_keeps_none(self):
        assert MODIFIERS["trim"]("  x ") == "x"
        assert MODIFIERS["trim"](None) is None

    def test_normalize_email_lowers_domain_only(self):
        assert MODIFIERS["normalizeEmail"](" John@Example.COM ") == "John@example.com"

    def test_hash_password_is_deterministic(self):
        digest = MODIFIERS["hashPassword"]("secret", "salt")
        assert digest == MODIFIERS["hashPassword"]("secret", "salt")
        assert digest != MODIFIERS["hashPassword"]("secret")
        assert len(digest) == 64

    def test_to_boolean(self):
        assert MODIFIERS["toBoolean"]("yes") is True
        assert MODIFIERS["toBoolean"]("off") is False


class TestComposers:

    def test_concat(self):
        assert COMPOSERS["concat"]("a", None, 1) == "a1"

    def test_join_skips_none(self):
        assert COMPOSERS["join"](" ", "John", None, "Smith") == "John Smith"

    def test_coalesce(self):
        assert COMPOSERS["coalesce"](None, 0, 1) == 0


class TestRegistry:

    def test_is_builtin(self):
        assert is_builtin(FunctorKind.VALIDATOR, "isEmail")
        assert not is_builtin(FunctorKind.VALIDATOR, "trim")
        assert is_builtin(FunctorKind.MODIFIER, "trim")

    def test_signatures_count_the_value(self):
        assert DSL_FUNCTOR_SIG[FunctorKind.VALIDATOR]["isLength"] == (2, 3)
        assert DSL_FUNCTOR_SIG[FunctorKind.COMPOSER]["now"] == (0, 0)

    def test_describe_arity(self):
        assert describe_arity(1, 1) == "1"
        assert describe_arity(2, 3) == "2..3"
        assert describe_arity(1, None) == "at least 1"


class TestSanitizers:
    """Raw input conversion per primitive type."""

    def test_int(self):
        assert sanitize({"name": "age", "type": "int"}, "42") == 42
        assert sanitize({"name": "age", "type": "int"}, 3.0) == 3

    def test_int_rejects_fraction(self):
        with pytest.raises(ModelValidationError, match='Invalid "age"'):
            sanitize({"name": "age", "type": "int"}, "4.5")

    def test_unsigned_int(self):
        with pytest.raises(ModelValidationError):
            sanitize({"name": "qty", "type": "int", "unsigned": True}, -1)

    def test_decimal_rounds(self):
        assert sanitize({"name": "price", "type": "decimal", "decimalDigits": 2}, "9.999") == 10.0

    def test_bool(self):
        meta = {"name": "flag", "type": "bool"}
        assert sanitize(meta, "true") is True
        assert sanitize(meta, 0) is False
        with pytest.raises(ModelValidationError):
            sanitize(meta, "maybe")

    def test_text_limits(self):
        with pytest.raises(ModelValidationError):
            sanitize({"name": "code", "type": "text", "maxLength": 3}, "abcd")
        with pytest.raises(ModelValidationError):
            sanitize({"name": "code", "type": "text", "fixedLength": 2}, "abc")
        assert sanitize({"name": "code", "type": "text", "maxLength": 3}, 12) == "12"

    def test_datetime_ranges(self):
        assert sanitize({"name": "d", "type": "datetime", "range": "date"}, "2024-02-29") == datetime.date(2024, 2, 29)
        assert sanitize({"name": "t", "type": "datetime", "range": "time"}, "10:30") == datetime.time(10, 30)
        assert sanitize({"name": "y", "type": "datetime", "range": "year"}, 2024) == 2024

    def test_datetime_invalid(self):
        with pytest.raises(ModelValidationError):
            sanitize({"name": "at", "type": "datetime"}, "yesterday")

    def test_enum(self):
        meta = {"name": "status", "type": "enum", "values": ["active", "blocked"]}
        assert sanitize(meta, "active") == "active"
        with pytest.raises(ModelValidationError):
            sanitize(meta, "deleted")

    def test_json(self):
        assert sanitize({"name": "extra", "type": "json"}, '{"a": 1}') == {"a": 1}

    def test_binary_from_base64(self):
        assert sanitize({"name": "blob", "type": "binary"}, "aGk=") == b"hi"

    def test_csv_from_list(self):
        assert sanitize({"name": "tags", "type": "csv"}, ["a", "b c"]) == "a,b c"

    def test_none_passes_through(self):
        assert sanitize({"name": "age", "type": "int"}, None) is None


class TestIsEmpty:

    @pytest.mark.parametrize("value", [None, "", [], {}])
    def test_empty(self, value):
        assert is_empty(value)

    @pytest.mark.parametrize("value", [0, False, "x", [None]])
    def test_not_empty(self, value):
        assert not is_empty(value)
