"""
Oolong built-in validators.

Used with the `~name(args)` functor syntax. A validator receives the field
value first, followed by the declared arguments, and returns a bool.
"""

import json
import re
import uuid
from numbers import Real
from typing import Any, Sequence


# ------------------------------------------------------------------------------
# Text

_EMAIL = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
_URL = re.compile(
    r"^https?://(?:www\.)?[-a-zA-Z0-9@:%._\+~#=]{1,256}\.[a-zA-Z0-9()]{1,6}\b(?:[-a-zA-Z0-9()@:%_\+.~#?&/=]*)$"
)
_MOBILE_PHONE = re.compile(r"^\+?[0-9]{7,15}$")
_HEX_COLOR = re.compile(r"^#?([0-9a-fA-F]{3}|[0-9a-fA-F]{4}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$")


def _is_email(value: str) -> bool:
    """Validate email format."""
    if value is None:
        return False
    return bool(_EMAIL.match(str(value)))


def _is_url(value: str) -> bool:
    """Validate http(s) URL format."""
    if value is None:
        return False
    return bool(_URL.match(str(value)))


def _is_mobile_phone(value: str) -> bool:
    """Digits with an optional leading '+', separators stripped."""
    if value is None:
        return False
    return bool(_MOBILE_PHONE.match(re.sub(r"[\s\-()]", "", str(value))))


def _matches(value: str, regex: str) -> bool:
    if value is None:
        return False
    return bool(re.search(regex, str(value)))


def _contains(value: str, seed: str) -> bool:
    if value is None:
        return False
    return str(seed) in str(value)


def _equals(value: Any, comparison: Any) -> bool:
    return value == comparison


def _is_length(value: str, min_len: int = 0, max_len: int = None) -> bool:
    """Validate string length within [min_len, max_len]."""
    if value is None:
        return False
    length = len(str(value))
    if length < min_len:
        return False
    return max_len is None or length <= max_len


def _is_alpha(value: str) -> bool:
    return value is not None and str(value).isalpha()


def _is_alphanumeric(value: str) -> bool:
    return value is not None and str(value).isalnum()


def _is_numeric(value: str) -> bool:
    return value is not None and bool(re.match(r"^[+-]?[0-9]+$", str(value)))


def _is_lowercase(value: str) -> bool:
    return value is not None and str(value) == str(value).lower()


def _is_uppercase(value: str) -> bool:
    return value is not None and str(value) == str(value).upper()


def _is_hex_color(value: str) -> bool:
    return value is not None and bool(_HEX_COLOR.match(str(value)))


def _is_uuid(value: str) -> bool:
    if value is None:
        return False
    try:
        uuid.UUID(str(value))
    except ValueError:
        return False
    return True


def _is_json(value: str) -> bool:
    if value is None:
        return False
    try:
        json.loads(value)
    except (TypeError, ValueError):
        return False
    return True


# ------------------------------------------------------------------------------
# Numbers

def _is_int(value: Any) -> bool:
    if value is None or isinstance(value, bool):
        return False
    try:
        return float(value) == int(float(value))
    except (TypeError, ValueError):
        return False


def _is_float(value: Any) -> bool:
    if value is None or isinstance(value, bool):
        return False
    try:
        float(value)
    except (TypeError, ValueError):
        return False
    return True


def _at_least(value, lower: Real) -> bool:
    return value is not None and float(value) >= float(lower)


def _at_most(value, upper: Real) -> bool:
    return value is not None and float(value) <= float(upper)


def _between(value, lower: Real, upper: Real) -> bool:
    """Both bounds inclusive."""
    return _at_least(value, lower) and _at_most(value, upper)


# ------------------------------------------------------------------------------
# Any value

def _is_in(value: Any, options: Sequence) -> bool:
    return value in options


def _not_null(value: Any) -> bool:
    return value is not None


# ------------------------------------------------------------------------------
# name -> (function, (min arity, max arity)); arity counts the value itself

DSL_VALIDATORS = {
    "isEmail": (_is_email, (1, 1)),
    "isURL": (_is_url, (1, 1)),
    "isMobilePhone": (_is_mobile_phone, (1, 1)),
    "matches": (_matches, (2, 2)),
    "contains": (_contains, (2, 2)),
    "equals": (_equals, (2, 2)),
    "isLength": (_is_length, (2, 3)),
    "isAlpha": (_is_alpha, (1, 1)),
    "isAlphanumeric": (_is_alphanumeric, (1, 1)),
    "isNumeric": (_is_numeric, (1, 1)),
    "isLowercase": (_is_lowercase, (1, 1)),
    "isUppercase": (_is_uppercase, (1, 1)),
    "isHexColor": (_is_hex_color, (1, 1)),
    "isUUID": (_is_uuid, (1, 1)),
    "isJSON": (_is_json, (1, 1)),

    "isInt": (_is_int, (1, 1)),
    "isFloat": (_is_float, (1, 1)),
    "min": (_at_least, (2, 2)),
    "max": (_at_most, (2, 2)),
    "range": (_between, (3, 3)),

    "isIn": (_is_in, (2, 2)),
    "notNull": (_not_null, (1, 1)),
}
