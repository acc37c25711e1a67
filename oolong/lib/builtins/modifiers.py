"""
Oolong built-in modifiers (`|name(args)`): take the field value first and
return the transformed value.
"""

import hashlib
import html


def _trim(s: str):
    if s is None:
        return None
    return str(s).strip()

def _ltrim(s: str):
    if s is None:
        return None
    return str(s).lstrip()

def _rtrim(s: str):
    if s is None:
        return None
    return str(s).rstrip()

def _lowercase(s: str):
    if s is None:
        return None
    return str(s).lower()

def _uppercase(s: str):
    if s is None:
        return None
    return str(s).upper()

def _escape(s: str):
    if s is None:
        return None
    return html.escape(str(s))

def _strip_low(s: str):
    """Remove ASCII control characters (keeps nothing below 0x20 nor 0x7f)."""
    if s is None:
        return None
    return "".join(ch for ch in str(s) if ord(ch) >= 32 and ord(ch) != 127)

def _to_int(x):
    if x is None:
        return None
    return int(float(x))

def _to_float(x):
    if x is None:
        return None
    return float(x)

def _to_boolean(x):
    if isinstance(x, str):
        return x.strip().lower() not in ("", "0", "false", "no", "off")
    return bool(x)

def _normalize_email(s: str):
    if s is None:
        return None
    local, _, domain = str(s).strip().partition("@")
    return f"{local}@{domain.lower()}" if domain else local


def _hash_password(s: str, salt: str = ""):
    """SHA-256 hex digest of salt + password."""
    if s is None:
        return None
    return hashlib.sha256((str(salt) + str(s)).encode("utf-8")).hexdigest()

def _default(x, value):
    return value if x is None else x


DSL_MODIFIERS = {
    "trim": (_trim, (1, 1)),
    "ltrim": (_ltrim, (1, 1)),
    "rtrim": (_rtrim, (1, 1)),
    "lowercase": (_lowercase, (1, 1)),
    "uppercase": (_uppercase, (1, 1)),
    "escape": (_escape, (1, 1)),
    "stripLow": (_strip_low, (1, 1)),
    "toInt": (_to_int, (1, 1)),
    "toFloat": (_to_float, (1, 1)),
    "toBoolean": (_to_boolean, (1, 1)),
    "normalizeEmail": (_normalize_email, (1, 1)),
    "hashPassword": (_hash_password, (1, 2)),
    "default": (_default, (2, 2)),
}
