"""
Type sanitizers.

Every primitive type has a `process_<type>(meta, raw)` function that turns raw
input into the value stored for a field or passed as a parameter. `meta` is
the field (or parameter) type info; `meta["name"]` names it in error messages.
A value that cannot be converted raises ModelValidationError.
"""

import base64
import csv
import io
import json
import xml.etree.ElementTree as ElementTree
from datetime import date, datetime, time

from oolong.errors import ModelValidationError


def _invalid(meta, what: str):
    return ModelValidationError(
        f'Invalid "{meta.get("name")}" which should be {what}.',
        {"field": meta.get("name"), "type": meta.get("type")},
    )


def is_empty(value) -> bool:
    """None, an empty string, an empty collection."""
    if value is None:
        return True
    if isinstance(value, (str, bytes, list, tuple, dict, set)):
        return len(value) == 0
    return False


def process_int(meta, raw):
    if raw is None:
        return None
    if isinstance(raw, bool):
        return int(raw)
    try:
        number = float(raw)
    except (TypeError, ValueError):
        raise _invalid(meta, "an integer") from None
    if number != int(number):
        raise _invalid(meta, "an integer")
    value = int(number)
    if meta.get("unsigned") and value < 0:
        raise _invalid(meta, "an unsigned integer")
    return value


def process_float(meta, raw):
    if raw is None:
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise _invalid(meta, "a float number") from None
    if meta.get("decimalDigits") is not None:
        value = round(value, int(meta["decimalDigits"]))
    return value


def process_bool(meta, raw):
    if raw is None or isinstance(raw, bool):
        return raw
    if isinstance(raw, (int, float)):
        return raw != 0
    if isinstance(raw, str):
        lowered = raw.strip().lower()
        if lowered in ("true", "1", "yes", "on"):
            return True
        if lowered in ("false", "0", "no", "off", ""):
            return False
    raise _invalid(meta, "a boolean value")


def process_text(meta, raw):
    if raw is None:
        return None
    if isinstance(raw, (dict, list, bytes)):
        raise _invalid(meta, "a text")
    value = str(raw)
    if meta.get("fixedLength") and isinstance(meta["fixedLength"], int) and len(value) != meta["fixedLength"]:
        raise _invalid(meta, f"a text of {meta['fixedLength']} characters")
    if meta.get("maxLength") and len(value) > meta["maxLength"]:
        raise _invalid(meta, f"a text of at most {meta['maxLength']} characters")
    return value


def process_binary(meta, raw):
    if raw is None or isinstance(raw, bytes):
        return raw
    if isinstance(raw, bytearray):
        return bytes(raw)
    if isinstance(raw, str):
        try:
            return base64.b64decode(raw, validate=True)
        except ValueError:
            raise _invalid(meta, "a base64 encoded binary") from None
    raise _invalid(meta, "a binary value")


_DATETIME_FORMATS = {
    "date": ("%Y-%m-%d",),
    "time": ("%H:%M:%S", "%H:%M"),
    "year": ("%Y",),
}


def process_datetime(meta, raw):
    if raw is None:
        return None
    kind = meta.get("range") or "datetime"

    if isinstance(raw, datetime):
        value = raw
    elif isinstance(raw, date):
        value = datetime(raw.year, raw.month, raw.day)
    elif isinstance(raw, time):
        return raw
    elif isinstance(raw, (int, float)) and not isinstance(raw, bool):
        if kind == "year":
            return int(raw)
        value = datetime.fromtimestamp(raw)
    elif isinstance(raw, str):
        value = None
        try:
            value = datetime.fromisoformat(raw.strip())
        except ValueError:
            for fmt in _DATETIME_FORMATS.get(kind, ()):
                try:
                    value = datetime.strptime(raw.strip(), fmt)
                    break
                except ValueError:
                    continue
        if value is None:
            raise _invalid(meta, f"a valid {kind}")
    else:
        raise _invalid(meta, f"a valid {kind}")

    if kind == "date":
        return value.date()
    if kind == "time":
        return value.time()
    if kind == "year":
        return value.year
    return value


def process_json(meta, raw):
    if raw is None or isinstance(raw, (dict, list)):
        return raw
    if isinstance(raw, str):
        try:
            return json.loads(raw)
        except ValueError:
            raise _invalid(meta, "a json value") from None
    raise _invalid(meta, "a json value")


def process_xml(meta, raw):
    if raw is None:
        return None
    value = str(raw)
    try:
        ElementTree.fromstring(value)
    except ElementTree.ParseError:
        raise _invalid(meta, "a well-formed xml document") from None
    return value


def process_enum(meta, raw):
    if raw is None:
        return None
    value = str(raw)
    if value not in (meta.get("values") or []):
        raise _invalid(meta, f"one of {meta.get('values')}")
    return value


def process_csv(meta, raw):
    """A list is serialized into one CSV line; a string is kept as is."""
    if raw is None:
        return None
    if isinstance(raw, (list, tuple)):
        buffer = io.StringIO()
        csv.writer(buffer, lineterminator="").writerow(raw)
        return buffer.getvalue()
    if isinstance(raw, str):
        return raw
    raise _invalid(meta, "a csv value")


SANITIZERS = {
    "int": process_int,
    "float": process_float,
    "decimal": process_float,
    "bool": process_bool,
    "text": process_text,
    "binary": process_binary,
    "datetime": process_datetime,
    "json": process_json,
    "xml": process_xml,
    "enum": process_enum,
    "csv": process_csv,
}


def sanitize(meta, raw):
    """Dispatch to the sanitizer of `meta["type"]`."""
    return SANITIZERS[meta["type"]](meta, raw)
