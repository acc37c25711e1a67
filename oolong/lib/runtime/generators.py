"""
Value generators for fields flagged `auto` that the database does not fill.
"""

import secrets
import string
import uuid
from datetime import datetime, timezone

from oolong.errors import ModelUsageError

_ALPHABET = string.ascii_letters + string.digits


def _random_text(length: int) -> str:
    return "".join(secrets.choice(_ALPHABET) for _ in range(length))


def generate_uuid(info):
    return str(uuid.uuid4())


def generate_shortid(info):
    return _random_text(12)


def generate_text(info):
    length = info.get("fixedLength") or info.get("maxLength")
    if isinstance(length, bool) or not length or length >= 36:
        return generate_uuid(info)
    return _random_text(int(length))


def generate_int(info):
    return secrets.randbelow(2 ** 31 - 1) + 1


def generate_datetime(info):
    return datetime.now(timezone.utc).replace(tzinfo=None)


AUTO_GENERATORS = {
    "uuid": generate_uuid,
    "shortid": generate_shortid,
}

TYPE_GENERATORS = {
    "text": generate_text,
    "int": generate_int,
    "datetime": generate_datetime,
}


def auto(info: dict):
    """Generate a value for an auto field, honoring a named `generator`."""
    generator = info.get("generator")
    if generator is not None:
        name = generator if isinstance(generator, str) else generator.get("name")
        if name not in AUTO_GENERATORS:
            raise ModelUsageError(f'Unknown generator "{name}".', {"field": info.get("name")})
        return AUTO_GENERATORS[name](info)

    if info["type"] not in TYPE_GENERATORS:
        raise ModelUsageError(
            f'Field "{info.get("name")}" of type "{info["type"]}" cannot be generated automatically.',
            {"field": info.get("name"), "type": info["type"]},
        )
    return TYPE_GENERATORS[info["type"]](info)
