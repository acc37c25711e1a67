"""
Oolong built-in composers (`=name(args)`): compute a field value from other
values only.
"""

import uuid
from datetime import datetime, timezone


def _concat(*parts) -> str:
    return "".join("" if p is None else str(p) for p in parts)

def _join(delim: str, *parts) -> str:
    return str(delim).join(str(p) for p in parts if p is not None)

def _now():
    return datetime.now(timezone.utc).replace(tzinfo=None)

def _uuid() -> str:
    return str(uuid.uuid4())

def _coalesce(*values):
    for value in values:
        if value is not None:
            return value
    return None


DSL_COMPOSERS = {
    "concat": (_concat, (1, None)),
    "join": (_join, (2, None)),
    "now": (_now, (0, 0)),
    "uuid": (_uuid, (0, 0)),
    "coalesce": (_coalesce, (1, None)),
}
