"""
Field of a linked entity.

A field is a named mapping of its resolved type information (primitive type,
constraints, flags and functor lists), so code that consumes plain type dicts
(column mapping, parameter sanitizers) accepts fields as well.
"""

import copy
from collections.abc import MutableMapping

from oolong.lib.types import BUILTIN_TYPE_ATTR, FUNCTOR_KEYS
from oolong.utils import normalize_display_name

# Field attributes a parameter does not take over from the field it is typed by
PARAM_OMITTED = ("isReference", "optional", "displayName", "subClass", "comment")


class Field(MutableMapping):

    def __init__(self, name: str, info: dict):
        self.name = name
        self.info = dict(info)
        self.info.setdefault("displayName", normalize_display_name(name))

    # -- mapping protocol ------------------------------------------------------

    def __getitem__(self, key):
        return self.info[key]

    def __setitem__(self, key, value):
        self.info[key] = value

    def __delitem__(self, key):
        del self.info[key]

    def __iter__(self):
        return iter(self.info)

    def __len__(self):
        return len(self.info)

    def __repr__(self):
        return f"Field({self.name!r}, {self.info!r})"

    # -------------------------------------------------------------------------

    @property
    def type(self) -> str:
        return self.info.get("type")

    @property
    def display_name(self) -> str:
        return self.info["displayName"]

    @property
    def optional(self) -> bool:
        return bool(self.info.get("optional"))

    @property
    def has_functors(self) -> bool:
        return any(self.info.get(key) for key in FUNCTOR_KEYS)

    def type_info(self) -> dict:
        """Only the storage shape of the field (what a foreign key copies)."""
        return {k: copy.deepcopy(self.info[k]) for k in BUILTIN_TYPE_ATTR if k in self.info}

    def clone(self) -> "Field":
        return Field(self.name, copy.deepcopy(self.info))

    def to_dict(self, with_functors: bool = True) -> dict:
        data = {"name": self.name}
        for key, value in self.info.items():
            if key == "subClass" or (not with_functors and key in FUNCTOR_KEYS):
                continue
            data[key] = copy.deepcopy(value)
        return data

    def as_param(self, name: str) -> dict:
        """Type info of a parameter declared as `<entity>.<this field>`."""
        data = {k: copy.deepcopy(v) for k, v in self.info.items() if k not in PARAM_OMITTED}
        data["name"] = name
        return data
