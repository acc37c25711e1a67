"""
Linked entity.

An Entity is created by the linker from a raw declaration and linked exactly
once. Linking order:

    base entity -> comment -> features -> beforeFields hooks -> fields
    -> afterFields hooks -> key -> interfaces

Relation fields (`->` / `<->`) are not materialized here. They are recorded on
the owning module as pending relations and turned into foreign keys by the
relational modeler.
"""

import copy
from typing import Callable

from oolong.errors import (
    DuplicateDefinitionError,
    ReferenceNotFoundError,
    UsageError,
)
from oolong.lib.features import LifecycleHook, apply_feature
from oolong.lib.field import Field
from oolong.lib.types import Relationship, RelationShape
from oolong.utils import camel_case


class Entity:

    def __init__(self, linker, name: str, module, info: dict):
        self.linker = linker
        self.name = name
        self.module = module
        self.info = info

        self.base = None
        self.comment = None
        self.fields: dict[str, Field] = {}
        self.features: dict = {}
        self.key = None
        self.indexes: list[dict] = []
        self.interfaces: dict[str, dict] = {}
        self.is_relationship_entity = False
        self.initialized = False

        self._hooks: dict[LifecycleHook, list[Callable]] = {hook: [] for hook in LifecycleHook}

    def __repr__(self):
        return f"Entity({self.name!r}@{self.module.id if self.module else None})"

    # ------------------------------------------------------------------------------
    # Linking

    def on(self, hook: LifecycleHook, callback: Callable):
        """Register a callback fired once while this entity links."""
        self._hooks[hook].append(callback)
        return self

    def _fire(self, hook: LifecycleHook):
        callbacks, self._hooks[hook] = self._hooks[hook], []
        for callback in callbacks:
            callback()

    def link(self):
        if self.initialized:
            return self

        info = self.info

        if info.get("base"):
            self._inherit(self.linker.load_entity(self.module, info["base"]))

        if info.get("comment"):
            self.comment = info["comment"]

        for feature in info.get("features") or []:
            apply_feature(self, feature["name"], feature.get("options"))

        self._fire(LifecycleHook.BEFORE_FIELDS)

        for name, field_info in (info.get("fields") or {}).items():
            self.add_field(name, field_info)

        self._fire(LifecycleHook.AFTER_FIELDS)

        if info.get("key"):
            key = info["key"]
            self.key = [camel_case(k) for k in key] if isinstance(key, list) else camel_case(key)

        for key in self.key_fields:
            if key not in self.fields:
                raise ReferenceNotFoundError(f'Key field "{key}" not exist in entity "{self.name}".')

        for name, method in (info.get("interface") or {}).items():
            self.interfaces[name] = {
                **method,
                "accept": [self._accept_param(p) for p in method.get("accept") or []],
            }

        self.initialized = True
        return self

    def _inherit(self, base: "Entity"):
        if not base.initialized:
            raise UsageError(f'Base entity "{base.name}" of "{self.name}" is not initialized.')

        # one visited map for the whole copy keeps shared parts shared
        visited = {}
        self.base = base
        self.fields = copy.deepcopy(base.fields, visited)
        self.features = copy.deepcopy(base.features, visited)
        self.key = copy.deepcopy(base.key, visited)
        self.indexes = copy.deepcopy(base.indexes, visited)
        self.interfaces = copy.deepcopy(base.interfaces, visited)

        # relation fields of the base belong to the derived entity as well
        for raw in list(base.module.relation):
            if raw["left"] == base.name:
                self.module.relation.append({**copy.deepcopy(raw), "left": self.name})

    def _accept_param(self, param: dict) -> dict:
        if "." in param["type"]:
            entity_name, field_name = param["type"].split(".", 1)
            owner = self if entity_name == self.name else self.linker.load_entity(self.module, entity_name)
            return owner.get_entity_attribute(field_name).as_param(param["name"])

        resolved = self.linker.track_back_type(self.module, param)
        resolved.pop("subClass", None)
        return resolved

    # ------------------------------------------------------------------------------
    # Fields

    @property
    def key_fields(self) -> list:
        if not self.key:
            return []
        return list(self.key) if isinstance(self.key, list) else [self.key]

    @property
    def key_field(self) -> Field:
        """The single key field (composite keys have none)."""
        if isinstance(self.key, list):
            raise UsageError(f'Entity "{self.name}" has a composite key.')
        return self.fields[self.key]

    def has_field(self, name: str) -> bool:
        return camel_case(name) in self.fields

    def add_field(self, name: str, info: dict):
        name = camel_case(name)
        if name in self.fields:
            raise DuplicateDefinitionError(f"Field name [{name}] conflicts in entity [{self.name}].")

        if "type" in info:
            resolved = self.linker.track_back_type(self.module, info)
            self.fields[name] = Field(name, resolved)
            if not self.key:
                self.key = name
        elif info.get("belongTo") or info.get("bindTo"):
            relationship = Relationship.MANY_TO_ONE if info.get("belongTo") else Relationship.ONE_TO_ONE
            self.module.relation.append({
                "left": self.name,
                "relationship": relationship.value,
                "shape": RelationShape.SINGLE.value,
                "targets": [{"entity": info.get("belongTo") or info.get("bindTo"), "leftField": name}],
                "optional": bool(info.get("optional")),
            })
        else:
            raise UsageError(f"Invalid field info of [{name}].")

        return self

    def get_entity_attribute(self, name: str) -> Field:
        if name == "$key":
            return self.key_field
        field = self.fields.get(camel_case(name))
        if field is None:
            raise ReferenceNotFoundError(f'Field "{name}" not found in entity "{self.name}".')
        return field

    # ------------------------------------------------------------------------------
    # Indexes and features

    def has_index_on(self, fields) -> bool:
        wanted = sorted(fields)
        return any(index["fields"] == wanted for index in self.indexes)

    def add_index(self, index: dict):
        fields = index["fields"]
        fields = sorted(camel_case(f) for f in ([fields] if isinstance(fields, str) else fields))

        for name in fields:
            if name not in self.fields:
                raise ReferenceNotFoundError(
                    f"Index references non-exist field: {name}, entity: {self.name}."
                )

        if self.has_index_on(fields):
            raise DuplicateDefinitionError(
                f"Index on [{', '.join(fields)}] already exist in entity [{self.name}]."
            )

        self.indexes.append({"fields": fields, "unique": bool(index.get("unique"))})
        return self

    def add_indexes(self):
        """Add the declared indexes (called once relation fields are materialized)."""
        for index in self.info.get("indexes") or []:
            self.add_index(index)
        return self

    def add_feature(self, name: str, setting, allow_multiple: bool = False):
        if allow_multiple:
            self.features.setdefault(name, []).append(setting)
        else:
            if name in self.features:
                raise DuplicateDefinitionError(f'Duplicate feature "{name}" in entity "{self.name}".')
            self.features[name] = setting
        return self

    def has_feature(self, name: str) -> bool:
        return name in self.features

    def mark_as_relationship_entity(self):
        self.is_relationship_entity = True
        return self

    # ------------------------------------------------------------------------------
    # Copying

    def clone(self, visited: dict = None) -> "Entity":
        """
        Copy of this entity for a modeling pass. `visited` maps already copied
        objects to their copies so objects shared between entities stay shared.
        """
        visited = {} if visited is None else visited
        if id(self) in visited:
            return visited[id(self)]

        entity = Entity(self.linker, self.name, self.module, self.info)
        visited[id(self)] = entity

        entity.base = self.base
        entity.comment = self.comment
        entity.fields = copy.deepcopy(self.fields, visited)
        entity.features = copy.deepcopy(self.features, visited)
        entity.key = copy.deepcopy(self.key, visited)
        entity.indexes = copy.deepcopy(self.indexes, visited)
        entity.interfaces = copy.deepcopy(self.interfaces, visited)
        entity.is_relationship_entity = self.is_relationship_entity
        entity.initialized = self.initialized
        return entity

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "comment": self.comment,
            "key": self.key,
            "fields": {name: field.to_dict() for name, field in self.fields.items()},
            "features": copy.deepcopy(self.features),
            "indexes": copy.deepcopy(self.indexes),
            "isRelationshipEntity": self.is_relationship_entity,
        }
