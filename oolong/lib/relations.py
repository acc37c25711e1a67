"""
Relation expansion.

Relations come from two places: `relation` statements and relation fields
(`field -> entity`, `field <-> entity`) which entities record on their module
while linking. Starting from the entities a schema lists, the expander walks
the relation graph breadth first, adding every reachable entity and every
traversed relation to the schema.

A many-to-many relation is never kept as is. It becomes a junction entity
named `<left><PluralRight>` with a composite key of two foreign keys, plus two
many-to-one relations from the junction to both sides.
"""

from collections import deque
from dataclasses import asdict, dataclass, field
from typing import Optional

from oolong.errors import NamingConflictError, UsageError
from oolong.lib.context import ENTITY_PREFIX
from oolong.lib.entity import Entity
from oolong.lib.types import Relationship, RelationShape
from oolong.utils import camel_case, pascal_case, pluralize


@dataclass
class Relation:
    left: str
    right: str
    relationship: str
    left_field: Optional[str] = None
    right_field: Optional[str] = None
    optional: bool = False
    # foreign key fields of a "multi" relation, indexed together
    multi: list = field(default_factory=list)
    # the left field already exists on the left entity (junction entities)
    materialized: bool = False

    def to_dict(self) -> dict:
        return asdict(self)


def foreign_key_field_naming(entity_name: str, entity) -> str:
    """`user` keyed by `id` -> `userId`; `userId` keyed by `id` -> `userId`."""
    left = camel_case(entity_name)
    right = pascal_case(entity.key)
    if left.endswith(right):
        return left
    return left + right


def junction_entity_name(left: str, right: str) -> str:
    return left + pascal_case(pluralize(right))


class RelationExpander:

    def __init__(self, linker, schema):
        self.linker = linker
        self.schema = schema
        self.logger = linker.logger
        self._processed = set()

    def expand(self):
        queue = deque(self.schema.entities)
        visited = set(queue)

        while queue:
            entity_name = queue.popleft()

            for relation, left, right in self._relations_of(entity_name):
                self.schema.add_relation(relation, left, right)
                for name in (relation.left, relation.right):
                    if name not in visited:
                        visited.add(name)
                        queue.append(name)

        return self.schema

    # ------------------------------------------------------------------------------
    # Edge extraction

    def _pending(self, entity_name: str):
        """Raw relation declarations whose left side is `entity_name`, in load order."""
        pending = []
        for module in list(self.linker.context.modules.values()):
            for position, raw in enumerate(module.relation):
                if raw["left"] == entity_name and (module.id, position) not in self._processed:
                    self._processed.add((module.id, position))
                    pending.append((module, raw))
        return pending

    def _relations_of(self, entity_name: str) -> list:
        edges = []
        for module, raw in self._pending(entity_name):
            left = self.linker.load_entity(module, raw["left"])
            relationship = raw["relationship"]
            targets = raw["targets"]

            if relationship == Relationship.MANY_TO_MANY.value:
                if raw["shape"] != RelationShape.SINGLE.value:
                    raise UsageError(f'Many-to-many relation of "{left.name}" must have exactly one target.')
                right = self.linker.load_entity(module, targets[0]["entity"])
                edges.extend(self._junction(left, right))
                continue

            rights = [self.linker.load_entity(module, target["entity"]) for target in targets]

            multi = []
            if raw["shape"] == RelationShape.MULTI.value:
                multi = [
                    target.get("leftField") or foreign_key_field_naming(right.name, right)
                    for target, right in zip(targets, rights)
                ]

            for target, right in zip(targets, rights):
                self.logger.debug(
                    f"Relation [{left.name}] {relationship} [{right.name}]"
                )
                relation = Relation(
                    left=left.name,
                    right=right.name,
                    relationship=relationship,
                    left_field=target.get("leftField"),
                    optional=bool(raw.get("optional")),
                    multi=list(multi),
                )
                edges.append((relation, left, right))

        return edges

    def _junction(self, left, right) -> list:
        name = junction_entity_name(left.name, right.name)

        if self.schema.has_entity(name):
            raise NamingConflictError(
                f'Entity [{name}] conflicts with entity [{self.schema.entities[name].module.id}] '
                f"in schema [{self.schema.name}]."
            )

        for side in (left, right):
            if isinstance(side.key, list):
                raise UsageError(
                    f'Multi-fields key of entity "{side.name}" is not supported in a many-to-many relation.'
                )

        self.logger.debug(f'Create a relation entity for "{left.name}" and "{right.name}".')

        left_field = foreign_key_field_naming(left.name, left)
        right_field = foreign_key_field_naming(right.name, right)

        info = {
            "name": name,
            "features": [{"name": "createTimestamp", "options": None}],
            "fields": {
                left_field: {**left.key_field.type_info(), "isReference": True},
                right_field: {**right.key_field.type_info(), "isReference": True},
            },
            "key": [left_field, right_field],
        }

        module = self.schema.module
        self.linker.context.claim_name(ENTITY_PREFIX, name, module.id)
        junction = Entity(self.linker, name, module, info)
        junction.link()
        junction.mark_as_relationship_entity()
        self.linker.context.entities[f"{name}@{module.id}"] = junction

        self.schema.add_entity(junction)

        return [
            (
                Relation(left=name, right=left.name, relationship=Relationship.MANY_TO_ONE.value,
                         left_field=left_field, right_field=left.key, materialized=True),
                junction,
                left,
            ),
            (
                Relation(left=name, right=right.name, relationship=Relationship.MANY_TO_ONE.value,
                         left_field=right_field, right_field=right.key, materialized=True),
                junction,
                right,
            ),
        ]
